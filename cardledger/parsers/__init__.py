from cardledger.parsers.deck_list import parse_deck_list
from cardledger.parsers.scryfall import parse_card, parse_catalog, parse_search_result

__all__ = [
    "parse_card",
    "parse_catalog",
    "parse_deck_list",
    "parse_search_result",
]
