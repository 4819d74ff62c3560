from cardledger.services.card_cache import (
    CacheStatistics,
    CardCache,
    CardCacheProtocol,
    NullCardCache,
)
from cardledger.services.deck_import import DeckImporter, ImportResult
from cardledger.services.enrichment import CardEnricher
from cardledger.services.scryfall_client import ScryfallClient
from cardledger.services.valuation import CollectionValuation, unit_price, value_collection

__all__ = [
    "CacheStatistics",
    "CardCache",
    "CardCacheProtocol",
    "CardEnricher",
    "CollectionValuation",
    "DeckImporter",
    "ImportResult",
    "NullCardCache",
    "ScryfallClient",
    "unit_price",
    "value_collection",
]
