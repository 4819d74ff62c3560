"""
Scryfall response parsers.

Turns Scryfall card, list and catalog JSON objects into domain models.

API reference: https://scryfall.com/docs/api/cards
"""

from typing import Any

from cardledger.models.card import CardPrices, ImageUris, ProviderCardData, SearchResult

VALID_RARITIES = frozenset({"common", "uncommon", "rare", "mythic", "special", "bonus"})


def _normalize_rarity(rarity: str) -> str:
    """Normalize rarity to one Scryfall documents, defaulting to common."""
    return rarity if rarity in VALID_RARITIES else "common"


def _parse_image_uris(card: dict[str, Any]) -> ImageUris | None:
    uris = card.get("image_uris")

    # Double-faced cards carry images per face
    if uris is None:
        faces = card.get("card_faces") or []
        if faces:
            uris = faces[0].get("image_uris")

    if not uris:
        return None

    return ImageUris(
        small=uris.get("small"),
        normal=uris.get("normal"),
        large=uris.get("large"),
    )


def _parse_prices(card: dict[str, Any]) -> CardPrices:
    prices = card.get("prices") or {}
    return CardPrices(
        usd=prices.get("usd"),
        usd_foil=prices.get("usd_foil"),
        eur=prices.get("eur"),
        eur_foil=prices.get("eur_foil"),
    )


def parse_card(card: dict[str, Any]) -> ProviderCardData:
    """
    Build ProviderCardData from a Scryfall card object.

    Raises:
        KeyError: If the object has no id or name
    """
    mana_cost = card.get("mana_cost")
    if mana_cost is None and card.get("card_faces"):
        mana_cost = " // ".join(
            face.get("mana_cost", "") for face in card["card_faces"] if face.get("mana_cost")
        ) or None

    return ProviderCardData(
        id=card["id"],
        name=card["name"],
        set_code=card.get("set", ""),
        set_name=card.get("set_name", ""),
        rarity=_normalize_rarity(card.get("rarity", "common")),
        mana_cost=mana_cost,
        type_line=card.get("type_line"),
        image_uris=_parse_image_uris(card),
        prices=_parse_prices(card),
        legalities=dict(card.get("legalities") or {}),
    )


def parse_search_result(payload: dict[str, Any]) -> SearchResult:
    """Build a SearchResult from a Scryfall list object."""
    cards = [parse_card(card) for card in payload.get("data", [])]
    return SearchResult(
        cards=cards,
        total_cards=int(payload.get("total_cards", len(cards))),
        has_more=bool(payload.get("has_more", False)),
    )


def parse_catalog(payload: dict[str, Any]) -> list[str]:
    """Extract the names from a Scryfall catalog object (autocomplete)."""
    return [str(name) for name in payload.get("data", [])]
