"""
Collection valuation.

Price precedence (used for every displayed or summed price):
1. USD non-foil price
2. USD foil price
3. Zero (unenriched card, or no USD price for this printing)
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from cardledger.models.card import EnrichedCard

ZERO = Decimal("0")


def _to_decimal(value: object) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return price if price.is_finite() else None


def unit_price(card: EnrichedCard) -> Decimal:
    """Price of a single copy of a card, following the precedence above."""
    if card.provider is None:
        return ZERO

    prices = card.provider.prices
    for candidate in (prices.usd, prices.usd_foil):
        price = _to_decimal(candidate)
        if price is not None:
            return price
    return ZERO


@dataclass(frozen=True, slots=True)
class CollectionValuation:
    """
    Value summary for a list of cards.

    Attributes:
        total_value: Sum of unit price x quantity
        total_cards: Sum of quantities
        priced_cards: Records with a non-zero unit price
        unpriced_cards: Records valued at zero
        unit_prices: Unit price per record, in input order
    """

    total_value: Decimal = ZERO
    total_cards: int = 0
    priced_cards: int = 0
    unpriced_cards: int = 0
    unit_prices: list[Decimal] = field(default_factory=list)


def value_collection(cards: Sequence[EnrichedCard]) -> CollectionValuation:
    """Compute total value and per-card unit prices."""
    prices = [unit_price(card) for card in cards]
    total = sum(
        (price * card.local.quantity for price, card in zip(prices, cards, strict=True)),
        ZERO,
    )
    priced = sum(1 for price in prices if price > ZERO)

    return CollectionValuation(
        total_value=total,
        total_cards=sum(card.local.quantity for card in cards),
        priced_cards=priced,
        unpriced_cards=len(prices) - priced,
        unit_prices=prices,
    )
