"""
Card API endpoints.

Single-card reads, updates and deletes, plus direct Scryfall lookups
(search, autocomplete, fetch by Scryfall id).

Single-card reads go through enrichment and never fail on Scryfall errors.
Direct lookups have nothing to fall back to, so Scryfall errors propagate
(404 for unknown cards, 502 when Scryfall is unavailable).
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.api.dependencies import get_enricher, get_scryfall_client, get_user_id
from cardledger.db import card_to_record, delete_card, get_card, update_card
from cardledger.db.database import get_session
from cardledger.models.card import EnrichedCard, ProviderCardData
from cardledger.models.failure import InvalidInputError, ResourceNotFoundError
from cardledger.services.enrichment import CardEnricher
from cardledger.services.scryfall_client import ScryfallClient
from cardledger.services.valuation import unit_price

router = APIRouter(prefix="/cards", tags=["cards"])

# Card fields that may be cleared by sending null
NULLABLE_CARD_FIELDS = frozenset({"current_deck", "set_code", "set_name"})


class ImageUrisResponse(BaseModel):
    small: str | None = None
    normal: str | None = None
    large: str | None = None


class PricesResponse(BaseModel):
    usd: str | None = None
    usd_foil: str | None = None
    eur: str | None = None
    eur_foil: str | None = None


class ScryfallCardResponse(BaseModel):
    """Descriptive card data from Scryfall."""

    id: str
    name: str
    mana_cost: str | None = None
    type_line: str | None = None
    set_code: str
    set_name: str
    rarity: str
    image_uris: ImageUrisResponse | None = None
    prices: PricesResponse = Field(default_factory=PricesResponse)
    legalities: dict[str, str] = Field(default_factory=dict)


class CardResponse(BaseModel):
    """A collection card, with Scryfall data when it could be fetched."""

    id: str
    collection_id: str
    scryfall_id: str
    owner_name: str
    current_deck: str | None = None
    is_borrowed: bool = False
    is_foil: bool = False
    quantity: int = 1
    set_code: str | None = None
    set_name: str | None = None
    added_at: datetime | None = None
    unit_price: Decimal = Field(
        default=Decimal("0"),
        description="USD price, falling back to USD foil price, else 0",
    )
    scryfall_data: ScryfallCardResponse | None = Field(
        default=None,
        description="Null when Scryfall data is unavailable for this card",
    )


class SearchResponse(BaseModel):
    total_cards: int = 0
    has_more: bool = False
    data: list[ScryfallCardResponse] = Field(default_factory=list)


class AutocompleteResponse(BaseModel):
    data: list[str] = Field(default_factory=list)


class CardUpdateRequest(BaseModel):
    """
    Fields to change on a card.

    scryfall_id cannot be changed; delete the card and add it again instead.
    """

    model_config = ConfigDict(extra="forbid")

    owner_name: str | None = Field(default=None, min_length=1, max_length=255)
    current_deck: str | None = Field(default=None, max_length=255)
    is_borrowed: bool | None = None
    is_foil: bool | None = None
    quantity: int | None = Field(default=None, ge=1)
    set_code: str | None = Field(default=None, max_length=10)
    set_name: str | None = Field(default=None, max_length=255)


class CardDeleteResponse(BaseModel):
    id: str
    deleted: bool


def scryfall_to_response(data: ProviderCardData) -> ScryfallCardResponse:
    image_uris = None
    if data.image_uris is not None:
        image_uris = ImageUrisResponse(
            small=data.image_uris.small,
            normal=data.image_uris.normal,
            large=data.image_uris.large,
        )

    return ScryfallCardResponse(
        id=data.id,
        name=data.name,
        mana_cost=data.mana_cost,
        type_line=data.type_line,
        set_code=data.set_code,
        set_name=data.set_name,
        rarity=data.rarity,
        image_uris=image_uris,
        prices=PricesResponse(
            usd=data.prices.usd,
            usd_foil=data.prices.usd_foil,
            eur=data.prices.eur,
            eur_foil=data.prices.eur_foil,
        ),
        legalities=data.legalities,
    )


def enriched_to_response(card: EnrichedCard) -> CardResponse:
    local = card.local
    return CardResponse(
        id=local.id,
        collection_id=local.collection_id,
        scryfall_id=local.scryfall_id,
        owner_name=local.owner_name,
        current_deck=local.current_deck,
        is_borrowed=local.is_borrowed,
        is_foil=local.is_foil,
        quantity=local.quantity,
        set_code=local.set_code,
        set_name=local.set_name,
        added_at=local.added_at,
        unit_price=unit_price(card),
        scryfall_data=scryfall_to_response(card.provider) if card.provider else None,
    )


@router.get("/search", response_model=SearchResponse)
async def search_cards(
    q: Annotated[str, Query(min_length=1, description="Scryfall search query")],
    _user_id: Annotated[str, Depends(get_user_id)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> SearchResponse:
    """
    Search Scryfall.

    No matches is an empty result, not an error.
    """
    result = await client.search(q)
    return SearchResponse(
        total_cards=result.total_cards,
        has_more=result.has_more,
        data=[scryfall_to_response(card) for card in result.cards],
    )


@router.get("/autocomplete", response_model=AutocompleteResponse)
async def autocomplete_cards(
    q: Annotated[str, Query(min_length=1, description="Partial card name")],
    _user_id: Annotated[str, Depends(get_user_id)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> AutocompleteResponse:
    """Card name suggestions for a partial name."""
    return AutocompleteResponse(data=await client.autocomplete(q))


@router.get("/scryfall/{scryfall_id}", response_model=ScryfallCardResponse)
async def get_scryfall_card(
    scryfall_id: str,
    _user_id: Annotated[str, Depends(get_user_id)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
) -> ScryfallCardResponse:
    """Full card detail straight from Scryfall. Errors propagate."""
    return scryfall_to_response(await client.get_by_id(scryfall_id))


@router.get("/{card_id}", response_model=CardResponse)
async def get_user_card(
    card_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    enricher: Annotated[CardEnricher, Depends(get_enricher)],
) -> CardResponse:
    """Get one card, enriched when Scryfall data is available."""
    card = await get_card(session, user_id, card_id)
    if card is None:
        raise ResourceNotFoundError("card", card_id)

    return enriched_to_response(await enricher.enrich(card_to_record(card)))


@router.patch("/{card_id}", response_model=CardResponse)
async def update_user_card(
    card_id: str,
    request: CardUpdateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    enricher: Annotated[CardEnricher, Depends(get_enricher)],
) -> CardResponse:
    """Update a card's ownership metadata."""
    changes = {}
    for name, value in request.model_dump(exclude_unset=True).items():
        if name in NULLABLE_CARD_FIELDS:
            changes[name] = value or None
        elif value is not None:
            changes[name] = value

    if not changes:
        raise InvalidInputError("No fields to update")

    card = await update_card(session, user_id, card_id, changes)
    if card is None:
        raise ResourceNotFoundError("card", card_id)

    return enriched_to_response(await enricher.enrich(card_to_record(card)))


@router.delete("/{card_id}", response_model=CardDeleteResponse)
async def delete_user_card(
    card_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CardDeleteResponse:
    """Remove a card from its collection."""
    if not await delete_card(session, user_id, card_id):
        raise ResourceNotFoundError("card", card_id)
    return CardDeleteResponse(id=card_id, deleted=True)
