"""
Collection API endpoints.

CRUD for a user's collections, plus the collection card views:
- listing cards (every card enriched concurrently, with valuation)
- adding a single card (verified against Scryfall first)
- importing a deck list
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.api.cards import CardResponse, enriched_to_response
from cardledger.api.dependencies import (
    get_card_cache,
    get_deck_importer,
    get_enricher,
    get_scryfall_client,
    get_user_id,
)
from cardledger.db import (
    card_to_record,
    create_card,
    create_collection,
    delete_collection,
    get_cards_by_collection,
    get_collection,
    get_collection_stats,
    get_collections_by_user,
    update_collection,
)
from cardledger.db.database import get_session
from cardledger.models.card import DeckListEntry, EnrichedCard
from cardledger.models.db import CollectionDB
from cardledger.models.failure import InvalidInputError, ResourceNotFoundError
from cardledger.parsers.deck_list import parse_deck_list
from cardledger.services.card_cache import CardCacheProtocol
from cardledger.services.deck_import import DeckImporter
from cardledger.services.enrichment import CardEnricher
from cardledger.services.scryfall_client import ScryfallClient
from cardledger.services.valuation import value_collection

TcgType = Literal["magic", "pokemon", "yugioh"]

router = APIRouter(prefix="/collections", tags=["collections"])


class CollectionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    tcg_type: TcgType = "magic"


class CollectionUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    tcg_type: TcgType | None = None


class CollectionResponse(BaseModel):
    id: str
    name: str
    tcg_type: str
    created_at: datetime | None = None


class CollectionListResponse(BaseModel):
    collections: list[CollectionResponse] = Field(default_factory=list)


class CollectionStatsResponse(BaseModel):
    """Card counts for a collection."""

    collection_id: str
    total_cards: int = Field(default=0, description="Sum of card quantities")
    unique_cards: int = Field(default=0, description="Distinct Scryfall cards")
    borrowed_cards: int = Field(default=0, description="Card records marked as borrowed")


class CollectionCardsResponse(BaseModel):
    """Every card in a collection, enriched, with the collection's value."""

    collection_id: str
    cards: list[CardResponse] = Field(default_factory=list)
    total_cards: int = 0
    total_value: Decimal = Decimal("0")
    priced_cards: int = 0
    unpriced_cards: int = 0
    unenriched_cards: int = Field(
        default=0,
        description="Cards shown without Scryfall data because it could not be fetched",
    )


class CardCreateRequest(BaseModel):
    scryfall_id: str = Field(..., min_length=1, max_length=255)
    owner_name: str = Field(..., min_length=1, max_length=255)
    current_deck: str | None = Field(default=None, max_length=255)
    is_borrowed: bool = False
    is_foil: bool = False
    quantity: int = Field(default=1, ge=1)
    set_code: str | None = Field(default=None, max_length=10)
    set_name: str | None = Field(default=None, max_length=255)


class DeckEntryRequest(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)


class DeckImportRequest(BaseModel):
    """
    A deck list to import, as raw text or pre-parsed entries.

    When both are given, entries win.
    """

    owner_name: str = Field(..., min_length=1, max_length=255)
    text: str | None = Field(
        default=None,
        description="Deck list text, one card per line",
        examples=["4 Lightning Bolt\n2x Counterspell\nIsland"],
    )
    entries: list[DeckEntryRequest] | None = None


class ImportFailureResponse(BaseModel):
    name: str
    reason: str


class DeckImportResponse(BaseModel):
    collection_id: str
    imported: list[CardResponse] = Field(default_factory=list)
    failed: list[ImportFailureResponse] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    id: str
    deleted: bool


def _collection_to_response(collection: CollectionDB) -> CollectionResponse:
    return CollectionResponse(
        id=collection.id,
        name=collection.name,
        tcg_type=collection.tcg_type,
        created_at=collection.created_at,
    )


async def _require_collection(
    session: AsyncSession, user_id: str, collection_id: str
) -> CollectionDB:
    collection = await get_collection(session, user_id, collection_id)
    if collection is None:
        raise ResourceNotFoundError("collection", collection_id)
    return collection


@router.get("", response_model=CollectionListResponse)
async def list_collections(
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionListResponse:
    """List the user's collections, newest first."""
    collections = await get_collections_by_user(session, user_id)
    return CollectionListResponse(collections=[_collection_to_response(c) for c in collections])


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_user_collection(
    request: CollectionCreateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """Create a collection."""
    collection = await create_collection(session, user_id, request.name.strip(), request.tcg_type)
    return _collection_to_response(collection)


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_user_collection(
    collection_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    return _collection_to_response(await _require_collection(session, user_id, collection_id))


@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_user_collection(
    collection_id: str,
    request: CollectionUpdateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionResponse:
    """Rename a collection or change its game."""
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise InvalidInputError("No fields to update")

    collection = await update_collection(session, user_id, collection_id, changes)
    if collection is None:
        raise ResourceNotFoundError("collection", collection_id)
    return _collection_to_response(collection)


@router.delete("/{collection_id}", response_model=DeleteResponse)
async def delete_user_collection(
    collection_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Delete a collection and every card in it."""
    if not await delete_collection(session, user_id, collection_id):
        raise ResourceNotFoundError("collection", collection_id)
    return DeleteResponse(id=collection_id, deleted=True)


@router.get("/{collection_id}/stats", response_model=CollectionStatsResponse)
async def get_user_collection_stats(
    collection_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CollectionStatsResponse:
    """Card counts for a collection. Does not contact Scryfall."""
    await _require_collection(session, user_id, collection_id)
    stats = await get_collection_stats(session, collection_id)
    return CollectionStatsResponse(
        collection_id=collection_id,
        total_cards=stats.total_cards,
        unique_cards=stats.unique_cards,
        borrowed_cards=stats.borrowed_cards,
    )


@router.get("/{collection_id}/cards", response_model=CollectionCardsResponse)
async def list_collection_cards(
    collection_id: str,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    enricher: Annotated[CardEnricher, Depends(get_enricher)],
) -> CollectionCardsResponse:
    """
    List every card in a collection with Scryfall data and prices.

    Cards whose Scryfall data cannot be fetched are still listed, with
    `scryfall_data` null and a unit price of 0.
    """
    await _require_collection(session, user_id, collection_id)
    db_cards = await get_cards_by_collection(session, user_id, collection_id)

    enriched = await enricher.enrich_all([card_to_record(card) for card in db_cards])
    valuation = value_collection(enriched)

    return CollectionCardsResponse(
        collection_id=collection_id,
        cards=[enriched_to_response(card) for card in enriched],
        total_cards=valuation.total_cards,
        total_value=valuation.total_value,
        priced_cards=valuation.priced_cards,
        unpriced_cards=valuation.unpriced_cards,
        unenriched_cards=sum(1 for card in enriched if not card.is_enriched),
    )


@router.post(
    "/{collection_id}/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_collection_card(
    collection_id: str,
    request: CardCreateRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
    cache: Annotated[CardCacheProtocol, Depends(get_card_cache)],
) -> CardResponse:
    """
    Add a card to a collection.

    The Scryfall id is verified first: an unknown id is a 404 and nothing is
    stored. Set code and name default to the Scryfall printing.
    """
    await _require_collection(session, user_id, collection_id)

    data = await client.get_by_id(request.scryfall_id)
    cache.put(data.id, data)

    card = await create_card(
        session,
        collection_id=collection_id,
        scryfall_id=data.id,
        owner_name=request.owner_name.strip(),
        current_deck=request.current_deck,
        is_borrowed=request.is_borrowed,
        is_foil=request.is_foil,
        quantity=request.quantity,
        set_code=request.set_code or data.set_code,
        set_name=request.set_name or data.set_name,
    )
    return enriched_to_response(EnrichedCard(local=card_to_record(card), provider=data))


@router.post("/{collection_id}/import", response_model=DeckImportResponse)
async def import_deck_list(
    collection_id: str,
    request: DeckImportRequest,
    user_id: Annotated[str, Depends(get_user_id)],
    session: Annotated[AsyncSession, Depends(get_session)],
    importer: Annotated[DeckImporter, Depends(get_deck_importer)],
) -> DeckImportResponse:
    """
    Import a deck list into a collection.

    Each line is resolved independently by exact card name. Lines that
    cannot be resolved are reported in `failed`; the rest are imported.
    """
    await _require_collection(session, user_id, collection_id)

    if request.entries is not None:
        entries = [
            DeckListEntry(name=e.name.strip(), quantity=e.quantity)
            for e in request.entries
            if e.name.strip()
        ]
    else:
        entries = parse_deck_list(request.text or "")

    if not entries:
        raise InvalidInputError(
            "Deck list is empty",
            detail="Provide `text` with one card per line, or `entries`",
        )

    result = await importer.import_list(
        session, collection_id, entries, request.owner_name.strip()
    )

    return DeckImportResponse(
        collection_id=collection_id,
        imported=[enriched_to_response(card) for card in result.imported],
        failed=[ImportFailureResponse(name=f.name, reason=f.reason) for f in result.failed],
    )
