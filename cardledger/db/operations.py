"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
collections and card records. Every read and write is scoped to the
requesting user: rows belonging to other users behave as if absent.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.models.card import LocalCardRecord
from cardledger.models.db import CardDB, CollectionDB

# Fields a card update may change. scryfall_id is deliberately absent:
# changing the underlying card means deleting and re-adding it.
UPDATABLE_CARD_FIELDS = frozenset(
    {"owner_name", "current_deck", "is_borrowed", "is_foil", "quantity", "set_code", "set_name"}
)

UPDATABLE_COLLECTION_FIELDS = frozenset({"name", "tcg_type"})


@dataclass(frozen=True, slots=True)
class CollectionStats:
    """Card counts for a collection."""

    total_cards: int = 0
    unique_cards: int = 0
    borrowed_cards: int = 0


# --- Collection Operations ---


async def create_collection(
    session: AsyncSession, user_id: str, name: str, tcg_type: str = "magic"
) -> CollectionDB:
    """Create a new collection for a user."""
    collection = CollectionDB(user_id=user_id, name=name, tcg_type=tcg_type)
    session.add(collection)
    await session.flush()
    return collection


async def get_collections_by_user(session: AsyncSession, user_id: str) -> list[CollectionDB]:
    """Get all of a user's collections, newest first."""
    result = await session.execute(
        select(CollectionDB)
        .where(CollectionDB.user_id == user_id)
        .order_by(CollectionDB.created_at.desc())
    )
    return list(result.scalars().all())


async def get_collection(
    session: AsyncSession, user_id: str, collection_id: str
) -> CollectionDB | None:
    """
    Get one of a user's collections.

    Returns None if it does not exist or belongs to another user.
    """
    result = await session.execute(
        select(CollectionDB).where(
            CollectionDB.id == collection_id,
            CollectionDB.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def update_collection(
    session: AsyncSession,
    user_id: str,
    collection_id: str,
    changes: dict[str, Any],
) -> CollectionDB | None:
    """
    Apply field changes to a collection.

    Returns None if the collection is not found.

    Raises:
        ValueError: If changes contain a field that cannot be updated
    """
    unknown = set(changes) - UPDATABLE_COLLECTION_FIELDS
    if unknown:
        raise ValueError(f"Cannot update collection fields: {sorted(unknown)}")

    collection = await get_collection(session, user_id, collection_id)
    if collection is None:
        return None

    for field_name, value in changes.items():
        setattr(collection, field_name, value)

    await session.flush()
    return collection


async def delete_collection(session: AsyncSession, user_id: str, collection_id: str) -> bool:
    """
    Delete a collection and all of its cards.

    Returns True if deleted, False if not found.
    """
    collection = await get_collection(session, user_id, collection_id)
    if collection is None:
        return False

    await session.execute(delete(CardDB).where(CardDB.collection_id == collection.id))
    await session.delete(collection)
    await session.flush()
    return True


async def get_collection_stats(session: AsyncSession, collection_id: str) -> CollectionStats:
    """
    Count the cards in a collection.

    total_cards sums quantities; unique_cards counts distinct Scryfall ids;
    borrowed_cards counts borrowed records.
    """
    result = await session.execute(
        select(
            func.coalesce(func.sum(CardDB.quantity), 0),
            func.count(distinct(CardDB.scryfall_id)),
            func.coalesce(func.sum(case((CardDB.is_borrowed.is_(True), 1), else_=0)), 0),
        ).where(CardDB.collection_id == collection_id)
    )
    total, unique, borrowed = result.one()
    return CollectionStats(
        total_cards=int(total),
        unique_cards=int(unique),
        borrowed_cards=int(borrowed),
    )


# --- Card Operations ---


async def create_card(
    session: AsyncSession,
    collection_id: str,
    scryfall_id: str,
    owner_name: str,
    current_deck: str | None = None,
    is_borrowed: bool = False,
    is_foil: bool = False,
    quantity: int = 1,
    set_code: str | None = None,
    set_name: str | None = None,
) -> CardDB:
    """
    Add a card record to a collection.

    The caller is responsible for having checked collection ownership.

    Raises:
        ValueError: If scryfall_id is empty or quantity is not positive
    """
    if not scryfall_id:
        raise ValueError("scryfall_id must not be empty")
    if quantity < 1:
        raise ValueError(f"quantity must be positive, got {quantity}")

    card = CardDB(
        collection_id=collection_id,
        scryfall_id=scryfall_id,
        owner_name=owner_name,
        current_deck=current_deck or None,
        is_borrowed=is_borrowed,
        is_foil=is_foil,
        quantity=quantity,
        set_code=set_code or None,
        set_name=set_name or None,
    )
    session.add(card)
    await session.flush()
    return card


async def get_cards_by_collection(
    session: AsyncSession, user_id: str, collection_id: str
) -> list[CardDB]:
    """Get all cards in one of a user's collections, newest first."""
    result = await session.execute(
        select(CardDB)
        .join(CollectionDB, CardDB.collection_id == CollectionDB.id)
        .where(
            CardDB.collection_id == collection_id,
            CollectionDB.user_id == user_id,
        )
        .order_by(CardDB.added_at.desc(), CardDB.id)
    )
    return list(result.scalars().all())


async def get_card(session: AsyncSession, user_id: str, card_id: str) -> CardDB | None:
    """
    Get a card by id.

    Returns None if it does not exist or its collection belongs to another user.
    """
    result = await session.execute(
        select(CardDB)
        .join(CollectionDB, CardDB.collection_id == CollectionDB.id)
        .where(CardDB.id == card_id, CollectionDB.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def update_card(
    session: AsyncSession,
    user_id: str,
    card_id: str,
    changes: dict[str, Any],
) -> CardDB | None:
    """
    Apply field changes to a card.

    Returns None if the card is not found.

    Raises:
        ValueError: If changes touch a non-updatable field (including
            scryfall_id) or set a non-positive quantity
    """
    unknown = set(changes) - UPDATABLE_CARD_FIELDS
    if unknown:
        raise ValueError(f"Cannot update card fields: {sorted(unknown)}")
    if "quantity" in changes and changes["quantity"] < 1:
        raise ValueError(f"quantity must be positive, got {changes['quantity']}")

    card = await get_card(session, user_id, card_id)
    if card is None:
        return None

    for field_name, value in changes.items():
        setattr(card, field_name, value)

    await session.flush()
    return card


async def delete_card(session: AsyncSession, user_id: str, card_id: str) -> bool:
    """
    Delete a card.

    Returns True if deleted, False if not found.
    """
    card = await get_card(session, user_id, card_id)
    if card is None:
        return False

    await session.delete(card)
    await session.flush()
    return True


def card_to_record(card: CardDB) -> LocalCardRecord:
    """Convert a database card to a domain record."""
    return LocalCardRecord(
        id=card.id,
        collection_id=card.collection_id,
        scryfall_id=card.scryfall_id,
        owner_name=card.owner_name,
        current_deck=card.current_deck,
        is_borrowed=card.is_borrowed,
        is_foil=card.is_foil,
        quantity=card.quantity,
        set_code=card.set_code,
        set_name=card.set_name,
        added_at=card.added_at,
    )
