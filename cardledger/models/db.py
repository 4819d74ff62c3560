"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CollectionDB(Base):
    """
    A named collection of cards belonging to one user.

    A user may own any number of collections.
    """

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    name: Mapped[str] = mapped_column(String(255))
    tcg_type: Mapped[str] = mapped_column(String(50), default="magic")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    # Relationship to card records
    cards: Mapped[list["CardDB"]] = relationship(
        back_populates="collection", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<CollectionDB(id={self.id}, name={self.name})>"


class CardDB(Base):
    """
    Individual card record within a collection.

    scryfall_id is set on creation and never updated.
    """

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    collection_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collections.id", ondelete="CASCADE"), index=True
    )
    scryfall_id: Mapped[str] = mapped_column(String(255))
    owner_name: Mapped[str] = mapped_column(String(255))
    current_deck: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_borrowed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_foil: Mapped[bool] = mapped_column(Boolean, default=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    set_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    # Relationship back to collection
    collection: Mapped["CollectionDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<CardDB(scryfall_id={self.scryfall_id}, qty={self.quantity})>"
