"""
Deck-list import.

Resolves each "quantity + card name" entry against Scryfall by exact name
and adds the resolvable ones to a collection.

INVARIANTS:
- Every entry ends up in exactly one of `imported` or `failed`
- One bad entry never stops the import
- Provider failures are recorded, never raised
- Entries with a non-positive quantity fail without a lookup
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.db.operations import card_to_record, create_card
from cardledger.models.card import DeckListEntry, EnrichedCard
from cardledger.models.failure import ImportFailure, KnownError
from cardledger.services.card_cache import CardCacheProtocol
from cardledger.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of a deck-list import."""

    imported: list[EnrichedCard] = field(default_factory=list)
    failed: list[ImportFailure] = field(default_factory=list)


class DeckImporter:
    """
    Imports deck lists into a collection.

    Lookups are by name, so they bypass the id-keyed cache; resolved cards
    are put into the cache so the next collection view is served from it.
    """

    def __init__(self, client: ScryfallClient, cache: CardCacheProtocol) -> None:
        self.client = client
        self.cache = cache

    async def import_list(
        self,
        session: AsyncSession,
        collection_id: str,
        entries: Sequence[DeckListEntry],
        owner_name: str,
    ) -> ImportResult:
        """
        Import entries into a collection the caller has verified access to.

        Args:
            session: Database session
            collection_id: Target collection
            entries: Parsed deck-list entries
            owner_name: Owner recorded on every imported card

        Returns:
            ImportResult with imported cards (input order) and failures
        """
        result = ImportResult()

        for entry in entries:
            if entry.quantity < 1:
                result.failed.append(
                    ImportFailure(
                        name=entry.name,
                        reason=f"Quantity must be positive, got {entry.quantity}",
                    )
                )
                continue

            try:
                data = await self.client.get_by_exact_name(entry.name)
            except KnownError as e:
                logger.warning(
                    "DECK_IMPORT_ENTRY_FAILED",
                    extra={"card_name": entry.name, "error": type(e).__name__},
                )
                result.failed.append(ImportFailure(name=entry.name, reason=e.message))
                continue

            self.cache.put(data.id, data)
            card = await create_card(
                session,
                collection_id=collection_id,
                scryfall_id=data.id,
                owner_name=owner_name,
                quantity=entry.quantity,
                set_code=data.set_code,
                set_name=data.set_name,
            )
            result.imported.append(EnrichedCard(local=card_to_record(card), provider=data))

        logger.info(
            "DECK_IMPORT_COMPLETE",
            extra={
                "collection_id": collection_id,
                "imported": len(result.imported),
                "failed": len(result.failed),
            },
        )
        return result
