"""
Card enrichment: merging local card records with Scryfall data.

INVARIANTS:
- enrich() never raises a provider error; a failed lookup yields
  EnrichedCard(local=record, provider=None)
- enrich() returns the input record unchanged as `local`
- enrich_all() returns one result per input, in input order

A missing price or image degrades one card's display. It never blocks the
surrounding request.
"""

import asyncio
import logging
from collections.abc import Sequence

from cardledger.models.card import EnrichedCard, LocalCardRecord, ProviderCardData
from cardledger.models.failure import KnownError
from cardledger.services.card_cache import CardCacheProtocol
from cardledger.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


class CardEnricher:
    """
    Resolves provider data for local records through the cache.

    Lookup chain: cache -> ScryfallClient.get_by_id -> degraded result.
    """

    def __init__(
        self,
        client: ScryfallClient,
        cache: CardCacheProtocol,
        item_timeout: float | None = None,
    ) -> None:
        """
        Args:
            client: Scryfall client used on cache misses
            cache: Shared card data cache
            item_timeout: Optional bound (seconds) on a single fetch. A fetch
                that exceeds it is treated like a failed fetch.
        """
        self.client = client
        self.cache = cache
        self.item_timeout = item_timeout

    async def _fetch(self, scryfall_id: str) -> ProviderCardData:
        if self.item_timeout is None:
            return await self.client.get_by_id(scryfall_id)
        return await asyncio.wait_for(self.client.get_by_id(scryfall_id), self.item_timeout)

    async def enrich(self, record: LocalCardRecord) -> EnrichedCard:
        """Merge one record with its provider data, degrading on failure."""
        cached = self.cache.get(record.scryfall_id)
        if cached is not None:
            return EnrichedCard(local=record, provider=cached)

        try:
            data = await self._fetch(record.scryfall_id)
        except (KnownError, TimeoutError) as e:
            logger.warning(
                "CARD_ENRICHMENT_FAILED",
                extra={
                    "card_id": record.id,
                    "scryfall_id": record.scryfall_id,
                    "error": type(e).__name__,
                },
            )
            return EnrichedCard(local=record, provider=None)

        self.cache.put(record.scryfall_id, data)
        return EnrichedCard(local=record, provider=data)

    async def enrich_all(self, records: Sequence[LocalCardRecord]) -> list[EnrichedCard]:
        """
        Enrich every record concurrently.

        gather() returns results positionally, so output[i] always belongs
        to records[i] whatever order the fetches complete in.
        """
        if not records:
            return []

        results = list(await asyncio.gather(*(self.enrich(record) for record in records)))

        stats = self.cache.stats()
        logger.info(
            "COLLECTION_ENRICHED",
            extra={
                "cards": len(results),
                "unenriched": sum(1 for card in results if not card.is_enriched),
                "cache_hits": stats.hits,
                "cache_misses": stats.misses,
                "cache_hit_rate": round(stats.hit_rate, 3),
            },
        )
        return results
