"""
Shared FastAPI dependencies.

The Scryfall client and card cache are created once per process in the
application lifespan and stored on `app.state`. Routers reach them only
through these dependencies, so tests swap them with
`app.dependency_overrides`.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from cardledger.config import settings
from cardledger.services.card_cache import CardCacheProtocol
from cardledger.services.deck_import import DeckImporter
from cardledger.services.enrichment import CardEnricher
from cardledger.services.scryfall_client import ScryfallClient


async def get_user_id(
    x_user_id: Annotated[str | None, Header(description="Authenticated principal")] = None,
) -> str:
    """
    The authenticated user making the request.

    Credentials are verified upstream; the gateway forwards the principal
    in the X-User-Id header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


def get_scryfall_client(request: Request) -> ScryfallClient:
    client: ScryfallClient = request.app.state.scryfall_client
    return client


def get_card_cache(request: Request) -> CardCacheProtocol:
    cache: CardCacheProtocol = request.app.state.card_cache
    return cache


def get_enricher(
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
    cache: Annotated[CardCacheProtocol, Depends(get_card_cache)],
) -> CardEnricher:
    return CardEnricher(client, cache, item_timeout=settings.enrichment_timeout_seconds)


def get_deck_importer(
    client: Annotated[ScryfallClient, Depends(get_scryfall_client)],
    cache: Annotated[CardCacheProtocol, Depends(get_card_cache)],
) -> DeckImporter:
    return DeckImporter(client, cache)
