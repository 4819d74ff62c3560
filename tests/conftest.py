import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardledger.api.dependencies import get_card_cache, get_scryfall_client
from cardledger.db.database import get_session
from cardledger.main import app
from cardledger.models.card import LocalCardRecord, ProviderCardData, SearchResult
from cardledger.models.db import Base
from cardledger.models.failure import CardNotFoundError, ProviderUnavailableError
from cardledger.parsers.scryfall import parse_card
from cardledger.services.card_cache import CardCache

BOLT_ID = "e3285e6b-3e79-4d7c-bf96-d920f973b122"
COUNTERSPELL_ID = "ce30f926-bc06-46ee-9f35-0cdf09a67043"
DELVER_ID = "11bf83bb-c95b-4b4f-9a56-ce7a1816307a"


class FakeScryfallClient:
    """
    In-memory stand-in for ScryfallClient.

    Cards not registered raise CardNotFoundError. Ids or names listed in
    `unavailable` raise ProviderUnavailableError. `delays` holds per-id or
    per-name sleep times (seconds) to shuffle completion order.
    """

    def __init__(self, cards: list[ProviderCardData]) -> None:
        self.by_id = {card.id: card for card in cards}
        self.by_name = {card.name: card for card in cards}
        self.unavailable: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, str]] = []

    async def _pause(self, key: str) -> None:
        delay = self.delays.get(key)
        if delay:
            await asyncio.sleep(delay)

    async def get_by_id(self, card_id: str) -> ProviderCardData:
        self.calls.append(("get_by_id", card_id))
        await self._pause(card_id)
        if card_id in self.unavailable:
            raise ProviderUnavailableError("get_by_id", detail="HTTP 503")
        if card_id not in self.by_id:
            raise CardNotFoundError(card_id)
        return self.by_id[card_id]

    async def get_by_exact_name(self, name: str) -> ProviderCardData:
        self.calls.append(("get_by_exact_name", name))
        await self._pause(name)
        if name in self.unavailable:
            raise ProviderUnavailableError("get_by_exact_name", detail="HTTP 503")
        if name not in self.by_name:
            raise CardNotFoundError(name)
        return self.by_name[name]

    async def search(self, query: str) -> SearchResult:
        self.calls.append(("search", query))
        if query in self.unavailable:
            raise ProviderUnavailableError("search", detail="HTTP 503")
        matches = [card for card in self.by_id.values() if query.lower() in card.name.lower()]
        return SearchResult(cards=matches, total_cards=len(matches), has_more=False)

    async def autocomplete(self, prefix: str) -> list[str]:
        self.calls.append(("autocomplete", prefix))
        return [name for name in self.by_name if name.lower().startswith(prefix.lower())]

    def id_calls(self) -> list[str]:
        return [arg for op, arg in self.calls if op == "get_by_id"]


@pytest.fixture
def scryfall_payloads() -> list[dict[str, Any]]:
    """Raw Scryfall card objects: Lightning Bolt, Counterspell, Delver (double-faced)."""
    fixture_path = Path(__file__).parent / "fixtures" / "scryfall_cards.json"
    return json.loads(fixture_path.read_text(encoding="utf-8"))


@pytest.fixture
def provider_cards(scryfall_payloads: list[dict[str, Any]]) -> list[ProviderCardData]:
    return [parse_card(payload) for payload in scryfall_payloads]


@pytest.fixture
def bolt(provider_cards: list[ProviderCardData]) -> ProviderCardData:
    return provider_cards[0]


@pytest.fixture
def counterspell(provider_cards: list[ProviderCardData]) -> ProviderCardData:
    return provider_cards[1]


@pytest.fixture
def delver(provider_cards: list[ProviderCardData]) -> ProviderCardData:
    return provider_cards[2]


@pytest.fixture
def fake_client(provider_cards: list[ProviderCardData]) -> FakeScryfallClient:
    return FakeScryfallClient(provider_cards)


@pytest.fixture
def make_record() -> Callable[..., LocalCardRecord]:
    """Factory for LocalCardRecord with sensible defaults."""
    counter = 0

    def _make(scryfall_id: str = BOLT_ID, **overrides: Any) -> LocalCardRecord:
        nonlocal counter
        counter += 1
        fields: dict[str, Any] = {
            "id": f"card-{counter}",
            "collection_id": "collection-1",
            "scryfall_id": scryfall_id,
            "owner_name": "Alice",
        }
        fields.update(overrides)
        return LocalCardRecord(**fields)

    return _make


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def card_cache() -> CardCache:
    """Cache shared by the API under test."""
    return CardCache(ttl_ms=60_000)


@pytest.fixture
async def client(async_engine, fake_client: FakeScryfallClient, card_cache: CardCache):
    """
    Async test client for the API.

    The lifespan does not run under ASGITransport, so the database session,
    Scryfall client and card cache are provided through dependency overrides.
    """
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_scryfall_client] = lambda: fake_client
    app.dependency_overrides[get_card_cache] = lambda: card_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers={"X-User-Id": "user-1"}
    ) as client:
        yield client

    app.dependency_overrides.clear()
