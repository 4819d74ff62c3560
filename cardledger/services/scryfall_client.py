"""
Scryfall API client.

Read-only async wrapper over the four Scryfall endpoints CardLedger uses:
lookup by id, lookup by exact name, full-text search and autocomplete.

Each call is a single request with no retry. Failures are classified:
- 404 on a lookup -> CardNotFoundError
- 404 on a search -> empty SearchResult (zero matches is not an error)
- anything else that is not a 2xx, transport errors, timeouts and
  undecodable or malformed bodies -> ProviderUnavailableError

API reference: https://scryfall.com/docs/api
"""

from typing import Any

import httpx

from cardledger.config import settings
from cardledger.models.card import ProviderCardData, SearchResult
from cardledger.models.failure import CardNotFoundError, ProviderUnavailableError
from cardledger.parsers.scryfall import parse_card, parse_catalog, parse_search_result

SCRYFALL_API = "https://api.scryfall.com"

# What parse_card raises on a body with missing or wrongly typed fields
MALFORMED_BODY_ERRORS = (KeyError, TypeError, AttributeError, ValueError)


class ScryfallClient:
    """
    Async Scryfall client.

    Pass an existing httpx.AsyncClient to share a connection pool, or let
    the client create (and own) one. Owned clients are released by aclose().
    """

    def __init__(
        self,
        base_url: str = SCRYFALL_API,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        user_agent: str = "CardLedger/1.0",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls) -> "ScryfallClient":
        """Create a client configured from application settings."""
        return cls(
            base_url=settings.scryfall_base_url,
            timeout=settings.scryfall_timeout_seconds,
            user_agent=settings.user_agent,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _get(
        self, operation: str, path: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        """Issue a GET, converting transport failures to ProviderUnavailableError."""
        try:
            return await self._http.get(f"{self.base_url}{path}", params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(operation, detail=f"Timed out: {e}") from e
        except httpx.RequestError as e:
            raise ProviderUnavailableError(operation, detail=str(e)) from e

    @staticmethod
    def _json(operation: str, response: httpx.Response) -> dict[str, Any]:
        """Decode a successful response body, or raise ProviderUnavailableError."""
        if response.is_error:
            raise ProviderUnavailableError(operation, detail=f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(operation, detail="Invalid JSON body") from e
        if not isinstance(payload, dict):
            raise ProviderUnavailableError(operation, detail="Unexpected response shape")
        return payload

    def _card(self, operation: str, response: httpx.Response) -> ProviderCardData:
        payload = self._json(operation, response)
        try:
            return parse_card(payload)
        except MALFORMED_BODY_ERRORS as e:
            raise ProviderUnavailableError(operation, detail=f"Malformed card data: {e!r}") from e

    async def get_by_id(self, card_id: str) -> ProviderCardData:
        """
        Fetch a card by Scryfall ID.

        Raises:
            CardNotFoundError: If Scryfall has no card with this id
            ProviderUnavailableError: On any other failure
        """
        response = await self._get("get_by_id", f"/cards/{card_id}")
        if response.status_code == 404:
            raise CardNotFoundError(card_id)
        return self._card("get_by_id", response)

    async def get_by_exact_name(self, name: str) -> ProviderCardData:
        """
        Fetch a card by its exact name.

        Raises:
            CardNotFoundError: If no card has exactly this name
            ProviderUnavailableError: On any other failure
        """
        response = await self._get("get_by_exact_name", "/cards/named", params={"exact": name})
        if response.status_code == 404:
            raise CardNotFoundError(name)
        return self._card("get_by_exact_name", response)

    async def search(self, query: str) -> SearchResult:
        """
        Full-text card search (first page).

        Returns an empty SearchResult when nothing matches.

        Raises:
            ProviderUnavailableError: On any failure other than no matches
        """
        response = await self._get("search", "/cards/search", params={"q": query})
        if response.status_code == 404:
            return SearchResult()
        payload = self._json("search", response)
        try:
            return parse_search_result(payload)
        except MALFORMED_BODY_ERRORS as e:
            raise ProviderUnavailableError("search", detail=f"Malformed card data: {e!r}") from e

    async def autocomplete(self, prefix: str) -> list[str]:
        """
        Card names starting with (or closely matching) a prefix.

        Raises:
            ProviderUnavailableError: On any failure
        """
        response = await self._get("autocomplete", "/cards/autocomplete", params={"q": prefix})
        payload = self._json("autocomplete", response)
        try:
            return parse_catalog(payload)
        except MALFORMED_BODY_ERRORS as e:
            detail = f"Malformed catalog: {e!r}"
            raise ProviderUnavailableError("autocomplete", detail=detail) from e
