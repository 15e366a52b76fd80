"""
Scryfall catalog client.

Thin async wrapper over the Scryfall REST API that returns typed card, set
and ruling records. Respects Scryfall's rate limit by spacing requests.
Retries and backoff are left to the caller.

API docs: https://scryfall.com/docs/api
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Sequence
from types import TracebackType
from typing import Any

import httpx

from mtgoverseer.config import settings
from mtgoverseer.models.card import ScryfallCard
from mtgoverseer.models.catalog import (
    CardIdentifier,
    CollectionResponse,
    Ruling,
    ScryfallCatalog,
    ScryfallErrorObject,
    ScryfallList,
    ScryfallSet,
)

logger = logging.getLogger(__name__)

# Scryfall rejects larger collection requests
MAX_COLLECTION_IDENTIFIERS = 75

PLATFORM_ID_ENDPOINTS = frozenset({"mtgo", "arena", "tcgplayer", "cardmarket", "multiverse"})


class ScryfallAPIError(Exception):
    """Raised when Scryfall answers with an error object."""

    def __init__(self, code: str, status: int, details: str):
        self.code = code
        self.status = status
        self.details = details
        super().__init__(f"Scryfall error {status} ({code}): {details}")


class CatalogRequestError(Exception):
    """Raised when the request never got an answer (network, timeout)."""

    pass


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _error_from_response(response: httpx.Response, body: Any) -> ScryfallAPIError:
    if isinstance(body, dict) and body.get("object") == "error":
        error = ScryfallErrorObject.model_validate(body)
        return ScryfallAPIError(error.code, error.status, error.details)
    return ScryfallAPIError("http_error", response.status_code, response.reason_phrase)


class ScryfallClient:
    """
    Async Scryfall client.

    Usage:
        async with ScryfallClient() as client:
            page = await client.search_cards("t:goblin c:r")
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        user_agent: str | None = None,
        request_delay: float | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.request_delay = (
            request_delay if request_delay is not None else settings.scryfall_request_delay
        )
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.scryfall_api_url,
            headers={
                "User-Agent": user_agent or settings.scryfall_user_agent,
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else settings.scryfall_timeout,
        )
        self._last_request = 0.0
        self._throttle = asyncio.Lock()

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def _delay_if_needed(self) -> None:
        async with self._throttle:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.request_delay:
                await asyncio.sleep(self.request_delay - elapsed)
            self._last_request = time.monotonic()

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        await self._delay_if_needed()
        try:
            response = await self._http.request(method, url, params=params, json=json)
        except httpx.RequestError as e:
            raise CatalogRequestError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error or (isinstance(body, dict) and body.get("object") == "error"):
            error = _error_from_response(response, body)
            logger.warning("Scryfall request %s %s failed: %s", method, url, error)
            raise error
        return body

    # --- Cards ---

    async def search_cards(
        self,
        query: str,
        *,
        unique: str | None = None,
        order: str | None = None,
        direction: str | None = None,
        include_extras: bool | None = None,
        include_multilingual: bool | None = None,
        include_variations: bool | None = None,
        page: int | None = None,
    ) -> ScryfallList[ScryfallCard]:
        """
        Full-text search using Scryfall query syntax.

        Args:
            query: Search query (e.g., "t:goblin c:r")
            unique: "cards", "art" or "prints"
            order: Sort field (name, set, released, rarity, cmc, usd, ...)
            direction: "auto", "asc" or "desc"
            page: 1-based page number

        Raises:
            ScryfallAPIError: "not_found" when nothing matches
        """
        params = {"q": query}
        if unique:
            params["unique"] = unique
        if order:
            params["order"] = order
        if direction:
            params["dir"] = direction
        if include_extras is not None:
            params["include_extras"] = _flag(include_extras)
        if include_multilingual is not None:
            params["include_multilingual"] = _flag(include_multilingual)
        if include_variations is not None:
            params["include_variations"] = _flag(include_variations)
        if page:
            params["page"] = str(page)

        data = await self._request("GET", "/cards/search", params=params)
        return ScryfallList[ScryfallCard].model_validate(data)

    async def next_page(
        self, page: ScryfallList[ScryfallCard]
    ) -> ScryfallList[ScryfallCard] | None:
        """Fetch the page after ``page``, or None on the last page."""
        if not page.has_more or not page.next_page:
            return None
        data = await self._request("GET", page.next_page)
        return ScryfallList[ScryfallCard].model_validate(data)

    async def iter_search(
        self, query: str, max_pages: int | None = None, **options: Any
    ) -> AsyncIterator[ScryfallCard]:
        """Yield every card of a search, following pagination."""
        page: ScryfallList[ScryfallCard] | None = await self.search_cards(query, **options)
        pages = 0
        while page is not None:
            for card in page.data:
                yield card
            pages += 1
            if max_pages is not None and pages >= max_pages:
                return
            page = await self.next_page(page)

    async def get_named_card(
        self,
        exact: str | None = None,
        fuzzy: str | None = None,
        set_code: str | None = None,
    ) -> ScryfallCard:
        """
        Look up a card by name.

        Raises:
            ValueError: If neither exact nor fuzzy is given
        """
        if not exact and not fuzzy:
            raise ValueError("Either exact or fuzzy parameter must be provided")

        params: dict[str, str] = {}
        if exact:
            params["exact"] = exact
        if fuzzy:
            params["fuzzy"] = fuzzy
        if set_code:
            params["set"] = set_code

        data = await self._request("GET", "/cards/named", params=params)
        return ScryfallCard.model_validate(data)

    async def get_card_by_id(self, card_id: str) -> ScryfallCard:
        data = await self._request("GET", f"/cards/{card_id}")
        return ScryfallCard.model_validate(data)

    async def get_card_by_set_and_number(self, set_code: str, number: str) -> ScryfallCard:
        data = await self._request("GET", f"/cards/{set_code.lower()}/{number}")
        return ScryfallCard.model_validate(data)

    async def get_card_by_platform_id(self, platform: str, platform_id: int) -> ScryfallCard:
        """
        Look up a card by another system's numeric id.

        Args:
            platform: One of mtgo, arena, tcgplayer, cardmarket, multiverse
        """
        if platform not in PLATFORM_ID_ENDPOINTS:
            valid = sorted(PLATFORM_ID_ENDPOINTS)
            raise ValueError(f"Unknown platform '{platform}'. Valid: {valid}")
        data = await self._request("GET", f"/cards/{platform}/{platform_id}")
        return ScryfallCard.model_validate(data)

    async def get_random_card(self, query: str | None = None) -> ScryfallCard:
        params = {"q": query} if query else None
        data = await self._request("GET", "/cards/random", params=params)
        return ScryfallCard.model_validate(data)

    async def autocomplete(
        self, query: str, include_extras: bool | None = None
    ) -> ScryfallCatalog:
        """Up to 20 card name suggestions for a partial name."""
        params = {"q": query}
        if include_extras is not None:
            params["include_extras"] = _flag(include_extras)
        data = await self._request("GET", "/cards/autocomplete", params=params)
        return ScryfallCatalog.model_validate(data)

    async def get_collection(self, identifiers: Sequence[CardIdentifier]) -> CollectionResponse:
        """
        Fetch many cards in one request.

        Raises:
            ValueError: If identifiers is empty or longer than 75
        """
        if not identifiers:
            raise ValueError("At least one card identifier must be provided")
        if len(identifiers) > MAX_COLLECTION_IDENTIFIERS:
            raise ValueError(
                f"Maximum of {MAX_COLLECTION_IDENTIFIERS} card identifiers allowed per request"
            )

        body = {"identifiers": [i.model_dump(exclude_none=True) for i in identifiers]}
        data = await self._request("POST", "/cards/collection", json=body)
        return CollectionResponse.model_validate(data)

    # --- Sets and rulings ---

    async def get_sets(self) -> list[ScryfallSet]:
        data = await self._request("GET", "/sets")
        return ScryfallList[ScryfallSet].model_validate(data).data

    async def get_set(self, code: str) -> ScryfallSet:
        data = await self._request("GET", f"/sets/{code.lower()}")
        return ScryfallSet.model_validate(data)

    async def get_rulings(self, card_id: str) -> list[Ruling]:
        data = await self._request("GET", f"/cards/{card_id}/rulings")
        return ScryfallList[Ruling].model_validate(data).data
