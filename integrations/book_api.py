"""
YAO - Published Books API Client

Async httpx client for the community books read API:

    GET {base}/api/iching-channel/books        -> {"books": [summary, ...]} or [summary, ...]
    GET {base}/api/iching-channel/books/{id}   -> book with "hexagrams"

Payloads are validated with pydantic and hexagram entries are normalized
before leaving this module. Every transport or payload failure surfaces as
ContentUnavailableError; a 404 surfaces as BookNotFoundError.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from core.errors import BookNotFoundError, ContentUnavailableError
from domain.entities import Book, BookOption, BookSource, parse_timestamp
from integrations.base import BookApi
from integrations.normalization import normalize_hexagrams
from observability.tracing import span_decorator

BOOKS_PATH = "/api/iching-channel/books"
UNNAMED_BOOK = "Unnamed Book"
ANONYMOUS_CREATOR = "Anonymous"


# =============================================================================
# PAYLOADS
# =============================================================================


class BookSummaryPayload(BaseModel):
    """One entry of the published book list."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    creator_name: Optional[str] = None
    cover_image_url: Optional[str] = None
    hexagram_count: int = Field(default=0, ge=0)
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        # An unreadable date only costs the book its place in the ordering
        try:
            return parse_timestamp(value)
        except (TypeError, ValueError):
            return None

    @field_validator("hexagram_count", mode="before")
    @classmethod
    def _default_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    def to_option(self) -> BookOption:
        return BookOption(
            id=self.id,
            name=self.name or UNNAMED_BOOK,
            source=BookSource.COMMUNITY,
            description=self.description or None,
            creator_name=self.creator_name or ANONYMOUS_CREATOR,
            creator_id=self.user_id,
            cover_image_url=self.cover_image_url,
            hexagram_count=self.hexagram_count,
            created_at=self.created_at,
        )


class BookContentPayload(BookSummaryPayload):
    """A published book with its hexagram entries in whatever shape they were stored."""

    hexagrams: List[Any] = Field(default_factory=list)

    @field_validator("hexagrams", mode="before")
    @classmethod
    def _default_hexagrams(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_book(self) -> Book:
        option = self.to_option()
        return Book(
            id=option.id,
            name=option.name,
            source=BookSource.COMMUNITY,
            hexagrams=normalize_hexagrams(self.hexagrams),
            description=option.description,
            creator_name=option.creator_name,
            creator_id=option.creator_id,
            cover_image_url=option.cover_image_url,
            created_at=option.created_at,
        )


class BookListPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    books: List[BookSummaryPayload] = Field(default_factory=list)


# =============================================================================
# CLIENT
# =============================================================================


class HttpBookApi(BookApi):
    """
    Published-books client.

    Args:
        base_url: API origin, e.g. https://example.org
        timeout: per-request timeout in seconds
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: Any) -> "HttpBookApi":
        """Build from a BookSourceConfig."""
        return cls(base_url=config.api_url, timeout=config.api_timeout)

    async def initialize(self) -> None:
        if self._initialized:
            return
        if not self.base_url:
            raise ContentUnavailableError(
                "Book API URL is not configured",
                source=self.source_name,
                suggestions=["Set YAO_BOOK_API_URL"],
            )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        self._initialized = True
        self.logger.info("Book API client ready", base_url=self.base_url)

    async def cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        await super().cleanup()

    async def _get_json(
        self,
        path: str,
        book_id: Optional[str] = None,
        allow_list: bool = False,
    ) -> Union[Dict[str, Any], List[Any]]:
        if not self._initialized:
            await self.initialize()
        if self._client is None:
            raise ContentUnavailableError(
                "Book API client is closed",
                source=self.source_name,
                book_id=book_id,
                suggestions=["Call initialize() again after cleanup()"],
            )

        try:
            response = await self._client.get(path)
        except httpx.TimeoutException as e:
            raise ContentUnavailableError(
                f"Book API timed out for {path}",
                source=self.source_name,
                book_id=book_id,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise ContentUnavailableError(
                f"Book API request failed for {path}: {e}",
                source=self.source_name,
                book_id=book_id,
                cause=e,
            ) from e

        if response.status_code == 404:
            raise BookNotFoundError(
                f"Book API has no book {book_id}",
                source=self.source_name,
                book_id=book_id,
            )
        if response.status_code != 200:
            raise ContentUnavailableError(
                f"Book API returned HTTP {response.status_code} for {path}",
                source=self.source_name,
                book_id=book_id,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ContentUnavailableError(
                f"Book API returned invalid JSON for {path}",
                source=self.source_name,
                book_id=book_id,
                cause=e,
            ) from e

        if isinstance(data, list) and allow_list:
            return data
        if not isinstance(data, dict):
            raise ContentUnavailableError(
                f"Book API returned {type(data).__name__}, expected an object",
                source=self.source_name,
                book_id=book_id,
            )
        return data

    @span_decorator("book_api.list_published_books")
    async def list_published_books(self) -> List[BookOption]:
        data = await self._get_json(BOOKS_PATH, allow_list=True)
        # Older deployments answer with a bare array instead of {"books": [...]}
        if isinstance(data, list):
            data = {"books": data}
        try:
            payload = BookListPayload.model_validate(data)
        except PydanticValidationError as e:
            raise ContentUnavailableError(
                "Book API list payload did not validate",
                source=self.source_name,
                cause=e,
            ) from e

        options = [summary.to_option() for summary in payload.books]
        self.logger.debug("Published books listed", count=len(options))
        return options

    @span_decorator("book_api.fetch_book")
    async def fetch_book(self, book_id: str) -> Book:
        data = await self._get_json(f"{BOOKS_PATH}/{quote(book_id, safe='')}", book_id=book_id)
        try:
            payload = BookContentPayload.model_validate(data)
        except PydanticValidationError as e:
            raise ContentUnavailableError(
                f"Book API payload for {book_id} did not validate",
                source=self.source_name,
                book_id=book_id,
                cause=e,
            ) from e

        book = payload.to_book()
        self.logger.debug("Published book fetched", book_id=book_id, hexagrams=book.hexagram_count)
        return book
