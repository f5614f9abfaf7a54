"""
YAO - Book Resolver

Resolves which books are available and what a hexagram says in a given
book.

Listing merges the requester's own books (newest first) with community
books (oldest first, so the long-standing canonical text leads) and offers
the classical book only when nothing else is available. Listings are
cached per requester.

Single-book content falls through:

    cache -> published-books API -> record store -> classical text -> placeholder

Source failures of any kind (unavailable content, refused connections,
timeouts, malformed payloads) are recovered inside this module and never
reach the caller; a reading always gets renderable text, degraded to placeholders
when every source is down. Structural errors (an impossible hexagram
number) are not content failures and propagate.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from core.cache import Clock, TTLCache
from core.errors import StructuralError, YaoError
from domain.entities import Book, BookOption, BookSource, HexagramContent, ReadingSession
from domain.king_wen import identity_to_pattern
from integrations.base import (
    CLASSIC_BOOK_ID,
    CLASSIC_BOOK_NAME,
    CLASSIC_CREATOR,
    BookApi,
    BookRecordStore,
    ClassicalSource,
    classic_option,
)
from integrations.normalization import placeholder_hexagram, placeholder_hexagrams
from observability.logging import get_logger
from observability.tracing import create_span, span_decorator

logger = get_logger(__name__)

ANONYMOUS_KEY = "anonymous"
DEFAULT_LIST_TTL_SECONDS = 300.0
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


# =============================================================================
# ORDERING AND SELECTION
# =============================================================================


def _created(option: BookOption) -> datetime:
    return option.created_at or _EPOCH


def _describe(error: Exception) -> str:
    if isinstance(error, YaoError):
        return error.message
    return f"{type(error).__name__}: {error}"


def order_books(
    user_books: Iterable[BookOption],
    community_books: Iterable[BookOption],
) -> List[BookOption]:
    """User books newest first, then community books oldest first."""
    mine = sorted(user_books, key=_created, reverse=True)
    theirs = sorted(community_books, key=_created)
    return mine + theirs


def choose_default(
    books: Sequence[BookOption],
    prior_selection_id: Optional[str] = None,
) -> Optional[str]:
    """
    Pick the book a session should use.

    Order of preference: the prior selection if it is still listed, the
    first user book, the first community book, the first book of any kind.
    Returns None for an empty list.

    The user-book step is a deliberate departure from the older
    prior/community/first policy: given [userA, communityB, communityC] and
    no prior selection the session lands on userA, the caller's own book.
    Drop the USER entry from the loop below to restore the older policy.
    """
    if not books:
        return None

    if prior_selection_id:
        if any(book.id == prior_selection_id for book in books):
            return prior_selection_id
        logger.info(
            "Previously selected book is no longer available",
            prior_selection_id=prior_selection_id,
            available=len(books),
        )

    for source in (BookSource.USER, BookSource.COMMUNITY):
        for book in books:
            if book.source is source:
                return book.id

    return books[0].id


def placeholder_book() -> Book:
    """Classical stand-in used when even the classical dataset is unreadable."""
    return Book(
        id=CLASSIC_BOOK_ID,
        name=CLASSIC_BOOK_NAME,
        source=BookSource.FALLBACK,
        hexagrams=placeholder_hexagrams(),
        description="Traditional I Ching interpretations",
        creator_name=CLASSIC_CREATOR,
    )


# =============================================================================
# RESOLVER
# =============================================================================


class BookResolver:
    """
    Listing, single-book fetch and per-hexagram content resolution.

    Args:
        api: published-books API, or None when not configured
        record_store: authored-books store, or None
        classical: classical dataset, or None to go straight to placeholders
        list_cache: listing cache keyed by requester id
        book_cache: content cache keyed by book id
        clock: clock for the default caches (tests pass a ManualClock)
    """

    def __init__(
        self,
        api: Optional[BookApi] = None,
        record_store: Optional[BookRecordStore] = None,
        classical: Optional[ClassicalSource] = None,
        list_cache: Optional[TTLCache[List[BookOption]]] = None,
        book_cache: Optional[TTLCache[Book]] = None,
        clock: Optional[Clock] = None,
    ):
        self.api = api
        self.record_store = record_store
        self.classical = classical
        self.list_cache: TTLCache[List[BookOption]] = (
            list_cache
            if list_cache is not None
            else TTLCache(ttl_seconds=DEFAULT_LIST_TTL_SECONDS, clock=clock)
        )
        self.book_cache: TTLCache[Book] = (
            book_cache if book_cache is not None else TTLCache(ttl_seconds=None, clock=clock)
        )

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    @span_decorator("resolver.list_books")
    async def list_books(self, user_id: Optional[str] = None) -> List[BookOption]:
        """Books available to a requester, user books first."""
        key = user_id or ANONYMOUS_KEY
        cached = self.list_cache.get(key)
        if cached is not None:
            logger.debug("Book list cache hit", user_id=key, count=len(cached))
            return list(cached)

        logger.debug("Book list cache miss", user_id=key)
        user_books, community_books = await asyncio.gather(
            self._user_books(user_id),
            self._community_books(),
        )

        books = order_books(user_books, community_books)
        if not books:
            books = [classic_option()]

        self.list_cache.set(key, books)
        logger.info(
            "Book list fetched",
            user_id=key,
            user_books=len(user_books),
            community_books=len(community_books),
            count=len(books),
        )
        return list(books)

    async def _user_books(self, user_id: Optional[str]) -> List[BookOption]:
        if not user_id or self.record_store is None:
            return []
        try:
            return await self.record_store.list_user_books(user_id)
        except StructuralError:
            raise
        except Exception as e:
            logger.warning("User books unavailable", user_id=user_id, error=_describe(e))
            return []

    async def _community_books(self) -> List[BookOption]:
        if self.api is None:
            return []
        try:
            return await self.api.list_published_books()
        except StructuralError:
            raise
        except Exception as e:
            logger.warning("Community books unavailable", error=_describe(e))
            return []

    # -------------------------------------------------------------------------
    # Single book
    # -------------------------------------------------------------------------

    @span_decorator("resolver.fetch_book")
    async def fetch_book(self, book_id: Optional[str]) -> Book:
        """
        Full content of a book; never raises for missing content.

        Unknown or unreachable books resolve to the classical text, and an
        unreadable classical dataset resolves to placeholder content.
        """
        book_id = book_id or CLASSIC_BOOK_ID

        cached = self.book_cache.get(book_id)
        if cached is not None:
            logger.debug("Book cache hit", book_id=book_id)
            return cached

        if book_id == CLASSIC_BOOK_ID:
            return await self._classical_book()

        for store in (self.api, self.record_store):
            if store is None:
                continue
            try:
                book = await store.fetch_book(book_id)
            except StructuralError:
                raise
            except Exception as e:
                logger.warning(
                    "Book source failed, trying next",
                    source=store.source_name,
                    book_id=book_id,
                    error=_describe(e),
                )
                continue
            self.book_cache.set(book_id, book)
            logger.debug("Book fetched", book_id=book_id, source=store.source_name)
            return book

        logger.warning("Book unavailable from every store, using classical text", book_id=book_id)
        return await self._classical_book()

    async def _classical_book(self) -> Book:
        cached = self.book_cache.get(CLASSIC_BOOK_ID)
        if cached is not None:
            return cached

        if self.classical is not None:
            try:
                book = await self.classical.load()
            except StructuralError:
                raise
            except Exception as e:
                logger.warning("Classical text unavailable, using placeholders", error=_describe(e))
            else:
                self.book_cache.set(CLASSIC_BOOK_ID, book)
                return book

        return placeholder_book()

    async def get_hexagram(self, book_id: Optional[str], number: int) -> Optional[HexagramContent]:
        """The entry a book holds for a number, or None when it has none."""
        book = await self.fetch_book(book_id)
        return book.hexagram(number)

    async def resolve_hexagram(self, number: int, book_id: Optional[str] = None) -> HexagramContent:
        """
        Content for one hexagram, attributed to the book that supplied it.

        A book missing the entry defers to the classical text, then to a
        placeholder.

        Raises:
            StructuralError: if number is not a King Wen number
        """
        identity_to_pattern(number)

        with create_span("resolver.resolve_hexagram", {"hexagram.number": number}):
            book = await self.fetch_book(book_id)
            content = book.hexagram(number)

            if content is None and book.id != CLASSIC_BOOK_ID:
                logger.warning(
                    "Book has no entry for hexagram, using classical text",
                    book_id=book.id,
                    hexagram_number=number,
                )
                book = await self._classical_book()
                content = book.hexagram(number)

            if content is None:
                logger.warning("No text for hexagram, using placeholder", hexagram_number=number)
                content = placeholder_hexagram(number)

            return content.with_attribution(book.id, book.name, book.creator_name)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def choose_default(
        self,
        books: Sequence[BookOption],
        prior_selection_id: Optional[str] = None,
    ) -> Optional[str]:
        return choose_default(books, prior_selection_id)

    async def active_book(self, session: ReadingSession) -> BookOption:
        """
        The book a session casts against, applying the default policy and
        recording the choice on the session.
        """
        books = await self.list_books(session.user_id)
        chosen_id = choose_default(books, session.active_book_id)
        session.select(chosen_id)
        for option in books:
            if option.id == chosen_id:
                return option
        # list_books never returns an empty list
        return classic_option()

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    async def preload(self, book_id: str) -> None:
        """Warm the content cache for a book."""
        if book_id not in self.book_cache:
            await self.fetch_book(book_id)

    def invalidate_book(self, book_id: str) -> int:
        return self.book_cache.invalidate(book_id)

    def invalidate_listing(self, user_id: Optional[str] = None) -> int:
        """Drop one requester's listing, or every listing when user_id is None."""
        if user_id is None:
            return self.list_cache.invalidate()
        return self.list_cache.invalidate(user_id)

    def clear_cache(self) -> None:
        """Forget everything; call after a publish or fork."""
        dropped_books = self.book_cache.invalidate()
        dropped_lists = self.list_cache.invalidate()
        logger.info("Book caches cleared", books=dropped_books, listings=dropped_lists)
