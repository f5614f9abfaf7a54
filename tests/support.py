"""
YAO - Test Support

In-memory book sources and builders for raw entries and books.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.errors import BookNotFoundError, ContentUnavailableError
from domain.entities import Book, BookOption, BookSource
from integrations.base import BookApi, BookRecordStore
from integrations.normalization import normalize_hexagrams


# =============================================================================
# In-memory book sources
# =============================================================================


class FakeBookApi(BookApi):
    """Published-books API backed by dicts; set `failing` to simulate an outage."""

    def __init__(self, books: Optional[List[Book]] = None, failing: bool = False):
        super().__init__()
        self.books = {book.id: book for book in books or []}
        self.failing = failing
        self.list_calls = 0
        self.fetch_calls: List[str] = []

    async def list_published_books(self) -> List[BookOption]:
        self.list_calls += 1
        if self.failing:
            raise ContentUnavailableError("API down", source=self.source_name)
        return [book.option() for book in self.books.values()]

    async def fetch_book(self, book_id: str) -> Book:
        self.fetch_calls.append(book_id)
        if self.failing:
            raise ContentUnavailableError("API down", source=self.source_name, book_id=book_id)
        if book_id not in self.books:
            raise BookNotFoundError(f"No book {book_id}", source=self.source_name, book_id=book_id)
        return self.books[book_id]


class FakeRecordStore(BookRecordStore):
    """Authored-books store keyed by owner."""

    def __init__(self, books_by_user: Optional[Dict[str, List[Book]]] = None, failing: bool = False):
        super().__init__()
        self.books_by_user = books_by_user or {}
        self.failing = failing
        self.list_calls: List[str] = []
        self.fetch_calls: List[str] = []

    async def list_user_books(self, user_id: str) -> List[BookOption]:
        self.list_calls.append(user_id)
        if self.failing:
            raise ContentUnavailableError("Store down", source=self.source_name)
        return [book.option() for book in self.books_by_user.get(user_id, [])]

    async def fetch_book(self, book_id: str) -> Book:
        self.fetch_calls.append(book_id)
        if self.failing:
            raise ContentUnavailableError("Store down", source=self.source_name, book_id=book_id)
        for books in self.books_by_user.values():
            for book in books:
                if book.id == book_id:
                    return book
        raise BookNotFoundError(f"No book {book_id}", source=self.source_name, book_id=book_id)


# =============================================================================
# Raw entry shapes
# =============================================================================


LINE_TEXTS = [f"Line {i} of the test book" for i in range(1, 7)]


def raw_entry(number: int, lines: Any = None, **overrides: Any) -> Dict[str, Any]:
    """A stored hexagram entry; lines default to the array shape."""
    entry = {
        "number": number,
        "chinese_name": "測",
        "pinyin": "Cè",
        "english_name": f"Test Hexagram {number}",
        "trigram_above": "Heaven",
        "trigram_below": {"name": "Earth", "chinese": "☷ 坤"},
        "judgment": f"Judgment {number}",
        "image": f"Image {number}",
        "lines": list(LINE_TEXTS) if lines is None else lines,
        "meaning": f"Meaning {number}",
    }
    entry.update(overrides)
    return entry


def make_book(
    book_id: str,
    source: BookSource,
    numbers=range(1, 65),
    name: Optional[str] = None,
    created_at: Optional[datetime] = None,
    creator_name: str = "Tester",
) -> Book:
    return Book(
        id=book_id,
        name=name or f"Book {book_id}",
        source=source,
        hexagrams=normalize_hexagrams([raw_entry(n) for n in numbers]),
        creator_name=creator_name,
        created_at=created_at,
    )


def ts(year: int, month: int = 1, day: int = 1) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


