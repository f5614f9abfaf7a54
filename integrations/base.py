"""
YAO - Book Source Interfaces

Collaborator contracts consumed by the BookResolver. Every source hands
back domain objects (BookOption, Book) with hexagram entries already
normalized; raw payload shapes never leave the adapter that read them.

Sources signal "no content here" by raising ContentUnavailableError (or
BookNotFoundError); the resolver treats both as a cue to try the next
source in its chain.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from domain.entities import Book, BookOption, BookSource, HexagramContent
from observability.logging import get_logger

CLASSIC_BOOK_ID = "classic"
CLASSIC_BOOK_NAME = "Classic I Ching"
CLASSIC_BOOK_DESCRIPTION = "Traditional I Ching interpretations based on the Wilhelm/Baynes translation"
CLASSIC_CREATOR = "Traditional"


class BaseBookSource(ABC):
    """Base class for book sources."""

    source_name: str = "base"

    def __init__(self) -> None:
        self.logger = get_logger(f"yao.integrations.{self.__class__.__name__}")
        self._initialized = False

    async def initialize(self) -> None:
        """Open connections or load data."""
        self._initialized = True

    async def cleanup(self) -> None:
        """Release resources."""
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def __aenter__(self) -> "BaseBookSource":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cleanup()


class BookApi(BaseBookSource):
    """Read API for community-published books."""

    source_name = "api"

    @abstractmethod
    async def list_published_books(self) -> List[BookOption]:
        """All published books, in any order."""

    @abstractmethod
    async def fetch_book(self, book_id: str) -> Book:
        """
        Full content of a published book.

        Raises:
            BookNotFoundError: the API does not know the id
            ContentUnavailableError: the API could not be reached or answered badly
        """


class BookRecordStore(BaseBookSource):
    """Direct store of books authored by users, published or not."""

    source_name = "record_store"

    @abstractmethod
    async def list_user_books(self, user_id: str) -> List[BookOption]:
        """Books owned by one user, in any order."""

    @abstractmethod
    async def fetch_book(self, book_id: str) -> Book:
        """
        Full content of one authored book.

        Raises:
            BookNotFoundError: no record with that id
            ContentUnavailableError: the store could not be queried
        """


class ClassicalSource(BaseBookSource):
    """The canonical 64-entry text, loaded once per process."""

    source_name = "classical"

    @abstractmethod
    async def load(self) -> Book:
        """
        The classical book with all 64 entries.

        Raises:
            ContentUnavailableError: the dataset is missing or unreadable
        """

    async def hexagram(self, number: int) -> Optional[HexagramContent]:
        book = await self.load()
        return book.hexagram(number)


def classic_option() -> BookOption:
    """Synthetic listing entry offered when no other book is available."""
    return BookOption(
        id=CLASSIC_BOOK_ID,
        name=CLASSIC_BOOK_NAME,
        source=BookSource.FALLBACK,
        description=CLASSIC_BOOK_DESCRIPTION,
        creator_name=CLASSIC_CREATOR,
        hexagram_count=64,
    )
