"""
YAO - PostgreSQL Record Store with Async Support

Direct access to authored books in the user_documents table, used for
books that are not (or not yet) served by the published-books API.
Provides async database operations using SQLAlchemy 2.0 and asyncpg;
SQLite URLs (sqlite+aiosqlite) are accepted for tests and local use.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.errors import BookNotFoundError, ContentUnavailableError
from db.models import BOOK_DOCUMENT_TYPE, BOOK_TOOL_SLUG, Base, UserDocument
from domain.entities import Book, BookOption, BookSource, parse_timestamp
from integrations.base import BookRecordStore
from integrations.normalization import normalize_hexagrams
from observability.logging import get_logger
from observability.tracing import span_decorator

logger = get_logger("yao.db.postgres")

UNTITLED_BOOK = "Untitled Book"
OWNER_DISPLAY_NAME = "You"

# Driver-level failures (refused connections, DNS, connect timeouts) surface
# as OSError or asyncio.TimeoutError rather than SQLAlchemyError
STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class PostgresClient(BookRecordStore):
    """
    Async record store for authored books.

    Features:
    - Connection pooling with asyncpg
    - Automatic session management
    - In-memory SQLite support for tests
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        super().__init__()
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.echo = echo

        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @classmethod
    def from_config(cls, config: Any) -> "PostgresClient":
        """Build from a DatabaseConfig."""
        return cls(
            database_url=config.url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            echo=config.echo,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    async def initialize(self) -> None:
        """
        Initialize database engine and session factory.

        PostgreSQL gets a pre-pinged, recycled connection pool; SQLite gets
        a single shared connection so in-memory databases survive between
        sessions.
        """
        if self._initialized:
            return

        if self.is_sqlite:
            self._engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self._engine = create_async_engine(
                self.database_url,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                echo=self.echo,
                pool_pre_ping=True,
                pool_recycle=1800,
                pool_timeout=30,
            )

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._initialized = True
        logger.info(
            "Record store initialized",
            sqlite=self.is_sqlite,
            pool_size=None if self.is_sqlite else self.pool_size,
        )

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Record store connections closed")
        self._initialized = False

    async def cleanup(self) -> None:
        await self.close()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session."""
        if not self._session_factory:
            await self.initialize()

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all database tables."""
        if not self._engine:
            await self.initialize()
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    # Book operations

    async def save_book(
        self,
        user_id: str,
        document_data: Dict[str, Any],
        is_public: bool = False,
        book_id: Optional[str] = None,
    ) -> str:
        """Insert or replace an authored book; returns its id."""
        async with self.session() as session:
            doc = await session.get(UserDocument, book_id) if book_id else None
            if doc is None:
                doc = UserDocument(
                    user_id=user_id,
                    document_type=BOOK_DOCUMENT_TYPE,
                    tool_slug=BOOK_TOOL_SLUG,
                )
                if book_id:
                    doc.id = book_id
                session.add(doc)
            doc.document_data = dict(document_data)
            doc.is_public = is_public
            await session.flush()
            return doc.id

    @span_decorator("record_store.list_user_books")
    async def list_user_books(self, user_id: str) -> List[BookOption]:
        if not user_id:
            return []
        try:
            async with self.session() as session:
                result = await session.execute(
                    select(UserDocument).where(
                        UserDocument.user_id == user_id,
                        UserDocument.document_type == BOOK_DOCUMENT_TYPE,
                    )
                )
                docs = list(result.scalars().all())
        except STORE_ERRORS as e:
            raise ContentUnavailableError(
                f"Could not list books for user {user_id}",
                source=self.source_name,
                cause=e,
            ) from e

        return [self._user_option(doc) for doc in docs]

    @span_decorator("record_store.fetch_book")
    async def fetch_book(self, book_id: str) -> Book:
        try:
            async with self.session() as session:
                result = await session.execute(
                    select(UserDocument).where(
                        UserDocument.id == book_id,
                        or_(
                            UserDocument.document_type == BOOK_DOCUMENT_TYPE,
                            UserDocument.tool_slug == BOOK_TOOL_SLUG,
                        ),
                    )
                )
                doc = result.scalar_one_or_none()
        except STORE_ERRORS as e:
            raise ContentUnavailableError(
                f"Could not load book {book_id}",
                source=self.source_name,
                book_id=book_id,
                cause=e,
            ) from e

        if doc is None:
            raise BookNotFoundError(
                f"No authored book {book_id}",
                source=self.source_name,
                book_id=book_id,
            )
        return self._book(doc)

    @staticmethod
    def _user_option(doc: UserDocument) -> BookOption:
        data = doc.document_data or {}
        hexagrams = data.get("hexagrams")
        return BookOption(
            id=doc.id,
            name=data.get("name") or UNTITLED_BOOK,
            source=BookSource.USER,
            description=data.get("description") or None,
            creator_name=OWNER_DISPLAY_NAME,
            creator_id=doc.user_id,
            cover_image_url=data.get("cover_image_url"),
            hexagram_count=len(hexagrams) if isinstance(hexagrams, list) else 0,
            created_at=parse_timestamp(doc.created_at),
        )

    @staticmethod
    def _book(doc: UserDocument) -> Book:
        data = doc.document_data or {}
        return Book(
            id=doc.id,
            name=data.get("name") or UNTITLED_BOOK,
            source=BookSource.COMMUNITY if doc.is_public else BookSource.USER,
            hexagrams=normalize_hexagrams(data.get("hexagrams") or []),
            description=data.get("description") or None,
            creator_name=data.get("creator_name") or OWNER_DISPLAY_NAME,
            creator_id=doc.user_id,
            cover_image_url=data.get("cover_image_url"),
            created_at=parse_timestamp(doc.created_at),
        )
