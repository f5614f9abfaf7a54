"""
YAO - Service Factories

Builds the resolver and the reading services from configuration, wiring
each configured book source into the chain:

    published-books API (only when YAO_BOOK_API_URL is set)
    record store (PostgreSQL, or SQLite through aiosqlite in tests)
    classical dataset

Usage:
    from core.factories import EngineFactory

    engine = await EngineFactory().create()
    async with engine:
        reading = await engine.cast("Should I take the job?", ReadingSession("u-1"))
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, TypeVar, Union

from config import YaoConfig, get_config
from core.cache import Clock, TTLCache
from data.schemas import ReadingDocument
from db.postgres import PostgresClient
from domain.casting import RandomSource
from domain.entities import Reading, ReadingSession
from domain.reading import Clock as TimestampSource
from domain.reading import ReadingAssembler, ReadingReconstructor
from integrations.base import BaseBookSource, BookApi, BookRecordStore, ClassicalSource
from integrations.book_api import HttpBookApi
from integrations.classical import JsonClassicalSource
from integrations.resolver import BookResolver
from observability.logging import get_logger

logger = get_logger("yao.factories")

TProduct = TypeVar("TProduct")


class AsyncFactoryBase(ABC, Generic[TProduct]):
    """
    Base class for asynchronous factories.

    Adds timing, a creation timeout and logging around _create_instance.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self._name = name or self.__class__.__name__
        self._timeout = timeout
        self._creation_count = 0
        self._total_creation_time_ms = 0.0

    @property
    def name(self) -> str:
        return self._name

    @property
    def creation_count(self) -> int:
        return self._creation_count

    @property
    def average_creation_time_ms(self) -> float:
        if self._creation_count == 0:
            return 0.0
        return self._total_creation_time_ms / self._creation_count

    @abstractmethod
    async def _create_instance(self, **kwargs: Any) -> TProduct:
        """Override to implement creation logic."""
        ...

    async def create(self, **kwargs: Any) -> TProduct:
        """Create a product with logging, metrics, and timeout."""
        start_time = time.time()
        try:
            product = await asyncio.wait_for(
                self._create_instance(**kwargs),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Factory creation timed out", factory=self._name, timeout=self._timeout)
            raise
        except Exception as e:
            logger.error("Factory creation failed", factory=self._name, error=str(e))
            raise
        self._creation_count += 1
        duration = (time.time() - start_time) * 1000
        self._total_creation_time_ms += duration
        logger.debug("Factory created product", factory=self._name, duration_ms=round(duration, 2))
        return product


# =============================================================================
# RESOLVER
# =============================================================================


class BookResolverFactory(AsyncFactoryBase[BookResolver]):
    """
    Creates a BookResolver with its sources initialized.

    Sources passed to create() override the configured ones; pass
    record_store=None explicitly to run without one.
    """

    _UNSET: Any = object()

    def __init__(self, config: Optional[YaoConfig] = None, clock: Optional[Clock] = None):
        super().__init__("BookResolverFactory")
        self._config = config
        self._clock = clock
        self.sources: List[BaseBookSource] = []

    @property
    def config(self) -> YaoConfig:
        return self._config or get_config()

    async def _create_instance(self, **kwargs: Any) -> BookResolver:
        books = self.config.books
        self.sources = []

        api = kwargs.get("api", self._UNSET)
        if api is self._UNSET:
            api = HttpBookApi.from_config(books) if books.api_url else None

        record_store = kwargs.get("record_store", self._UNSET)
        if record_store is self._UNSET:
            record_store = PostgresClient.from_config(self.config.database)

        classical = kwargs.get("classical", self._UNSET)
        if classical is self._UNSET:
            classical = JsonClassicalSource.from_config(books)

        await self._start(api, record_store, classical)

        resolver = BookResolver(
            api=api,
            record_store=record_store,
            classical=classical,
            list_cache=TTLCache(
                ttl_seconds=books.list_ttl_seconds,
                max_size=books.cache_max_entries,
                clock=self._clock,
            ),
            book_cache=TTLCache(
                ttl_seconds=books.book_ttl_seconds,
                max_size=books.cache_max_entries,
                clock=self._clock,
            ),
        )
        logger.info(
            "Book resolver created",
            api=api is not None,
            record_store=record_store is not None,
            classical=classical is not None,
        )
        return resolver

    async def _start(
        self,
        api: Optional[BookApi],
        record_store: Optional[BookRecordStore],
        classical: Optional[ClassicalSource],
    ) -> None:
        for source in (api, record_store, classical):
            if source is None:
                continue
            if not source.is_initialized:
                await source.initialize()
            self.sources.append(source)


# =============================================================================
# ENGINE
# =============================================================================


@dataclass
class ReadingEngine:
    """The resolver and both reading services, plus the sources they hold open."""
    resolver: BookResolver
    assembler: ReadingAssembler
    reconstructor: ReadingReconstructor
    sources: List[BaseBookSource] = field(default_factory=list)

    async def cast(self, question: str, session: Optional[ReadingSession] = None) -> Reading:
        return await self.assembler.cast(question, session)

    async def reopen(
        self,
        document: Union[ReadingDocument, Mapping[str, Any]],
        session: Optional[ReadingSession] = None,
    ) -> Reading:
        """Rebuild a stored reading against the currently active book."""
        return await self.reconstructor.from_document(document, session)

    async def close(self) -> None:
        for source in reversed(self.sources):
            await source.cleanup()
        self.sources.clear()

    async def __aenter__(self) -> "ReadingEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class EngineFactory(AsyncFactoryBase[ReadingEngine]):
    """
    Creates a complete ReadingEngine.

    Keyword arguments to create():
        rng: coin randomness for casting
        now: timestamp source for casting
        api, record_store, classical: source overrides for the resolver
    """

    def __init__(self, config: Optional[YaoConfig] = None, clock: Optional[Clock] = None):
        super().__init__("EngineFactory")
        self._resolvers = BookResolverFactory(config, clock)

    async def _create_instance(self, **kwargs: Any) -> ReadingEngine:
        rng: Optional[RandomSource] = kwargs.pop("rng", None)
        now: Optional[TimestampSource] = kwargs.pop("now", None)

        resolver = await self._resolvers.create(**kwargs)
        return ReadingEngine(
            resolver=resolver,
            assembler=ReadingAssembler(resolver, rng=rng, now=now),
            reconstructor=ReadingReconstructor(resolver),
            sources=list(self._resolvers.sources),
        )
