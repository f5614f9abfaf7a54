"""
YAO - Classical Dataset

The canonical text for all 64 hexagrams, shipped as a JSON file and read
once per source instance. The resolver keeps a single instance for the
life of the process.
"""
import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.errors import ContentUnavailableError
from domain.entities import Book, BookSource, HexagramContent
from domain.king_wen import pattern_to_identity
from integrations.base import (
    CLASSIC_BOOK_DESCRIPTION,
    CLASSIC_BOOK_ID,
    CLASSIC_BOOK_NAME,
    CLASSIC_CREATOR,
    ClassicalSource,
)
from integrations.normalization import normalize_hexagrams


class JsonClassicalSource(ClassicalSource):
    """Classical book loaded from a JSON file of 64 entries."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._book: Optional[Book] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config) -> "JsonClassicalSource":
        """Build from a BookSourceConfig."""
        return cls(config.classical_data_path)

    async def initialize(self) -> None:
        # An unreadable dataset degrades readings to placeholders; startup continues
        try:
            await self.load()
        except ContentUnavailableError as e:
            self.logger.warning("Classical dataset unavailable at startup", error=e.message)

    async def load(self) -> Book:
        if self._book is not None:
            return self._book

        async with self._lock:
            if self._book is None:
                self._book = await asyncio.to_thread(self._read)
                self._initialized = True
        return self._book

    def _read(self) -> Book:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ContentUnavailableError(
                f"Classical dataset not found at {self.path}",
                source=self.source_name,
                book_id=CLASSIC_BOOK_ID,
                cause=e,
                suggestions=["Set YAO_CLASSICAL_DATA_PATH to the bundled classical_hexagrams.json"],
            ) from e
        except (OSError, ValueError) as e:
            raise ContentUnavailableError(
                f"Classical dataset at {self.path} could not be read: {e}",
                source=self.source_name,
                book_id=CLASSIC_BOOK_ID,
                cause=e,
            ) from e

        hexagrams = normalize_hexagrams(raw)
        if len(hexagrams) != 64:
            self.logger.warning(
                "Classical dataset is incomplete",
                path=str(self.path),
                entries=len(hexagrams),
            )
        self.logger.info("Classical dataset loaded", path=str(self.path), entries=len(hexagrams))

        return Book(
            id=CLASSIC_BOOK_ID,
            name=CLASSIC_BOOK_NAME,
            source=BookSource.FALLBACK,
            hexagrams=hexagrams,
            description=CLASSIC_BOOK_DESCRIPTION,
            creator_name=CLASSIC_CREATOR,
        )

    # Lookups

    async def by_chinese_name(self, name: str) -> Optional[HexagramContent]:
        book = await self.load()
        wanted = name.strip()
        for content in book.hexagrams.values():
            if content.chinese_name == wanted:
                return content
        return None

    async def by_pattern(self, pattern: str) -> Optional[HexagramContent]:
        book = await self.load()
        return book.hexagram(pattern_to_identity(pattern))

    async def search(self, query: str) -> List[HexagramContent]:
        """Entries whose English name or pinyin contains query, case-insensitively."""
        needle = query.strip().lower()
        if not needle:
            return []
        book = await self.load()
        return [
            content
            for number, content in sorted(book.hexagrams.items())
            if needle in content.english_name.lower() or needle in content.pinyin.lower()
        ]

    def entries(self) -> Dict[int, HexagramContent]:
        """Loaded entries, empty before the first load."""
        return dict(self._book.hexagrams) if self._book else {}
