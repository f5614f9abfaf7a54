"""
YAO - Domain Entities

Value objects for a cast and the interpretive content that explains it.

Structural facts (coins, tosses, lines, hexagram numbers) are immutable and
self-validating: a Line whose flags disagree with its toss cannot be built.
Interpretive content (HexagramContent, Book) is plain data supplied by a
book store and may differ from one Book to the next for the same number.

Everything here serializes to plain JSON types through to_dict(), with no
circular references, so a Reading can be stored as a document directly.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from core.errors import StructuralError


class LineType(str, Enum):
    """Broken (yin) or solid (yang) line."""
    YIN = "yin"
    YANG = "yang"

    @property
    def bit(self) -> str:
        return "1" if self is LineType.YANG else "0"

    def flipped(self) -> "LineType":
        return LineType.YIN if self is LineType.YANG else LineType.YANG


class BookSource(str, Enum):
    """Where a book came from."""
    USER = "user"
    COMMUNITY = "community"
    FALLBACK = "fallback"


YANG_SYMBOL = "———"
YIN_SYMBOL = "— —"
OLD_YANG_SYMBOL = "——○——"
OLD_YIN_SYMBOL = "—×—"

HEADS_VALUE = 3
TAILS_VALUE = 2
VALID_SUMS = frozenset({6, 7, 8, 9})
LINE_POSITIONS = (1, 2, 3, 4, 5, 6)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (with or without a trailing Z) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# CASTING VALUE OBJECTS
# =============================================================================


@dataclass(frozen=True, slots=True)
class Coin:
    """One coin: heads weighs 3, tails weighs 2."""
    is_heads: bool

    @property
    def value(self) -> int:
        return HEADS_VALUE if self.is_heads else TAILS_VALUE

    def to_dict(self) -> Dict[str, Any]:
        return {"isHeads": self.is_heads, "value": self.value}


@dataclass(frozen=True, slots=True)
class CoinToss:
    """Three coins and their sum, always one of 6, 7, 8 or 9."""
    coins: Tuple[Coin, Coin, Coin]

    def __post_init__(self) -> None:
        if len(self.coins) != 3:
            raise StructuralError(
                f"A toss needs exactly three coins, got {len(self.coins)}",
                value=len(self.coins),
            )

    @property
    def sum(self) -> int:
        return sum(coin.value for coin in self.coins)

    @classmethod
    def from_sum(cls, total: int) -> "CoinToss":
        """
        Rebuild a toss from a stored sum.

        The stored record keeps only the sum, so heads are placed first;
        any ordering gives the same sum.
        """
        if total not in VALID_SUMS:
            raise StructuralError(f"Impossible toss sum: {total}", value=total)
        heads = total - 3 * TAILS_VALUE
        return cls(coins=tuple(Coin(is_heads=i < heads) for i in range(3)))

    def to_dict(self) -> Dict[str, Any]:
        return {"coins": [coin.to_dict() for coin in self.coins], "sum": self.sum}


@dataclass(frozen=True, slots=True)
class Line:
    """
    One of six lines, position 1 at the bottom.

    Invariants: is_changing iff sum in {6, 9}; type is yang iff sum in {7, 9}.
    """
    position: int
    toss: CoinToss
    type: LineType
    is_changing: bool

    def __post_init__(self) -> None:
        if self.position not in LINE_POSITIONS:
            raise StructuralError(f"Line position out of range: {self.position}", value=self.position)
        total = self.toss.sum
        if self.is_changing != (total in (6, 9)):
            raise StructuralError(
                f"Line {self.position}: changing flag disagrees with sum {total}",
                value=total,
            )
        if (self.type is LineType.YANG) != (total in (7, 9)):
            raise StructuralError(
                f"Line {self.position}: type {self.type.value} disagrees with sum {total}",
                value=total,
            )

    @property
    def sum(self) -> int:
        return self.toss.sum

    @property
    def symbol(self) -> str:
        return YANG_SYMBOL if self.type is LineType.YANG else YIN_SYMBOL

    @property
    def changing_symbol(self) -> Optional[str]:
        if not self.is_changing:
            return None
        return OLD_YANG_SYMBOL if self.type is LineType.YANG else OLD_YIN_SYMBOL

    def to_record(self) -> Dict[str, Any]:
        """The raw record persisted with a reading."""
        return {
            "position": self.position,
            "value": self.sum,
            "type": self.type.value,
            "isChanging": self.is_changing,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "toss": self.toss.to_dict(),
            "type": self.type.value,
            "isChanging": self.is_changing,
            "symbol": self.symbol,
            "changingSymbol": self.changing_symbol,
        }


# =============================================================================
# INTERPRETIVE CONTENT
# =============================================================================


@dataclass(frozen=True, slots=True)
class Trigram:
    """Upper or lower three-line figure as named by a book."""
    name: str
    chinese: str

    UNKNOWN_NAME: ClassVar[str] = "Unknown"
    UNKNOWN_CHINESE: ClassVar[str] = "?"

    @classmethod
    def unknown(cls) -> "Trigram":
        return cls(name=cls.UNKNOWN_NAME, chinese=cls.UNKNOWN_CHINESE)

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "chinese": self.chinese}


@dataclass(frozen=True)
class HexagramContent:
    """
    Interpretive payload for one hexagram as supplied by one book.

    lines holds exactly six texts, index 0 for line 1 (bottom).
    """
    number: int
    chinese_name: str
    pinyin: str
    english_name: str
    binary: str
    unicode: str
    trigram_above: Trigram
    trigram_below: Trigram
    judgment: str
    image: str
    lines: Tuple[str, str, str, str, str, str]
    meaning: str

    # Attribution
    book_id: Optional[str] = None
    book_name: Optional[str] = None
    creator_name: Optional[str] = None

    def line(self, position: int) -> str:
        """Text for line position 1..6."""
        if position not in LINE_POSITIONS:
            raise StructuralError(f"Line position out of range: {position}", value=position)
        return self.lines[position - 1]

    def with_attribution(
        self,
        book_id: Optional[str],
        book_name: Optional[str],
        creator_name: Optional[str],
    ) -> "HexagramContent":
        return replace(self, book_id=book_id, book_name=book_name, creator_name=creator_name)

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the entry is complete."""
        errors = []
        if not 1 <= self.number <= 64:
            errors.append(f"number must be 1-64, got {self.number}")
        if len(self.binary) != 6 or set(self.binary) - {"0", "1"}:
            errors.append(f"binary must be six 0/1 characters, got {self.binary!r}")
        if len(self.lines) != 6:
            errors.append(f"expected six line texts, got {len(self.lines)}")
        for attr in ("chinese_name", "pinyin", "english_name", "judgment", "image", "meaning"):
            if not getattr(self, attr):
                errors.append(f"{attr} is empty")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "number": self.number,
            "chinese_name": self.chinese_name,
            "pinyin": self.pinyin,
            "english_name": self.english_name,
            "binary": self.binary,
            "unicode": self.unicode,
            "trigram_above": self.trigram_above.to_dict(),
            "trigram_below": self.trigram_below.to_dict(),
            "judgment": self.judgment,
            "image": self.image,
            "lines": {str(i + 1): text for i, text in enumerate(self.lines)},
            "meaning": self.meaning,
        }
        if self.book_id is not None:
            data["book_id"] = self.book_id
            data["book_name"] = self.book_name
            data["creator_name"] = self.creator_name
        return data


@dataclass(frozen=True)
class BookOption:
    """A book as shown in a selector: metadata only, no hexagram texts."""
    id: str
    name: str
    source: BookSource
    description: Optional[str] = None
    creator_name: Optional[str] = None
    creator_id: Optional[str] = None
    cover_image_url: Optional[str] = None
    hexagram_count: int = 0
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source.value,
            "description": self.description,
            "creator_name": self.creator_name,
            "creator_id": self.creator_id,
            "cover_image_url": self.cover_image_url,
            "hexagram_count": self.hexagram_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class Book:
    """A named, attributable set of up to 64 hexagram entries."""
    id: str
    name: str
    source: BookSource
    hexagrams: Dict[int, HexagramContent] = field(default_factory=dict)
    description: Optional[str] = None
    creator_name: Optional[str] = None
    creator_id: Optional[str] = None
    cover_image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def hexagram_count(self) -> int:
        return len(self.hexagrams)

    def hexagram(self, number: int) -> Optional[HexagramContent]:
        return self.hexagrams.get(number)

    def option(self) -> BookOption:
        return BookOption(
            id=self.id,
            name=self.name,
            source=self.source,
            description=self.description,
            creator_name=self.creator_name,
            creator_id=self.creator_id,
            cover_image_url=self.cover_image_url,
            hexagram_count=self.hexagram_count,
            created_at=self.created_at,
        )


# =============================================================================
# READING
# =============================================================================


@dataclass(frozen=True)
class Reading:
    """
    One cast: six lines, the primary hexagram and, when any line changes,
    the transformed hexagram. Immutable once built.
    """
    question: str
    lines: Tuple[Line, ...]
    primary_hexagram: HexagramContent
    changing_lines: Tuple[int, ...]
    transformed_hexagram: Optional[HexagramContent]
    timestamp: datetime
    attribution: Optional[BookOption] = None

    @property
    def primary_number(self) -> int:
        return self.primary_hexagram.number

    @property
    def transformed_number(self) -> Optional[int]:
        if self.transformed_hexagram is None:
            return None
        return self.transformed_hexagram.number

    @property
    def pattern(self) -> str:
        return "".join(line.type.bit for line in self.lines)

    def line_records(self) -> List[Dict[str, Any]]:
        return [line.to_record() for line in self.lines]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "lines": [line.to_dict() for line in self.lines],
            "primaryHexagram": self.primary_hexagram.to_dict(),
            "changingLines": list(self.changing_lines),
            "transformedHexagram": (
                self.transformed_hexagram.to_dict() if self.transformed_hexagram else None
            ),
            "timestamp": self.timestamp.isoformat(),
            "attribution": self.attribution.to_dict() if self.attribution else None,
        }


@dataclass
class ReadingSession:
    """
    Per-caller casting context: who is asking and which book is active.

    Passed explicitly into cast/reconstruct so that several sessions can
    live in one process without sharing a selection.
    """
    user_id: Optional[str] = None
    active_book_id: Optional[str] = None

    def select(self, book_id: Optional[str]) -> None:
        self.active_book_id = book_id
