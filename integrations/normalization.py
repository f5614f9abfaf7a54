"""
YAO - Content Shape Normalization

Books written over the years store hexagram entries in several shapes.
Each shape is a closed, named variant with its own normalizer; one
dispatcher per field picks the normalizer. Anything unrecognized falls back
to a documented placeholder instead of guessing.

Line texts arrive as:
    ARRAY            ["line one", "line two", ...] or [{"text": ...}, ...]
    STRING_KEYS      {"1": "...", "2": "..."} or {"1": {"text": ...}}
    NUMERIC_KEYS     {1: "...", 2: "..."}
    (anything else)  six empty strings

Line values may themselves be nested objects; the text is taken from the
first present field of LINE_TEXT_FIELDS.

Trigrams arrive as:
    NAME             "Heaven" (looked up by name or alias)
    OBJECT           {"name": "Heaven", "chinese": "乾"}
    (anything else)  {"name": "Unknown", "chinese": "?"}
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from domain.entities import HexagramContent, Trigram
from domain.king_wen import (
    HEXAGRAM_TO_BINARY,
    hexagram_unicode,
    identity_to_pattern,
    lookup_trigram,
)
from observability.logging import get_logger

logger = get_logger(__name__)

LINE_TEXT_FIELDS = ("text", "interpretation", "meaning", "content", "description")
EMPTY_LINES: Tuple[str, ...] = ("",) * 6
PLACEHOLDER_BINARY = "000000"
PLACEHOLDER_UNICODE = "䷀"


class LineShape(str, Enum):
    ARRAY = "array"
    STRING_KEYS = "string_keys"
    NUMERIC_KEYS = "numeric_keys"
    UNRECOGNIZED = "unrecognized"


class TrigramShape(str, Enum):
    NAME = "name"
    OBJECT = "object"
    UNRECOGNIZED = "unrecognized"


# =============================================================================
# LINES
# =============================================================================


def extract_line_text(value: Any) -> str:
    """Text of one line value: a bare string or a nested object."""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        for name in LINE_TEXT_FIELDS:
            text = value.get(name)
            if isinstance(text, str):
                return text
    return ""


def classify_lines(raw: Any) -> LineShape:
    if isinstance(raw, (list, tuple)):
        return LineShape.ARRAY
    if isinstance(raw, Mapping) and raw:
        if any(isinstance(key, str) and key.strip().isdigit() for key in raw):
            return LineShape.STRING_KEYS
        if any(isinstance(key, int) and not isinstance(key, bool) for key in raw):
            return LineShape.NUMERIC_KEYS
    return LineShape.UNRECOGNIZED


def _lines_from_array(raw: Iterable[Any]) -> Tuple[str, ...]:
    texts = [extract_line_text(value) for value in list(raw)[:6]]
    texts.extend([""] * (6 - len(texts)))
    return tuple(texts)


def _lines_from_string_keys(raw: Mapping[Any, Any]) -> Tuple[str, ...]:
    by_key = {key.strip(): value for key, value in raw.items() if isinstance(key, str)}
    # Mixed maps occur; integer keys fill gaps left by string keys
    return tuple(
        extract_line_text(by_key.get(str(i)) or raw.get(i)) for i in range(1, 7)
    )


def _lines_from_numeric_keys(raw: Mapping[Any, Any]) -> Tuple[str, ...]:
    return tuple(extract_line_text(raw.get(i)) for i in range(1, 7))


def _lines_unrecognized(raw: Any) -> Tuple[str, ...]:
    return EMPTY_LINES


_LINE_NORMALIZERS: Dict[LineShape, Callable[[Any], Tuple[str, ...]]] = {
    LineShape.ARRAY: _lines_from_array,
    LineShape.STRING_KEYS: _lines_from_string_keys,
    LineShape.NUMERIC_KEYS: _lines_from_numeric_keys,
    LineShape.UNRECOGNIZED: _lines_unrecognized,
}


def normalize_lines(raw: Any) -> Tuple[str, str, str, str, str, str]:
    """Six line texts, line 1 first, from any known shape."""
    return _LINE_NORMALIZERS[classify_lines(raw)](raw)  # type: ignore[return-value]


# =============================================================================
# TRIGRAMS
# =============================================================================


def classify_trigram(raw: Any) -> TrigramShape:
    if isinstance(raw, str) and raw.strip():
        return TrigramShape.NAME
    if isinstance(raw, Mapping) and raw:
        return TrigramShape.OBJECT
    return TrigramShape.UNRECOGNIZED


def _trigram_from_name(raw: str) -> Trigram:
    return lookup_trigram(raw) or Trigram(name=raw, chinese=Trigram.UNKNOWN_CHINESE)


def _trigram_from_object(raw: Mapping[str, Any]) -> Trigram:
    name = raw.get("name") or Trigram.UNKNOWN_NAME
    chinese = raw.get("chinese") or ""
    if not chinese or chinese == Trigram.UNKNOWN_CHINESE:
        known = lookup_trigram(str(name))
        chinese = known.chinese if known else Trigram.UNKNOWN_CHINESE
    return Trigram(name=str(name), chinese=str(chinese))


def _trigram_unrecognized(raw: Any) -> Trigram:
    return Trigram.unknown()


_TRIGRAM_NORMALIZERS: Dict[TrigramShape, Callable[[Any], Trigram]] = {
    TrigramShape.NAME: _trigram_from_name,
    TrigramShape.OBJECT: _trigram_from_object,
    TrigramShape.UNRECOGNIZED: _trigram_unrecognized,
}


def normalize_trigram(raw: Any) -> Trigram:
    """Trigram descriptor from a bare name or a {name, chinese} object."""
    return _TRIGRAM_NORMALIZERS[classify_trigram(raw)](raw)


# =============================================================================
# HEXAGRAM ENTRIES
# =============================================================================


def _as_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def _text(raw: Mapping[str, Any], *names: str, default: str = "") -> str:
    for name in names:
        value = raw.get(name)
        if isinstance(value, str) and value:
            return value
    return default


def normalize_hexagram(raw: Mapping[str, Any]) -> Optional[HexagramContent]:
    """
    One stored entry as HexagramContent, or None when it names no valid
    hexagram number.
    """
    number = _as_number(raw.get("number"))
    if number is None or number not in HEXAGRAM_TO_BINARY:
        return None

    return HexagramContent(
        number=number,
        chinese_name=_text(raw, "chinese_name"),
        pinyin=_text(raw, "pinyin"),
        english_name=_text(raw, "english_name", "name", default=f"Hexagram {number}"),
        binary=_text(raw, "binary", default=identity_to_pattern(number)),
        unicode=_text(raw, "unicode", default=hexagram_unicode(number)),
        trigram_above=normalize_trigram(raw.get("trigram_above")),
        trigram_below=normalize_trigram(raw.get("trigram_below")),
        judgment=_text(raw, "judgment"),
        image=_text(raw, "image"),
        lines=normalize_lines(raw.get("lines")),
        meaning=_text(raw, "meaning", "interpretation"),
    )


def normalize_hexagrams(raw: Any) -> Dict[int, HexagramContent]:
    """Entries keyed by number; later duplicates win, unusable entries are dropped."""
    if isinstance(raw, Mapping):
        raw = raw.get("hexagrams", list(raw.values()))
    if not isinstance(raw, (list, tuple)):
        return {}

    result: Dict[int, HexagramContent] = {}
    dropped = 0
    for entry in raw:
        content = normalize_hexagram(entry) if isinstance(entry, Mapping) else None
        if content is None:
            dropped += 1
            continue
        result[content.number] = content

    if dropped:
        logger.warning("Dropped unusable hexagram entries", dropped=dropped, kept=len(result))
    return result


def placeholder_hexagram(number: int) -> HexagramContent:
    """
    Content for a hexagram no source could supply.

    The structural fields (number, pattern, glyph) are still correct; only
    the interpretive text is pending.
    """
    binary = HEXAGRAM_TO_BINARY.get(number, PLACEHOLDER_BINARY)
    glyph = hexagram_unicode(number) if number in HEXAGRAM_TO_BINARY else PLACEHOLDER_UNICODE
    return HexagramContent(
        number=number,
        chinese_name=Trigram.UNKNOWN_CHINESE,
        pinyin="Unknown",
        english_name=f"Hexagram {number}",
        binary=binary,
        unicode=glyph,
        trigram_above=Trigram.unknown(),
        trigram_below=Trigram.unknown(),
        judgment="Loading hexagram data...",
        image="Please ensure the hexagram data file is properly loaded.",
        lines=tuple(f"Line {i} interpretation pending..." for i in range(1, 7)),
        meaning="Hexagram data is being loaded. Please wait.",
    )


def placeholder_hexagrams() -> Dict[int, HexagramContent]:
    return {number: placeholder_hexagram(number) for number in range(1, 65)}
