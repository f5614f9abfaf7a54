"""
YAO - Domain Layer

Pure casting and hexagram logic: coins, lines, the King Wen table,
transformation and text rendering. Nothing here performs I/O.

Reading assembly (domain.reading) talks to a content resolver and is
imported from its own module.
"""

from domain.entities import (
    Book,
    BookOption,
    BookSource,
    Coin,
    CoinToss,
    HexagramContent,
    Line,
    LineType,
    Reading,
    ReadingSession,
    Trigram,
)
from domain.casting import (
    RandomSource,
    SequenceRandomSource,
    SystemRandomSource,
    cast_line,
    cast_lines,
    resolve_line,
)
from domain.king_wen import (
    KING_WEN_SEQUENCE,
    TRIGRAMS,
    identity_to_pattern,
    lines_to_pattern,
    pattern_to_identity,
)
from domain.transformation import changing_positions, transform, transformed_lines
from domain.rendering import line_position_name, render_hexagram_text

__all__ = [
    # Entities
    "Book",
    "BookOption",
    "BookSource",
    "Coin",
    "CoinToss",
    "HexagramContent",
    "Line",
    "LineType",
    "Reading",
    "ReadingSession",
    "Trigram",
    # Casting
    "RandomSource",
    "SequenceRandomSource",
    "SystemRandomSource",
    "cast_line",
    "cast_lines",
    "resolve_line",
    # King Wen
    "KING_WEN_SEQUENCE",
    "TRIGRAMS",
    "identity_to_pattern",
    "lines_to_pattern",
    "pattern_to_identity",
    # Transformation
    "changing_positions",
    "transform",
    "transformed_lines",
    # Rendering
    "line_position_name",
    "render_hexagram_text",
]
