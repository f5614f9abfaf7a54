"""
YAO - King Wen Table

The fixed bijection between six-line patterns and hexagram numbers 1-64.

A pattern is a six-character string of '1' (yang) and '0' (yin), read
bottom to top: the first character is line 1. Trigrams split the pattern
into its lower (lines 1-3) and upper (lines 4-6) halves.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from core.errors import StructuralError
from domain.entities import Line, Trigram

KING_WEN_SEQUENCE: Mapping[str, int] = {
    "111111": 1,   # Qian - The Creative
    "000000": 2,   # Kun - The Receptive
    "100010": 3,   # Zhun - Difficulty at the Beginning
    "010001": 4,   # Meng - Youthful Folly
    "111010": 5,   # Xu - Waiting
    "010111": 6,   # Song - Conflict
    "010000": 7,   # Shi - The Army
    "000010": 8,   # Bi - Holding Together
    "111011": 9,   # Xiao Chu - Small Taming
    "110111": 10,  # Lu - Treading
    "111000": 11,  # Tai - Peace
    "000111": 12,  # Pi - Standstill
    "101111": 13,  # Tong Ren - Fellowship
    "111101": 14,  # Da You - Great Possession
    "001000": 15,  # Qian - Modesty
    "000100": 16,  # Yu - Enthusiasm
    "100110": 17,  # Sui - Following
    "011001": 18,  # Gu - Work on the Decayed
    "110000": 19,  # Lin - Approach
    "000011": 20,  # Guan - Contemplation
    "100101": 21,  # Shi He - Biting Through
    "101001": 22,  # Bi - Grace
    "000001": 23,  # Bo - Splitting Apart
    "100000": 24,  # Fu - Return
    "100111": 25,  # Wu Wang - Innocence
    "111001": 26,  # Da Chu - Great Taming
    "100001": 27,  # Yi - Nourishment
    "011110": 28,  # Da Guo - Great Exceeding
    "010010": 29,  # Kan - The Abysmal Water
    "101101": 30,  # Li - The Clinging Fire
    "001110": 31,  # Xian - Influence
    "011100": 32,  # Heng - Duration
    "001111": 33,  # Dun - Retreat
    "111100": 34,  # Da Zhuang - Great Power
    "000101": 35,  # Jin - Progress
    "101000": 36,  # Ming Yi - Darkening of the Light
    "101011": 37,  # Jia Ren - The Family
    "110101": 38,  # Kui - Opposition
    "001010": 39,  # Jian - Obstruction
    "010100": 40,  # Xie - Deliverance
    "110001": 41,  # Sun - Decrease
    "100011": 42,  # Yi - Increase
    "111110": 43,  # Guai - Breakthrough
    "011111": 44,  # Gou - Coming to Meet
    "000110": 45,  # Cui - Gathering Together
    "011000": 46,  # Sheng - Pushing Upward
    "010110": 47,  # Kun - Oppression
    "011010": 48,  # Jing - The Well
    "101110": 49,  # Ge - Revolution
    "011101": 50,  # Ding - The Cauldron
    "100100": 51,  # Zhen - The Arousing Thunder
    "001001": 52,  # Gen - Keeping Still Mountain
    "001011": 53,  # Jian - Development
    "110100": 54,  # Gui Mei - The Marrying Maiden
    "101100": 55,  # Feng - Abundance
    "001101": 56,  # Lu - The Wanderer
    "011011": 57,  # Xun - The Gentle Wind
    "110110": 58,  # Dui - The Joyous Lake
    "010011": 59,  # Huan - Dispersion
    "110010": 60,  # Jie - Limitation
    "110011": 61,  # Zhong Fu - Inner Truth
    "001100": 62,  # Xiao Guo - Small Exceeding
    "101010": 63,  # Ji Ji - After Completion
    "010101": 64,  # Wei Ji - Before Completion
}

HEXAGRAM_TO_BINARY: Mapping[int, str] = {
    number: pattern for pattern, number in KING_WEN_SEQUENCE.items()
}


@dataclass(frozen=True, slots=True)
class TrigramInfo:
    """One of the eight trigrams."""
    key: str
    name: str
    chinese: str
    symbol: str
    attribute: str
    element: str

    def as_trigram(self) -> Trigram:
        return Trigram(name=self.name, chinese=f"{self.symbol} {self.chinese}")


# Keyed by the three-character pattern, bottom line first
TRIGRAMS: Mapping[str, TrigramInfo] = {
    "111": TrigramInfo("qian", "Heaven", "乾", "☰", "Creative", "Metal"),
    "000": TrigramInfo("kun", "Earth", "坤", "☷", "Receptive", "Earth"),
    "100": TrigramInfo("zhen", "Thunder", "震", "☳", "Arousing", "Wood"),
    "010": TrigramInfo("kan", "Water", "坎", "☵", "Abysmal", "Water"),
    "001": TrigramInfo("gen", "Mountain", "艮", "☶", "Still", "Earth"),
    "011": TrigramInfo("xun", "Wind", "巽", "☴", "Gentle", "Wood"),
    "101": TrigramInfo("li", "Fire", "離", "☲", "Clinging", "Fire"),
    "110": TrigramInfo("dui", "Lake", "兌", "☱", "Joyous", "Metal"),
}

_BY_KEY: Dict[str, TrigramInfo] = {info.key: info for info in TRIGRAMS.values()}

# Names and aliases authors use for trigrams, lowercased
TRIGRAM_ALIASES: Mapping[str, Trigram] = {
    **{info.name.lower(): info.as_trigram() for info in TRIGRAMS.values()},
    **{info.key: info.as_trigram() for info in TRIGRAMS.values()},
    "wood": Trigram("Wind/Wood", _BY_KEY["xun"].as_trigram().chinese),
    "marsh": Trigram("Lake/Marsh", _BY_KEY["dui"].as_trigram().chinese),
    "abyss": _BY_KEY["kan"].as_trigram(),
    "the creative": _BY_KEY["qian"].as_trigram(),
    "the receptive": _BY_KEY["kun"].as_trigram(),
    "the arousing": _BY_KEY["zhen"].as_trigram(),
    "the abysmal": _BY_KEY["kan"].as_trigram(),
    "keeping still": _BY_KEY["gen"].as_trigram(),
    "the gentle": _BY_KEY["xun"].as_trigram(),
    "the clinging": _BY_KEY["li"].as_trigram(),
    "the joyous": _BY_KEY["dui"].as_trigram(),
}


def validate_pattern(pattern: str) -> str:
    if not isinstance(pattern, str) or len(pattern) != 6 or set(pattern) - {"0", "1"}:
        raise StructuralError(f"Invalid line pattern: {pattern!r}", value=pattern)
    return pattern


def pattern_to_identity(pattern: str) -> int:
    """
    King Wen number for a six-character pattern.

    Raises:
        StructuralError: if the pattern is not six 0/1 characters
    """
    return KING_WEN_SEQUENCE[validate_pattern(pattern)]


def identity_to_pattern(number: int) -> str:
    """
    Six-character pattern for a King Wen number.

    Raises:
        StructuralError: if number is outside 1..64
    """
    try:
        return HEXAGRAM_TO_BINARY[number]
    except (KeyError, TypeError):
        raise StructuralError(f"Invalid hexagram number: {number!r}", value=number) from None


def lines_to_pattern(lines: Iterable[Line]) -> str:
    """Assemble the pattern from exactly six lines, bottom first."""
    ordered = sorted(lines, key=lambda line: line.position)
    if [line.position for line in ordered] != [1, 2, 3, 4, 5, 6]:
        raise StructuralError(
            "A hexagram needs one line at each position 1-6",
            value=[line.position for line in ordered],
        )
    return "".join(line.type.bit for line in ordered)


def split_trigrams(pattern: str) -> Tuple[TrigramInfo, TrigramInfo]:
    """(lower, upper) trigrams of a pattern."""
    validate_pattern(pattern)
    return TRIGRAMS[pattern[:3]], TRIGRAMS[pattern[3:]]


def lower_trigram(pattern: str) -> TrigramInfo:
    return split_trigrams(pattern)[0]


def upper_trigram(pattern: str) -> TrigramInfo:
    return split_trigrams(pattern)[1]


def hexagram_unicode(number: int) -> str:
    """Unicode hexagram glyph (U+4DC0 onward) for a King Wen number."""
    identity_to_pattern(number)
    return chr(0x4DC0 + number - 1)


def lookup_trigram(name: str) -> Optional[Trigram]:
    """Trigram for a name or alias such as 'Heaven' or 'the joyous'."""
    return TRIGRAM_ALIASES.get(name.strip().lower())
