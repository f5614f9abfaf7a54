"""
YAO - Line Transformation

Changing lines flip (old yin becomes yang, old yang becomes yin) and settle;
stable lines carry over. The resulting pattern names the transformed
hexagram. A cast with no changing lines has no transformed hexagram.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from domain.entities import CoinToss, Line, LineType
from domain.king_wen import lines_to_pattern, validate_pattern


def changing_positions(lines: Iterable[Line]) -> List[int]:
    """Positions (1-6, ascending) of the changing lines."""
    return sorted(line.position for line in lines if line.is_changing)


def flip_positions(pattern: str, positions: Iterable[int]) -> str:
    """Flip the given 1-based positions of a pattern."""
    bits = list(validate_pattern(pattern))
    for position in positions:
        index = position - 1
        bits[index] = "0" if bits[index] == "1" else "1"
    return "".join(bits)


def transform(lines: Sequence[Line]) -> Optional[str]:
    """
    Pattern of the transformed hexagram, or None when no line is changing.

    Deterministic: consumes no randomness.
    """
    positions = changing_positions(lines)
    if not positions:
        return None
    return flip_positions(lines_to_pattern(lines), positions)


def transformed_lines(lines: Sequence[Line]) -> Optional[List[Line]]:
    """
    The transformed figure as settled lines, or None when no line is changing.

    Changing lines flip and become stable (yang 7, yin 8); stable lines are
    returned unchanged.
    """
    if not changing_positions(lines):
        return None
    result = []
    for line in sorted(lines, key=lambda l: l.position):
        if not line.is_changing:
            result.append(line)
            continue
        settled = line.type.flipped()
        result.append(
            Line(
                position=line.position,
                toss=CoinToss.from_sum(7 if settled is LineType.YANG else 8),
                type=settled,
                is_changing=False,
            )
        )
    return result
