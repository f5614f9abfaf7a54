"""
YAO - Text Rendering

Plain-text figure of a cast and the traditional names of line positions.
"""
from __future__ import annotations

from typing import Iterable

from core.errors import StructuralError
from domain.entities import LINE_POSITIONS, Line, LineType

_YANG_POSITION_NAMES = ("初九", "九二", "九三", "九四", "九五", "上九")
_YIN_POSITION_NAMES = ("初六", "六二", "六三", "六四", "六五", "上六")


def render_hexagram_text(lines: Iterable[Line], show_changing: bool = True) -> str:
    """Render lines top (6) to bottom (1), marking changing lines when asked."""
    rendered = []
    for line in sorted(lines, key=lambda l: l.position, reverse=True):
        if show_changing and line.changing_symbol:
            rendered.append(line.changing_symbol)
        else:
            rendered.append(line.symbol)
    return "\n".join(rendered)


def line_position_name(position: int, line_type: LineType) -> str:
    """Traditional name of a line, e.g. 初九 for a yang first line."""
    if position not in LINE_POSITIONS:
        raise StructuralError(f"Line position out of range: {position}", value=position)
    names = _YANG_POSITION_NAMES if LineType(line_type) is LineType.YANG else _YIN_POSITION_NAMES
    return names[position - 1]
