"""
YAO - Three-Coin Casting

Coin tossing and line encoding for the three-coin method.

Heads counts 3 and tails 2, so three coins sum to:
- 6 (2+2+2): old yin, changing
- 7 (2+2+3): young yang, stable
- 8 (2+3+3): young yin, stable
- 9 (3+3+3): old yang, changing

Randomness comes from an injected RandomSource so that a cast can be
replayed exactly in tests.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence

from core.errors import StructuralError
from domain.entities import (
    Coin,
    CoinToss,
    Line,
    LineType,
    OLD_YANG_SYMBOL,
    OLD_YIN_SYMBOL,
    YANG_SYMBOL,
    YIN_SYMBOL,
)


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


class SystemRandomSource:
    """Production source; pass a seed for a reproducible stream."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()


class SequenceRandomSource:
    """
    Replays a fixed sequence of floats, then raises.

    Running out of values means a test asked for more coins than it set up.
    """

    def __init__(self, values: Iterable[float]):
        self._values: Iterator[float] = iter(values)

    def random(self) -> float:
        try:
            return next(self._values)
        except StopIteration:
            raise StructuralError("SequenceRandomSource exhausted") from None

    @classmethod
    def for_sums(cls, sums: Sequence[int]) -> "SequenceRandomSource":
        """Build a source whose tosses produce the given sums, in order."""
        values: List[float] = []
        for total in sums:
            toss = CoinToss.from_sum(total)
            values.extend(0.0 if coin.is_heads else 0.9 for coin in toss.coins)
        return cls(values)


@dataclass(frozen=True, slots=True)
class LineProperties:
    """What a toss sum means for its line."""
    type: LineType
    is_changing: bool
    symbol: str
    changing_symbol: Optional[str] = None


def toss_coin(rng: RandomSource) -> Coin:
    """Toss one fair coin."""
    return Coin(is_heads=rng.random() < 0.5)


def toss_three_coins(rng: RandomSource) -> CoinToss:
    """Toss three independent coins. Cannot fail."""
    return CoinToss(coins=(toss_coin(rng), toss_coin(rng), toss_coin(rng)))


def resolve_line(total: int) -> LineProperties:
    """
    Map a toss sum to its line type and changing flag.

    Raises:
        StructuralError: for any sum outside {6, 7, 8, 9}
    """
    if total == 6:
        return LineProperties(LineType.YIN, True, YIN_SYMBOL, OLD_YIN_SYMBOL)
    if total == 7:
        return LineProperties(LineType.YANG, False, YANG_SYMBOL)
    if total == 8:
        return LineProperties(LineType.YIN, False, YIN_SYMBOL)
    if total == 9:
        return LineProperties(LineType.YANG, True, YANG_SYMBOL, OLD_YANG_SYMBOL)
    raise StructuralError(f"Impossible toss sum: {total}", value=total)


def line_from_toss(position: int, toss: CoinToss) -> Line:
    props = resolve_line(toss.sum)
    return Line(
        position=position,
        toss=toss,
        type=props.type,
        is_changing=props.is_changing,
    )


def cast_line(position: int, rng: RandomSource) -> Line:
    """Cast one line at position 1..6."""
    return line_from_toss(position, toss_three_coins(rng))


def cast_lines(rng: RandomSource) -> List[Line]:
    """Cast six lines, bottom to top."""
    return [cast_line(position, rng) for position in range(1, 7)]
