"""
Tests for domain/king_wen.py - the pattern/number table.
"""
from itertools import product

import pytest

from core.errors import StructuralError
from domain.casting import SequenceRandomSource, cast_lines
from domain.king_wen import (
    KING_WEN_SEQUENCE,
    TRIGRAMS,
    hexagram_unicode,
    identity_to_pattern,
    lines_to_pattern,
    lookup_trigram,
    lower_trigram,
    pattern_to_identity,
    split_trigrams,
    upper_trigram,
)

ALL_PATTERNS = ["".join(bits) for bits in product("01", repeat=6)]


class TestBijection:
    """Every pattern maps to exactly one number and back."""

    def test_table_covers_all_patterns(self):
        assert sorted(KING_WEN_SEQUENCE) == sorted(ALL_PATTERNS)
        assert sorted(KING_WEN_SEQUENCE.values()) == list(range(1, 65))

    @pytest.mark.parametrize("pattern", ALL_PATTERNS)
    def test_pattern_round_trip(self, pattern):
        assert identity_to_pattern(pattern_to_identity(pattern)) == pattern

    def test_identity_round_trip(self):
        for number in range(1, 65):
            assert pattern_to_identity(identity_to_pattern(number)) == number

    @pytest.mark.parametrize(
        "pattern,number",
        [("111111", 1), ("000000", 2), ("100010", 3), ("010001", 4), ("101010", 63), ("010101", 64)],
    )
    def test_known_entries(self, pattern, number):
        assert pattern_to_identity(pattern) == number


class TestInvalidInput:
    """Unknown input is structural, never defaulted."""

    @pytest.mark.parametrize("pattern", ["", "11111", "1111111", "11a111", "222222", None])
    def test_bad_patterns(self, pattern):
        with pytest.raises(StructuralError):
            pattern_to_identity(pattern)

    @pytest.mark.parametrize("number", [0, 65, -1, "1", None])
    def test_bad_numbers(self, number):
        with pytest.raises(StructuralError):
            identity_to_pattern(number)

    def test_lines_need_all_six_positions(self):
        lines = cast_lines(SequenceRandomSource.for_sums([7] * 6))
        with pytest.raises(StructuralError):
            lines_to_pattern(lines[:5])


class TestTrigrams:
    """Tests for trigram helpers."""

    def test_split_is_lower_then_upper(self):
        lower, upper = split_trigrams("100010")
        assert lower.name == "Thunder"
        assert upper.name == "Water"
        assert lower_trigram("100010") is lower
        assert upper_trigram("100010") is upper

    def test_eight_trigrams(self):
        assert len(TRIGRAMS) == 8
        assert len({info.chinese for info in TRIGRAMS.values()}) == 8

    @pytest.mark.parametrize(
        "name,chinese",
        [("Heaven", "☰ 乾"), ("the joyous", "☱ 兌"), ("  WATER ", "☵ 坎"), ("kun", "☷ 坤")],
    )
    def test_lookup_by_name_or_alias(self, name, chinese):
        assert lookup_trigram(name).chinese == chinese

    def test_lookup_unknown(self):
        assert lookup_trigram("Volcano") is None

    def test_unicode_glyphs(self):
        assert hexagram_unicode(1) == "䷀"
        assert hexagram_unicode(64) == "䷿"
