"""
Tests for data/schemas.py - the stored reading document.
"""
import json

import pytest

from core.errors import ValidationError
from data.schemas import TITLE_PREFIX, TOOL_NAME, ReadingDocument, StoredLine
from domain.entities import LineType


def stored_reading(**reading_overrides):
    reading = {
        "lines": [
            {"position": i, "value": value, "type": "yang" if value % 2 else "yin", "isChanging": value in (6, 9)}
            for i, value in enumerate([9, 8, 8, 8, 7, 6], 1)
        ],
        "primaryHexagram": 3,
        "transformedHexagram": 20,
        "changingLines": [1, 6],
        "castTimestamp": "2024-05-01T10:00:00Z",
    }
    reading.update(reading_overrides)
    return {"question": "Should I start?", "reading": reading}


class TestStoredLine:
    def test_accepts_alternate_keys(self):
        line = StoredLine.from_dict({"position": 2, "sum": 6, "type": "yin", "is_changing": True})
        assert line == StoredLine(position=2, value=6, type="yin", is_changing=True)
        assert line.to_dict()["isChanging"] is True

    def test_to_line(self):
        line = StoredLine(position=1, value=9, type="yang", is_changing=True).to_line()
        assert line.type is LineType.YANG
        assert line.sum == 9

    @pytest.mark.parametrize(
        "record",
        [
            {"position": 1, "value": 9, "type": "yang"},
            {"position": "1", "value": 9, "type": "yang", "isChanging": True},
            {"position": 1, "value": True, "type": "yang", "isChanging": True},
            {"position": 1, "value": 9, "type": 1, "isChanging": True},
            ["not", "a", "record"],
        ],
    )
    def test_malformed_records(self, record):
        with pytest.raises(ValidationError):
            StoredLine.from_dict(record)

    @pytest.mark.parametrize(
        "line",
        [
            StoredLine(position=1, value=5, type="yang", is_changing=False),
            StoredLine(position=1, value=9, type="yin", is_changing=True),
            StoredLine(position=1, value=7, type="yang", is_changing=True),
            StoredLine(position=1, value=7, type="solid", is_changing=False),
        ],
    )
    def test_inconsistent_records(self, line):
        with pytest.raises(ValidationError):
            line.to_line()


class TestReadingDocument:
    def test_from_dict(self):
        document = ReadingDocument.from_dict(stored_reading())
        assert document.primary_hexagram == 3
        assert document.transformed_hexagram == 20
        assert document.changing_lines == [1, 6]
        assert document.title == f"{TITLE_PREFIX}Should I start?"
        assert document.tool_name == TOOL_NAME
        assert document.timestamp.year == 2024

    def test_to_dict_restores_stored_keys(self):
        data = stored_reading()
        document = ReadingDocument.from_dict(data)
        payload = document.to_dict()
        assert payload["reading"] == data["reading"]
        assert payload["research_consent"] is False
        assert json.loads(document.to_json())["question"] == "Should I start?"

    def test_no_transformation(self):
        document = ReadingDocument.from_dict(stored_reading(transformedHexagram=None, changingLines=[]))
        assert document.transformed_hexagram is None

    @pytest.mark.parametrize(
        "data",
        [
            {"question": "No reading"},
            {"reading": stored_reading()["reading"]},
            stored_reading(lines="six lines"),
            stored_reading(primaryHexagram="3"),
            stored_reading(transformedHexagram=True),
            stored_reading(changingLines=["1"]),
            stored_reading(castTimestamp="yesterday"),
            stored_reading(castTimestamp=None),
        ],
    )
    def test_malformed_documents(self, data):
        with pytest.raises(ValidationError):
            ReadingDocument.from_dict(data)
