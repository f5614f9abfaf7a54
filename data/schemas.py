"""
YAO - Data Schemas

Persisted shape of a reading. The journaling product stores a cast as a
user document; only the raw line records and the hexagram numbers are
kept, and content is resolved again whenever the reading is shown.

Example document_data:
{
    "title": "I Ching Reading: Should I take the job?",
    "question": "Should I take the job?",
    "reading": {
        "lines": [{"position": 1, "value": 9, "type": "yang", "isChanging": true}, ...],
        "primaryHexagram": 3,
        "transformedHexagram": 8,
        "changingLines": [1, 6],
        "castTimestamp": "2024-05-01T10:00:00+00:00"
    },
    "journalContent": "",
    "tool_name": "I Ching Reader",
    "research_consent": false
}
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
import json

from core.errors import StructuralError, ValidationError
from domain.entities import CoinToss, Line, LineType, Reading, parse_timestamp

TOOL_NAME = "I Ching Reader"
TITLE_PREFIX = "I Ching Reading: "


@dataclass
class StoredLine:
    """One raw line record: position, toss sum, type and changing flag."""
    position: int
    value: int
    type: str
    is_changing: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "value": self.value,
            "type": self.type,
            "isChanging": self.is_changing,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoredLine":
        """Accepts "value" or "sum", and "isChanging" or "is_changing"."""
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"Line record must be an object, got {type(data).__name__}",
                field_name="lines",
                actual_value=data,
            )
        value = data.get("value", data.get("sum"))
        changing = data.get("isChanging", data.get("is_changing"))
        position = data.get("position")

        for name, raw, kind in (
            ("position", position, int),
            ("value", value, int),
            ("type", data.get("type"), str),
            ("isChanging", changing, bool),
        ):
            if not isinstance(raw, kind) or (kind is int and isinstance(raw, bool)):
                raise ValidationError(
                    f"Line record field {name} is missing or malformed",
                    field_name=name,
                    actual_value=raw,
                )

        return cls(position=position, value=value, type=data["type"], is_changing=changing)

    @classmethod
    def from_line(cls, line: Line) -> "StoredLine":
        return cls(
            position=line.position,
            value=line.sum,
            type=line.type.value,
            is_changing=line.is_changing,
        )

    def to_line(self) -> Line:
        """
        Rebuild the Line; the toss is recovered from the stored sum.

        Raises:
            ValidationError: if the record contradicts itself
        """
        try:
            return Line(
                position=self.position,
                toss=CoinToss.from_sum(self.value),
                type=LineType(self.type),
                is_changing=self.is_changing,
            )
        except (StructuralError, ValueError) as e:
            raise ValidationError(
                f"Stored line {self.position} is inconsistent: {e}",
                field_name="lines",
                actual_value=self.to_dict(),
                cause=e,
            ) from e


@dataclass
class ReadingDocument:
    """The stored form of a reading, as kept in a user document."""
    question: str
    lines: List[StoredLine]
    primary_hexagram: int
    transformed_hexagram: Optional[int]
    changing_lines: List[int]
    cast_timestamp: str
    title: str = ""
    journal_content: str = ""
    tool_name: str = TOOL_NAME
    research_consent: bool = False

    def __post_init__(self):
        if not self.title:
            self.title = f"{TITLE_PREFIX}{self.question}"

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.cast_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "question": self.question,
            "reading": {
                "lines": [line.to_dict() for line in self.lines],
                "primaryHexagram": self.primary_hexagram,
                "transformedHexagram": self.transformed_hexagram,
                "changingLines": list(self.changing_lines),
                "castTimestamp": self.cast_timestamp,
            },
            "journalContent": self.journal_content,
            "tool_name": self.tool_name,
            "research_consent": self.research_consent,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_reading(
        cls,
        reading: Reading,
        title: str = "",
        journal_content: str = "",
        research_consent: bool = False,
    ) -> "ReadingDocument":
        return cls(
            question=reading.question,
            lines=[StoredLine.from_line(line) for line in reading.lines],
            primary_hexagram=reading.primary_number,
            transformed_hexagram=reading.transformed_number,
            changing_lines=list(reading.changing_lines),
            cast_timestamp=reading.timestamp.isoformat(),
            title=title,
            journal_content=journal_content,
            research_consent=research_consent,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReadingDocument":
        """
        Parse stored document_data.

        Raises:
            ValidationError: if a required field is missing or malformed
        """
        reading = data.get("reading") if isinstance(data, Mapping) else None
        if not isinstance(reading, Mapping):
            raise ValidationError("Stored reading has no 'reading' object", field_name="reading")

        question = data.get("question")
        if not isinstance(question, str):
            raise ValidationError("Stored reading has no question", field_name="question")

        raw_lines = reading.get("lines")
        if not isinstance(raw_lines, list):
            raise ValidationError("Stored reading has no line records", field_name="lines")

        primary = reading.get("primaryHexagram")
        if not isinstance(primary, int) or isinstance(primary, bool):
            raise ValidationError(
                "Stored reading has no primary hexagram number",
                field_name="primaryHexagram",
                actual_value=primary,
            )

        transformed = reading.get("transformedHexagram")
        if transformed is not None and (not isinstance(transformed, int) or isinstance(transformed, bool)):
            raise ValidationError(
                "Stored transformed hexagram must be a number or null",
                field_name="transformedHexagram",
                actual_value=transformed,
            )

        changing = reading.get("changingLines") or []
        if not isinstance(changing, list) or not all(isinstance(p, int) for p in changing):
            raise ValidationError(
                "Stored changing lines must be a list of positions",
                field_name="changingLines",
                actual_value=changing,
            )

        timestamp = reading.get("castTimestamp")
        try:
            parse_timestamp(timestamp)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Stored cast timestamp is not ISO-8601",
                field_name="castTimestamp",
                actual_value=timestamp,
                cause=e,
            ) from e
        if not timestamp:
            raise ValidationError("Stored reading has no cast timestamp", field_name="castTimestamp")

        return cls(
            question=question,
            lines=[StoredLine.from_dict(line) for line in raw_lines],
            primary_hexagram=primary,
            transformed_hexagram=transformed,
            changing_lines=list(changing),
            cast_timestamp=str(timestamp),
            title=data.get("title") or "",
            journal_content=data.get("journalContent") or "",
            tool_name=data.get("tool_name") or TOOL_NAME,
            research_consent=bool(data.get("research_consent", False)),
        )
