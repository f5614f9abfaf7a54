"""
YAO - Reading Assembly

Casting a new reading and rebuilding a stored one.

ReadingAssembler.cast
    six line casts -> pattern -> primary number -> transformed number when
    any line changes -> content for both from the session's active book ->
    immutable Reading.

ReadingReconstructor.reconstruct
    stored line records and numbers -> the same Reading structure, with
    content resolved again against the book that is active now. No coins are
    tossed and no number is re-derived.

Both either return a complete Reading or raise; content failures inside
the resolver are already recovered there, so anything that escapes it is
reported as ContentResolutionError.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence, Tuple, Union

from core.errors import ContentResolutionError, StructuralError, ValidationError
from data.schemas import ReadingDocument, StoredLine
from domain.casting import RandomSource, SystemRandomSource, cast_lines
from domain.entities import (
    BookOption,
    BookSource,
    HexagramContent,
    Line,
    Reading,
    ReadingSession,
    parse_timestamp,
)
from domain.king_wen import identity_to_pattern, lines_to_pattern, pattern_to_identity
from domain.transformation import changing_positions as find_changing_positions, transform
from observability.logging import get_logger
from observability.tracing import span_decorator

logger = get_logger(__name__)

Clock = Callable[[], datetime]
LineRecord = Union[StoredLine, Mapping[str, Any]]


class ContentResolver(Protocol):
    """What reading assembly needs from a book resolver."""

    async def active_book(self, session: ReadingSession) -> BookOption:
        ...

    async def resolve_hexagram(self, number: int, book_id: Optional[str] = None) -> HexagramContent:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _served_by(selected: BookOption, content: HexagramContent) -> BookOption:
    """The book that supplied content, which is the selection unless a fallback stepped in."""
    if content.book_id is None or content.book_id == selected.id:
        return selected
    return BookOption(
        id=content.book_id,
        name=content.book_name or content.book_id,
        source=BookSource.FALLBACK,
        creator_name=content.creator_name,
    )


class _ReadingBuilder:
    def __init__(self, resolver: ContentResolver):
        self.resolver = resolver

    async def _resolve_content(
        self,
        session: ReadingSession,
        primary_number: int,
        transformed_number: Optional[int],
    ) -> Tuple[BookOption, HexagramContent, Optional[HexagramContent]]:
        try:
            selected = await self.resolver.active_book(session)
            primary = await self.resolver.resolve_hexagram(primary_number, selected.id)
            transformed = None
            if transformed_number is not None:
                transformed = await self.resolver.resolve_hexagram(transformed_number, selected.id)
        except (StructuralError, ContentResolutionError):
            raise
        except Exception as e:
            raise ContentResolutionError(
                f"Could not resolve content for hexagram {primary_number}: {e}",
                hexagram_number=primary_number,
                cause=e,
            ) from e
        attribution = _served_by(selected, primary)
        if attribution is not selected:
            logger.info(
                "Reading attributed to fallback content",
                selected_book_id=selected.id,
                book_id=attribution.id,
                hexagram_number=primary_number,
            )
        return attribution, primary, transformed


class ReadingAssembler(_ReadingBuilder):
    """
    Casts new readings.

    Args:
        resolver: supplies the active book and hexagram content
        rng: coin randomness; defaults to an unseeded SystemRandomSource
        now: timestamp source; defaults to the current UTC time
    """

    def __init__(
        self,
        resolver: ContentResolver,
        rng: Optional[RandomSource] = None,
        now: Optional[Clock] = None,
    ):
        super().__init__(resolver)
        self.rng = rng or SystemRandomSource()
        self.now = now or _utcnow

    @span_decorator("reading.cast")
    async def cast(self, question: str, session: Optional[ReadingSession] = None) -> Reading:
        """
        Cast a reading for a question.

        Raises:
            ValidationError: if the question is empty
            ContentResolutionError: if content resolution broke
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError(
                "A reading needs a non-empty question",
                field_name="question",
                actual_value=question,
            )
        session = session if session is not None else ReadingSession()

        lines = cast_lines(self.rng)
        primary_number = pattern_to_identity(lines_to_pattern(lines))
        changing = tuple(find_changing_positions(lines))
        transformed_pattern = transform(lines)
        transformed_number = (
            pattern_to_identity(transformed_pattern) if transformed_pattern is not None else None
        )

        attribution, primary, transformed = await self._resolve_content(
            session, primary_number, transformed_number
        )

        reading = Reading(
            question=question,
            lines=tuple(lines),
            primary_hexagram=primary,
            changing_lines=changing,
            transformed_hexagram=transformed,
            timestamp=self.now(),
            attribution=attribution,
        )
        logger.info(
            "Cast completed",
            primary=primary_number,
            transformed=transformed_number,
            changing_lines=list(changing),
            book_id=attribution.id,
        )
        return reading


class ReadingReconstructor(_ReadingBuilder):
    """Rebuilds stored readings without new randomness."""

    @span_decorator("reading.reconstruct")
    async def reconstruct(
        self,
        question: str,
        stored_lines: Iterable[LineRecord],
        primary_id: int,
        transformed_id: Optional[int],
        changing_positions: Sequence[int],
        timestamp: Union[datetime, str],
        session: Optional[ReadingSession] = None,
    ) -> Reading:
        """
        Rebuild a reading from its stored records.

        Lines and numbers are taken as stored; content comes from the
        currently active book and is attributed to whichever book supplied it.
        Changing positions must match the lines whose isChanging flag is set.

        Raises:
            ValidationError: if the line records are malformed or incomplete
            StructuralError: if a stored number is not a King Wen number
            ContentResolutionError: if content resolution broke
        """
        session = session if session is not None else ReadingSession()

        lines = tuple(
            sorted(
                (self._line(record) for record in stored_lines),
                key=lambda line: line.position,
            )
        )
        if [line.position for line in lines] != [1, 2, 3, 4, 5, 6]:
            raise ValidationError(
                "A stored reading needs one line record per position 1-6",
                field_name="lines",
                actual_value=[line.position for line in lines],
            )

        changing = list(changing_positions)
        if any(isinstance(p, bool) or not isinstance(p, int) or not 1 <= p <= 6 for p in changing):
            raise ValidationError(
                "Changing line positions must be integers 1-6",
                field_name="changing_lines",
                actual_value=changing,
            )
        flagged = [line.position for line in lines if line.is_changing]
        if sorted(changing) != flagged:
            raise ValidationError(
                "Stored changing lines disagree with the stored line records",
                field_name="changing_lines",
                actual_value=changing,
                suggestions=[f"Expected changing lines {flagged}"],
            )

        identity_to_pattern(primary_id)
        if transformed_id is not None:
            identity_to_pattern(transformed_id)

        stored_pattern = lines_to_pattern(lines)
        if pattern_to_identity(stored_pattern) != primary_id:
            logger.warning(
                "Stored primary hexagram disagrees with stored lines",
                primary_id=primary_id,
                pattern=stored_pattern,
            )

        try:
            cast_at = parse_timestamp(timestamp)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Stored timestamp is not ISO-8601",
                field_name="timestamp",
                actual_value=timestamp,
                cause=e,
            ) from e
        if cast_at is None:
            raise ValidationError("Stored reading has no timestamp", field_name="timestamp")

        attribution, primary, transformed = await self._resolve_content(
            session, primary_id, transformed_id
        )

        return Reading(
            question=question,
            lines=lines,
            primary_hexagram=primary,
            changing_lines=tuple(flagged),
            transformed_hexagram=transformed,
            timestamp=cast_at,
            attribution=attribution,
        )

    async def from_document(
        self,
        document: Union[ReadingDocument, Mapping[str, Any]],
        session: Optional[ReadingSession] = None,
    ) -> Reading:
        """Rebuild a reading from a stored document or its raw document_data."""
        if not isinstance(document, ReadingDocument):
            document = ReadingDocument.from_dict(document)
        return await self.reconstruct(
            question=document.question,
            stored_lines=document.lines,
            primary_id=document.primary_hexagram,
            transformed_id=document.transformed_hexagram,
            changing_positions=document.changing_lines,
            timestamp=document.cast_timestamp,
            session=session,
        )

    @staticmethod
    def _line(record: LineRecord) -> Line:
        stored = record if isinstance(record, StoredLine) else StoredLine.from_dict(record)
        return stored.to_line()
