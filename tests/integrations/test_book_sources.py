"""
Tests for integrations/book_api.py and integrations/classical.py.

The HTTP client runs against httpx.MockTransport; the classical source
reads the bundled dataset.
"""
import json

import httpx
import pytest

from core.errors import BookNotFoundError, ContentUnavailableError
from domain.entities import BookSource
from domain.king_wen import identity_to_pattern
from integrations.book_api import BOOKS_PATH, BookSummaryPayload, HttpBookApi
from integrations.classical import JsonClassicalSource
from tests.support import LINE_TEXTS, raw_entry

BASE_URL = "https://books.example.org"


def api_with(handler) -> HttpBookApi:
    return HttpBookApi(BASE_URL, transport=httpx.MockTransport(handler))


def json_response(payload, status_code=200):
    return httpx.Response(status_code, json=payload)


# =============================================================================
# Published books API
# =============================================================================


class TestBookSummaryPayload:
    """Lenient parsing of list entries."""

    def test_defaults(self):
        option = BookSummaryPayload.model_validate({"id": 12}).to_option()
        assert option.id == "12"
        assert option.name == "Unnamed Book"
        assert option.creator_name == "Anonymous"
        assert option.source is BookSource.COMMUNITY
        assert option.hexagram_count == 0

    def test_unreadable_date_is_dropped(self):
        payload = BookSummaryPayload.model_validate({"id": "b", "created_at": "someday"})
        assert payload.created_at is None

    def test_extra_fields_allowed(self):
        payload = BookSummaryPayload.model_validate({"id": "b", "likes": 3, "hexagram_count": None})
        assert payload.hexagram_count == 0


class TestHttpBookApi:
    """Tests for the httpx client."""

    @pytest.mark.asyncio
    async def test_list_published_books(self):
        def handler(request):
            assert request.url.path == BOOKS_PATH
            return json_response({
                "books": [
                    {"id": "b-1", "name": "Canon", "creator_name": "Ana", "hexagram_count": 64,
                     "created_at": "2022-01-01T00:00:00Z", "user_id": 7},
                    {"id": "b-2"},
                ]
            })

        async with api_with(handler) as api:
            books = await api.list_published_books()

        assert [book.id for book in books] == ["b-1", "b-2"]
        assert books[0].creator_id == "7"
        assert books[0].created_at.year == 2022

    @pytest.mark.asyncio
    async def test_fetch_book_normalizes_entries(self):
        def handler(request):
            assert request.url.raw_path == f"{BOOKS_PATH}/b%201".encode()
            return json_response({
                "id": "b 1",
                "name": "Mixed Shapes",
                "creator_name": "Ana",
                "hexagrams": [
                    raw_entry(1),
                    raw_entry(2, lines={str(i): {"text": t} for i, t in enumerate(LINE_TEXTS, 1)}),
                    {"number": 0},
                ],
            })

        async with api_with(handler) as api:
            book = await api.fetch_book("b 1")

        assert book.source is BookSource.COMMUNITY
        assert sorted(book.hexagrams) == [1, 2]
        assert book.hexagram(2).lines == tuple(LINE_TEXTS)
        assert book.creator_name == "Ana"

    @pytest.mark.asyncio
    async def test_not_found(self):
        async with api_with(lambda request: httpx.Response(404)) as api:
            with pytest.raises(BookNotFoundError) as exc_info:
                await api.fetch_book("nope")
        assert exc_info.value.book_id == "nope"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [500, 502, 403])
    async def test_server_errors(self, status_code):
        async with api_with(lambda request: httpx.Response(status_code)) as api:
            with pytest.raises(ContentUnavailableError) as exc_info:
                await api.list_published_books()
        assert not isinstance(exc_info.value, BookNotFoundError)
        assert exc_info.value.recoverable is True

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with api_with(handler) as api:
            with pytest.raises(ContentUnavailableError):
                await api.fetch_book("b-1")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with api_with(handler) as api:
            with pytest.raises(ContentUnavailableError):
                await api.list_published_books()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with api_with(lambda request: httpx.Response(200, content=b"<html>")) as api:
            with pytest.raises(ContentUnavailableError):
                await api.list_published_books()

    @pytest.mark.asyncio
    async def test_bare_array_listing(self):
        books = [{"id": "b-1", "name": "Canon", "creator_name": "Ann"}, {"id": "b-2"}]
        async with api_with(lambda request: json_response(books)) as api:
            options = await api.list_published_books()
        assert [option.id for option in options] == ["b-1", "b-2"]
        assert options[0].creator_name == "Ann"

    @pytest.mark.asyncio
    async def test_bare_array_of_non_objects(self):
        async with api_with(lambda request: json_response([1, 2])) as api:
            with pytest.raises(ContentUnavailableError):
                await api.list_published_books()

    @pytest.mark.asyncio
    async def test_book_payload_must_be_object(self):
        async with api_with(lambda request: json_response([raw_entry(1)])) as api:
            with pytest.raises(ContentUnavailableError):
                await api.fetch_book("b-1")

    @pytest.mark.asyncio
    async def test_missing_client_is_unavailable(self):
        api = api_with(lambda request: json_response({"books": []}))
        api._initialized = True
        with pytest.raises(ContentUnavailableError) as exc_info:
            await api.fetch_book("b-1")
        assert exc_info.value.book_id == "b-1"

    @pytest.mark.asyncio
    async def test_payload_missing_id(self):
        async with api_with(lambda request: json_response({"books": [{"name": "No id"}]})) as api:
            with pytest.raises(ContentUnavailableError):
                await api.list_published_books()

    @pytest.mark.asyncio
    async def test_unconfigured_url(self):
        with pytest.raises(ContentUnavailableError):
            await HttpBookApi("").initialize()

    @pytest.mark.asyncio
    async def test_cleanup_closes_client(self):
        api = api_with(lambda request: json_response({"books": []}))
        await api.initialize()
        assert api.is_initialized
        await api.cleanup()
        assert not api.is_initialized


# =============================================================================
# Classical dataset
# =============================================================================


class TestClassicalDataset:
    """The bundled dataset and its lookups."""

    @pytest.mark.asyncio
    async def test_all_entries_complete(self, classical_source):
        book = await classical_source.load()

        assert book.hexagram_count == 64
        assert book.source is BookSource.FALLBACK
        for number, content in book.hexagrams.items():
            assert content.validate() == []
            assert content.binary == identity_to_pattern(number)
            assert all(content.lines)

    @pytest.mark.asyncio
    async def test_trigrams_match_pattern(self, classical_source):
        book = await classical_source.load()
        difficulty = book.hexagram(3)
        assert difficulty.trigram_below.name == "Thunder"
        assert difficulty.trigram_above.name == "Water"

    @pytest.mark.asyncio
    async def test_loaded_once(self, classical_source):
        first = await classical_source.load()
        second = await classical_source.load()
        assert first is second
        assert len(classical_source.entries()) == 64

    @pytest.mark.asyncio
    async def test_lookups(self, classical_source):
        assert (await classical_source.by_chinese_name("乾")).number == 1
        assert (await classical_source.by_pattern("000000")).number == 2
        assert await classical_source.by_chinese_name("無") is None

        matches = await classical_source.search("complet")
        assert [content.number for content in matches] == [63, 64]
        assert await classical_source.search("  ") == []

    @pytest.mark.asyncio
    async def test_hexagram_accessor(self, classical_source):
        assert (await classical_source.hexagram(29)).english_name == "The Abysmal Water"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(ContentUnavailableError):
            await JsonClassicalSource(tmp_path / "absent.json").load()

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ContentUnavailableError):
            await JsonClassicalSource(path).load()

    @pytest.mark.asyncio
    async def test_partial_file_loads(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps([raw_entry(1), raw_entry(2)]), encoding="utf-8")
        book = await JsonClassicalSource(path).load()
        assert book.hexagram_count == 2

    @pytest.mark.asyncio
    async def test_initialize_tolerates_missing_file(self, tmp_path):
        source = JsonClassicalSource(tmp_path / "absent.json")
        await source.initialize()
        assert not source.is_initialized
