"""
YAO - Test Configuration

Pytest fixtures and configuration for all tests.
"""
from typing import Any, Dict

import pytest

from config import DEFAULT_CLASSICAL_DATA
from core.cache import ManualClock
from domain.entities import Book, BookSource
from integrations.classical import JsonClassicalSource
from tests.support import LINE_TEXTS, FakeBookApi, FakeRecordStore, make_book, raw_entry, ts


@pytest.fixture
def manual_clock() -> ManualClock:
    """Clock that only moves when a test advances it."""
    return ManualClock(start=1_000.0)


# Raw entries in each stored line shape
@pytest.fixture
def array_lines_entry() -> Dict[str, Any]:
    return raw_entry(1, lines=list(LINE_TEXTS))


@pytest.fixture
def string_key_lines_entry() -> Dict[str, Any]:
    return raw_entry(1, lines={str(i): {"text": text} for i, text in enumerate(LINE_TEXTS, 1)})


@pytest.fixture
def numeric_key_lines_entry() -> Dict[str, Any]:
    return raw_entry(1, lines={i: text for i, text in enumerate(LINE_TEXTS, 1)})


@pytest.fixture
def user_book() -> Book:
    return make_book("user-1", BookSource.USER, name="My Book", created_at=ts(2024, 3), creator_name="You")


@pytest.fixture
def community_book() -> Book:
    return make_book("community-1", BookSource.COMMUNITY, name="Canon", created_at=ts(2022))


@pytest.fixture
def classical_source() -> JsonClassicalSource:
    """The bundled 64-entry classical dataset."""
    return JsonClassicalSource(DEFAULT_CLASSICAL_DATA)


@pytest.fixture
def fake_api(community_book) -> FakeBookApi:
    return FakeBookApi([community_book])


@pytest.fixture
def fake_store(user_book) -> FakeRecordStore:
    return FakeRecordStore({"u-1": [user_book]})


# Markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: exercises a real store or transport")
    config.addinivalue_line("markers", "property: hypothesis property-based tests")
