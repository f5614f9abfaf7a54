"""
YAO - Book Sources

Where hexagram content comes from:
- book_api: community-published books over HTTP
- classical: the bundled classical dataset
- normalization: every stored entry shape folded into HexagramContent
- resolver: listing, fallback chain and caching over all sources

The record store for authored books lives in db.postgres.
"""
from integrations.base import (
    CLASSIC_BOOK_ID,
    BaseBookSource,
    BookApi,
    BookRecordStore,
    ClassicalSource,
)
from integrations.book_api import HttpBookApi
from integrations.classical import JsonClassicalSource
from integrations.resolver import BookResolver

__all__ = [
    "CLASSIC_BOOK_ID",
    "BaseBookSource",
    "BookApi",
    "BookRecordStore",
    "ClassicalSource",
    "HttpBookApi",
    "JsonClassicalSource",
    "BookResolver",
]
