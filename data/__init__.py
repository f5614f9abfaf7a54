"""
YAO - Data Module

Persisted reading documents and the bundled classical dataset
(classical_hexagrams.json).
"""
from data.schemas import ReadingDocument, StoredLine

__all__ = [
    "ReadingDocument",
    "StoredLine",
]
