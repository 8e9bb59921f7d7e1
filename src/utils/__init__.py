"""
Utility modules for the study engine.

This module contains utility functions:
- validation: JSON Schema validation for stored records
- persistence: record stores (in-memory, JSON files)
- progress: emotion and score analytics (import from src.utils.progress)
- clock: UTC time helpers
- log: logging setup
"""

from .clock import from_iso, to_iso, utc_now
from .persistence import InMemoryStore, JsonFileStore, RecordStore, persist
from .validation import RecordValidator, SchemaValidator, ValidationResult, validate_record

__all__ = [
    # Time
    "utc_now",
    "to_iso",
    "from_iso",
    # Persistence
    "RecordStore",
    "InMemoryStore",
    "JsonFileStore",
    "persist",
    # Validation
    "SchemaValidator",
    "RecordValidator",
    "ValidationResult",
    "validate_record",
]
