# ABOUTME: Public API for the Readtrack library database layer.
# ABOUTME: Exports connection management, catalog operations, and record types.

from readtrack.db.catalog import LibraryCatalog
from readtrack.db.connection import open_library
from readtrack.db.mapping import BookRecord, NoteRecord, SessionRecord

__all__ = [
    "BookRecord",
    "LibraryCatalog",
    "NoteRecord",
    "SessionRecord",
    "open_library",
]
