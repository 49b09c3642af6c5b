# ABOUTME: SQL DDL statements for the Readtrack library database schema.
# ABOUTME: Defines the books, sessions, and reading_notes tables and their indexes.

SCHEMA_V1 = """
-- Core book table; cover_url is empty, a remote URL, or a path in the asset store
CREATE TABLE books (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    title             TEXT NOT NULL,
    author            TEXT,
    cover_url         TEXT,
    cover_path        TEXT,
    status            TEXT NOT NULL DEFAULT 'Want to Read',
    rating            REAL NOT NULL DEFAULT 0,
    total_pages       INTEGER NOT NULL DEFAULT 0,
    current_page      INTEGER NOT NULL DEFAULT 0,
    book_url          TEXT,
    total_chapters    INTEGER,
    current_chapter   INTEGER NOT NULL DEFAULT 0,
    tracking_type     TEXT NOT NULL DEFAULT 'pages',
    format            TEXT NOT NULL DEFAULT 'Physical',
    isbn              TEXT,
    publisher         TEXT,
    publication_year  TEXT,
    language          TEXT NOT NULL DEFAULT 'English',
    original_language TEXT,
    tags              TEXT,
    series_name       TEXT,
    series_order      REAL,
    volume_number     INTEGER,
    total_volumes     INTEGER,
    collection_type   TEXT,
    series_cover_url  TEXT,
    total_in_series   INTEGER,
    read_count        INTEGER NOT NULL DEFAULT 0,
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_books_isbn ON books(isbn) WHERE isbn IS NOT NULL;
CREATE INDEX idx_books_series ON books(series_name) WHERE series_name IS NOT NULL;

-- Reading sessions; each belongs to exactly one book
CREATE TABLE sessions (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id         INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    book_title      TEXT NOT NULL,
    start_time      TEXT NOT NULL,
    end_time        TEXT,
    start_page      INTEGER DEFAULT 0,
    end_page        INTEGER,
    start_chapter   INTEGER DEFAULT 0,
    end_chapter     INTEGER,
    duration        INTEGER,
    reading_number  INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX idx_sessions_book_id ON sessions(book_id);

-- Free-text notes, optionally tied to a page
CREATE TABLE reading_notes (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id      INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    note         TEXT NOT NULL,
    page_number  INTEGER,
    created_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_reading_notes_book_id ON reading_notes(book_id);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
