"""Shared test fixtures and configuration."""

from datetime import datetime
import os
from pathlib import Path

import orjson
import pytest


# Complete test environment that overrides ALL possible config values
TEST_ENV = {
    # Index and paging
    "SEARCH_INDEX": "data/search-index.json",
    "PER_PAGE": "10",
    # Descriptions
    "HIGHLIGHT": "true",
    "DESCRIPTION_CONTEXT": "false",
    "DESCRIPTION_LENGTH": "250",
    "CONTEXT_WORDS": "8",
    # Highlight markup
    "HIGHLIGHT_TAG": "strong",
    "HIGHLIGHT_CLASS": "",
    "HIGHLIGHT_COLORS": "",
    # Query filters
    "EXTRA_PROPERTIES": "",
    "EXTRA_RANGE_PROPERTIES": "",
    # Remote highlighter disabled in tests
    "HIGHLIGHT_SERVICE_URL": "",
    "HIGHLIGHT_TIMEOUT": "5.0",
    # Diagnostics and logging
    "DEBUG": "false",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}

# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value
os.environ.pop("DOCUMENT_ROOT", None)


CONTEXT_DESCRIPTION = (
    "I would like to find the context in this document. "
    "The rest of this paragraph exists only to push the next sentence far away from the start, "
    "so that a short excerpt of the description never reaches it. "
    "Filler words keep going here for a while, with nothing of interest in them at all, "
    "just more words and more words until the limit has been passed by a comfortable margin. "
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit."
)

CORPUS_DOCUMENTS = [
    {
        "path": "test.html",
        "title": "This is a Test",
        "description": "This is a test. This is a only a test. And please do not panic.",
        "size": 1239,
        "last_modified": "2006-03-01T12:00:00",
    },
    {
        "path": "help.html",
        "title": "Please Help Me",
        "description": "Would you please help me find this document?",
        "size": 512,
        "last_modified": "2006-03-02T12:00:00",
    },
    {
        "path": "context.html",
        "title": "Find the Context",
        "description": CONTEXT_DESCRIPTION,
        "size": 2048,
        "last_modified": "2006-03-03T12:00:00",
    },
    {
        "path": "another.html",
        "title": "This is another Test",
        "content": "A page stored without a description.",
        "size": 100,
    },
    {
        "path": "fourth.html",
        "title": "This is yet a fourth Test",
        "description": "A fourth document, tagged with an extra property.",
        "size": 300,
        "properties": {"extra": "foo", "date": 20060310},
    },
    {
        "path": "range.html",
        "title": "This is a Range Test",
        "description": "Ranges over dates are checked against this document.",
        "size": 400,
        "properties": {"extra": "bar", "date": 20060320},
    },
]


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory so ``-m unit`` and ``-m integration`` select them."""
    for item in items:
        parts = Path(str(item.fspath)).parts
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in parts:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Clean environment variables before each test and set test defaults."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("DOCUMENT_ROOT", raising=False)


@pytest.fixture
def corpus_payload():
    """The JSON-ready corpus used by index and service tests."""
    return {"stopwords": ["a", "is", "the", "this", "in", "do"], "documents": CORPUS_DOCUMENTS}


@pytest.fixture
def corpus_path(tmp_path: Path, corpus_payload) -> Path:
    """Write the corpus to a temporary index file."""
    path = tmp_path / "search-index.json"
    path.write_bytes(orjson.dumps(corpus_payload))
    return path


@pytest.fixture
def make_settings(corpus_path):
    """Build Settings pointed at the temporary corpus, with overrides."""
    from search_results.config import Settings

    def _make(**overrides) -> Settings:
        overrides.setdefault("search_index", corpus_path)
        return Settings(**overrides)

    return _make


@pytest.fixture
def raw_hit_factory():
    """Build RawHit records with sensible defaults."""
    from search_results.domain.search import RawHit

    def _make(**fields) -> RawHit:
        fields.setdefault("path", "doc.html")
        fields.setdefault("title", "A Document")
        fields.setdefault("size", 1239)
        fields.setdefault("last_modified", datetime(2006, 3, 1, 12, 0))
        fields.setdefault("rank", 1000)
        fields.setdefault("record_count", 1)
        return RawHit(**fields)

    return _make
