"""In-memory reference implementation of the index contract.

The index is loaded from a JSON corpus file::

    {
      "stopwords": ["a", "the"],            # optional, defaults to DEFAULT_STOPWORDS
      "documents": [
        {
          "path": "helpme.html",
          "title": "Please Help Me",
          "description": "Would you please help me find this document?",
          "content": "optional body text that is searched but not returned",
          "size": 2048,
          "last_modified": "2006-03-01T12:00:00",
          "properties": {"extra": "foo"}
        }
      ]
    }

Unqualified words search the title, description and content. ``prop=(...)``
clauses search one property (``title``, ``path``, ``description`` or any key
under ``properties``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
import logging
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from search_results.domain.search import RawHit
from search_results.search.analyzers import DEFAULT_STOPWORDS, StandardAnalyzer
from search_results.search.index import IndexUnavailable, QueryResults, SearchIndex
from search_results.search.query_parser import AndNode, Node, NotNode, OrNode, QueryParser, RangeNode, TermNode


logger = logging.getLogger(__name__)

MAX_RANK = 1000
DEFAULT_FIELDS = ("title", "description", "content")


class IndexedDocument(BaseModel):
    """One document record as stored in the corpus file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str
    title: str = ""
    description: str | None = None
    content: str = ""
    size: int = 0
    last_modified: datetime | None = None
    properties: dict[str, Any] = Field(default_factory=dict)

    def field_text(self, name: str) -> str:
        if name in ("path", "title", "content"):
            return getattr(self, name) or ""
        if name == "description":
            return self.description or ""
        value = self.properties.get(name)
        return "" if value is None else str(value)


class MemoryQueryResults(QueryResults):
    """A fully evaluated, ranked hit list with a movable cursor."""

    def __init__(self, hits: Sequence[RawHit], removed_stopwords: Iterable[str] = ()) -> None:
        self._hits = list(hits)
        self._cursor = 0
        self._removed = list(dict.fromkeys(removed_stopwords))

    @property
    def hits(self) -> int:
        return len(self._hits)

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        self._cursor = offset

    def next_result(self) -> RawHit | None:
        if self._cursor >= len(self._hits):
            return None
        hit = self._hits[self._cursor]
        self._cursor += 1
        return hit

    def removed_stopwords(self) -> list[str]:
        return list(self._removed)


class InMemorySearchIndex(SearchIndex):
    """Boolean search over a small document set held in memory."""

    def __init__(
        self,
        documents: Iterable[IndexedDocument],
        stopwords: Iterable[str] | None = None,
    ) -> None:
        self.documents = list(documents)
        self.analyzer = StandardAnalyzer(stopwords=stopwords if stopwords is not None else DEFAULT_STOPWORDS)
        self._field_cache: dict[tuple[int, str], list[str]] = {}

    @property
    def stop_words(self) -> frozenset[str]:
        return self.analyzer.stopwords

    def analyze(self, text: str) -> list[str]:
        return [token.text for token in self.analyzer(text)]

    def query(self, query_string: str) -> MemoryQueryResults:
        parser = QueryParser(self.analyze, self.stop_words)
        tree = parser.parse(query_string)

        scored: list[tuple[int, int]] = []  # (score, doc index)
        for doc_index in range(len(self.documents)):
            matched, score = self._evaluate(tree, doc_index)
            if matched:
                scored.append((score, doc_index))
        scored.sort(key=lambda item: (-item[0], item[1]))

        best = scored[0][0] if scored else 0
        hits = [
            self._to_raw_hit(self.documents[doc_index], score, best, position)
            for position, (score, doc_index) in enumerate(scored, start=1)
        ]
        logger.debug("Query %r matched %d of %d documents", query_string, len(hits), len(self.documents))
        return MemoryQueryResults(hits, parser.removed_stopwords)

    def _tokens(self, doc_index: int, field_name: str) -> list[str]:
        key = (doc_index, field_name)
        if key not in self._field_cache:
            self._field_cache[key] = self.analyze(self.documents[doc_index].field_text(field_name))
        return self._field_cache[key]

    def _evaluate(self, node: Node, doc_index: int) -> tuple[bool, int]:
        if isinstance(node, TermNode):
            fields = (node.field,) if node.field else DEFAULT_FIELDS
            count = sum(_count_sequence(self._tokens(doc_index, name), node.words) for name in fields)
            return count > 0, count
        if isinstance(node, RangeNode):
            return _in_range(self.documents[doc_index].field_text(node.field or ""), node.low, node.high), 1
        if isinstance(node, AndNode):
            results = [self._evaluate(child, doc_index) for child in node.children]
            if all(matched for matched, _ in results):
                return True, sum(score for _, score in results)
            return False, 0
        if isinstance(node, OrNode):
            results = [self._evaluate(child, doc_index) for child in node.children]
            score = sum(score for matched, score in results if matched)
            return any(matched for matched, _ in results), score
        if isinstance(node, NotNode) and node.child is not None:
            matched, _ = self._evaluate(node.child, doc_index)
            return not matched, 0
        raise TypeError(f"Unsupported query node {type(node).__name__}")

    @staticmethod
    def _to_raw_hit(document: IndexedDocument, score: int, best: int, position: int) -> RawHit:
        rank = max(1, round(MAX_RANK * score / best)) if best else 1
        return RawHit(
            path=document.path,
            title=document.title,
            size=document.size,
            last_modified=document.last_modified,
            rank=rank,
            record_count=position,
            description=document.description,
            properties=dict(document.properties),
        )


def _count_sequence(tokens: Sequence[str], words: Sequence[str]) -> int:
    """Occurrences of ``words`` as a contiguous run in ``tokens``."""
    width = len(words)
    if not width or len(tokens) < width:
        return 0
    first = words[0]
    return sum(
        1
        for idx in range(len(tokens) - width + 1)
        if tokens[idx] == first and tuple(tokens[idx : idx + width]) == tuple(words)
    )


def _in_range(value: str, low: str, high: str) -> bool:
    if not value:
        return False
    try:
        return float(low) <= float(value) <= float(high)
    except ValueError:
        return low <= value <= high


def load_documents(payload: Any) -> tuple[list[IndexedDocument], list[str] | None]:
    if not isinstance(payload, Mapping) or not isinstance(payload.get("documents"), list):
        raise ValueError("expected an object with a 'documents' list")
    stopwords = payload.get("stopwords")
    if stopwords is not None and not isinstance(stopwords, list):
        raise ValueError("'stopwords' must be a list")
    documents = [IndexedDocument.model_validate(record) for record in payload["documents"]]
    return documents, stopwords


def open_index(path: Path | str) -> InMemorySearchIndex:
    """Open the corpus file at ``path``.

    Raises:
        IndexUnavailable: the file does not exist, cannot be read, is not
            valid JSON, or does not describe a document index.
    """
    index_path = Path(path)
    if not index_path.exists():
        raise IndexUnavailable(f"Index file {index_path} does not exist!")
    if not index_path.is_file():
        raise IndexUnavailable(f"Index path {index_path} is not a file")
    try:
        payload = orjson.loads(index_path.read_bytes())
    except OSError as exc:
        raise IndexUnavailable(f"Problem reading {index_path}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise IndexUnavailable(f"Problem reading {index_path}: corrupt index ({exc})") from exc
    try:
        documents, stopwords = load_documents(payload)
    except (ValueError, ValidationError) as exc:
        raise IndexUnavailable(f"Problem reading {index_path}: not a search index ({exc})") from exc

    logger.info("Opened index %s with %d documents", index_path, len(documents))
    return InMemorySearchIndex(documents, stopwords)
