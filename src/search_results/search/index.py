"""Contract between the results pipeline and a full-text index.

An index is opened per request, queried once with a boolean query string, and
closed when the request is done. The pipeline only needs a hit count, a
seekable cursor of raw hits, the stop words the index dropped from the query
and the index's stemmer; everything else about storage and ranking belongs to
the index implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
import logging

from search_results.domain.search import RawHit
from search_results.search.analyzers import stem_word


logger = logging.getLogger(__name__)


class IndexUnavailable(RuntimeError):
    """The index file is missing, unreadable, corrupt or not an index at all."""


class QueryExecutionError(RuntimeError):
    """The index rejected the query string or failed while running it."""


class QueryResults(ABC):
    """Cursor over the hits of one query."""

    @property
    @abstractmethod
    def hits(self) -> int:
        """Total number of hits, independent of the cursor position."""

    @abstractmethod
    def seek(self, offset: int) -> None:
        """Position the cursor at the 0-based ``offset``."""

    @abstractmethod
    def next_result(self) -> RawHit | None:
        """Return the hit under the cursor and advance, or None when exhausted."""

    def removed_stopwords(self) -> list[str]:
        """Stop words the index removed from the query."""
        return []

    def __iter__(self) -> Iterator[RawHit]:
        while (hit := self.next_result()) is not None:
            yield hit


class SearchIndex(ABC):
    """A queryable index handle; use as a context manager to guarantee release."""

    @abstractmethod
    def query(self, query_string: str) -> QueryResults:
        """Run ``query_string``; raise ``QueryExecutionError`` if it cannot be run."""

    def stem_word(self, word: str) -> str:
        return stem_word(word)

    @property
    def stop_words(self) -> frozenset[str]:
        return frozenset()

    def close(self) -> None:
        return

    def __enter__(self) -> SearchIndex:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_search_query(
    keywords: str | None,
    params: Mapping[str, str | None] | None = None,
    extra_properties: Sequence[str] = (),
    extra_range_properties: Sequence[str] = (),
) -> str | None:
    """Build the boolean query string for ``keywords``.

    Each extra property with a non-empty value in ``params`` is ANDed in as
    ``prop=(value)``. Each range property whose ``<prop>_start`` and
    ``<prop>_stop`` values are both present is ANDed in as
    ``prop=(start <= stop)``. Returns None when there are no keywords.
    """
    if not keywords or not keywords.strip():
        return None

    params = params or {}
    query = keywords.strip()
    for prop in extra_properties:
        value = params.get(prop)
        if value:
            query += f" and {prop}=({value})"
    for prop in extra_range_properties:
        start = params.get(f"{prop}_start")
        stop = params.get(f"{prop}_stop")
        if start and stop:
            query += f" and {prop}=({start} <= {stop})"
        elif start or stop:
            logger.debug("Ignoring half-open range for %s (start=%r, stop=%r)", prop, start, stop)
    return query
