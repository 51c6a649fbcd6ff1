"""Search service orchestration layer.

Runs one search request end to end: open the index, build and run the query,
compute the page window, seek to the first hit of the page and assemble the
display hits. The index handle is acquired and released within the request.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
from pathlib import Path, PurePosixPath
import time

from search_results.config import Settings
from search_results.domain.search import RawHit, SearchPage
from search_results.observability.context import request_scope
from search_results.observability.metrics import SEARCH_LATENCY, SEARCH_REQUESTS, track_latency
from search_results.observability.tracing import create_span
from search_results.search.context import ContextExtractor
from search_results.search.highlight import Highlighter, HighlightUnavailable, RemoteHighlighter, TextHighlighter
from search_results.search.index import QueryExecutionError, SearchIndex, build_search_query
from search_results.search.matching import usable_terms
from search_results.search.memory_index import open_index
from search_results.search.pagination import paginate
from search_results.search.terms import QueryTermExtractor
from search_results.service_layer.assembler import ResultAssembler


QueryBuilder = Callable[..., str | None]


class InvalidDocumentPath(ValueError):
    """A requested local page lies outside the document root."""


def resolve_document_path(document_root: Path | None, path: str) -> Path:
    """Resolve ``path`` under ``document_root``.

    Raises:
        InvalidDocumentPath: no root is configured, or ``path`` is absolute,
            climbs with ``..`` or resolves outside the root.
    """
    if document_root is None:
        raise InvalidDocumentPath("DOCUMENT_ROOT is not configured")
    if not path or not path.strip():
        raise InvalidDocumentPath("No document path given")
    relative = PurePosixPath(path.replace("\\", "/"))
    if relative.is_absolute() or ".." in relative.parts:
        raise InvalidDocumentPath(f"Document path {path!r} must be relative to the document root")

    root = document_root.resolve()
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise InvalidDocumentPath(f"Document path {path!r} resolves outside the document root")
    return candidate


def build_highlighter(settings: Settings) -> TextHighlighter:
    """Remote highlighter when a service URL is configured, local otherwise."""
    markup = settings.highlight_markup()
    if settings.highlight_service_url:
        return RemoteHighlighter(settings.highlight_service_url, timeout=settings.highlight_timeout, markup=markup)
    return Highlighter(markup)


class SearchService:
    """High-level search orchestration service.

    Args:
        settings: Page size, description and highlight switches, index path.
        index_opener: Opens the index file; raises ``IndexUnavailable``.
        highlighter: Defaults to ``build_highlighter(settings)``.
        query_builder: Turns keywords and request parameters into the index
            query string; called as ``query_builder(keywords, params,
            extra_properties, extra_range_properties)``.
        logger: Receives query failures and fallbacks.
    """

    def __init__(
        self,
        settings: Settings,
        index_opener: Callable[[Path], SearchIndex] = open_index,
        highlighter: TextHighlighter | None = None,
        query_builder: QueryBuilder = build_search_query,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.index_opener = index_opener
        self.highlighter = highlighter or build_highlighter(settings)
        self.query_builder = query_builder
        self.logger = logger or logging.getLogger(__name__)
        self.assembler = ResultAssembler(
            highlighter=self.highlighter,
            context_extractor=ContextExtractor(
                context_words=settings.context_words,
                max_chars=settings.description_length,
            ),
            logger=self.logger,
        )

    def perform_search(
        self,
        keywords: str | None,
        page: int | None = 1,
        params: Mapping[str, str | None] | None = None,
        results: Sequence[RawHit] | None = None,
    ) -> SearchPage:
        """Search the index for ``keywords`` and build one results page.

        Args:
            keywords: Raw keyword string; None renders the empty search form.
            page: 1-based page number, not clamped to the last page; a missing
                or zero page means the first page.
            params: Request values for extra properties and range bounds.
            results: Pre-supplied hits; when given the index is not touched
                and the page is reported as not searched.

        Raises:
            IndexUnavailable: the index cannot be opened.
        """
        page = page or 1
        params = params or {}
        extra_values = {name: params.get(name) for name in self.settings.get_extra_properties()}

        if results is not None:
            return self._unsearched_page(keywords, results, extra_values)
        if keywords is None:
            return SearchPage(keywords=None, extra_values=extra_values)

        with (
            request_scope(keywords=keywords, page=page),
            create_span("search.perform", attributes={"search.page": page}),
            track_latency(SEARCH_LATENCY),
        ):
            return self._search(keywords, page, params, extra_values)

    def _search(
        self,
        keywords: str,
        page: int,
        params: Mapping[str, str | None],
        extra_values: dict[str, str | None],
    ) -> SearchPage:
        started = time.perf_counter()
        empty_page = SearchPage(searched=True, keywords=keywords, extra_values=extra_values)

        with self.index_opener(self.settings.search_index) as index:
            search_query = self.query_builder(
                keywords,
                params,
                self.settings.get_extra_properties(),
                self.settings.get_extra_range_properties(),
            )
            if not search_query:
                SEARCH_REQUESTS.labels(status="empty").inc()
                return empty_page

            try:
                query_results = index.query(search_query)
            except QueryExecutionError as exc:
                log = self.logger.warning if self.settings.debug else self.logger.debug
                log("Unable to create query %r: %s", search_query, exc)
                SEARCH_REQUESTS.labels(status="query_error").inc()
                return empty_page

            page_info = paginate(query_results.hits, self.settings.per_page, page)
            if page_info.total_entries:
                query_results.seek(page_info.offset)

            stop_words = {*query_results.removed_stopwords(), *index.stop_words}
            term_set = QueryTermExtractor(index.stem_word).extract(keywords, stop_words)
            hits = self.assembler.assemble(query_results, term_set, search_query, self.settings.assembly_config())

        elapsed = time.perf_counter() - started
        SEARCH_REQUESTS.labels(status="ok").inc()
        self.logger.info(
            "Search returned %d of %d hits in %.3fs",
            len(hits),
            page_info.total_entries,
            elapsed,
            extra={"query": search_query},
        )
        return SearchPage(
            searched=True,
            keywords=keywords,
            elapsed_time=f"{elapsed:.3f}",
            hits=tuple(hits),
            page_info=page_info,
            extra_values=extra_values,
        )

    def _unsearched_page(
        self,
        keywords: str | None,
        results: Iterable[RawHit],
        extra_values: dict[str, str | None],
    ) -> SearchPage:
        term_set = QueryTermExtractor().extract(keywords)
        hits = self.assembler.assemble(results, term_set, keywords, self.settings.assembly_config())
        return SearchPage(keywords=keywords, hits=tuple(hits), extra_values=extra_values)

    def highlight_local_page(self, keywords: str | None, path: str) -> str:
        """Return the document at ``path`` with every query term highlighted.

        The document is read from under ``document_root``. Markup already in
        the page is left untouched: tags, comments, entities and the content of
        ``script``, ``style`` and ``title`` elements are never highlighted.

        Raises:
            InvalidDocumentPath: ``path`` is not a safe relative path.
            FileNotFoundError: the document does not exist.
        """
        document = resolve_document_path(self.settings.document_root, path)
        if not document.is_file():
            raise FileNotFoundError(f"No document at {path!r}")
        content = document.read_text(encoding="utf-8", errors="replace")

        term_set = QueryTermExtractor().extract(keywords)
        terms = usable_terms(term_set.match_terms())
        if not terms:
            return content
        try:
            return self.highlighter.highlight(content, terms)
        except HighlightUnavailable as exc:
            self.logger.warning("Showing %s unhighlighted: %s", path, exc)
            return content

    def close(self) -> None:
        close = getattr(self.highlighter, "close", None)
        if close is not None:
            close()
