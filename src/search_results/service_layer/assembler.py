"""Turn raw index hits into display-ready hits."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import islice
import logging

from search_results.domain.search import AssemblyConfig, DisplayHit, RawHit, TermSet
from search_results.observability.metrics import HIGHLIGHT_FALLBACKS
from search_results.search.context import ContextExtractor
from search_results.search.formatting import format_bytes, format_date
from search_results.search.highlight import Highlighter, HighlightUnavailable, TextHighlighter
from search_results.search.matching import usable_terms


class ResultAssembler:
    """Build one page of ``DisplayHit`` records from a positioned hit cursor.

    Args:
        highlighter: Wraps matched terms; defaults to the local ``Highlighter``.
        context_extractor: Excerpts descriptions when ``description_context``
            is on for the request.
        logger: Receives highlight fallbacks; defaults to this module's logger.
    """

    def __init__(
        self,
        highlighter: TextHighlighter | None = None,
        context_extractor: ContextExtractor | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.highlighter = highlighter or Highlighter()
        self.context_extractor = context_extractor or ContextExtractor()
        self.logger = logger or logging.getLogger(__name__)

    def assemble(
        self,
        hits: Iterable[RawHit],
        term_set: TermSet,
        search_query: str | None,
        config: AssemblyConfig,
    ) -> list[DisplayHit]:
        """Consume at most ``config.page_size`` hits (0 means all of them).

        ``hits`` must already be positioned at the first hit of the page; it
        is read lazily and never past the page end.
        """
        terms = usable_terms(term_set.match_terms())
        limit = config.page_size or None
        display_hits = [self._display_hit(hit, terms, config) for hit in islice(hits, limit)]
        self.logger.debug("Assembled %d hits for query %r", len(display_hits), search_query)
        return display_hits

    def _display_hit(self, hit: RawHit, terms: list[str], config: AssemblyConfig) -> DisplayHit:
        return DisplayHit(
            path=hit.path,
            title=hit.title,
            rank=hit.rank,
            record_count=hit.record_count,
            size=format_bytes(hit.size),
            last_modified=format_date(hit.last_modified),
            description=self._description(hit, terms, config),
            extra={name: hit.get_property(name) for name in config.extra_properties},
        )

    def _description(self, hit: RawHit, terms: list[str], config: AssemblyConfig) -> str:
        text = hit.description
        if not text:
            return ""

        if config.description_context and terms:
            text = self.context_extractor.extract(text, terms) or text

        if config.highlight and terms:
            try:
                text = self.highlighter.highlight(text, terms)
            except HighlightUnavailable as exc:
                self.logger.warning("Showing %s unhighlighted: %s", hit.path, exc)
                reason = type(exc.__cause__).__name__ if exc.__cause__ else "unavailable"
                HIGHLIGHT_FALLBACKS.labels(reason=reason).inc()

        # Raw slice; may cut through markup inserted above
        return text[: config.description_length]
