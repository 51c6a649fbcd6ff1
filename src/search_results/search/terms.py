"""Turn a raw keyword string into the terms used to excerpt and highlight hits.

The keyword string is the one the user typed into the search box, so it may
hold quoted phrases, boolean operators and property selectors on top of plain
words. Only the words that carry meaning survive, together with their stems.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import logging
import re

from search_results.domain.search import TermSet
from search_results.search.analyzers import stem_word
from search_results.search.matching import BOOLEAN_OPERATORS


logger = logging.getLogger(__name__)

PHRASE_PATTERN = re.compile(r'"([^"]+)"')
# Characters that only carry query structure; stripped from the ends of words.
STRUCTURE_CHARS = '()"'


class QueryTermExtractor:
    """Extract phrases, terms and stems from keyword strings.

    Args:
        stemmer: The index's stemming function; defaults to the bundled
            analyzer stemmer.
    """

    def __init__(self, stemmer: Callable[[str], str] | None = None) -> None:
        self.stemmer = stemmer or stem_word

    def extract(self, raw_query: str | None, stop_words: Iterable[str] = ()) -> TermSet:
        if not raw_query or not raw_query.strip():
            return TermSet()

        phrases = tuple(match.group(1) for match in PHRASE_PATTERN.finditer(raw_query) if match.group(1).strip())
        remainder = PHRASE_PATTERN.sub(" ", raw_query)

        excluded = {word.lower() for word in stop_words} | BOOLEAN_OPERATORS
        terms: set[str] = set()
        for token in remainder.split():
            word = token.strip(STRUCTURE_CHARS).replace('"', "")
            if "=" in word:
                # ``prop=(value)`` searches for ``value``; a bare ``title=`` for nothing
                word = word.rsplit("=", 1)[1].strip(STRUCTURE_CHARS)
            if not word:
                continue
            if word.lower() in excluded:
                continue
            terms.add(word)

        stems = {self.stemmer(term) for term in terms}
        stems.discard("")
        term_set = TermSet(terms=frozenset(terms), stems=frozenset(stems), phrases=phrases)
        logger.debug(
            "Extracted %d terms, %d stems and %d phrases from query",
            len(term_set.terms),
            len(term_set.stems),
            len(term_set.phrases),
        )
        return term_set


def extract_terms(
    raw_query: str | None,
    stop_words: Iterable[str] = (),
    stemmer: Callable[[str], str] | None = None,
) -> TermSet:
    """Shortcut for ``QueryTermExtractor(stemmer).extract(raw_query, stop_words)``."""
    return QueryTermExtractor(stemmer).extract(raw_query, stop_words)
