"""Excerpt the part of a description that talks about the query.

Matches are grouped into clusters of nearby words. Each cluster becomes a
window of surrounding words, trimmed back to sentence boundaries where a
sentence starts or ends inside the surrounding context. The densest windows
are kept, in text order, until the excerpt reaches its character budget.

Smart defaults:
- no terms, or no matches: the text comes back unchanged
- phrases outweigh single words, and clusters covering more distinct terms
  outweigh repetitive ones
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
import re

from search_results.search.matching import TermMatch, find_matches, protected_regions, usable_terms


logger = logging.getLogger(__name__)

# Sentence-ending punctuation followed by whitespace
SENTENCE_END_PATTERN = re.compile(r"[.!?]\s+")
WORD_PATTERN = re.compile(r"\S+")

DEFAULT_SEPARATOR = " ... "


@dataclass
class _Cluster:
    first_word: int
    last_word: int
    matches: list[TermMatch] = field(default_factory=list)
    weight: int = 0

    @property
    def score(self) -> int:
        return self.weight + 2 * len({match.term for match in self.matches})


def _trim_leading_sentences(text: str, start: int, first_match: int) -> int:
    """Move ``start`` past the last sentence end that precedes ``first_match``."""
    ends = list(SENTENCE_END_PATTERN.finditer(text, start, first_match))
    return ends[-1].end() if ends else start


def _trim_trailing_sentences(text: str, last_match: int, end: int) -> int:
    """Cut ``end`` back to the first sentence end that follows ``last_match``."""
    found = SENTENCE_END_PATTERN.search(text, last_match, end)
    return found.start() + 1 if found else end


class ContextExtractor:
    """Build a bounded excerpt of ``text`` around the query terms.

    Args:
        context_words: Words of context kept on each side of a cluster.
        max_chars: Soft budget for the excerpt. The best window is always
            kept; further windows only while they fit.
        separator: Joins non-adjacent windows.
        enabled: When False, ``extract`` returns its input untouched.
    """

    def __init__(
        self,
        context_words: int = 8,
        max_chars: int = 250,
        separator: str = DEFAULT_SEPARATOR,
        *,
        enabled: bool = True,
    ) -> None:
        self.context_words = context_words
        self.max_chars = max_chars
        self.separator = separator
        self.enabled = enabled

    def extract(self, text: str, terms: Sequence[str]) -> str:
        if not text:
            return ""
        terms = usable_terms(terms)
        if not self.enabled or not terms:
            return text

        matches = find_matches(text, terms, protected_regions(text))
        if not matches:
            return text

        words = list(WORD_PATTERN.finditer(text))
        clusters = self._cluster(matches, [word.start() for word in words])
        windows = self._select(text, words, clusters)
        excerpt = self.separator.join(text[start:end].strip() for start, end in windows)
        logger.debug(
            "Context excerpt: %d matches, %d clusters, %d windows, %d chars",
            len(matches),
            len(clusters),
            len(windows),
            len(excerpt),
        )
        return excerpt

    def _cluster(self, matches: Sequence[TermMatch], word_starts: Sequence[int]) -> list[_Cluster]:
        clusters: list[_Cluster] = []
        for match in matches:
            first = max(bisect_right(word_starts, match.start) - 1, 0)
            last = max(bisect_right(word_starts, match.end - 1) - 1, first)
            span = last - first + 1
            weight = 2 * span if span > 1 else 1
            current = clusters[-1] if clusters else None
            if current is not None and first - current.last_word <= 2 * self.context_words:
                current.last_word = max(current.last_word, last)
                current.matches.append(match)
                current.weight += weight
            else:
                clusters.append(_Cluster(first_word=first, last_word=last, matches=[match], weight=weight))
        return clusters

    def _window(self, text: str, words: Sequence[re.Match[str]], cluster: _Cluster) -> tuple[int, int]:
        first = max(cluster.first_word - self.context_words, 0)
        last = min(cluster.last_word + self.context_words, len(words) - 1)
        start = _trim_leading_sentences(text, words[first].start(), cluster.matches[0].start)
        end = _trim_trailing_sentences(text, cluster.matches[-1].end, words[last].end())
        return start, end

    def _select(
        self,
        text: str,
        words: Sequence[re.Match[str]],
        clusters: Sequence[_Cluster],
    ) -> list[tuple[int, int]]:
        ranked = sorted(range(len(clusters)), key=lambda idx: (-clusters[idx].score, idx))
        chosen: list[tuple[int, int]] = []
        used = 0
        for idx in ranked:
            start, end = self._window(text, words, clusters[idx])
            cost = end - start + (len(self.separator) if chosen else 0)
            if chosen and used + cost > self.max_chars:
                continue
            chosen.append((start, end))
            used += cost
        return self._merge(sorted(chosen))

    @staticmethod
    def _merge(windows: Sequence[tuple[int, int]]) -> list[tuple[int, int]]:
        merged: list[tuple[int, int]] = []
        for start, end in windows:
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged
