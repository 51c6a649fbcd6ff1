"""Locate query terms and phrases inside free text.

Shared by the context extractor and the highlighter so both agree on what
counts as a match:

- matching is case-insensitive
- a phrase matches its words separated by any run of whitespace
- a single term matches at the start of a word and extends to the end of
  that word, so stems such as ``docu`` cover ``documents``
- boolean operators are never matched
- matches never overlap; at the same position the longer match wins, and
  on a tie the term listed first wins
- text inside protected regions is skipped: markup tags, comments, character
  entities, whole ``script``, ``style`` and ``title`` elements, and existing
  highlights
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import re


BOOLEAN_OPERATORS = frozenset({"and", "or", "not"})

TAG_PATTERN = re.compile(r"<!--.*?-->|<[!?/]?[A-Za-z][^<>]*>", re.DOTALL)

ENTITY_PATTERN = re.compile(r"&(?:#[0-9]+|#[xX][0-9A-Fa-f]+|[A-Za-z][A-Za-z0-9]*);")

# Elements whose content is never display text
RAW_TEXT_ELEMENT_PATTERN = re.compile(
    r"<(script|style|title)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class TermMatch:
    """A matched span of text and the (lowercased) query term that matched it."""

    start: int
    end: int
    term: str

    @property
    def length(self) -> int:
        return self.end - self.start


def usable_terms(terms: Iterable[str]) -> list[str]:
    """Drop blanks, boolean operators and case-insensitive duplicates."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in terms:
        term = raw.strip() if raw else ""
        key = term.lower()
        if not term or key in BOOLEAN_OPERATORS or key in seen:
            continue
        seen.add(key)
        result.append(term)
    return result


def compile_term(term: str) -> re.Pattern[str]:
    words = term.split()
    if len(words) > 1:
        body = r"\s+".join(re.escape(word) for word in words)
        return re.compile(rf"(?<!\w){body}(?!\w)", re.IGNORECASE)
    return re.compile(rf"(?<!\w){re.escape(term)}\w*", re.IGNORECASE)


def protected_regions(text: str, tag: str | None = None) -> list[tuple[int, int]]:
    """Spans of ``text`` no match may touch.

    Markup tags, comments, character entities and whole ``script``,
    ``style`` and ``title`` elements are always protected. When ``tag`` is
    given, the content of any ``<tag ...>...</tag>`` element is protected
    too, which is what keeps highlighting from wrapping its own output a
    second time.
    """
    regions = [
        (match.start(), match.end())
        for pattern in (TAG_PATTERN, ENTITY_PATTERN, RAW_TEXT_ELEMENT_PATTERN)
        for match in pattern.finditer(text)
    ]
    if tag:
        name = re.escape(tag)
        element = re.compile(rf"<{name}\b[^>]*>.*?</{name}\s*>", re.IGNORECASE | re.DOTALL)
        regions.extend((match.start(), match.end()) for match in element.finditer(text))
    return regions


def _overlaps(start: int, end: int, regions: Sequence[tuple[int, int]]) -> bool:
    return any(start < region_end and end > region_start for region_start, region_end in regions)


def find_matches(
    text: str,
    terms: Sequence[str],
    protected: Sequence[tuple[int, int]] = (),
) -> list[TermMatch]:
    """Return non-overlapping matches of ``terms`` in ``text``, ordered by position."""
    if not text:
        return []

    candidates: list[tuple[int, int, int, str]] = []  # (start, end, priority, term)
    for priority, term in enumerate(usable_terms(terms)):
        pattern = compile_term(term)
        candidates.extend(
            (match.start(), match.end(), priority, term.lower())
            for match in pattern.finditer(text)
            if match.end() > match.start()
        )

    candidates.sort(key=lambda item: (item[0], -(item[1] - item[0]), item[2]))

    selected: list[TermMatch] = []
    last_end = 0
    for start, end, _, term in candidates:
        if start < last_end or _overlaps(start, end, protected):
            continue
        selected.append(TermMatch(start=start, end=end, term=term))
        last_end = end
    return selected
