"""Text analysis for the reference index and query term stemming.

Tokenizers and filters compose into a pipeline that turns document text into
lowercased, stop-word free, stemmed tokens. The same stemmer backs the
``stem_word`` capability an index exposes to the query term extractor, so a
term typed by the user and the word stored in the index reduce to the same
root.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
from typing import Protocol


@dataclass
class Token:
    """A word produced by a tokenizer, with its character span in the source."""

    text: str
    position: int
    start_char: int
    end_char: int

    def copy_with(self, text: str) -> Token:
        return Token(text=text, position=self.position, start_char=self.start_char, end_char=self.end_char)


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Yield word tokens matched by ``pattern``."""

    def __init__(self, pattern: str = r"[\w']+", flags: int = re.UNICODE | re.MULTILINE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield token if token.text.islower() else token.copy_with(token.text.lower())


DEFAULT_STOPWORDS: tuple[str, ...] = (
    "a",
    "an",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "of",
    "on",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
)

_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ization", "ize"),
    ("ational", "ate"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("iveness", "ive"),
    ("tional", "tion"),
    ("biliti", "ble"),
    ("entli", "ent"),
    ("izer", "ize"),
    ("alli", "al"),
    ("ator", "ate"),
    ("ation", "ate"),
    ("ness", ""),
    ("ment", ""),
)

_SIMPLE_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "s")


class StopFilter:
    """Drop tokens whose lowercased text is a stop word."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.lower() not in self.stopwords:
                yield token


def stem_word(word: str) -> str:
    """Reduce ``word`` to a lowercase root with a small Porter-style rule set.

    One inflectional suffix is stripped first and then one derivational rule
    is applied, so ``documents`` and ``document`` share the root ``docu``.
    Rules that would leave too short a root are skipped.
    """
    lower = word.lower()
    for suffix in _SIMPLE_SUFFIXES:
        if lower.endswith(suffix) and not lower.endswith("ss") and len(lower) - len(suffix) >= 3:
            lower = lower[: -len(suffix)]
            break
    for suffix, replacement in _SUFFIX_RULES:
        if lower.endswith(suffix) and len(lower) - len(suffix) >= 2:
            return lower[: -len(suffix)] + replacement
    return lower


class StemFilter:
    def __init__(self, stemmer: Callable[[str], str] = stem_word) -> None:
        self._stem = stemmer

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield token.copy_with(self._stem(token.text))


class AnalyzerPipeline:
    """Tokenizer followed by filters; positions are renumbered after filtering."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):
            token.position = idx
        return tokens


class StandardAnalyzer:
    """Lowercase, remove stop words, optionally stem."""

    def __init__(
        self,
        *,
        stopwords: Iterable[str] | None = None,
        apply_stemming: bool = True,
    ) -> None:
        self.stop_filter = StopFilter(stopwords)
        filters: list[TokenFilter] = [LowercaseFilter(), self.stop_filter]
        if apply_stemming:
            filters.append(StemFilter())
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters)

    @property
    def stopwords(self) -> frozenset[str]:
        return self.stop_filter.stopwords

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)
