"""Boolean query parsing for the in-memory reference index.

Grammar (operators are case-insensitive, adjacent clauses are ANDed)::

    query    := or_expr
    or_expr  := and_expr ("or" and_expr)*
    and_expr := not_expr (["and"] not_expr)*
    not_expr := "not" not_expr | primary
    primary  := "(" or_expr ")" | PHRASE | WORD | FIELD "=" value
    value    := RANGE | PHRASE | WORD | "(" or_expr ")"

A RANGE is ``(low <= high)``. Words and phrases that analyze to nothing
(stop words, punctuation) are dropped from the tree; a query left with no
searchable clause is an error.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import re

from search_results.search.index import QueryExecutionError


_TOKEN_PATTERN = re.compile(
    r"""
    \s*(?:
        (?P<range>\(\s*(?P<low>[^()\s<>=]+)\s*<=\s*(?P<high>[^()\s<>=]+)\s*\))
      | (?P<phrase>"[^"]*")
      | (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<field>[\w.-]+)\s*=
      | (?P<word>[^\s()"=]+)
      | (?P<bad>\S)
    )
    """,
    re.VERBOSE,
)

OPERATORS = frozenset({"and", "or", "not"})


@dataclass(frozen=True)
class Lexeme:
    kind: str
    text: str
    low: str = ""
    high: str = ""


def tokenize(query: str) -> list[Lexeme]:
    lexemes: list[Lexeme] = []
    position = 0
    stripped_end = len(query.rstrip())
    while position < stripped_end:
        match = _TOKEN_PATTERN.match(query, position)
        if match is None:  # pragma: no cover - the pattern accepts any non-space character
            break
        # the outermost group closes last, so ``range`` wins over its low/high groups
        kind = match.lastgroup or "bad"
        if kind == "bad":
            raise QueryExecutionError(f"Unexpected character {match.group('bad')!r} in query")
        if kind == "range":
            lexemes.append(Lexeme("range", match.group("range"), match.group("low"), match.group("high")))
        elif kind == "phrase":
            lexemes.append(Lexeme("phrase", match.group("phrase")[1:-1]))
        elif kind == "field":
            lexemes.append(Lexeme("field", match.group("field")))
        elif kind == "word" and match.group("word").lower() in OPERATORS:
            lexemes.append(Lexeme(match.group("word").lower(), match.group("word")))
        else:
            lexemes.append(Lexeme(kind, match.group(kind)))
        position = match.end()
    return lexemes


@dataclass
class Node:
    """Base query node."""

    field: str | None = None


@dataclass
class TermNode(Node):
    words: tuple[str, ...] = ()

    @property
    def is_phrase(self) -> bool:
        return len(self.words) > 1


@dataclass
class RangeNode(Node):
    low: str = ""
    high: str = ""


@dataclass
class AndNode(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class OrNode(Node):
    children: list[Node] = field(default_factory=list)


@dataclass
class NotNode(Node):
    child: Node | None = None


class QueryParser:
    """Recursive-descent parser producing a tree of ``Node`` objects.

    Args:
        analyze: Turns a word or phrase into index terms (lowercased, stemmed,
            stop words removed).
        stop_words: Words reported back as removed when they are dropped.
    """

    def __init__(self, analyze: Callable[[str], Sequence[str]], stop_words: frozenset[str]) -> None:
        self._analyze = analyze
        self._stop_words = stop_words
        self._lexemes: list[Lexeme] = []
        self._pos = 0
        self.removed_stopwords: list[str] = []

    def parse(self, query: str) -> Node:
        self._lexemes = tokenize(query)
        self._pos = 0
        self.removed_stopwords = []
        if not self._lexemes:
            raise QueryExecutionError("Empty query")

        node = self._or_expr(None)
        if self._pos < len(self._lexemes):
            raise QueryExecutionError(f"Unexpected {self._lexemes[self._pos].text!r} in query")
        if node is None:
            raise QueryExecutionError(f"No searchable words in query {query!r}")
        return node

    def _peek(self) -> Lexeme | None:
        return self._lexemes[self._pos] if self._pos < len(self._lexemes) else None

    def _take(self) -> Lexeme:
        lexeme = self._peek()
        if lexeme is None:
            raise QueryExecutionError("Unexpected end of query")
        self._pos += 1
        return lexeme

    def _or_expr(self, field_name: str | None) -> Node | None:
        children = [self._and_expr(field_name)]
        while (lexeme := self._peek()) is not None and lexeme.kind == "or":
            self._take()
            children.append(self._and_expr(field_name))
        kept = [child for child in children if child is not None]
        if not kept:
            return None
        return kept[0] if len(kept) == 1 else OrNode(field=field_name, children=kept)

    def _and_expr(self, field_name: str | None) -> Node | None:
        children = [self._not_expr(field_name)]
        while (lexeme := self._peek()) is not None and lexeme.kind not in ("or", "rparen"):
            if lexeme.kind == "and":
                self._take()
            children.append(self._not_expr(field_name))
        kept = [child for child in children if child is not None]
        if not kept:
            return None
        return kept[0] if len(kept) == 1 else AndNode(field=field_name, children=kept)

    def _not_expr(self, field_name: str | None) -> Node | None:
        lexeme = self._peek()
        if lexeme is not None and lexeme.kind == "not":
            self._take()
            child = self._not_expr(field_name)
            return NotNode(field=field_name, child=child) if child is not None else None
        return self._primary(field_name)

    def _primary(self, field_name: str | None) -> Node | None:
        lexeme = self._take()
        if lexeme.kind == "lparen":
            node = self._or_expr(field_name)
            self._expect_rparen()
            return node
        if lexeme.kind in ("word", "phrase"):
            return self._term(lexeme.text, field_name)
        if lexeme.kind == "field":
            return self._field_value(lexeme.text)
        raise QueryExecutionError(f"Unexpected {lexeme.text!r} in query")

    def _field_value(self, field_name: str) -> Node | None:
        lexeme = self._take()
        if lexeme.kind == "range":
            return RangeNode(field=field_name, low=lexeme.low, high=lexeme.high)
        if lexeme.kind in ("word", "phrase"):
            return self._term(lexeme.text, field_name)
        if lexeme.kind == "lparen":
            node = self._or_expr(field_name)
            self._expect_rparen()
            return node
        raise QueryExecutionError(f"Missing value for property {field_name!r}")

    def _expect_rparen(self) -> None:
        lexeme = self._peek()
        if lexeme is None or lexeme.kind != "rparen":
            raise QueryExecutionError("Unbalanced parentheses in query")
        self._take()

    def _term(self, text: str, field_name: str | None) -> Node | None:
        words = tuple(self._analyze(text))
        if not words:
            self.removed_stopwords.extend(word for word in text.lower().split() if word in self._stop_words)
            return None
        return TermNode(field=field_name, words=words)
