"""Unit tests for the boolean query parser."""

import pytest

from search_results.search.analyzers import StandardAnalyzer
from search_results.search.index import QueryExecutionError
from search_results.search.query_parser import (
    AndNode,
    NotNode,
    OrNode,
    QueryParser,
    RangeNode,
    TermNode,
    tokenize,
)


@pytest.fixture
def parser():
    analyzer = StandardAnalyzer(stopwords=["a", "the"])
    return QueryParser(lambda text: [token.text for token in analyzer(text)], analyzer.stopwords)


@pytest.mark.unit
class TestTokenize:
    def test_kinds(self):
        lexemes = tokenize('"please help" OR (panic) and title=x date=(1 <= 5)')

        assert [lexeme.kind for lexeme in lexemes] == [
            "phrase",
            "or",
            "lparen",
            "word",
            "rparen",
            "and",
            "field",
            "word",
            "field",
            "range",
        ]
        assert lexemes[0].text == "please help"
        assert (lexemes[-1].low, lexemes[-1].high) == ("1", "5")

    def test_unterminated_quote_is_an_error(self):
        with pytest.raises(QueryExecutionError):
            tokenize('"please help')


@pytest.mark.unit
class TestQueryParser:
    def test_implicit_and(self, parser):
        tree = parser.parse("please help")

        assert isinstance(tree, AndNode)
        assert [child.words for child in tree.children] == [("please",), ("help",)]

    def test_or_binds_looser_than_and(self, parser):
        tree = parser.parse("context and like or context not help")

        assert isinstance(tree, OrNode)
        left, right = tree.children
        assert isinstance(left, AndNode)
        assert isinstance(right, AndNode)
        assert isinstance(right.children[1], NotNode)

    def test_phrase_becomes_multiword_term(self, parser):
        tree = parser.parse('"Please Help"')

        assert isinstance(tree, TermNode)
        assert tree.words == ("please", "help")
        assert tree.is_phrase

    def test_field_and_range(self, parser):
        tree = parser.parse("please and extra=(foo) and date=(20060301 <= 20060315)")

        term, field_term, date_range = tree.children
        assert isinstance(field_term, TermNode)
        assert field_term.field == "extra"
        assert isinstance(date_range, RangeNode)
        assert (date_range.field, date_range.low, date_range.high) == ("date", "20060301", "20060315")

    def test_stop_words_are_dropped_and_reported(self, parser):
        tree = parser.parse("find the context")

        assert [child.words for child in tree.children] == [("find",), ("context",)]
        assert parser.removed_stopwords == ["the"]

    @pytest.mark.parametrize(
        "query",
        ["", "   ", "--", "the", "please and", "(please", "please)", "not", "title=", "please or"],
    )
    def test_malformed_queries(self, parser, query):
        with pytest.raises(QueryExecutionError):
            parser.parse(query)
