"""End-to-end tests for SearchService against the JSON corpus."""

import logging
import re
from unittest.mock import Mock

import httpx
import pytest

from search_results.search.highlight import RemoteHighlighter
from search_results.search.index import IndexUnavailable
from search_results.search.memory_index import open_index
from search_results.service_layer import InvalidDocumentPath, SearchService, build_highlighter


pytestmark = pytest.mark.integration


def _descriptions(page):
    return {hit.path: hit.description for hit in page.hits}


@pytest.fixture
def service(make_settings):
    def _make(**overrides):
        return SearchService(make_settings(**overrides))

    return _make


class TestPerformSearch:
    def test_plain_descriptions(self, service):
        page = service(highlight=False).perform_search("please")

        assert page.searched is True
        assert len(page.hits) == 2
        assert page.page_info.total_entries == 2
        assert (page.page_info.start_num, page.page_info.stop_num) == (1, 2)
        assert page.page_info.pages == ()
        assert _descriptions(page) == {
            "help.html": "Would you please help me find this document?",
            "test.html": "This is a test. This is a only a test. And please do not panic.",
        }
        assert {hit.title for hit in page.hits} == {"This is a Test", "Please Help Me"}

    def test_highlighted_descriptions(self, service):
        page = service().perform_search("please")

        descriptions = _descriptions(page)
        assert "And <strong>please</strong> do not panic" in descriptions["test.html"]
        assert "<strong>please</strong> help me" in descriptions["help.html"]
        assert all(text.count("<strong>please</strong>") == 1 for text in descriptions.values())

    def test_phrase(self, service):
        page = service().perform_search('"please help"')

        assert [hit.title for hit in page.hits] == ["Please Help Me"]
        assert "<strong>please help</strong> me" in page.hits[0].description
        assert (page.page_info.start_num, page.page_info.stop_num, page.page_info.total_entries) == (1, 1, 1)

    def test_phrase_or_word(self, service):
        page = service().perform_search('"please help" or panic')

        descriptions = _descriptions(page)
        assert page.page_info.total_entries == 2
        assert "<strong>please help</strong> me" in descriptions["help.html"]
        assert "please do not <strong>panic</strong>" in descriptions["test.html"]
        assert all("<strong>or</strong>" not in text for text in descriptions.values())

    def test_long_description_is_cut(self, service):
        page = service().perform_search("context")

        (hit,) = page.hits
        assert hit.title == "Find the Context"
        assert "I would like to find the <strong>context</strong> in this" in hit.description
        assert "Lorem ipsum" not in hit.description
        assert len(hit.description) == 250

    def test_description_context(self, service):
        page = service(description_context=True, highlight=False).perform_search("context and like or context not help")

        (hit,) = page.hits
        assert hit.description == "I would like to find the context in this document."

    def test_stems_are_highlighted(self, service):
        page = service().perform_search("documents")

        assert "find this <strong>document</strong>?" in _descriptions(page)["help.html"]

    def test_hit_formatting(self, service):
        page = service().perform_search('"please help"')

        variables = page.to_template_vars()["hits"][0]
        assert variables["hit_size"] == "512"
        assert variables["hit_last_modified"] == "March 02, 2006"
        assert variables["hit_rank"] == 1000
        assert variables["hit_reccount"] == 1

    def test_document_without_description(self, service):
        page = service().perform_search("title=(another)")

        (hit,) = page.hits
        assert hit.title == "This is another Test"
        assert hit.description == ""

    def test_elapsed_time_has_three_decimals(self, service):
        page = service().perform_search("please")

        assert re.fullmatch(r"\d+\.\d{3}", page.elapsed_time)


class TestPaging:
    def test_one_hit_per_page(self, service):
        search = service(per_page=1)

        first = search.perform_search("please", page=1)
        second = search.perform_search("please", page=2)

        assert [hit.path for hit in first.hits] == ["help.html"]
        assert (first.page_info.next_page, first.page_info.prev_page) == (2, 0)
        assert [(link.page_num, link.current) for link in first.page_info.pages] == [(1, True), (2, False)]
        assert [hit.path for hit in second.hits] == ["test.html"]
        assert (second.page_info.start_num, second.page_info.stop_num) == (2, 2)
        assert second.page_info.last_page is True

    def test_page_past_the_end_is_empty(self, service):
        page = service(per_page=1).perform_search("please", page=5)

        assert page.hits == ()
        assert page.page_info.total_entries == 2

    @pytest.mark.parametrize("requested", [0, None])
    def test_missing_page_means_first_page(self, service, requested):
        page = service(per_page=1).perform_search("please", page=requested)

        assert [hit.path for hit in page.hits] == ["help.html"]
        assert page.page_info.start_num == 1

    def test_zero_page_size_shows_everything(self, service):
        page = service(per_page=0).perform_search("test")

        assert len(page.hits) == page.page_info.total_entries == 4
        assert page.page_info.pages == ()


class TestExtraProperties:
    def test_extra_property_filter_and_passthrough(self, service):
        page = service(extra_properties="extra").perform_search("test", params={"extra": "foo"})

        (hit,) = page.hits
        assert hit.path == "fourth.html"
        assert hit.to_template_vars()["extra"] == "foo"
        assert page.to_template_vars()["extra"] == "foo"

    def test_extra_property_without_value_does_not_filter(self, service):
        page = service(extra_properties="extra").perform_search("test")

        assert page.page_info.total_entries == 4
        assert page.extra_values == {"extra": None}
        assert {hit.extra["extra"] for hit in page.hits} == {None, "foo", "bar"}

    def test_range_property(self, service):
        params = {"date_start": "20060301", "date_stop": "20060315"}

        page = service(extra_range_properties="date").perform_search("test", params=params)

        assert [hit.path for hit in page.hits] == ["fourth.html"]

    def test_custom_query_builder(self, make_settings):
        builder = Mock(return_value="panic")
        search = SearchService(make_settings(), query_builder=builder)

        page = search.perform_search("anything")

        assert [hit.path for hit in page.hits] == ["test.html"]
        builder.assert_called_once_with("anything", {}, [], [])


class TestFailures:
    def test_query_error_yields_empty_searched_page(self, service):
        page = service().perform_search("--")

        assert page.searched is True
        assert page.hits == ()
        assert page.page_info is None
        assert page.to_template_vars()["hits"] == []

    def test_query_error_logged_at_warning_in_debug_mode(self, service, caplog):
        with caplog.at_level(logging.DEBUG):
            service(debug=True).perform_search("--")

        assert any(
            record.levelno == logging.WARNING and "Unable to create query" in record.getMessage()
            for record in caplog.records
        )

    def test_query_error_logged_at_debug_otherwise(self, service, caplog):
        with caplog.at_level(logging.DEBUG):
            service().perform_search("--")

        (record,) = [record for record in caplog.records if "Unable to create query" in record.getMessage()]
        assert record.levelno == logging.DEBUG

    def test_missing_index_propagates(self, make_settings, tmp_path):
        search = SearchService(make_settings(search_index=tmp_path / "missing.json"))

        with pytest.raises(IndexUnavailable, match="does not exist"):
            search.perform_search("please")

    def test_index_released_after_request(self, make_settings):
        opened = []

        def opener(path):
            index = open_index(path)
            index.close = Mock()
            opened.append(index)
            return index

        SearchService(make_settings(), index_opener=opener).perform_search("please")

        opened[0].close.assert_called_once_with()

    def test_remote_highlighter_failure_falls_back(self, make_settings):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        highlighter = RemoteHighlighter("http://highlighter.test", client=client)

        page = SearchService(make_settings(), highlighter=highlighter).perform_search("please")

        assert _descriptions(page)["help.html"] == "Would you please help me find this document?"


class TestUnsearchedPages:
    def test_no_keywords(self, service):
        page = service().perform_search(None)

        assert page.searched is False
        assert page.to_template_vars()["hits"] == []

    def test_blank_keywords_are_searched_but_empty(self, service):
        page = service().perform_search("")

        assert page.searched is True
        assert page.hits == ()

    def test_pre_supplied_results_skip_the_index(self, make_settings, raw_hit_factory):
        opener = Mock(side_effect=AssertionError("index must not be opened"))
        search = SearchService(make_settings(), index_opener=opener)

        empty = search.perform_search("please", results=[])
        supplied = search.perform_search("please", results=[raw_hit_factory(description="please wait")])

        assert empty.searched is False
        assert empty.hits == ()
        assert supplied.hits[0].description == "<strong>please</strong> wait"
        opener.assert_not_called()


class TestHighlightLocalPage:
    @pytest.fixture
    def document_root(self, tmp_path):
        root = tmp_path / "htdocs"
        (root / "docs").mkdir(parents=True)
        (root / "docs" / "help.html").write_text(
            '<html><head><title>Please Help</title></head><body><a href="please.html">Please</a> help me</body></html>'
        )
        return root

    def test_terms_highlighted_outside_tags(self, make_settings, document_root):
        search = SearchService(make_settings(document_root=document_root))

        html = search.highlight_local_page("please", "docs/help.html")

        assert html == (
            "<html><head><title>Please Help</title></head>"
            '<body><a href="please.html"><strong>Please</strong></a> help me</body></html>'
        )

    def test_script_style_and_entities_left_intact(self, make_settings, document_root):
        page = (
            "<!DOCTYPE html><html><head><title>Search help</title>"
            "<style>.search { color: red; }</style><script>var search = 1;</script></head>"
            "<body><!-- search box --><p>Search &amp; find &copy; copy</p></body></html>"
        )
        (document_root / "docs" / "search.html").write_text(page)
        search = SearchService(make_settings(document_root=document_root))

        html = search.highlight_local_page("search amp copy html", "docs/search.html")

        assert html == page.replace("<p>Search", "<p><strong>Search</strong>").replace(
            "&copy; copy", "&copy; <strong>copy</strong>"
        )

    def test_no_terms_returns_page_unchanged(self, make_settings, document_root):
        search = SearchService(make_settings(document_root=document_root))

        assert search.highlight_local_page("and or", "docs/help.html").startswith("<html><head><title>Please")

    @pytest.mark.parametrize("path", ["../secret.html", "/etc/passwd", "docs/../../secret.html", ""])
    def test_unsafe_paths_rejected(self, make_settings, document_root, path):
        search = SearchService(make_settings(document_root=document_root))

        with pytest.raises(InvalidDocumentPath):
            search.highlight_local_page("please", path)

    def test_missing_document_root(self, make_settings):
        with pytest.raises(InvalidDocumentPath, match="DOCUMENT_ROOT"):
            SearchService(make_settings()).highlight_local_page("please", "docs/help.html")

    def test_missing_document(self, make_settings, document_root):
        search = SearchService(make_settings(document_root=document_root))

        with pytest.raises(FileNotFoundError):
            search.highlight_local_page("please", "docs/missing.html")


class TestBuildHighlighter:
    def test_remote_when_url_configured(self, make_settings):
        highlighter = build_highlighter(make_settings(highlight_service_url="http://highlighter.test"))

        assert isinstance(highlighter, RemoteHighlighter)
        highlighter.close()

    def test_local_by_default(self, make_settings):
        assert not isinstance(build_highlighter(make_settings()), RemoteHighlighter)
