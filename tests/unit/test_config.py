"""Unit tests for Settings."""

import os
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from search_results.config import Settings
from search_results.domain.search import AssemblyConfig, HighlightMarkup


@pytest.mark.unit
class TestSettingsDefaults:
    def test_pinned_test_environment(self):
        settings = Settings()

        assert settings.search_index == Path("data/search-index.json")
        assert settings.per_page == 10
        assert settings.highlight is True
        assert settings.description_context is False
        assert settings.description_length == 250
        assert settings.document_root is None
        assert settings.debug is False

    def test_values_from_environment(self):
        env = {
            "PER_PAGE": "1",
            "HIGHLIGHT": "false",
            "DESCRIPTION_CONTEXT": "true",
            "EXTRA_PROPERTIES": "extra, author ,",
            "DOCUMENT_ROOT": "/srv/docs",
        }
        with patch.dict(os.environ, env):
            settings = Settings()

        assert settings.per_page == 1
        assert settings.highlight is False
        assert settings.description_context is True
        assert settings.get_extra_properties() == ["extra", "author"]
        assert settings.document_root == Path("/srv/docs")

    def test_unknown_variables_are_ignored(self):
        with patch.dict(os.environ, {"TEMPLATE_FILE": "search.tmpl"}):
            Settings()


@pytest.mark.unit
class TestSettingsValidation:
    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("per_page", -1),
            ("description_length", 0),
            ("context_words", 0),
            ("highlight_timeout", 0),
            ("highlight_tag", "strong onclick=x"),
            ("highlight_tag", ""),
        ],
    )
    def test_invalid_values_fail_at_construction(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


@pytest.mark.unit
class TestSettingsHelpers:
    def test_list_helpers_empty_by_default(self):
        settings = Settings()

        assert settings.get_extra_properties() == []
        assert settings.get_extra_range_properties() == []
        assert settings.get_highlight_colors() == []

    def test_assembly_config(self):
        settings = Settings(per_page=0, highlight=False, description_length=80, extra_properties="extra")

        assert settings.assembly_config() == AssemblyConfig(
            page_size=0,
            highlight=False,
            description_context=False,
            description_length=80,
            extra_properties=("extra",),
        )

    def test_highlight_markup(self):
        settings = Settings(highlight_tag="span", highlight_colors="yellow, green")

        assert settings.highlight_markup() == HighlightMarkup(tag="span", colors=("yellow", "green"))

    def test_range_properties(self):
        assert Settings(extra_range_properties="date,size").get_extra_range_properties() == ["date", "size"]
