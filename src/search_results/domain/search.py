"""Value objects flowing through the search results pipeline.

All models are frozen: a term set is computed once per request, a display hit
once per raw hit, and a page summary once per request. Field names on
``PageInfo`` and the ``to_template_vars`` helpers are the contract with the
templates that render a results page, so they keep the names those templates
expect.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TermSet(BaseModel):
    """Terms, stems and quoted phrases extracted from a raw keyword string."""

    model_config = ConfigDict(frozen=True)

    terms: frozenset[str] = Field(default_factory=frozenset)
    stems: frozenset[str] = Field(default_factory=frozenset)
    phrases: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.terms or self.stems or self.phrases)

    def words(self) -> frozenset[str]:
        """Union of bare terms and their stems."""
        return self.terms | self.stems

    def match_terms(self) -> list[str]:
        """Phrases first (in query order), then words longest first.

        This is the order the context extractor and highlighter consume, so
        phrases win over the single words they contain.
        """
        words = sorted(self.words(), key=lambda word: (-len(word), word.lower(), word))
        seen: set[str] = set()
        ordered: list[str] = []
        for item in [*self.phrases, *words]:
            key = item.lower()
            if key not in seen:
                seen.add(key)
                ordered.append(item)
        return ordered

    def to_query_string(self) -> str:
        """Render the phrases and bare terms back into a keyword string."""
        quoted = [f'"{phrase}"' for phrase in self.phrases]
        return " ".join([*quoted, *sorted(self.terms)])


class HighlightMarkup(BaseModel):
    """How matched terms are wrapped: a tag, optionally with a class or colors."""

    model_config = ConfigDict(frozen=True)

    tag: str = "strong"
    css_class: str = ""
    colors: tuple[str, ...] = ()


class AssemblyConfig(BaseModel):
    """Per-request switches for turning raw hits into display hits."""

    model_config = ConfigDict(frozen=True)

    page_size: int = Field(default=10, ge=0)
    highlight: bool = True
    description_context: bool = False
    description_length: int = Field(default=250, ge=1)
    extra_properties: tuple[str, ...] = ()


class RawHit(BaseModel):
    """One record yielded by the index for a query. Read-only input."""

    model_config = ConfigDict(frozen=True)

    path: str
    title: str = ""
    size: int = 0
    last_modified: datetime | None = None
    rank: int = 0
    record_count: int = 0
    description: str | None = None
    properties: Mapping[str, Any] = Field(default_factory=dict)

    def get_property(self, name: str) -> Any:
        """Return a caller-declared property, or None when the record lacks it."""
        return self.properties.get(name)


class DisplayHit(BaseModel):
    """A presentation-ready hit."""

    model_config = ConfigDict(frozen=True)

    path: str
    title: str = ""
    rank: int = 0
    record_count: int = 0
    size: str = ""
    last_modified: str = ""
    description: str = ""
    extra: Mapping[str, Any] = Field(default_factory=dict)

    def to_template_vars(self) -> dict[str, Any]:
        variables: dict[str, Any] = {
            "hit_reccount": self.record_count,
            "hit_rank": self.rank,
            "hit_title": self.title,
            "hit_path": self.path,
            "hit_size": self.size,
            "hit_description": self.description,
            "hit_last_modified": self.last_modified,
        }
        variables.update(self.extra)
        return variables


class PageLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_num: int
    current: bool = False


class PageInfo(BaseModel):
    """Paging summary for one results page.

    ``prev_page`` and ``next_page`` are 0 when there is no such page and
    ``pages`` is empty when a pager is not needed.
    """

    model_config = ConfigDict(frozen=True)

    total_entries: int = 0
    start_num: int = 0
    stop_num: int = 0
    prev_page: int = 0
    next_page: int = 0
    first_page: bool = True
    last_page: bool = True
    pages: tuple[PageLink, ...] = ()

    @property
    def offset(self) -> int:
        """0-based index of the first hit on this page."""
        return max(self.start_num - 1, 0)

    def to_template_vars(self) -> dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "start_num": self.start_num,
            "stop_num": self.stop_num,
            "next_page": self.next_page,
            "prev_page": self.prev_page,
            "first_page": self.first_page,
            "last_page": self.last_page,
            "pages": [page.model_dump() for page in self.pages],
        }


class SearchPage(BaseModel):
    """Everything the presentation layer needs to render one search request."""

    model_config = ConfigDict(frozen=True)

    searched: bool = False
    keywords: str | None = None
    elapsed_time: str | None = None
    hits: tuple[DisplayHit, ...] = ()
    page_info: PageInfo | None = None
    extra_values: Mapping[str, Any] = Field(default_factory=dict)

    def to_template_vars(self) -> dict[str, Any]:
        variables: dict[str, Any] = {
            "searched": self.searched,
            "elapsed_time": self.elapsed_time,
            "keywords": self.keywords,
            "hits": [hit.to_template_vars() for hit in self.hits],
        }
        if self.page_info is not None:
            variables.update(self.page_info.to_template_vars())
        variables.update(self.extra_values)
        return variables
