"""Centralized configuration for search-results using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from search_results.domain.search import AssemblyConfig, HighlightMarkup


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every switch that shapes a results page is a named field here; unknown
    environment variables are ignored, invalid values fail at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Index
    search_index: Path = Field(
        default=Path("data/search-index.json"), description="Index file opened for each search request"
    )

    # Paging
    per_page: int = Field(default=10, ge=0, description="Hits per results page; 0 puts every hit on one page")

    # Descriptions
    highlight: bool = Field(default=True, description="Wrap query terms in the hit descriptions")
    description_context: bool = Field(
        default=False, description="Show the part of the description around the matched terms"
    )
    description_length: int = Field(default=250, ge=1, description="Maximum description length in characters")
    context_words: int = Field(default=8, ge=1, description="Words of context kept on each side of a match")

    # Highlight markup
    highlight_tag: str = Field(default="strong", min_length=1, description="Tag wrapped around matched terms")
    highlight_class: str = Field(default="", description="CSS class for the highlight tag (overrides colors)")
    highlight_colors: str = Field(default="", description="Comma-separated background colors, one per term")

    # Query filters
    extra_properties: str = Field(
        default="", description="Comma-separated properties ANDed into the query and shown on each hit"
    )
    extra_range_properties: str = Field(
        default="", description="Comma-separated properties searched with <prop>_start/<prop>_stop ranges"
    )

    # Local page highlighting
    document_root: Path | None = Field(default=None, description="Root directory for highlighting local pages")

    # Remote highlighter
    highlight_service_url: str = Field(default="", description="Optional URL of an HTTP highlighting service")
    highlight_timeout: float = Field(default=5.0, gt=0, description="Highlighting service timeout in seconds")

    # Diagnostics
    debug: bool = Field(default=False, description="Log rejected queries at WARNING instead of DEBUG")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_tag(self) -> "Settings":
        if not self.highlight_tag.isalnum():
            raise ValueError(f"HIGHLIGHT_TAG must be a plain element name, got {self.highlight_tag!r}")
        return self

    def get_extra_properties(self) -> list[str]:
        """Get list of extra properties (comma-separated)."""
        if not self.extra_properties:
            return []
        return [prop.strip() for prop in self.extra_properties.split(",") if prop.strip()]

    def get_extra_range_properties(self) -> list[str]:
        """Get list of range properties (comma-separated)."""
        if not self.extra_range_properties:
            return []
        return [prop.strip() for prop in self.extra_range_properties.split(",") if prop.strip()]

    def get_highlight_colors(self) -> list[str]:
        """Get list of highlight colors (comma-separated)."""
        if not self.highlight_colors:
            return []
        return [color.strip() for color in self.highlight_colors.split(",") if color.strip()]

    def assembly_config(self) -> AssemblyConfig:
        """Per-request assembly switches derived from these settings."""
        return AssemblyConfig(
            page_size=self.per_page,
            highlight=self.highlight,
            description_context=self.description_context,
            description_length=self.description_length,
            extra_properties=tuple(self.get_extra_properties()),
        )

    def highlight_markup(self) -> HighlightMarkup:
        return HighlightMarkup(
            tag=self.highlight_tag,
            css_class=self.highlight_class,
            colors=tuple(self.get_highlight_colors()),
        )
