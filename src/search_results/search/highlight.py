"""Wrap matched query terms in markup.

``Highlighter`` works locally and never fails. ``RemoteHighlighter`` hands
the work to an external highlighting service over HTTP and raises
``HighlightUnavailable`` when that service cannot answer; callers treat that
as a reason to fall back to the plain text, not as a failed request.
"""

from __future__ import annotations

from collections.abc import Sequence
import html
from typing import Protocol

import httpx

from search_results.domain.search import HighlightMarkup
from search_results.search.matching import TermMatch, find_matches, protected_regions


class HighlightUnavailable(RuntimeError):
    """Highlighting could not be computed; the text should be shown unhighlighted."""


class TextHighlighter(Protocol):
    def highlight(
        self,
        text: str,
        terms: Sequence[str],
        markup: HighlightMarkup | None = None,
    ) -> str:  # pragma: no cover - interface definition
        ...


def _opening_tag(markup: HighlightMarkup, color: str | None) -> str:
    if markup.css_class:
        return f'<{markup.tag} class="{html.escape(markup.css_class, quote=True)}">'
    if color:
        return f'<{markup.tag} style="background-color: {html.escape(color, quote=True)}">'
    return f"<{markup.tag}>"


def _assign_colors(matches: Sequence[TermMatch], colors: Sequence[str]) -> dict[str, str]:
    """Give each distinct matched term the next color, wrapping around the list."""
    assigned: dict[str, str] = {}
    for match in matches:
        if match.term not in assigned:
            assigned[match.term] = colors[len(assigned) % len(colors)]
    return assigned


def highlight_terms(text: str, terms: Sequence[str], markup: HighlightMarkup | None = None) -> str:
    """Return ``text`` with every match of ``terms`` wrapped in ``markup``.

    Text outside the matches is left byte-for-byte intact. Existing tags and
    the content of elements already wrapped in ``markup.tag`` are skipped, so
    highlighting a highlighted string returns it unchanged.
    """
    if not text or not terms:
        return text

    markup = markup or HighlightMarkup()
    matches = find_matches(text, terms, protected_regions(text, markup.tag))
    if not matches:
        return text

    colors: dict[str, str] = {}
    if not markup.css_class and markup.colors:
        colors = _assign_colors(matches, markup.colors)

    closing = f"</{markup.tag}>"
    pieces: list[str] = []
    cursor = 0
    for match in matches:
        pieces.append(text[cursor : match.start])
        pieces.append(_opening_tag(markup, colors.get(match.term)))
        pieces.append(text[match.start : match.end])
        pieces.append(closing)
        cursor = match.end
    pieces.append(text[cursor:])
    return "".join(pieces)


class Highlighter:
    """Local highlighter with a default markup."""

    def __init__(self, markup: HighlightMarkup | None = None) -> None:
        self.markup = markup or HighlightMarkup()

    def highlight(
        self,
        text: str,
        terms: Sequence[str],
        markup: HighlightMarkup | None = None,
    ) -> str:
        return highlight_terms(text, terms, markup or self.markup)


class RemoteHighlighter:
    """Highlighter backed by an HTTP service.

    The service receives ``{"text", "terms", "markup"}`` as JSON and must
    answer with ``{"text": <highlighted text>}``.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        markup: HighlightMarkup | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.markup = markup or HighlightMarkup()
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    def highlight(
        self,
        text: str,
        terms: Sequence[str],
        markup: HighlightMarkup | None = None,
    ) -> str:
        if not text or not terms:
            return text
        payload = {
            "text": text,
            "terms": list(terms),
            "markup": (markup or self.markup).model_dump(mode="json"),
        }
        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            highlighted = response.json()["text"]
        except httpx.HTTPError as exc:
            raise HighlightUnavailable(f"highlight service at {self.url} failed: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise HighlightUnavailable(f"highlight service at {self.url} sent a malformed reply") from exc
        if not isinstance(highlighted, str):
            raise HighlightUnavailable(f"highlight service at {self.url} sent a malformed reply")
        return highlighted

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> RemoteHighlighter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
