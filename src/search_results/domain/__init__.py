"""Domain layer - immutable value objects for one search request.

Nothing here touches the index, the filesystem or the network; the search
package computes these objects and the service layer hands them to whatever
renders the results page.
"""

from .search import (
    AssemblyConfig,
    DisplayHit,
    HighlightMarkup,
    PageInfo,
    PageLink,
    RawHit,
    SearchPage,
    TermSet,
)


__all__ = [
    "AssemblyConfig",
    "DisplayHit",
    "HighlightMarkup",
    "PageInfo",
    "PageLink",
    "RawHit",
    "SearchPage",
    "TermSet",
]
