"""Page window arithmetic for a results list."""

from __future__ import annotations

import math

from search_results.domain.search import PageInfo, PageLink


# Pages listed on each side of the current page in the pager.
PAGE_WINDOW = 5


def last_page_number(total_hits: int, page_size: int) -> int:
    if not page_size:
        return 1
    return max(math.ceil(total_hits / page_size), 1)


def paginate(total_hits: int, page_size: int | None, requested_page: int = 1) -> PageInfo:
    """Compute the paging summary for ``requested_page``.

    A falsy ``page_size`` puts every hit on a single page. The requested page
    is not clamped: asking for a page past the end yields a window with no
    hits in it, and the caller simply renders nothing.

    An empty result set reports ``start_num`` and ``stop_num`` as 0.
    """
    if total_hits < 0:
        raise ValueError(f"total_hits must be >= 0, got {total_hits}")
    if requested_page < 1:
        raise ValueError(f"requested_page must be >= 1, got {requested_page}")

    if not page_size:
        return PageInfo(
            total_entries=total_hits,
            start_num=1 if total_hits else 0,
            stop_num=total_hits,
        )

    last_number = last_page_number(total_hits, page_size)
    if total_hits:
        start = (requested_page - 1) * page_size + 1
        stop = min(start + page_size - 1, total_hits)
    else:
        start = stop = 0

    window = [
        PageLink(page_num=number, current=number == requested_page)
        for number in range(requested_page - PAGE_WINDOW, requested_page + PAGE_WINDOW + 1)
        if 1 <= number <= last_number
    ]

    return PageInfo(
        total_entries=total_hits,
        start_num=start,
        stop_num=stop,
        prev_page=requested_page - 1 if requested_page > 1 else 0,
        next_page=requested_page + 1 if requested_page < last_number else 0,
        first_page=requested_page == 1,
        last_page=requested_page == last_number,
        pages=tuple(window) if len(window) != 1 else (),
    )
