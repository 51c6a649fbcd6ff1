"""Human-readable renderings of hit properties."""

from __future__ import annotations

from datetime import datetime


_BYTE_UNITS = (("G", 1024**3), ("M", 1024**2), ("K", 1024))

DATE_FORMAT = "%B %d, %Y"


def format_bytes(size: int | None, precision: int = 2) -> str:
    """Format a byte count with a K/M/G suffix, e.g. ``1.21K`` or ``3M``.

    Counts below 1K are printed as plain integers. Trailing zeros after the
    decimal point are dropped.
    """
    if not size:
        return "0"
    for suffix, factor in _BYTE_UNITS:
        if size >= factor:
            value = f"{size / factor:.{precision}f}".rstrip("0").rstrip(".")
            return f"{value}{suffix}"
    return str(size)


def format_date(value: datetime | None) -> str:
    """Render a timestamp as ``Month DD, YYYY`` in local time."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime(DATE_FORMAT)
