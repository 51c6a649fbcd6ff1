"""Search results post-processing: query terms, context excerpts, highlighting and paging."""

__version__ = "0.1.0"
