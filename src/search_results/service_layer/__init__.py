"""Service layer - one search request from keywords to a results page."""

from .assembler import ResultAssembler
from .search_service import InvalidDocumentPath, SearchService, build_highlighter, resolve_document_path


__all__ = [
    "InvalidDocumentPath",
    "ResultAssembler",
    "SearchService",
    "build_highlighter",
    "resolve_document_path",
]
