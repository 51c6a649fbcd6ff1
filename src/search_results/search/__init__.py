"""Search results pipeline package.

This package turns one query's raw index hits into a results page:
- terms: keyword string to terms, stems and phrases
- matching: case-insensitive term and phrase matching shared by the steps below
- context: excerpts around matched terms
- highlight: wrapping matched terms in markup, locally or over HTTP
- pagination: page window arithmetic
- formatting: byte sizes and dates for display
- index: the contract with a full-text index, plus query string generation
- memory_index: an in-memory index over a JSON corpus
"""
