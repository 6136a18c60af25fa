"""Incremental exact-chunk clone detection over a growing corpus of source files."""

__version__ = "1.0.0"
