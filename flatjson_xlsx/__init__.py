"""Merge flattened JSON records into an .xlsx sheet by composite primary key."""

__version__ = "0.7.0"
