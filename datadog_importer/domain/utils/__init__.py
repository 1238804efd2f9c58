"""
Shared utilities for the importer domain.

Modules
-------
timestamps
    Timestamp parsing and conversion between ISO8601 strings, datetimes,
    Unix seconds and epoch milliseconds
"""

__all__ = []
