"""
Datadog importer Python package.

This package hosts the Datadog metrics importer plugin, the metrics API
adapter, and supporting utilities. See README.md for usage.
"""

from .__version__ import __version__

__all__ = ["__version__"]
