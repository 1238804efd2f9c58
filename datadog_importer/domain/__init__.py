"""Importer domain: query planning, series alignment and plugins."""
