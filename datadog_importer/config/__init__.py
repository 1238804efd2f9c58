"""Configuration models for the importer."""
