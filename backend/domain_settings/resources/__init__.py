"""Bundled data files (the default settings description document)."""
