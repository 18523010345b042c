"""Bundled spec-hint catalogs."""
