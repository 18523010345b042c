"""Bundled FHIR type definitions."""
