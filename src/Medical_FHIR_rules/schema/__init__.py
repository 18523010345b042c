"""Schema resolution over FHIR type definitions."""

from .resolver import DEFAULT_MAX_DEPTH, SchemaResolver
from .sources import InMemoryTypeDefinitionSource, TypeDefinitionSource

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "InMemoryTypeDefinitionSource",
    "SchemaResolver",
    "TypeDefinitionSource",
]
