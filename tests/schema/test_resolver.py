import asyncio

import pytest

from Medical_FHIR_rules.config import SchemaSettings
from Medical_FHIR_rules.models import ElementDefinition
from Medical_FHIR_rules.schema import InMemoryTypeDefinitionSource, SchemaResolver


def _element(name: str, type_name: str, *, min: int = 0, max: str = "1") -> ElementDefinition:
    return ElementDefinition(element_name=name, declared_type=type_name, min=min, max=max)


class CountingSource(InMemoryTypeDefinitionSource):
    def __init__(self, definitions):
        super().__init__(definitions)
        self.calls: list[str] = []

    async def get_element_definitions(self, type_name):
        self.calls.append(type_name)
        await asyncio.sleep(0)
        return await super().get_element_definitions(type_name)


def _cyclic_source() -> CountingSource:
    return CountingSource(
        {
            "A": [_element("label", "string", min=1), _element("b", "B")],
            "B": [_element("a", "A", max="*"), _element("note", "string")],
        }
    )


@pytest.mark.asyncio
async def test_mutual_cycle_terminates_with_empty_reentered_node():
    resolver = SchemaResolver(_cyclic_source())
    root = await resolver.resolve_schema("A")

    assert root is not None
    assert root.path == "A"
    assert [child.element_name for child in root.children] == ["label", "b"]
    b_node = root.find("b")
    assert b_node.type == "B"
    reentered = root.find("b.a")
    assert reentered.type == "A"
    assert reentered.children == ()
    assert reentered.truncated
    assert not root.find("b.note").truncated


@pytest.mark.asyncio
async def test_self_referencing_type_is_truncated():
    source = InMemoryTypeDefinitionSource(
        {"Extension": [_element("url", "uri", min=1), _element("extension", "Extension", max="*")]}
    )
    root = await SchemaResolver(source).resolve_schema("Extension")
    nested = root.find("extension")
    assert nested.truncated
    assert nested.children == ()


@pytest.mark.asyncio
async def test_unknown_type_returns_none():
    resolver = SchemaResolver(_cyclic_source())
    assert await resolver.resolve_schema("UnknownType") is None
    assert resolver.cached_types == []


@pytest.mark.asyncio
async def test_primitive_and_unknown_composite_types_are_leaves():
    source = InMemoryTypeDefinitionSource(
        {"Thing": [_element("code", "code"), _element("other", "Mystery")]}
    )
    root = await SchemaResolver(source).resolve_schema("Thing")
    assert root.find("code").children == ()
    other = root.find("other")
    assert other.children == ()
    assert not other.truncated


@pytest.mark.asyncio
async def test_depth_guard_truncates_long_chains():
    definitions = {f"T{index}": [_element("next", f"T{index + 1}")] for index in range(10)}
    definitions["T10"] = [_element("value", "string")]
    resolver = SchemaResolver(InMemoryTypeDefinitionSource(definitions), max_depth=3)
    root = await resolver.resolve_schema("T0")

    deepest = root.find("next.next.next")
    assert deepest is not None
    assert deepest.truncated
    assert deepest.children == ()
    assert root.find("next.next").children


@pytest.mark.asyncio
async def test_results_and_definitions_are_cached():
    source = _cyclic_source()
    resolver = SchemaResolver(source)
    first = await resolver.resolve_schema("A")
    second = await resolver.resolve_schema("A")
    assert first is second
    assert source.calls == ["A", "B"]

    await resolver.resolve_schema("B")
    assert source.calls == ["A", "B"]


@pytest.mark.asyncio
async def test_invalidate_forces_rebuild():
    source = _cyclic_source()
    resolver = SchemaResolver(source)
    first = await resolver.resolve_schema("A")

    resolver.invalidate("A")
    rebuilt = await resolver.resolve_schema("A")
    assert rebuilt is not first
    assert rebuilt == first
    assert source.calls == ["A", "B", "A"]

    resolver.invalidate()
    assert resolver.cached_types == []


@pytest.mark.asyncio
async def test_unknown_lookups_and_invalidation_release_locks():
    resolver = SchemaResolver(_cyclic_source())
    for index in range(100):
        assert await resolver.resolve_schema(f"Unknown{index}") is None
    assert resolver._locks == {}

    await resolver.resolve_many(["A", "B"])
    resolver.invalidate("A")
    assert set(resolver._locks) == {"B"}
    resolver.invalidate()
    assert resolver._locks == {}


@pytest.mark.asyncio
async def test_concurrent_resolution_builds_once():
    source = _cyclic_source()
    resolver = SchemaResolver(source)
    results = await asyncio.gather(*(resolver.resolve_schema("A") for _ in range(5)))
    assert all(result is results[0] for result in results)
    assert source.calls.count("A") == 1


@pytest.mark.asyncio
async def test_resolve_many_keys_results_by_name(resolver):
    results = await resolver.resolve_many(["Patient", "Nope"])
    assert results["Patient"].find("name.family").type == "string"
    assert results["Nope"] is None


@pytest.mark.asyncio
async def test_bundled_patient_schema(resolver):
    root = await resolver.resolve_schema("Patient")
    assert root.min == 1 and root.max == "1"
    language = root.find("communication.language")
    assert language.is_required
    assert root.find("communication").is_array
    assert root.find("identifier.assigner.identifier").truncated
    assert root.find("extension.extension").truncated
    assert root.find("contained.meta.tag.code").type == "code"


def test_from_settings_uses_configured_depth(tmp_path):
    path = tmp_path / "types.yaml"
    path.write_text("types:\n  Box:\n    - {name: value, type: string}\n", encoding="utf-8")
    resolver = SchemaResolver.from_settings(
        SchemaSettings(max_depth=4, type_definitions_path=path)
    )
    assert resolver.max_depth == 4


def test_invalid_depth_is_rejected(type_source):
    with pytest.raises(ValueError):
        SchemaResolver(type_source, max_depth=0)
