"""Tests for section and spec hashing."""

from __future__ import annotations

import re

from sdkgen.hashing import (
    canonical_json,
    compute_instructions_hash,
    compute_section_hash,
    compute_spec_hash,
    section_payload,
    sha256,
)
from sdkgen.spec_index import SpecIndex, build_spec_index
from tests._fixtures.oracles import make_file
from tests._fixtures.spec_builder import SpecBuilder

HEX64 = re.compile(r"^[0-9a-f]{64}$")


def test_section_hash_is_stable(petstore_index: SpecIndex) -> None:
    file = make_file(type="types")
    assert compute_section_hash(file, petstore_index) == compute_section_hash(file, petstore_index)
    assert HEX64.match(compute_section_hash(file, petstore_index))


def test_hash_differs_between_file_types(petstore_index: SpecIndex) -> None:
    hashes = {
        kind: compute_section_hash(make_file(type=kind), petstore_index)
        for kind in ("package-config", "types", "client-base", "index", "readme", "examples")
    }
    assert len(set(hashes.values())) == len(hashes)


def test_types_and_index_differ_for_an_empty_spec(spec_builder: SpecBuilder) -> None:
    empty = build_spec_index(
        spec_builder.write("empty.yaml", "openapi: 3.0.3\ninfo:\n  title: Empty\n  version: 1.0.0\npaths: {}\n")
    )
    hashes = {
        kind: compute_section_hash(make_file(type=kind), empty)
        for kind in ("package-config", "types", "client-base", "client", "index", "readme", "examples")
    }
    assert len(set(hashes.values())) == len(hashes)


def test_client_hash_depends_on_tags(petstore_index: SpecIndex) -> None:
    pets = compute_section_hash(make_file(type="client", relatedTags=["pets"]), petstore_index)
    store = compute_section_hash(make_file(type="client", relatedTags=["store"]), petstore_index)
    assert pets != store


def test_client_hash_includes_related_schemas(petstore_index: SpecIndex) -> None:
    with_schema = compute_section_hash(
        make_file(type="client", relatedTags=["pets"], relatedSchemas=["Pet"]), petstore_index
    )
    without_schema = compute_section_hash(
        make_file(type="client", relatedTags=["pets"]), petstore_index
    )
    assert with_schema != without_schema


def test_client_hash_ignores_tag_order(petstore_index: SpecIndex) -> None:
    first = make_file(type="client", relatedTags=["pets", "store"], relatedSchemas=["Pet", "CreatePetRequest"])
    second = make_file(type="client", relatedTags=["store", "pets"], relatedSchemas=["CreatePetRequest", "Pet"])
    assert compute_section_hash(first, petstore_index) == compute_section_hash(second, petstore_index)


def test_hash_ignores_descriptor_metadata(petstore_index: SpecIndex) -> None:
    first = make_file(type="types", id="a", outputPath="a.ts", description="one", order=0)
    second = make_file(type="types", id="b", outputPath="lib/b.ts", description="two", order=4)
    assert compute_section_hash(first, petstore_index) == compute_section_hash(second, petstore_index)


def test_missing_tag_and_schema_hash_without_error(petstore_index: SpecIndex) -> None:
    file = make_file(type="client", relatedTags=["ghost"], relatedSchemas=["Ghost"])
    assert HEX64.match(compute_section_hash(file, petstore_index))


def test_schema_change_only_touches_dependent_sections(spec_builder: SpecBuilder) -> None:
    before = build_spec_index(spec_builder.petstore("before.yaml"))
    after = build_spec_index(spec_builder.petstore_with_pet_field("color", "after.yaml"))

    types = make_file(type="types")
    pets = make_file(type="client", relatedTags=["pets"], relatedSchemas=["Pet"])
    store = make_file(type="client", relatedTags=["store"])
    package = make_file(type="package-config")

    assert compute_section_hash(types, before) != compute_section_hash(types, after)
    assert compute_section_hash(pets, before) != compute_section_hash(pets, after)
    assert compute_section_hash(store, before) == compute_section_hash(store, after)
    assert compute_section_hash(package, before) == compute_section_hash(package, after)
    assert compute_spec_hash(before) != compute_spec_hash(after)


def test_info_change_touches_package_config(spec_builder: SpecBuilder) -> None:
    before = build_spec_index(spec_builder.petstore("a.yaml"))
    after = build_spec_index(spec_builder.petstore("b.yaml", title="Renamed API"))
    package = make_file(type="package-config")
    types = make_file(type="types")
    assert compute_section_hash(package, before) != compute_section_hash(package, after)
    assert compute_section_hash(types, before) == compute_section_hash(types, after)


def test_spec_hash_is_deterministic_across_loads(spec_builder: SpecBuilder) -> None:
    first = build_spec_index(spec_builder.petstore("one.yaml"))
    second = build_spec_index(spec_builder.petstore("two.yaml"))
    assert compute_spec_hash(first) == compute_spec_hash(second)


def test_canonical_json_sorts_keys() -> None:
    assert canonical_json({"b": 1, "a": [1, {"d": 2, "c": 3}]}) == '{"a":[1,{"c":3,"d":2}],"b":1}'


def test_instructions_hash_treats_none_as_empty() -> None:
    assert compute_instructions_hash(None) == compute_instructions_hash("") == sha256("")
    assert compute_instructions_hash("use axios") != compute_instructions_hash(None)


def test_cyclic_specs_hash_deterministically(spec_builder: SpecBuilder) -> None:
    first = build_spec_index(spec_builder.circular("a.yaml"))
    second = build_spec_index(spec_builder.circular("b.yaml"))
    assert compute_spec_hash(first) == compute_spec_hash(second)
    assert compute_section_hash(make_file(type="types"), first) == compute_section_hash(
        make_file(type="types"), second
    )


def test_section_payload_for_client(petstore_index: SpecIndex) -> None:
    payload = section_payload(
        make_file(type="client", relatedTags=["store"], relatedSchemas=["Pet"]), petstore_index
    )
    assert list(payload["endpoints"]) == ["store"]
    assert payload["endpoints"]["store"][0]["path"] == "/store/inventory"
    assert payload["schemas"]["Pet"]["type"] == "object"
