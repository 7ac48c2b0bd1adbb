from __future__ import annotations

import pytest

from affinidi_cli.schemas import (
    SCHEMA_FILES_BASE_URL,
    SchemaIdOptions,
    build_json_ld_context,
    build_json_schema,
    generate_schema_files_metadata,
    generate_schema_id,
    is_valid_schema_name,
)


@pytest.mark.parametrize(
    ("name", "valid"),
    [("MySchema", True), ("Badge2", True), ("my-schema", False), ("my schema", False), ("", False)],
)
def test_schema_name_validation(name: str, valid: bool) -> None:
    assert is_valid_schema_name(name) is valid


def test_public_schema_id_has_no_namespace() -> None:
    assert generate_schema_id(SchemaIdOptions("Badge", 1, 0)) == "BadgeV1-0"


def test_unlisted_schema_id_carries_namespace() -> None:
    options = SchemaIdOptions("Badge", 2, 3, namespace="did:elem:abc")
    assert generate_schema_id(options) == "BadgeV2-3@did:elem:abc"


def test_schema_file_urls() -> None:
    json_url, jsonld_url = generate_schema_files_metadata(SCHEMA_FILES_BASE_URL + "/", "BadgeV1-0")
    assert json_url == "https://schema.affinidi.com/BadgeV1-0.json"
    assert jsonld_url == "https://schema.affinidi.com/BadgeV1-0.jsonld"


def test_json_schema_accepts_values_and_fragments() -> None:
    document = build_json_schema(
        schema_id="BadgeV1-0",
        schema_type="Badge",
        description="a badge",
        json_schema_url="https://schema.affinidi.com/BadgeV1-0.json",
        json_ld_context_url="https://schema.affinidi.com/BadgeV1-0.jsonld",
        version=1,
        revision=0,
        credential_subject={
            "name": "Ada",
            "level": 3,
            "verified": True,
            "issuedOn": {"type": "string", "format": "date"},
            "address": {"city": "Berlin"},
        },
    )

    subject = document["properties"]["credentialSubject"]
    assert subject["properties"]["name"] == {"type": "string"}
    assert subject["properties"]["level"] == {"type": "number"}
    assert subject["properties"]["verified"] == {"type": "boolean"}
    assert subject["properties"]["issuedOn"] == {"type": "string", "format": "date"}
    assert subject["properties"]["address"]["properties"]["city"] == {"type": "string"}
    assert subject["required"] == ["address", "issuedOn", "level", "name", "verified"]
    assert document["$metadata"]["uris"]["jsonLdContext"].endswith(".jsonld")
    assert document["title"] == "BadgeV1-0"


def test_json_ld_context_lists_subject_fields() -> None:
    context = build_json_ld_context(
        schema_type="Badge",
        json_ld_context_url="https://schema.affinidi.com/BadgeV1-0.jsonld",
        credential_subject={"name": "Ada"},
    )

    inner = context["@context"]["Badge"]["@context"]
    assert inner["name"] == {"@id": "schema-id:name", "@type": "xsd:string"}
    assert inner["schema-id"] == "https://schema.affinidi.com/BadgeV1-0.jsonld#"
