"""Schema identifiers and the JSON Schema / JSON-LD documents sent on create."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

SCHEMA_FILES_BASE_URL = "https://schema.affinidi.com"
SCHEMA_NAME_RE = re.compile(r"^[0-9a-zA-Z]+$")

PUBLIC = "public"
UNLISTED = "unlisted"


@dataclass(frozen=True)
class SchemaIdOptions:
    schema_type: str
    version: int
    revision: int
    namespace: str | None = None


def is_valid_schema_name(name: str) -> bool:
    return bool(SCHEMA_NAME_RE.match(name))


def generate_schema_id(options: SchemaIdOptions) -> str:
    base = f"{options.schema_type}V{options.version}-{options.revision}"
    if options.namespace:
        return f"{base}@{options.namespace}"
    return base


def generate_schema_files_metadata(base_url: str, schema_id: str) -> tuple[str, str]:
    root = base_url.rstrip("/")
    return f"{root}/{schema_id}.json", f"{root}/{schema_id}.jsonld"


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return "string"


def _property_schema(value: Any) -> dict[str, Any]:
    # Properties may be given as JSON Schema fragments or as example values.
    if isinstance(value, dict) and isinstance(value.get("type"), str):
        return dict(value)
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {key: _property_schema(item) for key, item in value.items()},
        }
    return {"type": _json_type(value)}


def build_json_schema(
    *,
    schema_id: str,
    schema_type: str,
    description: str,
    json_schema_url: str,
    json_ld_context_url: str,
    version: int,
    revision: int,
    credential_subject: dict[str, Any],
) -> dict[str, Any]:
    subject_properties = {
        key: _property_schema(value) for key, value in credential_subject.items()
    }
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "$id": json_schema_url,
        "$metadata": {
            "version": version,
            "revision": revision,
            "discoverable": True,
            "uris": {"jsonLdContext": json_ld_context_url, "jsonSchema": json_schema_url},
        },
        "title": schema_id,
        "description": description,
        "type": "object",
        "required": ["credentialSubject"],
        "properties": {
            "credentialSubject": {
                "type": "object",
                "properties": subject_properties,
                "required": sorted(subject_properties),
            }
        },
        "additionalProperties": True,
        "x-type": schema_type,
    }


def build_json_ld_context(
    *,
    schema_type: str,
    json_ld_context_url: str,
    credential_subject: dict[str, Any],
) -> dict[str, Any]:
    fields = {
        key: {"@id": f"schema-id:{key}", "@type": "xsd:string"}
        for key in credential_subject
    }
    return {
        "@context": {
            schema_type: {
                "@id": json_ld_context_url,
                "@context": {
                    "@version": 1.1,
                    "@protected": True,
                    "schema-id": f"{json_ld_context_url}#",
                    "xsd": "http://www.w3.org/2001/XMLSchema#",
                    **fields,
                },
            }
        }
    }
