"""Persisted and wire models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ApiKey(_WireModel):
    api_key_hash: str = ""
    api_key_name: Optional[str] = None


class Wallet(_WireModel):
    did: str = ""
    did_url: Optional[str] = None


class Project(_WireModel):
    project_id: str
    name: str = ""
    created_at: Optional[str] = None


class ProjectSummary(_WireModel):
    api_key: ApiKey
    wallet: Wallet
    project: Project


class Account(_WireModel):
    user_id: str
    label: str = ""
    email: str = ""


class Session(_WireModel):
    account: Account
    access_token: str
