from __future__ import annotations

import base64
import copy
import io
import json

import pytest

from affinidi_cli.cli.config import CLISettings
from affinidi_cli.cli.main import main
from affinidi_cli.cli.services import RunMode, build_services
from affinidi_cli.models import ProjectSummary

PROJECT_SUMMARY = {
    "apiKey": {"apiKeyHash": "hash-123", "apiKeyName": "default"},
    "wallet": {"did": "did:elem:abc", "didUrl": "https://wallet.example/did"},
    "project": {"projectId": "proj-1", "name": "demo", "createdAt": "2022-01-01T00:00:00Z"},
}


def make_jwt(claims: dict) -> str:
    def encode(obj: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()

    return f"{encode({'alg': 'none'})}.{encode(claims)}.sig"


class RecordingAnalyticsClient:
    def __init__(self) -> None:
        self.events: list[dict] = []

    def send_event(self, event: dict) -> None:
        self.events.append(event)


@pytest.fixture
def project_summary() -> dict:
    return copy.deepcopy(PROJECT_SUMMARY)


@pytest.fixture
def services(tmp_path):
    built = build_services(CLISettings(home_dir=str(tmp_path)), RunMode.TEST)
    built.analytics.client = RecordingAnalyticsClient()
    return built


@pytest.fixture
def signed_in(services):
    token = make_jwt({"userId": "user-1", "username": "dev@example.com", "exp": 4_102_444_800})
    services.session.create_session("dev@example.com", "user-1", token)
    services.config.create_or_update("user-1")
    return services


@pytest.fixture
def with_project(signed_in, project_summary):
    signed_in.vault.set_active_project(ProjectSummary.model_validate(project_summary))
    signed_in.config.set_current_project_id("proj-1")
    return signed_in


@pytest.fixture
def run_cli(services):
    def _run(*argv: str) -> tuple[int, str, str]:
        out = io.StringIO()
        err = io.StringIO()
        rc = main(list(argv), stdout=out, stderr=err, services=services)
        return rc, out.getvalue(), err.getvalue()

    return _run
