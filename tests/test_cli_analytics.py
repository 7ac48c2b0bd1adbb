from __future__ import annotations

import pytest

from affinidi_cli.errors import NoConfigFile, ServiceUnavailableError


def test_opt_in_explicitly(signed_in, run_cli) -> None:
    rc, out, _ = run_cli("analytics", "true")

    assert rc == 0
    assert out == "You have opted in to analytics\n"
    assert signed_in.config.has_analytics_opt_in() is True


def test_opt_out_explicitly(signed_in, run_cli) -> None:
    run_cli("analytics", "true")

    rc, out, _ = run_cli("analytics", "false")

    assert rc == 0
    assert out == "You have not opted in to analytics\n"
    assert signed_in.config.has_analytics_opt_in() is False


def test_opt_in_without_config_file(services, run_cli) -> None:
    rc, out, err = run_cli("analytics", "true")

    assert rc == 1
    assert out == ""
    assert err == f"{NoConfigFile}\n"


def test_prompted_consent_sends_enabled_event(signed_in, run_cli, monkeypatch) -> None:
    monkeypatch.setattr("affinidi_cli.cli.prompts.analytics_consent_prompt", lambda: True)

    rc, out, _ = run_cli("analytics")

    assert rc == 0
    assert out == "You have opted in to analytics\n"
    events = signed_in.analytics.client.events
    assert [event["name"] for event in events] == ["CLI_ANALYTICS_ENABLED"]
    assert events[0]["uuid"] == "user-1"
    assert events[0]["metadata"]["commandId"] == "affinidi.analytics"


def test_prompted_refusal_still_reports_choice(signed_in, run_cli, monkeypatch) -> None:
    monkeypatch.setattr("affinidi_cli.cli.prompts.analytics_consent_prompt", lambda: False)

    rc, out, _ = run_cli("analytics")

    assert rc == 0
    assert out == "You have not opted in to analytics\n"
    assert [event["name"] for event in signed_in.analytics.client.events] == [
        "CLI_ANALYTICS_DISABLED"
    ]


def test_existing_choice_is_not_prompted_again(signed_in, run_cli, monkeypatch) -> None:
    signed_in.config.opt_in_or_out(True)

    def never():
        pytest.fail("consent prompt should not be shown")

    monkeypatch.setattr("affinidi_cli.cli.prompts.analytics_consent_prompt", never)

    rc, out, _ = run_cli("analytics")

    assert rc == 0
    assert out == "You have opted in to analytics\n"


def test_opted_in_commands_emit_events(with_project, run_cli) -> None:
    with_project.config.opt_in_or_out(True)

    class Schemas:
        def search(self, **kwargs):  # noqa: ANN003
            return []

    with_project.schema_manager = Schemas()

    rc, _, _ = run_cli("list", "schemas", "-o", "json")

    assert rc == 0
    events = with_project.analytics.client.events
    assert events[-1]["name"] == "VC_SCHEMAS_SEARCHED"
    assert events[-1]["metadata"]["isAffinidiUser"] is False


def test_analytics_failure_does_not_fail_command(with_project, run_cli) -> None:
    with_project.config.opt_in_or_out(True)

    class BrokenAnalytics:
        def send_event(self, event):  # noqa: ANN001
            raise ServiceUnavailableError("analytics down", service="analytics")

    class Schemas:
        def search(self, **kwargs):  # noqa: ANN003
            return []

    with_project.analytics.client = BrokenAnalytics()
    with_project.schema_manager = Schemas()

    rc, out, err = run_cli("list", "schemas", "-o", "json")

    assert rc == 0
    assert out == "[]\n"
    assert "analytics event VC_SCHEMAS_SEARCHED not sent" in err
