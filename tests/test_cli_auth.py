from __future__ import annotations

import base64
import json

import pytest

from affinidi_cli.errors import (
    Conflict,
    InvalidOrExpiredOTPError,
    ServiceRequestError,
    SignoutError,
    Unauthorized,
    WrongEmailError,
)


def make_jwt(claims: dict) -> str:
    def encode(obj: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()

    return f"{encode({'alg': 'none'})}.{encode(claims)}.sig"


class FakeUserManagement:
    def __init__(self, *, session_token: str | None = None, confirm_error=None, sign_up_error=None):
        self.session_token = session_token or make_jwt({"userId": "user-42"})
        self.confirm_error = confirm_error
        self.sign_up_error = sign_up_error
        self.calls: list[tuple[str, tuple]] = []

    def sign_up(self, email):  # noqa: ANN001
        self.calls.append(("sign_up", (email,)))
        if self.sign_up_error:
            raise self.sign_up_error
        return "signup-token"

    def login(self, email):  # noqa: ANN001
        self.calls.append(("login", (email,)))
        return "login-token"

    def confirm_and_get_token(self, token, code, kind):  # noqa: ANN001
        self.calls.append(("confirm", (token, code, kind)))
        if self.confirm_error:
            raise self.confirm_error
        return self.session_token

    def me(self, token):  # noqa: ANN001
        self.calls.append(("me", (token,)))
        return {"userId": "user-from-me"}

    def logout(self, token):  # noqa: ANN001
        self.calls.append(("logout", (token,)))


@pytest.fixture
def answers(monkeypatch):
    monkeypatch.setattr("affinidi_cli.cli.prompts.accept_conditions_and_policy", lambda: "y")
    monkeypatch.setattr("affinidi_cli.cli.prompts.enter_otp_prompt", lambda: "123456")
    monkeypatch.setattr("affinidi_cli.cli.prompts.confirm_sign_out", lambda: "y")


def test_sign_up_creates_session_and_config(services, run_cli, answers) -> None:
    fake = FakeUserManagement()
    services.user_management = fake

    rc, out, err = run_cli("sign-up", "dev@example.com")

    assert rc == 0, err
    assert out == "Welcome to affinidi dev@example.com\n"
    assert ("confirm", ("signup-token", "123456", "signup")) in fake.calls
    assert services.session.is_authenticated() is True
    assert services.session.get_session().account.user_id == "user-42"
    assert services.config.get_current_user() == "user-42"
    assert services.config.get_version() == 1


def test_sign_up_uses_me_for_opaque_tokens(services, run_cli, answers) -> None:
    fake = FakeUserManagement(session_token="opaque-token")
    services.user_management = fake

    rc, _, _ = run_cli("sign-up", "dev@example.com")

    assert rc == 0
    assert ("me", ("opaque-token",)) in fake.calls
    assert services.config.get_current_user() == "user-from-me"


def test_sign_up_reprompts_for_email_then_gives_up(services, run_cli, answers, monkeypatch) -> None:
    fake = FakeUserManagement()
    services.user_management = fake
    prompted: list[int] = []

    def bad_email() -> str:
        prompted.append(1)
        return "not-an-email"

    monkeypatch.setattr("affinidi_cli.cli.prompts.enter_email_prompt", bad_email)

    rc, _, err = run_cli("sign-up", "also-bad")

    assert rc == 1
    assert err == f"{WrongEmailError}\n"
    assert len(prompted) == 3
    assert fake.calls == []


def test_sign_up_accepts_corrected_email(services, run_cli, answers, monkeypatch) -> None:
    services.user_management = FakeUserManagement()
    monkeypatch.setattr("affinidi_cli.cli.prompts.enter_email_prompt", lambda: "dev@example.com")

    rc, out, _ = run_cli("sign-up", "typo")

    assert rc == 0
    assert "dev@example.com" in out


def test_sign_up_declined_terms(services, run_cli, monkeypatch) -> None:
    fake = FakeUserManagement()
    services.user_management = fake
    monkeypatch.setattr("affinidi_cli.cli.prompts.accept_conditions_and_policy", lambda: "n")

    rc, out, _ = run_cli("sign-up", "dev@example.com")

    assert rc == 0
    assert out == ""
    assert fake.calls == []


def test_sign_up_wrong_code(services, run_cli, answers) -> None:
    services.user_management = FakeUserManagement(
        confirm_error=ServiceRequestError("bad otp", status_code=400, service="userManagement")
    )

    rc, _, err = run_cli("sign-up", "dev@example.com")

    assert rc == 1
    assert err == f"{InvalidOrExpiredOTPError}\n"
    assert services.session.is_authenticated() is False


def test_sign_up_existing_email(services, run_cli, answers) -> None:
    services.user_management = FakeUserManagement(
        sign_up_error=ServiceRequestError("exists", status_code=409, service="userManagement")
    )

    rc, _, err = run_cli("sign-up", "dev@example.com")

    assert rc == 1
    assert err == f"{Conflict}\n"


def test_sign_up_keeps_existing_opt_in(services, run_cli, answers) -> None:
    services.user_management = FakeUserManagement()
    services.config.create_or_update("user-42", True)

    rc, _, _ = run_cli("sign-up", "dev@example.com")

    assert rc == 0
    assert services.config.has_analytics_opt_in() is True


def test_login(services, run_cli, answers) -> None:
    fake = FakeUserManagement()
    services.user_management = fake

    rc, out, _ = run_cli("login", "dev@example.com")

    assert rc == 0
    assert out == "You are authenticated as: dev@example.com\n"
    assert ("confirm", ("login-token", "123456", "login")) in fake.calls
    assert services.session.is_authenticated() is True


def test_logout_clears_credentials(signed_in, run_cli, answers) -> None:
    fake = FakeUserManagement()
    signed_in.user_management = fake

    rc, out, _ = run_cli("logout")

    assert rc == 0
    assert out == "Thank you for using Affinidi\n"
    assert fake.calls[0][0] == "logout"
    assert signed_in.session.is_authenticated() is False


def test_logout_failure_keeps_credentials(signed_in, run_cli, answers) -> None:
    class FailingLogout(FakeUserManagement):
        def logout(self, token):  # noqa: ANN001
            raise ServiceRequestError("nope", status_code=502, service="userManagement")

    signed_in.user_management = FailingLogout()

    rc, _, err = run_cli("logout")

    assert rc == 1
    assert err == f"{SignoutError}\n"
    assert signed_in.session.is_authenticated() is True


def test_logout_requires_login(services, run_cli, answers) -> None:
    rc, _, err = run_cli("logout")

    assert rc == 1
    assert err == f"{Unauthorized}\n"
