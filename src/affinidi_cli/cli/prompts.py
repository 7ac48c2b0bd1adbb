"""Interactive prompts used by the commands."""

from __future__ import annotations

import getpass

ANSWER_YES = "y"
ANSWER_NO = "n"

CONDITIONS_AND_POLICY_MESSAGE = (
    "Please confirm that you agree with the Affinidi Terms of Use and Privacy Policy "
    "(https://build.affinidi.com/dev-tools/terms-of-use.pdf, "
    "https://build.affinidi.com/dev-tools/privacy-notice.pdf) [y/n]"
)


def _prompt(text: str, *, default: str | None = None, required: bool = False) -> str:
    suffix = f" [{default}]" if default is not None else ""
    while True:
        answer = input(f"{text}{suffix}: ").strip()
        if not answer and default is not None:
            return default
        if answer or not required:
            return answer


def enter_email_prompt(text: str = "Enter your email address") -> str:
    return _prompt(text, required=True)


def enter_otp_prompt() -> str:
    return getpass.getpass("Enter the confirmation code we emailed to you: ").strip()


def confirm_sign_out() -> str:
    return _prompt("Please confirm that you want to sign-out from Affinidi [y/n]", default="y")


def accept_conditions_and_policy() -> str:
    return _prompt(CONDITIONS_AND_POLICY_MESSAGE, default=ANSWER_NO)


def project_name_prompt(text: str = "Please enter a project name") -> str:
    return _prompt(text, required=True)


def enter_schema_name(text: str = "Please enter a name for the schema to be created") -> str:
    return _prompt(text, required=True)


def analytics_consent_prompt(
    text: str = (
        "Help us make Affinidi CLI better! Do you accept to send anonymous usage data? [y/n]"
    ),
) -> bool:
    return _prompt(text, default=ANSWER_NO).lower() == ANSWER_YES


def select_project(choices: list[str]) -> int:
    """Print numbered choices and return the index picked by the user."""
    for index, choice in enumerate(choices, start=1):
        print(f"  {index}) {choice}")
    while True:
        answer = _prompt("select a project", required=True)
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return int(answer) - 1
