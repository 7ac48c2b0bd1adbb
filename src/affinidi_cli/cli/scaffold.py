"""Reference application download and project wiring for `generate-application`."""

from __future__ import annotations

import logging
import secrets
import shutil
import subprocess
import tempfile
from enum import Enum
from pathlib import Path

from affinidi_cli.errors import CliError, InvalidUseCase, NotSupportedPlatform, Unauthorized

logger = logging.getLogger(__name__)

SERVICE = "reference-app"

PORTABLE_REP_GITHUB = "https://github.com/affinidi/reference-app-portable-rep.git"
REFERENCE_APP_GITHUB = (
    "https://github.com/affinidi/reference-app-certification-and-verification.git"
)

_SHARED_API_URLS = [
    "CLOUD_WALLET_API_URL=https://cloud-wallet-api.prod.affinity-project.org/api",
    "AFFINIDI_IAM_API_URL=https://affinidi-iam.apse1.affinidi.com/api",
    "VERIFIER_API_URL=https://affinity-verifier.prod.affinity-project.org/api",
    "ISSUANCE_API_URL=https://console-vc-issuance.apse1.affinidi.com/api",
]


class Platform(str, Enum):
    WEB = "web"
    MOBILE = "mobile"


class UseCase(str, Enum):
    GAMING = "gaming"
    CAREER = "career"
    ACCESS_WITHOUT_OWNERSHIP_OF_DATA = "access-without-ownership-of-data"
    HEALTH = "health"
    EDUCATION = "education"
    TICKETING = "ticketing"
    KYC_KYB = "kyc-kyb"


DOWNLOADABLE_USE_CASES = {
    UseCase.HEALTH.value,
    UseCase.EDUCATION.value,
    UseCase.TICKETING.value,
    UseCase.GAMING.value,
    UseCase.CAREER.value,
}
PENDING_USE_CASES = {UseCase.ACCESS_WITHOUT_OWNERSHIP_OF_DATA.value, UseCase.KYC_KYB.value}


def is_portable_reputation_app(use_case: str) -> bool:
    return use_case in (UseCase.CAREER.value, UseCase.GAMING.value)


def clone_repository(git_url: str, destination: Path, *, subdirectory: str) -> None:
    if destination.exists():
        raise CliError(f"destination already exists: {destination}", 0, SERVICE)
    with tempfile.TemporaryDirectory(prefix="affinidi-app-") as tmp:
        checkout = Path(tmp) / "repo"
        logger.debug("cloning %s", git_url)
        try:
            subprocess.run(
                ["git", "clone", "--depth", "1", git_url, str(checkout)],
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise CliError("git executable not found", 0, SERVICE) from exc
        except subprocess.CalledProcessError as exc:
            raise CliError((exc.stderr or str(exc)).strip(), 0, SERVICE) from exc
        source = checkout / subdirectory
        if not source.is_dir():
            raise CliError(f"{subdirectory} not found in {git_url}", 0, SERVICE)
        shutil.copytree(source, destination)


def download(use_case: str, destination: Path) -> None:
    git_url = PORTABLE_REP_GITHUB if is_portable_reputation_app(use_case) else REFERENCE_APP_GITHUB
    try:
        clone_repository(git_url, destination, subdirectory=f"use-cases/{use_case}")
    except CliError as exc:
        raise CliError(f"Download Failed: {exc.message}", 0, SERVICE) from exc


def _fake_jwt_secret() -> str:
    return secrets.token_urlsafe(32)


def env_lines(use_case: str, *, api_key: str, project_did: str, project_id: str) -> list[str]:
    if is_portable_reputation_app(use_case):
        lines = [
            "# frontend-only envs",
            "NEXT_PUBLIC_HOST=http://localhost:3000",
            "",
            "# backend-only envs",
            "LOG_LEVEL=debug",
            "",
            "NEXTAUTH_URL=http://localhost:3000",
            f"AUTH_JWT_SECRET={_fake_jwt_secret()}",
            "",
            *_SHARED_API_URLS,
            "",
            f"PROJECT_ID={project_id}",
            f"PROJECT_DID={project_did}",
            f"API_KEY_HASH={api_key}",
            "",
        ]
        if use_case == UseCase.CAREER.value:
            return lines + ["GITHUB_APP_CLIENT_ID=", "GITHUB_APP_CLIENT_SECRET="]
        return lines + [
            "## data providers",
            "BATTLENET_CLIENT_ID=",
            "BATTLENET_CLIENT_SECRET=",
            "BATTLENET_ISSUER=https://eu.battle.net/oauth",
            "BATTLENET_REGION=eu",
        ]

    return [
        "# frontend-only envs",
        "NEXT_PUBLIC_HOST=http://localhost:3000",
        "",
        "ISSUANCE_API_URL=https://console-vc-issuance.apse1.affinidi.com/api",
        "VERIFIER_API_URL=https://affinity-verifier.prod.affinity-project.org/api",
        "CLOUD_WALLET_API_URL=https://cloud-wallet-api.prod.affinity-project.org/api",
        "",
        "ISSUER_LOGIN=issuer@affinidi.com",
        "ISSUER_PASSWORD=test",
        "",
        f"ISSUER_API_KEY_HASH={api_key}",
        f"ISSUER_PROJECT_DID={project_did}",
        f"ISSUER_PROJECT_ID={project_id}",
    ]


def set_up_project(
    app_dir: Path,
    use_case: str,
    *,
    api_key: str,
    project_did: str,
    project_id: str,
) -> Path:
    if not api_key or not project_did or not project_id:
        raise CliError(Unauthorized, 0, SERVICE)
    env_path = app_dir / ".env"
    lines = env_lines(use_case, api_key=api_key, project_did=project_did, project_id=project_id)
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def check_generation_request(platform: str, use_case: str) -> None:
    if platform == Platform.MOBILE.value:
        raise CliError(NotSupportedPlatform, 0, SERVICE)
    if use_case not in DOWNLOADABLE_USE_CASES | PENDING_USE_CASES:
        raise CliError(f"Failed to generate an application: {InvalidUseCase}", 0, SERVICE)


def next_steps_message(name: str, app_path: Path, use_case: str) -> str:
    return "\n".join(
        [
            f"Successfully generated {name} ({use_case}) at {app_path}",
            "",
            "Next steps:",
            f"  $ cd {name}",
            "  $ npm install",
            "  $ npm run dev",
            "",
            "Then open http://localhost:3000 in your browser.",
        ]
    )
