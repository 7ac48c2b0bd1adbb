"""Service instances shared by the commands of one CLI invocation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from affinidi_cli.analytics import AnalyticsService
from affinidi_cli.cli.config import CLISettings
from affinidi_cli.client import (
    AnalyticsClient,
    IamClient,
    SchemaManagerClient,
    UserManagementClient,
)
from affinidi_cli.config_store import (
    ConfigService,
    ConfigStorer,
    FileConfigStorer,
    MemoryConfigStorer,
)
from affinidi_cli.session import SessionResolver
from affinidi_cli.vault import FileVaultStorer, MemoryVaultStorer, VaultService, VaultStorer


class RunMode(str, Enum):
    PRODUCTION = "production"
    TEST = "test"


@dataclass
class CLIServices:
    settings: CLISettings
    vault: VaultService
    config: ConfigService
    session: SessionResolver
    iam: IamClient
    user_management: UserManagementClient
    schema_manager: SchemaManagerClient
    analytics: AnalyticsService


def build_vault_service(run_mode: RunMode, settings: CLISettings) -> VaultService:
    storer: VaultStorer
    if run_mode is RunMode.TEST:
        storer = MemoryVaultStorer()
    else:
        storer = FileVaultStorer(settings.credentials_path)
    return VaultService(storer)


def build_services(settings: CLISettings, run_mode: RunMode = RunMode.PRODUCTION) -> CLIServices:
    vault = build_vault_service(run_mode, settings)
    session = SessionResolver(vault)

    config_storer: ConfigStorer
    if run_mode is RunMode.TEST:
        config_storer = MemoryConfigStorer()
    else:
        config_storer = FileConfigStorer(settings.config_path)
    config = ConfigService(config_storer, session_user_id=session.session_user_id)

    timeout = settings.http_timeout
    return CLIServices(
        settings=settings,
        vault=vault,
        config=config,
        session=session,
        iam=IamClient(base_url=settings.iam_url, timeout=timeout),
        user_management=UserManagementClient(
            base_url=settings.user_management_url, timeout=timeout
        ),
        schema_manager=SchemaManagerClient(base_url=settings.schema_manager_url, timeout=timeout),
        analytics=AnalyticsService(
            AnalyticsClient(base_url=settings.analytics_url, timeout=timeout), config
        ),
    )
