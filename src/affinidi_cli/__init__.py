"""Affinidi CLI public surface."""

from affinidi_cli.analytics import AnalyticsService, build_event
from affinidi_cli.classify import classify, error_to_json, get_error_output
from affinidi_cli.client import (
    AnalyticsClient,
    IamClient,
    SchemaManagerClient,
    UserManagementClient,
)
from affinidi_cli.config_store import (
    ConfigService,
    FileConfigStorer,
    MemoryConfigStorer,
    OptIn,
    UserConfig,
)
from affinidi_cli.errors import (
    CliError,
    ConfigError,
    ServiceRequestError,
    ServiceUnavailableError,
)
from affinidi_cli.models import Account, ProjectSummary, Session
from affinidi_cli.schemas import SchemaIdOptions, generate_schema_id
from affinidi_cli.session import SessionResolver
from affinidi_cli.vault import FileVaultStorer, MemoryVaultStorer, VaultService

__all__ = [
    "CliError",
    "ConfigError",
    "ServiceRequestError",
    "ServiceUnavailableError",
    "classify",
    "error_to_json",
    "get_error_output",
    "ConfigService",
    "FileConfigStorer",
    "MemoryConfigStorer",
    "OptIn",
    "UserConfig",
    "VaultService",
    "FileVaultStorer",
    "MemoryVaultStorer",
    "SessionResolver",
    "Account",
    "ProjectSummary",
    "Session",
    "IamClient",
    "UserManagementClient",
    "SchemaManagerClient",
    "AnalyticsClient",
    "AnalyticsService",
    "build_event",
    "SchemaIdOptions",
    "generate_schema_id",
]
