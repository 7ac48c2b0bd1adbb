"""Command-line interface for affinidi."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Sequence

from pydantic import ValidationError

from affinidi_cli.analytics import build_event, cli_version
from affinidi_cli.classify import error_to_json, get_error_output
from affinidi_cli.cli import prompts, scaffold
from affinidi_cli.cli.config import SettingsError, load_cli_settings
from affinidi_cli.cli.services import CLIServices, RunMode, build_services
from affinidi_cli.config_store import JSON, OUTPUT_FORMATS, PLAINTEXT, is_supported_version
from affinidi_cli.display import CSV, TABLE, Display, to_json
from affinidi_cli.errors import (
    CliError,
    ConfigError,
    InvalidSchemaName,
    JsonFileSyntaxError,
    SignoutError,
    Unauthorized,
    UnsupportedConfig,
    WrongEmailError,
    WrongSchemaFileType,
)
from affinidi_cli.models import ProjectSummary
from affinidi_cli.schemas import (
    PUBLIC,
    SCHEMA_FILES_BASE_URL,
    UNLISTED,
    SchemaIdOptions,
    build_json_ld_context,
    build_json_schema,
    generate_schema_files_metadata,
    generate_schema_id,
    is_valid_schema_name,
)
from affinidi_cli.session import decode_claims

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

MAX_EMAIL_ATTEMPT = 3
LIST_PROJECTS_LIMIT = 1000
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_REQUIRED_ARGS_RE = re.compile(r"the following arguments are required: (.+)")

OPTIN_MESSAGE = "You have opted in to analytics"
OPTOUT_MESSAGE = "You have not opted in to analytics"
NEXT_STEPS_MESSAGE = "\n\n".join(
    [
        "To start using the Affinidi services, you need to create a project to get an Api-Key.\n"
        "The Api-Key is required to access Affinidi's resources.",
        "To create your new project, use the command below:\n"
        "  $ affinidi create project PROJECT-NAME",
        "Replace PROJECT-NAME with your own project name.",
    ]
)

_SENSITIVE_FIELDS = (
    "sessionToken",
    "console_authtoken",
    "apiKeyHash",
    "api_key",
    "authorization",
    "password",
    "token",
)

_SCHEMA_COLUMNS = (
    ("index", "", False),
    ("id", "ID", False),
    ("description", "DESC", False),
    ("createdAt", "Created", True),
    ("parentId", "parent Id", True),
    ("authorDid", "author Did", True),
    ("version", "version", False),
    ("revision", "revision", True),
    ("type", "type", False),
    ("jsonSchemaUrl", "Schema Url", True),
)


@dataclass(frozen=True)
class CommandInfo:
    command: str
    usage: str
    description: str
    checks_config: bool = True


COMMANDS: dict[str, CommandInfo] = {
    info.command: info
    for info in (
        CommandInfo(
            "affinidi analytics",
            "analytics [ true | false ]",
            "Use this command to opt in or out of sending anonymous usage data",
        ),
        CommandInfo(
            "affinidi create schema",
            "create schema [schemaName] [FLAGS]",
            "Use this command to create a new Schema for a verifiable credential.",
        ),
        CommandInfo(
            "affinidi create project",
            "create project [projectName]",
            "Use this command to create a new project and make it the active one.",
        ),
        CommandInfo(
            "affinidi list schemas",
            "list schemas [FLAGS]",
            "Fetches and displays the schemas from the schema-manager.",
        ),
        CommandInfo(
            "affinidi show schema",
            "show schema [schema-id]",
            "Fetches the information of a specific schema.",
        ),
        CommandInfo(
            "affinidi show project",
            "show project [project-id]",
            "Fetches the information of a specific project.",
        ),
        CommandInfo(
            "affinidi use project",
            "use project [project-id]",
            "Use this command to set the active project.",
        ),
        CommandInfo(
            "affinidi config username",
            "config username [email] [--unset]",
            "Use this command to set or unset the username saved in the config.",
        ),
        CommandInfo(
            "affinidi config output",
            "config output [plaintext | json]",
            "Use this command to set the default output format.",
        ),
        CommandInfo(
            "affinidi sign-up",
            "sign-up [email]",
            "Use this command with your email address to create a new Affinidi account.",
            checks_config=False,
        ),
        CommandInfo(
            "affinidi login",
            "login [email]",
            "Use this command to log-in to your Affinidi account.",
            checks_config=False,
        ),
        CommandInfo(
            "affinidi logout",
            "logout",
            "Use this command to sign-out from Affinidi.",
            checks_config=False,
        ),
        CommandInfo(
            "affinidi generate-application",
            "generate-application [FLAGS]",
            "Use this command to generate a reference application for a use-case.",
        ),
    )
}


class CommandUsageError(Exception):
    """Raised by the parser instead of exiting on invalid command usage."""

    def __init__(self, parser: argparse.ArgumentParser, message: str) -> None:
        super().__init__(message)
        self.parser = parser
        self.message = message


class _CommandParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise CommandUsageError(self, message)


def _add_command(sub, name: str, command: str, **kwargs: Any) -> argparse.ArgumentParser:
    info = COMMANDS[command]
    return sub.add_parser(
        name,
        prog=info.command,
        help=info.description,
        description=info.description,
        **kwargs,
    )


def _add_output_flag(parser: argparse.ArgumentParser, choices: Sequence[str] = OUTPUT_FORMATS) -> None:
    parser.add_argument(
        "-o",
        "--output",
        choices=tuple(choices),
        default=None,
        help="Override the default output format",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = _CommandParser(prog="affinidi", description="Affinidi command-line interface")
    parser.add_argument(
        "--version",
        action="version",
        version=f"affinidi-cli {cli_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI settings TOML (default: ~/.affinidi/cli.toml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug details to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    analytics = _add_command(sub, "analytics", "affinidi analytics")
    analytics.add_argument("new_value", nargs="?", choices=("true", "false"), default=None)
    _add_output_flag(analytics)

    create = sub.add_parser("create", help="Create schemas and projects")
    create_sub = create.add_subparsers(dest="create_command", required=True)
    create_schema = _add_command(create_sub, "schema", "affinidi create schema")
    create_schema.add_argument("schema_name", nargs="?", default=None, metavar="schemaName")
    create_schema.add_argument(
        "-p",
        "--public",
        choices=("true", "false"),
        default="false",
        help="To specify if you want to create public or private schemas",
    )
    create_schema.add_argument(
        "-d", "--description", required=True, help="description of schema"
    )
    create_schema.add_argument(
        "-s", "--source", required=True, help="path to the json file with schema properties"
    )
    _add_output_flag(create_schema)
    create_project = _add_command(create_sub, "project", "affinidi create project")
    create_project.add_argument("name", nargs="?", default=None, metavar="projectName")
    _add_output_flag(create_project)

    list_cmd = sub.add_parser("list", help="List schemas")
    list_sub = list_cmd.add_subparsers(dest="list_command", required=True)
    list_schemas = _add_command(list_sub, "schemas", "affinidi list schemas")
    list_schemas.add_argument("-l", "--limit", type=int, default=10)
    list_schemas.add_argument("-s", "--skip", type=int, default=0)
    list_schemas.add_argument(
        "-c", "--scope", choices=("default", PUBLIC, UNLISTED), default="default"
    )
    list_schemas.add_argument("-p", "--public", choices=("true", "false"), default="true")
    list_schemas.add_argument("-o", "--output", choices=(CSV, JSON, TABLE), default=None)
    list_schemas.add_argument(
        "-x", "--extended", action="store_true", help="Show extra columns in table output"
    )

    show = sub.add_parser("show", help="Show schemas and projects")
    show_sub = show.add_subparsers(dest="show_command", required=True)
    show_schema = _add_command(show_sub, "schema", "affinidi show schema")
    show_schema.add_argument("schema_id", metavar="schema-id")
    show_schema.add_argument(
        "-s", "--show", choices=("info", "json", "jsonld"), default="info"
    )
    _add_output_flag(show_schema)
    show_project = _add_command(show_sub, "project", "affinidi show project")
    show_project.add_argument("project_id", nargs="?", default=None, metavar="project-id")
    show_project.add_argument("-a", "--active", action="store_true")
    _add_output_flag(show_project, (*OUTPUT_FORMATS, "json-file"))

    use = sub.add_parser("use", help="Activate a project")
    use_sub = use.add_subparsers(dest="use_command", required=True)
    use_project = _add_command(use_sub, "project", "affinidi use project")
    use_project.add_argument("project_id", nargs="?", default=None, metavar="project-id")
    _add_output_flag(use_project)

    config = sub.add_parser("config", help="Manage local configuration")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_username = _add_command(config_sub, "username", "affinidi config username")
    config_username.add_argument("username", nargs="?", default=None)
    config_username.add_argument("-u", "--unset", action="store_true")
    config_output = _add_command(config_sub, "output", "affinidi config output")
    config_output.add_argument("format", choices=OUTPUT_FORMATS)

    sign_up = _add_command(sub, "sign-up", "affinidi sign-up")
    sign_up.add_argument("email", nargs="?", default=None)

    login = _add_command(sub, "login", "affinidi login")
    login.add_argument("email", nargs="?", default=None)

    _add_command(sub, "logout", "affinidi logout")

    generate = _add_command(sub, "generate-application", "affinidi generate-application")
    generate.add_argument("-n", "--name", required=True, help="Name of the application")
    generate.add_argument(
        "-u",
        "--use-case",
        dest="use_case",
        required=True,
        choices=[use_case.value for use_case in scaffold.UseCase],
    )
    generate.add_argument(
        "-p",
        "--platform",
        choices=[platform.value for platform in scaffold.Platform],
        default=scaffold.Platform.WEB.value,
    )
    _add_output_flag(generate)

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf'(?i)({field}\s*[=:]\s*)([^,;\s"]+)',
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(r'(?i)([?&](?:token|api_key|apiKeyHash)=)([^&\s"]+)', r"\1[REDACTED]", redacted)
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _configure_logging(verbose: bool, stderr) -> None:
    package_logger = logging.getLogger("affinidi_cli")
    for handler in list(package_logger.handlers):
        if handler.get_name() == "affinidi_cli.stderr":
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler(stderr)
    handler.set_name("affinidi_cli.stderr")
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _info_for(parser: argparse.ArgumentParser) -> CommandInfo:
    info = COMMANDS.get(parser.prog)
    if info is not None:
        return info
    usage = parser.format_usage().strip()
    if usage.startswith("usage: "):
        usage = usage[len("usage: ") :]
    return CommandInfo(parser.prog, usage, parser.description or "")


def _usage_error(exc: CommandUsageError) -> CliError:
    match = _REQUIRED_ARGS_RE.search(exc.message)
    if match is None:
        return CliError(f"{exc.message}\n{exc.parser.format_usage().strip()}")
    missing = [{"name": name.strip()} for name in match.group(1).split(",")]
    return CliError(exc.message, missing_args=missing)


def _require_authenticated(services: CLIServices, service: str) -> None:
    if not services.session.is_authenticated():
        raise CliError(Unauthorized, 401, service)


def _require_active_project(services: CLIServices, service: str) -> ProjectSummary:
    active_project = services.vault.get_active_project()
    if active_project is None:
        raise CliError(Unauthorized, 403, service)
    return active_project


def _mask_secrets(summary: dict) -> dict:
    masked = json.loads(json.dumps(summary))
    api_key = masked.get("apiKey")
    if isinstance(api_key, dict) and api_key.get("apiKeyHash"):
        api_key["apiKeyHash"] = "*" * len(api_key["apiKeyHash"])
    wallet = masked.get("wallet")
    if isinstance(wallet, dict) and wallet.get("didUrl"):
        wallet["didUrl"] = "*" * len(wallet["didUrl"])
    return masked


def _select_project_id(services: CLIServices, token: str) -> str | None:
    projects = services.iam.list_projects(token, 0, LIST_PROJECTS_LIMIT)
    if not projects:
        return None
    width = max(len(str(project.get("name", ""))) for project in projects)
    choices = [
        f"{project.get('projectId')} {str(project.get('name', '')).ljust(width)} "
        f"{project.get('createdAt', '')}".rstrip()
        for project in projects
    ]
    return str(projects[prompts.select_project(choices)]["projectId"])


def _activate_project(services: CLIServices, raw_summary: dict) -> ProjectSummary:
    try:
        summary = ProjectSummary.model_validate(raw_summary)
    except ValidationError as exc:
        raise CliError(
            f"unexpected project summary: {exc.error_count()} invalid fields", 0, "iAm"
        ) from exc
    services.vault.set_active_project(summary)
    services.config.set_current_project_id(summary.project.project_id)
    return summary


def _run_analytics(*, args, services: CLIServices, display: Display) -> int:
    config = services.config
    if args.new_value is not None:
        wants_to_opt_in = args.new_value == "true"
        services.analytics.set_analytics_opt_in(wants_to_opt_in)
        display.output(OPTIN_MESSAGE if wants_to_opt_in else OPTOUT_MESSAGE, args.output)
        return EXIT_SUCCESS

    if config.has_opted_in_or_out():
        message = OPTIN_MESSAGE if config.has_analytics_opt_in() else OPTOUT_MESSAGE
        display.output(message, args.output)
        return EXIT_SUCCESS

    wants_to_opt_in = prompts.analytics_consent_prompt()
    services.analytics.set_analytics_opt_in(wants_to_opt_in)
    display.output(OPTIN_MESSAGE if wants_to_opt_in else OPTOUT_MESSAGE, args.output)

    account = services.session.get_session().account
    services.analytics.send_enabled_event(
        account.label, account.user_id, wants_to_opt_in, "affinidi.analytics"
    )
    return EXIT_SUCCESS


def _load_schema_properties(source: str) -> dict:
    try:
        properties = json.loads(Path(source).read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CliError(JsonFileSyntaxError, 0, "schema") from exc
    if not isinstance(properties, dict):
        raise CliError(JsonFileSyntaxError, 0, "schema")
    return properties


def _run_create_schema(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "schema")
    active_project = _require_active_project(services, "schema")
    api_key_hash = active_project.api_key.api_key_hash
    did = active_project.wallet.did
    account = services.session.get_session().account

    if args.source.split(".")[-1] != "json":
        raise CliError(WrongSchemaFileType, 0, "schema")

    schema_name = args.schema_name or prompts.enter_schema_name()
    if not is_valid_schema_name(schema_name):
        raise CliError(InvalidSchemaName, 0, "schema")
    credential_subject = _load_schema_properties(args.source)

    scope = PUBLIC if args.public == "true" else UNLISTED
    version, revision = services.schema_manager.generate_next_version(
        schema_type=schema_name, scope=scope, did=did, api_key=api_key_hash
    )
    options = SchemaIdOptions(
        schema_type=schema_name,
        version=version,
        revision=revision,
        namespace=did if scope == UNLISTED else None,
    )
    schema_id = generate_schema_id(options)
    json_schema_url, json_ld_context_url = generate_schema_files_metadata(
        SCHEMA_FILES_BASE_URL, schema_id
    )
    payload = {
        "jsonSchema": build_json_schema(
            schema_id=schema_id,
            schema_type=schema_name,
            description=args.description,
            json_schema_url=json_schema_url,
            json_ld_context_url=json_ld_context_url,
            version=version,
            revision=revision,
            credential_subject=credential_subject,
        ),
        "jsonLdContext": build_json_ld_context(
            schema_type=schema_name,
            json_ld_context_url=json_ld_context_url,
            credential_subject=credential_subject,
        ),
        "version": version,
        "revision": revision,
        "scope": scope,
        "type": schema_name,
        "authorDid": did,
        "description": args.description,
    }
    schema_info = services.schema_manager.create_schema(api_key_hash, payload)
    services.analytics.send(
        build_event(
            "VC_SCHEMA_CREATED",
            user_id=account.user_id,
            label=account.label,
            command_id="affinidi.createSchema",
            schemaId=(schema_info or {}).get("id"),
        )
    )
    display.output(to_json(schema_info), args.output)
    return EXIT_SUCCESS


def _run_list_schemas(*, args, services: CLIServices, display: Display) -> int:
    private = args.scope == UNLISTED or args.public == "false"
    authenticated = services.session.is_authenticated()
    if not authenticated and private:
        raise CliError(Unauthorized, 401, "schema")

    api_key_hash: str | None = None
    did: str | None = None
    if private:
        active_project = _require_active_project(services, "schema")
        api_key_hash = active_project.api_key.api_key_hash
        did = active_project.wallet.did

    schemas = services.schema_manager.search(
        scope=UNLISTED if args.public == "false" else args.scope,
        skip=args.skip,
        limit=args.limit,
        did=did,
        api_key=api_key_hash,
    )
    account = services.session.get_session().account if authenticated else None
    services.analytics.send(
        build_event(
            "VC_SCHEMAS_SEARCHED",
            user_id=account.user_id if account else "",
            label=account.label if account else "",
            command_id="affinidi.listSchemas",
        )
    )

    data = [
        {
            "index": index,
            "id": schema.get("id"),
            "parentId": schema.get("parentId"),
            "authorDid": schema.get("authorDid"),
            "description": schema.get("description"),
            "createdAt": schema.get("createdAt"),
            "type": schema.get("type"),
            "version": schema.get("version"),
            "revision": schema.get("revision"),
            "jsonSchemaUrl": schema.get("jsonSchemaUrl"),
        }
        for index, schema in enumerate(schemas)
    ]
    output_format = args.output
    if not output_format:
        output_format = TABLE if services.config.get_output_format() == PLAINTEXT else JSON
    display.rows(data, output_format, columns=_SCHEMA_COLUMNS, extended=args.extended)
    return EXIT_SUCCESS


def _run_show_schema(*, args, services: CLIServices, display: Display) -> int:
    schema_id = args.schema_id
    private = "@did:elem" in schema_id
    authenticated = services.session.is_authenticated()
    if not authenticated and private:
        raise CliError(Unauthorized, 401, "schema")

    api_key_hash = None
    if private:
        api_key_hash = _require_active_project(services, "schema").api_key.api_key_hash
    schema = services.schema_manager.get_by_id(schema_id, api_key_hash)

    account = services.session.get_session().account if authenticated else None
    services.analytics.send(
        build_event(
            "VC_SCHEMAS_READ",
            user_id=account.user_id if account else "",
            label=account.label if account else "",
            command_id="affinidi.showSchema",
            schemaId=schema.get("id"),
        )
    )

    if args.show == "json":
        display.output(str(schema.get("jsonSchemaUrl", "")), args.output)
    elif args.show == "jsonld":
        display.output(str(schema.get("jsonLdContextUrl", "")), args.output)
    else:
        display.output(to_json(schema), args.output)
    return EXIT_SUCCESS


def _run_show_project(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "iAm")
    token = services.session.get_session().access_token

    if args.active:
        active_project = services.vault.get_active_project()
        if active_project is None:
            display.output(NEXT_STEPS_MESSAGE)
            return EXIT_SUCCESS
        project_id = active_project.project.project_id
    elif args.project_id:
        project_id = args.project_id
    else:
        selected = _select_project_id(services, token)
        if selected is None:
            display.output(NEXT_STEPS_MESSAGE)
            return EXIT_SUCCESS
        project_id = selected

    summary = _mask_secrets(services.iam.get_project_summary(token, project_id))
    if args.output == "json-file":
        path = display.to_file(summary, "projects.json")
        display.output(f"Project details written to {path}")
        return EXIT_SUCCESS
    display.output(summary, args.output)
    return EXIT_SUCCESS


def _run_create_project(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "iAm")
    token = services.session.get_session().access_token
    name = args.name or prompts.project_name_prompt()

    project = services.iam.create_project(token, name)
    project_id = project.get("projectId")
    if not project_id:
        raise CliError("unexpected create project response: missing projectId", 0, "iAm")
    summary = services.iam.get_project_summary(token, str(project_id))
    _activate_project(services, summary)
    display.output(_mask_secrets(summary), args.output)
    return EXIT_SUCCESS


def _run_use_project(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "iAm")
    token = services.session.get_session().access_token
    project_id = args.project_id or _select_project_id(services, token)
    if project_id is None:
        display.output(NEXT_STEPS_MESSAGE)
        return EXIT_SUCCESS

    summary = services.iam.get_project_summary(token, project_id)
    _activate_project(services, summary)
    display.output(_mask_secrets(summary), args.output)
    return EXIT_SUCCESS


def _run_config_username(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "userManagement")
    if args.unset:
        services.config.set_username("")
        display.output("Your username is unset")
        return EXIT_SUCCESS
    if not args.username:
        raise CliError(
            "the following arguments are required: username",
            missing_args=[{"name": "username"}],
        )
    services.config.set_username(args.username)
    display.output("Your username is set")
    return EXIT_SUCCESS


def _run_config_output(*, args, services: CLIServices, display: Display) -> int:
    services.config.set_output_format(args.format)
    display.output(f"Your output format is set to {args.format}", args.format)
    return EXIT_SUCCESS


def _store_login(services: CLIServices, email: str, session_token: str) -> str:
    claims = decode_claims(session_token)
    user_id = str(claims.get("userId") or claims.get("sub") or "")
    if not user_id:
        user_id = str(services.user_management.me(session_token).get("userId") or "")
    services.session.create_session(email, user_id, session_token)
    services.config.create_or_update(user_id)
    return user_id


def _prompt_valid_email(email: str | None) -> str:
    candidate = email or prompts.enter_email_prompt()
    wrong_email_count = 0
    while not EMAIL_RE.match(candidate):
        if wrong_email_count == MAX_EMAIL_ATTEMPT:
            raise CliError(WrongEmailError, 0, "userManagement")
        candidate = prompts.enter_email_prompt()
        wrong_email_count += 1
    return candidate


def _run_sign_up(*, args, services: CLIServices, display: Display) -> int:
    email = _prompt_valid_email(args.email)

    if prompts.accept_conditions_and_policy().strip().lower() != prompts.ANSWER_YES:
        return EXIT_SUCCESS

    token = services.user_management.sign_up(email)
    confirmation_code = prompts.enter_otp_prompt()
    session_token = services.user_management.confirm_and_get_token(
        token, confirmation_code, "signup"
    )
    _store_login(services, email, session_token)
    display.output(f"Welcome to affinidi {email}")
    return EXIT_SUCCESS


def _run_login(*, args, services: CLIServices, display: Display) -> int:
    email = _prompt_valid_email(args.email)
    token = services.user_management.login(email)
    confirmation_code = prompts.enter_otp_prompt()
    session_token = services.user_management.confirm_and_get_token(
        token, confirmation_code, "login"
    )
    _store_login(services, email, session_token)
    display.output(f"You are authenticated as: {email}")
    return EXIT_SUCCESS


def _run_logout(*, args, services: CLIServices, display: Display) -> int:
    _require_authenticated(services, "userManagement")
    if prompts.confirm_sign_out().strip().lower() != prompts.ANSWER_YES:
        return EXIT_SUCCESS
    token = services.session.get_session().access_token
    try:
        services.user_management.logout(token)
    except CliError as exc:
        raise CliError(SignoutError, 0, "userManagement") from exc
    services.vault.clear()
    services.session.forget()
    display.output("Thank you for using Affinidi")
    return EXIT_SUCCESS


def _run_generate_application(*, args, services: CLIServices, display: Display) -> int:
    scaffold.check_generation_request(args.platform, args.use_case)
    _require_authenticated(services, scaffold.SERVICE)
    active_project = _require_active_project(services, scaffold.SERVICE)
    account = services.session.get_session().account

    portable = scaffold.is_portable_reputation_app(args.use_case)
    started = build_event(
        "APP_PORT_REP_GENERATION_STARTED" if portable else "APPLICATION_GENERATION_STARTED",
        user_id=account.user_id,
        label=account.label,
        command_id="affinidi.generate-application",
        appName=args.name,
    )

    if args.use_case in scaffold.PENDING_USE_CASES:
        display.output("Not implemented yet", args.output)
        return EXIT_SUCCESS

    app_dir = Path(args.name)
    try:
        scaffold.download(args.use_case, app_dir)
    except CliError as exc:
        raise CliError(
            f"Failed to generate an application: {exc.message}", 0, scaffold.SERVICE
        ) from exc
    services.analytics.send(started)

    display.output("Setting up the project", args.output)
    scaffold.set_up_project(
        app_dir,
        args.use_case,
        api_key=active_project.api_key.api_key_hash,
        project_did=active_project.wallet.did,
        project_id=active_project.project.project_id,
    )
    services.analytics.send(
        {
            **started,
            "name": (
                "APP_PORT_REP_GENERATION_COMPLETED"
                if portable
                else "APPLICATION_GENERATION_COMPLETED"
            ),
        }
    )
    display.output(
        scaffold.next_steps_message(args.name, app_dir.resolve(), args.use_case), args.output
    )
    return EXIT_SUCCESS


_Handler = Callable[..., int]

_HANDLERS: dict[tuple[str, str | None], _Handler] = {
    ("analytics", None): _run_analytics,
    ("create", "schema"): _run_create_schema,
    ("create", "project"): _run_create_project,
    ("list", "schemas"): _run_list_schemas,
    ("show", "schema"): _run_show_schema,
    ("show", "project"): _run_show_project,
    ("use", "project"): _run_use_project,
    ("config", "username"): _run_config_username,
    ("config", "output"): _run_config_output,
    ("sign-up", None): _run_sign_up,
    ("login", None): _run_login,
    ("logout", None): _run_logout,
    ("generate-application", None): _run_generate_application,
}


def _subcommand(args) -> str | None:
    return getattr(args, f"{args.command}_command", None)


def _command_info(args) -> CommandInfo:
    subcommand = _subcommand(args)
    path = f"affinidi {args.command}" + (f" {subcommand}" if subcommand else "")
    return COMMANDS[path]


def _report_error(
    exc: CliError,
    *,
    info: CommandInfo,
    output_flag: str | None,
    display: Display,
) -> int:
    logger.debug("%s failed: code=%s service=%s", info.command, exc.code, exc.service)
    output_format = display.resolve_format(output_flag if output_flag in OUTPUT_FORMATS else None)
    message = _sanitize_error_text(
        get_error_output(exc, info.command, info.usage, info.description)
    )
    if output_format == JSON and not exc.missing_args:
        message = error_to_json(message)
    display.output(message, output_format, err=True)
    return EXIT_FAILURE


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    services: CLIServices | None = None,
    run_mode: RunMode = RunMode.PRODUCTION,
) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except CommandUsageError as exc:
        info = _info_for(exc.parser)
        message = get_error_output(_usage_error(exc), info.command, info.usage, info.description)
        print(message, file=stderr)
        return EXIT_FAILURE

    _configure_logging(args.verbose, stderr)

    if services is None:
        try:
            settings = load_cli_settings(args.config)
        except SettingsError as exc:
            return _print_error(stderr, "config error", str(exc), code=EXIT_FAILURE)
        services = build_services(settings, run_mode)

    display = Display(services.config, stdout=stdout, stderr=stderr)
    info = _command_info(args)
    handler = _HANDLERS[(args.command, _subcommand(args))]
    output_flag = getattr(args, "output", None)

    try:
        if info.checks_config and not is_supported_version(services.config.get_version()):
            raise ConfigError(UnsupportedConfig)
        return handler(args=args, services=services, display=display)
    except CliError as exc:
        return _report_error(exc, info=info, output_flag=output_flag, display=display)
    except OSError as exc:
        error = CliError(f"{exc.strerror or exc}: {exc.filename}" if exc.filename else str(exc))
        return _report_error(error, info=info, output_flag=output_flag, display=display)


if __name__ == "__main__":
    raise SystemExit(main())
