"""CLI error types and user-facing message templates."""

from __future__ import annotations

_PLEASE_TRY_AGAIN = "Please try again later."
_SOMETHING_WENT_WRONG = f"Something went wrong. {_PLEASE_TRY_AGAIN}"

WrongEmailError = "Invalid email address entered"
ServiceDownError = _SOMETHING_WENT_WRONG
InvalidOrExpiredOTPError = "The confirmation code entered is either invalid or expired"
SignoutError = f"There was an error while trying to sign-out. {_PLEASE_TRY_AGAIN}"
Unauthorized = (
    "You are not authorized to perform this action. Please try to log-in, sign-up or make "
    "sure you have an active project"
)
notFoundProject = "Please provide an existing project ID or activate a project."
issuanceBadRequest = (
    "Please check that your json file content is in the right structure as in the schema."
)
WrongSchemaFileType = "Please provide a valid file directory with the right extension (.json)."
JsonFileSyntaxError = "Please check syntax of json file and try again."
NotFoundEmail = (
    "Please enter the email address you signed-up with or sign-up if you don't have an account."
)
Conflict = "This email has already been registered, please use the login command."
verifierBadRequest = "Please make sure that the VC is valid."
schemaBadRequest = "Please make sure to provide a valid schema credential subject."
notFoundSchema = "Please provide an existing schema ID."
InvalidSchemaName = "Please, enter a schema name using only alpha numeric characters"
NotSupportedPlatform = "This platform is not supported."
InvalidUseCase = "Invalid use-case"
NoUserConfigFound = (
    "No user configurations were found, to create a configuration please log-in again."
)
NoConfigFile = "The config file doesn't exist, please log-in again"
UnsupportedConfig = "Unsupported configuration version"
UnknownOutputFormat = "Unknown output format"


class CliError(Exception):
    """Error surfaced to the user through the error classifier.

    ``code`` is the HTTP status that caused the error, or ``0`` for errors
    raised locally before any network call. ``service`` tags the remote API
    (``iAm``, ``userManagement``, ``schema``...) and selects the message
    template for 400 and 404 responses. A non-empty ``missing_args`` list marks a
    command usage error and takes precedence over ``code``.
    """

    def __init__(
        self,
        message: str,
        code: int = 0,
        service: str = "",
        *,
        missing_args: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.service = service
        self.missing_args = missing_args

    def __str__(self) -> str:
        return self.message


class ServiceRequestError(CliError):
    """Remote service returned an HTTP error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        service: str,
        detail: object | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message, status_code, service)
        self.status_code = status_code
        self.detail = detail
        self.body = body


class ServiceUnavailableError(CliError):
    """Remote service could not be reached."""

    def __init__(self, message: str, *, service: str) -> None:
        super().__init__(message, 0, service)


class ConfigError(CliError):
    """Local configuration document is missing or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 0, "config")
