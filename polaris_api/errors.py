"""Application error kinds and their wire codes.

Every error that crosses a service boundary is an ``AppError``. The HTTP layer
renders it as ``{code, message, timestamp}`` with the status carried by the
error class.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Numeric error codes returned in the ``code`` field of responses."""

    SUCCESS = 0

    # Generic errors 1000-1999
    PARAM_ERROR = 1001
    UNAUTHORIZED = 1002
    NOT_FOUND = 1003
    CONFLICT = 1004
    PERMISSION_DENIED = 1005

    # Server errors 2000-2999
    INTERNAL_ERROR = 2001
    DATABASE_ERROR = 2002
    UPSTREAM_TIMEOUT = 2004
    EXTERNAL_SERVICE_ERROR = 2005

    # Business errors 3000-3999
    USER_NOT_FOUND = 3001
    INVALID_TOKEN = 3002
    TOKEN_EXPIRED = 3003


class AppError(Exception):
    """Base class for classified application errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    http_status: int = 500
    default_message: str = "internal server error"

    def __init__(self, message: str | None = None, *, code: ErrorCode | None = None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"[{int(self.code)}] {self.message}: {self.__cause__}"
        return f"[{int(self.code)}] {self.message}"


class ValidationError(AppError):
    """Bad input from the caller."""

    code = ErrorCode.PARAM_ERROR
    http_status = 400
    default_message = "invalid parameters"


class AuthenticationError(AppError):
    """Missing, bad or expired credentials."""

    code = ErrorCode.UNAUTHORIZED
    http_status = 401
    default_message = "unauthorized"


class ExternalAuthError(AuthenticationError):
    """The identity provider refused the login code or could not be reached."""

    default_message = "wechat login failed"


class TokenError(AuthenticationError):
    """Session token verification failure.

    The message is identical for every subclass so a caller cannot tell a
    forged token from an expired one, or learn anything about the subject.
    """

    code = ErrorCode.INVALID_TOKEN
    default_message = "invalid or expired session"

    def __init__(self) -> None:
        super().__init__()


class InvalidSignatureError(TokenError):
    """Token signature does not match the service secret."""


class MalformedTokenError(TokenError):
    """Token cannot be parsed or lacks required claims."""


class TokenExpiredError(TokenError):
    """Token expiry has elapsed."""

    code = ErrorCode.TOKEN_EXPIRED


class PermissionDeniedError(AppError):
    code = ErrorCode.PERMISSION_DENIED
    http_status = 403
    default_message = "permission denied"


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    http_status = 404
    default_message = "resource not found"


class UserNotFoundError(NotFoundError):
    code = ErrorCode.USER_NOT_FOUND
    default_message = "user not found"


class ConflictError(AppError):
    """A uniqueness constraint was violated (retryable for the login race)."""

    code = ErrorCode.CONFLICT
    http_status = 409
    default_message = "data conflict"


class InternalError(AppError):
    pass


class StorageError(AppError):
    code = ErrorCode.DATABASE_ERROR
    default_message = "storage error"


class UpstreamTimeoutError(AppError):
    """A collaborator call did not finish within its timeout."""

    code = ErrorCode.UPSTREAM_TIMEOUT
    default_message = "upstream call timed out"


class ExternalServiceError(AppError):
    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    default_message = "external service error"
