"""Domain error taxonomy.

Every failure a caller may need to branch on is a distinct exception class
tagged with an :class:`ErrorKind`, so handlers never have to parse message
text. Messages are the Korean strings shown to users.
"""

from enum import StrEnum
from urllib.parse import quote


class ErrorKind(StrEnum):
    """Machine-readable error kinds returned as ``code`` in error bodies."""

    NOT_LOGGED_IN = "not_logged_in"
    NOT_ADMIN = "not_admin"
    NOT_MODERATOR = "not_moderator"
    INSUFFICIENT_PERMISSION = "insufficient_permission"
    USER_NOT_FOUND = "user_not_found"
    INVALID_ACTION = "invalid_action"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"


class VivversError(Exception):
    """Base class for domain errors."""

    kind: ErrorKind
    default_message: str = "알 수 없는 오류가 발생했습니다"
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorizationError(VivversError):
    """Base for errors raised by the auth/permission gate."""

    status_code = 403


class NotLoggedInError(AuthorizationError):
    kind = ErrorKind.NOT_LOGGED_IN
    default_message = "로그인이 필요합니다"
    status_code = 401


class NotAdminError(AuthorizationError):
    kind = ErrorKind.NOT_ADMIN
    default_message = "관리자 권한이 필요합니다"


class NotModeratorError(AuthorizationError):
    kind = ErrorKind.NOT_MODERATOR
    default_message = "모더레이터 이상의 권한이 필요합니다"


class InsufficientPermissionError(AuthorizationError):
    kind = ErrorKind.INSUFFICIENT_PERMISSION
    default_message = "충분한 권한이 없습니다"


class UserNotFoundError(VivversError):
    kind = ErrorKind.USER_NOT_FOUND
    default_message = "사용자를 찾을 수 없습니다"
    status_code = 404


class InvalidUserActionError(VivversError):
    kind = ErrorKind.INVALID_ACTION
    default_message = "잘못된 사용자 작업입니다"
    status_code = 400


class ResourceNotFoundError(VivversError):
    """Raised when a project, comment or tag does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "요청한 항목을 찾을 수 없습니다"
    status_code = 404


class ConflictError(VivversError):
    kind = ErrorKind.CONFLICT
    default_message = "이미 존재하는 항목입니다"
    status_code = 409


class ValidationFailedError(VivversError):
    """Business-rule rejection of otherwise well-formed input."""

    kind = ErrorKind.VALIDATION
    default_message = "입력 데이터가 올바르지 않습니다"
    status_code = 422


GENERIC_ERROR_MESSAGE = "알 수 없는 오류가 발생했습니다"


def error_message(exc: BaseException) -> str:
    """Convert any exception to a message that is safe to show to users."""
    if isinstance(exc, VivversError):
        return exc.message
    return GENERIC_ERROR_MESSAGE


def redirect_for_error(
    exc: BaseException,
    next_path: str | None = None,
    signin_path: str = "/signin",
    unauthorized_path: str = "/unauthorized",
) -> str:
    """Map a gate failure on a page request to the page the caller is sent to.

    Not-logged-in callers go to sign-in (carrying ``next_path`` so they can
    come back), callers lacking a role go to the unauthorized page, and any
    other failure falls back to sign-in.
    """
    signin = signin_path
    if next_path:
        signin = f"{signin_path}?redirect={quote(next_path, safe='/')}"

    if isinstance(exc, NotAdminError | NotModeratorError):
        return unauthorized_path
    return signin
