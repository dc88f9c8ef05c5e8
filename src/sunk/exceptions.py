"""Exception classes for the Subsonic API client."""

from typing import Dict, Optional, Type


class SubsonicError(Exception):
    """Base exception for everything raised by this package."""

    pass


class UriError(SubsonicError, ValueError):
    """Server base URI is malformed or incomplete (e.g. no host)."""

    pass


class TransportError(SubsonicError):
    """The HTTP exchange itself failed.

    Attributes:
        status_code: HTTP status returned by the server, or None when the
            connection could not be made at all (DNS, refused, timeout)
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DecodeError(SubsonicError):
    """Response body could not be decoded (invalid JSON or UTF-8)."""

    pass


class ProtocolViolationError(SubsonicError):
    """Response decoded but does not have the Subsonic envelope shape.

    Raised for a missing "subsonic-response" object, a missing or unknown
    "status", a malformed "error" object, or a payload without the fields an
    operation depends on.
    """

    pass


class ApiError(SubsonicError):
    """Server answered with status="failed".

    Attributes:
        code: Subsonic error code
        message: Error message from server
    """

    def __init__(self, code: int, message: str):
        """Initialize Subsonic API error.

        Args:
            code: Subsonic error code (0, 10, 20, 30, 40, 41, 50, 60, 70)
            message: Human-readable error message
        """
        self.code = code
        self.message = message
        super().__init__(f"Subsonic error {code}: {message}")


class ParameterError(ApiError):
    """Required parameter is missing (error code 10)."""

    pass


class VersionError(ApiError):
    """Client and server REST protocol versions are incompatible (20, 30)."""

    pass


class ClientVersionTooOldError(VersionError):
    """Client must upgrade (code 20)."""

    pass


class ServerVersionTooOldError(VersionError):
    """Server must upgrade (code 30)."""

    pass


class AuthenticationError(ApiError):
    """Wrong username or password (error code 40)."""

    pass


class TokenAuthenticationNotSupportedError(AuthenticationError):
    """Token authentication not supported for LDAP users (code 41).

    The caller should retry with an api_version below 1.13.0 so the plaintext
    password scheme is used.
    """

    pass


class AuthorizationError(ApiError):
    """User is not authorized for the given operation (error code 50)."""

    pass


class TrialError(ApiError):
    """Trial period for the Subsonic server is over (error code 60)."""

    pass


class NotFoundError(ApiError):
    """Requested data was not found (error code 70)."""

    pass


ERROR_CODES: Dict[int, Type[ApiError]] = {
    10: ParameterError,
    20: ClientVersionTooOldError,
    30: ServerVersionTooOldError,
    40: AuthenticationError,
    41: TokenAuthenticationNotSupportedError,
    50: AuthorizationError,
    60: TrialError,
    70: NotFoundError,
}


def error_for_code(code: int, message: str) -> ApiError:
    """Build the ApiError subclass matching a Subsonic error code.

    Unknown codes (including the generic code 0) map to ApiError itself.

    Example:
        >>> error_for_code(40, "Wrong username or password.")
        AuthenticationError('Subsonic error 40: Wrong username or password.')
    """
    error_class = ERROR_CODES.get(code, ApiError)
    return error_class(code, message)
