"""Subsonic REST API client: authenticated URLs, requests and typed outcomes."""

__version__ = "0.1.0"

from .auth import (
    build_auth_fragment,
    create_auth_params,
    generate_salt,
    generate_token,
    verify_token,
)
from .client import AsyncSubsonicClient, SubsonicClient, parse_envelope
from .exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ClientVersionTooOldError,
    DecodeError,
    NotFoundError,
    ParameterError,
    ProtocolViolationError,
    ServerVersionTooOldError,
    SubsonicError,
    TokenAuthenticationNotSupportedError,
    TransportError,
    TrialError,
    UriError,
    VersionError,
    error_for_code,
)
from .models import ScanStatus, ServerInfo, SubsonicAuthToken, SubsonicConfig
from .url import build_url, split_base_url
from .version import ApiVersion

__all__ = [
    # Clients
    "SubsonicClient",
    "AsyncSubsonicClient",
    "parse_envelope",
    # Models
    "SubsonicConfig",
    "SubsonicAuthToken",
    "ScanStatus",
    "ServerInfo",
    "ApiVersion",
    # Authentication and URLs
    "generate_salt",
    "generate_token",
    "verify_token",
    "create_auth_params",
    "build_auth_fragment",
    "build_url",
    "split_base_url",
    # Exceptions
    "SubsonicError",
    "UriError",
    "TransportError",
    "DecodeError",
    "ProtocolViolationError",
    "ApiError",
    "ParameterError",
    "VersionError",
    "ClientVersionTooOldError",
    "ServerVersionTooOldError",
    "AuthenticationError",
    "TokenAuthenticationNotSupportedError",
    "AuthorizationError",
    "TrialError",
    "NotFoundError",
    "error_for_code",
]
