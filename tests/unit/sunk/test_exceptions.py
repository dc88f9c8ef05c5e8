"""Unit tests for the exception hierarchy and error code mapping."""

import pytest

from src.sunk.exceptions import (
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


class TestErrorCodeMapping:
    """Test error code to exception mapping."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (0, ApiError),
            (10, ParameterError),
            (20, ClientVersionTooOldError),
            (30, ServerVersionTooOldError),
            (40, AuthenticationError),
            (41, TokenAuthenticationNotSupportedError),
            (50, AuthorizationError),
            (60, TrialError),
            (70, NotFoundError),
            (99, ApiError),
        ],
    )
    def test_error_for_code(self, code, expected):
        error = error_for_code(code, "message")

        assert type(error) is expected
        assert error.code == code
        assert error.message == "message"

    def test_message_format(self):
        error = error_for_code(40, "Wrong username or password.")

        assert str(error) == "Subsonic error 40: Wrong username or password."

    def test_version_errors_share_a_base(self):
        assert issubclass(ClientVersionTooOldError, VersionError)
        assert issubclass(ServerVersionTooOldError, VersionError)

    def test_token_not_supported_is_an_authentication_error(self):
        assert issubclass(TokenAuthenticationNotSupportedError, AuthenticationError)


class TestHierarchy:
    """Every error kind can be caught as SubsonicError."""

    @pytest.mark.parametrize(
        "error_class",
        [UriError, DecodeError, ProtocolViolationError, ApiError, TransportError],
    )
    def test_subclasses_subsonic_error(self, error_class):
        assert issubclass(error_class, SubsonicError)

    def test_transport_error_status_code(self):
        assert TransportError("HTTP 404", status_code=404).status_code == 404
        assert TransportError("connection refused").status_code is None
