"""Data models for Subsonic API integration."""

import os
import warnings
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from .url import resolve_scheme
from .version import DEFAULT_API_VERSION, ApiVersion

DEFAULT_CLIENT_NAME = "sunk"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class SubsonicConfig:
    """Configuration for connecting to a Subsonic-compatible server.

    Instances are immutable; credentials stay fixed for the lifetime of the
    client that owns them.

    Attributes:
        url: Server base URI (e.g., "https://music.example.com"). A URI
            without a scheme is accepted and treated as http.
        username: Subsonic username
        password: Subsonic password (sent as a salted MD5 token when the API
            version allows it)
        client_name: Client identifier sent as the c= parameter
        api_version: Subsonic API version sent as the v= parameter; also
            selects the authentication scheme and response format
        timeout: Network timeout in seconds for each request
    """

    url: str
    username: str
    password: str
    client_name: str = DEFAULT_CLIENT_NAME
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        """Validate configuration on initialization."""
        if not self.url:
            raise ValueError("url is required")
        if not self.username:
            raise ValueError("username is required")
        if not isinstance(self.password, str):
            raise ValueError("password must be a string")
        if not self.client_name:
            raise ValueError("client_name is required")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive (got {self.timeout})")

        # Raises ValueError for malformed versions
        ApiVersion.parse(self.api_version)
        object.__setattr__(self, "api_version", self.api_version.strip())

        if resolve_scheme(self.url) == "http":
            warnings.warn(
                "Using HTTP instead of HTTPS for Subsonic connection. "
                "Credentials will be transmitted insecurely.",
                UserWarning,
                stacklevel=3,
            )

    @property
    def version(self) -> ApiVersion:
        """Parsed form of api_version."""
        return ApiVersion.parse(self.api_version)

    @classmethod
    def from_environment(
        cls,
        url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_name: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "SubsonicConfig":
        """Load configuration from environment variables.

        Required: SUBSONIC_URL, SUBSONIC_USER, SUBSONIC_PASSWORD
        Optional: SUBSONIC_CLIENT_NAME, SUBSONIC_API_VERSION, SUBSONIC_TIMEOUT

        Each argument that is not None takes precedence over its variable,
        so callers such as the CLI can supply some settings themselves.
        An empty SUBSONIC_PASSWORD is a valid password.

        Returns:
            SubsonicConfig: Loaded configuration object

        Raises:
            EnvironmentError: If required settings are neither given nor set
            ValueError: If a variable holds an invalid value
        """
        required = {
            "SUBSONIC_URL": url if url is not None else os.getenv("SUBSONIC_URL"),
            "SUBSONIC_USER": username if username is not None else os.getenv("SUBSONIC_USER"),
            "SUBSONIC_PASSWORD": (
                password if password is not None else os.getenv("SUBSONIC_PASSWORD")
            ),
        }

        missing = [
            var
            for var, value in required.items()
            if value is None or (not value and var != "SUBSONIC_PASSWORD")
        ]
        if missing:
            raise EnvironmentError(
                f"Required environment variables missing: {', '.join(missing)}\n"
                f"Example: export SUBSONIC_URL='https://your-server.com'"
            )

        if timeout is None:
            raw_timeout = os.getenv("SUBSONIC_TIMEOUT")
            try:
                timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
            except ValueError:
                raise ValueError(f"SUBSONIC_TIMEOUT must be a number (got {raw_timeout!r})")

        return cls(
            url=required["SUBSONIC_URL"],
            username=required["SUBSONIC_USER"],
            password=required["SUBSONIC_PASSWORD"],
            client_name=client_name or os.getenv("SUBSONIC_CLIENT_NAME", DEFAULT_CLIENT_NAME),
            api_version=api_version or os.getenv("SUBSONIC_API_VERSION", DEFAULT_API_VERSION),
            timeout=timeout,
        )


@dataclass
class SubsonicAuthToken:
    """Authentication token for Subsonic API using MD5 salt+hash method.

    Attributes:
        token: MD5(password + salt), lowercase hex
        salt: Random salt string
        username: Username for this token
        created_at: Token creation timestamp
    """

    token: str
    salt: str
    username: str
    created_at: datetime

    @classmethod
    def now(cls, token: str, salt: str, username: str) -> "SubsonicAuthToken":
        return cls(
            token=token,
            salt=salt,
            username=username,
            created_at=datetime.now(timezone.utc),
        )

    def to_auth_params(self) -> dict:
        """Convert to authentication query parameters.

        Returns:
            Dict with u (username), t (token), s (salt)
        """
        return {"u": self.username, "t": self.token, "s": self.salt}


class ScanStatus(NamedTuple):
    """Media library scan state from getScanStatus.

    Unpacks like the (scanning, count) pair the endpoint describes.
    """

    scanning: bool
    count: int


class ServerInfo(NamedTuple):
    """What a successful ping learned about the server."""

    api_version: Optional[str]
    opensubsonic: bool
    server_version: Optional[str]
