"""Subsonic REST API version handling.

Subsonic servers advertise their protocol level as a dotted string such as
"1.14.0". Features are gated on these versions:

    - 1.13.0 introduced salted token authentication (t= and s= parameters)
    - 1.14.0 introduced JSON response bodies (f=json)

Versions are compared segment by segment as integers, so "1.9.0" sorts
before "1.10.0" even though it does not as a plain string.

Example:
    >>> ApiVersion.parse("1.9.0") < ApiVersion.parse("1.10.0")
    True
    >>> ApiVersion.parse("1.14") == ApiVersion.parse("1.14.0")
    True
"""

from dataclasses import dataclass
from typing import Tuple, Union

SEGMENT_COUNT = 3


@dataclass(frozen=True, order=True)
class ApiVersion:
    """Three-part Subsonic API version (major, minor, patch).

    Attributes:
        major: Major protocol version (always 1 for Subsonic)
        minor: Minor protocol version
        patch: Patch level
    """

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, value: Union[str, "ApiVersion"]) -> "ApiVersion":
        """Parse a dotted version string.

        Missing trailing segments are treated as zero, so "1.14" is the
        same version as "1.14.0".

        Args:
            value: Version string (e.g. "1.16.1") or an existing ApiVersion

        Returns:
            Parsed ApiVersion

        Raises:
            ValueError: If the string is empty, has more than three segments,
                or contains a segment that is not a non-negative integer
        """
        if isinstance(value, ApiVersion):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid API version: {value!r}")

        segments = value.strip().split(".")
        if len(segments) > SEGMENT_COUNT:
            raise ValueError(f"Invalid API version: {value!r} (too many segments)")
        if not all(segment.isdigit() for segment in segments):
            raise ValueError(f"Invalid API version: {value!r} (segments must be integers)")

        numbers = [int(segment) for segment in segments]
        numbers.extend([0] * (SEGMENT_COUNT - len(numbers)))
        return cls(*numbers)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


# Oldest version accepting t=md5(password+salt)&s=salt instead of p=password
TOKEN_AUTH_VERSION = ApiVersion(1, 13, 0)

# Oldest version able to answer with f=json
JSON_FORMAT_VERSION = ApiVersion(1, 14, 0)

DEFAULT_API_VERSION = "1.14.0"


def supports_token_auth(version: Union[str, ApiVersion]) -> bool:
    """Return True if the server version accepts salted token authentication."""
    return ApiVersion.parse(version) >= TOKEN_AUTH_VERSION


def supports_json(version: Union[str, ApiVersion]) -> bool:
    """Return True if the server version can respond with JSON."""
    return ApiVersion.parse(version) >= JSON_FORMAT_VERSION
