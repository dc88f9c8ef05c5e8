"""Subsonic API authentication implementation.

This module builds the authentication query parameters sent with every
Subsonic request. Two schemes exist, selected by the configured API version:

    - API >= 1.13.0: salted token, u={user}&t={md5(password + salt)}&s={salt}
    - API <  1.13.0: plaintext password, u={user}&p={password}

Every request also carries v={api_version}&c={client_name}&f={format}, where
the format is "json" from API 1.14.0 onwards and "xml" before that.

Example:
    >>> from src.sunk.models import SubsonicConfig
    >>> from src.sunk.auth import build_auth_fragment
    >>>
    >>> config = SubsonicConfig(
    ...     url="https://music.example.com",
    ...     username="admin",
    ...     password="sesame",
    ... )
    >>> build_auth_fragment(config, salt="c19b2d")
    'u=admin&t=26719a1196d2a940705a59634eb18eab&s=c19b2d&v=1.14.0&c=sunk&f=json'

Security Notes:
    - A fresh salt is generated for every request and never stored
    - MD5 is what the Subsonic protocol specifies; it obfuscates the password
      on the wire, it is not a cryptographic guarantee
"""

import hashlib
import secrets
import string
from typing import Dict, Optional
from urllib.parse import urlencode

from .models import SubsonicAuthToken, SubsonicConfig
from .version import supports_json, supports_token_auth

# The protocol requires at least six characters of salt
MIN_SALT_SIZE = 6
SALT_SIZE = 36
SALT_ALPHABET = string.ascii_letters + string.digits


def generate_salt(size: int = SALT_SIZE) -> str:
    """Generate a random alphanumeric salt.

    Args:
        size: Number of characters (default: 36, minimum: 6)

    Returns:
        Salt drawn from a cryptographically secure source

    Raises:
        ValueError: If size is below the protocol minimum
    """
    if size < MIN_SALT_SIZE:
        raise ValueError(f"salt must be at least {MIN_SALT_SIZE} characters (got {size})")
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(size))


def compute_token(password: str, salt: str) -> str:
    """Return lowercase hex MD5 of password + salt."""
    return hashlib.md5(f"{password}{salt}".encode("utf-8")).hexdigest()


def generate_token(config: SubsonicConfig, salt: Optional[str] = None) -> SubsonicAuthToken:
    """Generate Subsonic authentication token using MD5 salt+hash method.

    Args:
        config: Subsonic configuration containing username and password
        salt: Optional pre-generated salt. If None, a new 36 character salt is
            generated. Primarily for testing; production should let the salt
            be generated.

    Returns:
        SubsonicAuthToken with token, salt, username and creation time

    Raises:
        ValueError: If a supplied salt is shorter than 6 characters

    Example:
        >>> token = generate_token(config, salt="c19b2d")
        >>> token.token
        '26719a1196d2a940705a59634eb18eab'
    """
    if salt is None:
        salt = generate_salt()
    elif len(salt) < MIN_SALT_SIZE:
        raise ValueError(f"salt must be at least {MIN_SALT_SIZE} characters (got {len(salt)})")

    return SubsonicAuthToken.now(
        token=compute_token(config.password, salt),
        salt=salt,
        username=config.username,
    )


def verify_token(config: SubsonicConfig, token: str, salt: str) -> bool:
    """Verify that a token matches the expected MD5(password + salt).

    The server is what verifies tokens in practice; this exists for tests
    and diagnostics.
    """
    return secrets.compare_digest(token, compute_token(config.password, salt))


def response_format(api_version) -> str:
    """Return the f= value to request for a given API version."""
    return "json" if supports_json(api_version) else "xml"


def build_credential_params(config: SubsonicConfig, salt: Optional[str] = None) -> Dict[str, str]:
    """Build the credential half of the authentication parameters.

    Returns:
        {"u", "t", "s"} for token-capable versions, otherwise {"u", "p"}
    """
    if supports_token_auth(config.api_version):
        return generate_token(config, salt=salt).to_auth_params()
    return {"u": config.username, "p": config.password}


def create_auth_params(config: SubsonicConfig, salt: Optional[str] = None) -> Dict[str, str]:
    """Create complete authentication query parameters for a request.

    Args:
        config: Subsonic configuration
        salt: Optional fixed salt (testing only)

    Returns:
        Ordered dictionary of query parameters:
            - u: username
            - t, s: token and salt (API >= 1.13.0)
            - p: plaintext password (API < 1.13.0)
            - v: API version
            - c: client name
            - f: response format ("json" or "xml")
    """
    return {
        **build_credential_params(config, salt=salt),
        "v": config.api_version,
        "c": config.client_name,
        "f": response_format(config.api_version),
    }


def build_auth_fragment(config: SubsonicConfig, salt: Optional[str] = None) -> str:
    """Render the authentication parameters as a query-string fragment.

    Values are URL-encoded; plain alphanumeric values appear verbatim, e.g.
    "u=admin&p=sesame&v=1.12.0&c=sunk&f=xml".
    """
    return urlencode(create_auth_params(config, salt=salt))
