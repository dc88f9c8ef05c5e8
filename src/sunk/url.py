"""URL construction for Subsonic REST endpoints."""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode, urlsplit

from .exceptions import UriError

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "http"

Params = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def resolve_scheme(base_uri: str) -> str:
    """Scheme that requests to base_uri will use ("http" when none is given)."""
    raw = base_uri.strip()
    if "://" not in raw:
        return DEFAULT_SCHEME
    return urlsplit(raw).scheme or DEFAULT_SCHEME


def split_base_url(base_uri: str) -> Tuple[str, str]:
    """Extract the scheme and authority from a server base URI.

    A URI without "://" is read as a bare authority, so both
    "music.example.com" and "localhost:4040" are accepted. Any path on the
    base URI is ignored.

    Args:
        base_uri: Server address as configured by the user

    Returns:
        (scheme, authority) tuple; scheme falls back to "http"

    Raises:
        UriError: If the URI has no authority (host) part or cannot be parsed
    """
    if not base_uri or not base_uri.strip():
        raise UriError("Server URI is empty")

    raw = base_uri.strip()
    if "://" not in raw:
        raw = f"//{raw}"

    try:
        parts = urlsplit(raw)
        # Accessing port validates it (raises ValueError for "host:abc")
        parts.port
    except ValueError as e:
        raise UriError(f"Invalid server URI {base_uri!r}: {e}") from e

    if not parts.netloc or not parts.hostname:
        raise UriError(f"Server URI {base_uri!r} has no host")

    scheme = parts.scheme
    if not scheme:
        logger.warning(f"No scheme provided in {base_uri!r}; falling back to {DEFAULT_SCHEME}")
        scheme = DEFAULT_SCHEME

    return scheme, parts.netloc


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_params(params: Optional[Params]) -> str:
    """Encode endpoint parameters as a query string.

    None values are dropped, booleans become "true"/"false", and list or
    tuple values repeat the key (Subsonic takes several id= parameters).
    """
    if not params:
        return ""

    items = params.items() if isinstance(params, Mapping) else params
    pairs: List[Tuple[str, str]] = []
    for key, value in items:
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _render_value(item)) for item in value if item is not None)
        else:
            pairs.append((key, _render_value(value)))

    return urlencode(pairs)


def build_url(
    base_uri: str,
    endpoint: str,
    auth_fragment: str,
    params: Optional[Params] = None,
) -> str:
    """Build a full, authenticated URL for a REST endpoint.

    Args:
        base_uri: Server address (scheme optional)
        endpoint: REST method name (e.g., "ping", "getScanStatus")
        auth_fragment: Query fragment from auth.build_auth_fragment()
        params: Endpoint-specific parameters

    Returns:
        URL of the form scheme://authority/rest/<endpoint>?<auth>&<params>

    Raises:
        UriError: If the base URI has no authority

    Example:
        >>> build_url("music.example.com", "stream", "u=a&p=b", {"id": 1})
        'http://music.example.com/rest/stream?u=a&p=b&id=1'
    """
    scheme, authority = split_base_url(base_uri)
    endpoint = endpoint.strip("/")
    if not endpoint:
        raise ValueError("endpoint is required")

    url = f"{scheme}://{authority}/rest/{endpoint}?{auth_fragment}"
    extra = encode_params(params)
    if extra:
        url = f"{url}&{extra}"
    return url
