"""HTTP clients for the Subsonic REST API."""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .auth import build_auth_fragment
from .exceptions import (
    DecodeError,
    ProtocolViolationError,
    TransportError,
    error_for_code,
)
from .models import ScanStatus, ServerInfo, SubsonicConfig
from .url import Params, build_url, split_base_url

logger = logging.getLogger(__name__)

ENVELOPE_KEY = "subsonic-response"


def parse_envelope(data: Any) -> Dict[str, Any]:
    """Classify a decoded Subsonic response body.

    Args:
        data: Decoded JSON body

    Returns:
        The "subsonic-response" object when its status is "ok". Payload
        entries are read from it by name (e.g. data["scanStatus"]).

    Raises:
        ApiError: (or a code-specific subclass) when status is "failed"
        ProtocolViolationError: If the body is not a Subsonic envelope, the
            status is missing or unknown, or a failure has no usable error
    """
    if not isinstance(data, dict):
        raise ProtocolViolationError(f"Expected a JSON object, got {type(data).__name__}")

    envelope = data.get(ENVELOPE_KEY)
    if not isinstance(envelope, dict):
        raise ProtocolViolationError(f"Response has no '{ENVELOPE_KEY}' object")

    status = envelope.get("status")
    if status == "ok":
        return envelope

    if status == "failed":
        error = envelope.get("error")
        if not isinstance(error, dict):
            raise ProtocolViolationError("Failed response has no 'error' object")

        code = error.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            raise ProtocolViolationError(f"Failed response has invalid error code {code!r}")
        message = error.get("message")
        if not isinstance(message, str):
            message = "Unknown error"

        logger.error(f"Subsonic API error {code}: {message}")
        raise error_for_code(code, message)

    raise ProtocolViolationError(f"Unexpected response status {status!r}")


def parse_scan_status(envelope: Dict[str, Any]) -> ScanStatus:
    """Extract (scanning, count) from a getScanStatus/startScan response.

    Raises:
        ProtocolViolationError: If scanStatus is absent or its fields are
            missing or of the wrong type
    """
    scan = envelope.get("scanStatus")
    if not isinstance(scan, dict):
        raise ProtocolViolationError("Response has no 'scanStatus' object")

    scanning = scan.get("scanning")
    if not isinstance(scanning, bool):
        raise ProtocolViolationError(f"scanStatus.scanning must be a boolean, got {scanning!r}")

    count = scan.get("count")
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ProtocolViolationError(
            f"scanStatus.count must be a non-negative integer, got {count!r}"
        )

    return ScanStatus(scanning=scanning, count=count)


def parse_server_info(envelope: Dict[str, Any]) -> ServerInfo:
    """Read version and OpenSubsonic details from any "ok" response."""
    return ServerInfo(
        api_version=envelope.get("version"),
        opensubsonic=envelope.get("openSubsonic") is True,
        server_version=envelope.get("serverVersion"),
    )


def _check_status(response: httpx.Response, endpoint: str) -> None:
    logger.info(f"Received `{response.status_code}` for request /{endpoint}")
    if not response.is_success:
        raise TransportError(
            f"HTTP {response.status_code} for /rest/{endpoint}",
            status_code=response.status_code,
        )


def _decode_json(response: httpx.Response, endpoint: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(f"Response to /rest/{endpoint} is not valid JSON: {e}") from e


def _decode_text(response: httpx.Response, endpoint: str) -> str:
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Unable to parse response to /rest/{endpoint} as UTF-8") from e


def _classify_probe(response: httpx.Response, endpoint: str, url: str) -> str:
    try:
        data = response.json()
    except ValueError:
        logger.debug(f"/rest/{endpoint} returned non-JSON content; assuming binary stream")
        return url

    # JSON where binary was expected: either a failure envelope or a surprise
    parse_envelope(data)
    raise ProtocolViolationError(f"Expected binary content from /rest/{endpoint}, received JSON")


class _BaseClient:
    """Request building and response interpretation shared by both clients."""

    def __init__(self, config: SubsonicConfig):
        self.config = config

        # Fails fast with UriError and logs the scheme fallback once
        scheme, authority = split_base_url(config.url)
        self._base_url = f"{scheme}://{authority}"

        self.server_info: Optional[ServerInfo] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.timeout)

    def build_url(self, endpoint: str, params: Optional[Params] = None) -> str:
        """Build an authenticated URL for an endpoint without fetching it.

        A fresh salt and token are generated on every call. Useful for
        handing stream or cover art URLs to a media player.

        Args:
            endpoint: REST method name (e.g., "stream")
            params: Endpoint-specific parameters

        Returns:
            Complete URL including authentication

        Example:
            >>> client.build_url("stream", {"id": 1, "maxBitRate": 96})
            'https://music.example.com/rest/stream?u=john&t=...&s=...&v=1.14.0&c=sunk&f=json&id=1&maxBitRate=96'
        """
        return build_url(self._base_url, endpoint, build_auth_fragment(self.config), params)

    def _record_ping(self, envelope: Dict[str, Any]) -> bool:
        self.server_info = parse_server_info(envelope)
        if self.server_info.opensubsonic:
            logger.info(f"OpenSubsonic server detected: version {self.server_info.server_version}")
        logger.info("Subsonic ping successful")
        return True


class SubsonicClient(_BaseClient):
    """Blocking HTTP client for the Subsonic REST API.

    Each public method issues exactly one GET request and waits for the full
    response body. Nothing is retried; failures surface as typed exceptions
    from src.sunk.exceptions.

    Attributes:
        config: SubsonicConfig with server connection details
        client: httpx.Client used for requests
        server_info: Details learned from the last successful ping()

    Example:
        >>> config = SubsonicConfig(
        ...     url="https://music.example.com",
        ...     username="john",
        ...     password="secret",
        ... )
        >>> with SubsonicClient(config) as client:
        ...     if client.ping():
        ...         scanning, count = client.get_scan_status()
    """

    def __init__(self, config: SubsonicConfig, http_client: Optional[httpx.Client] = None):
        """Initialize Subsonic API client.

        Args:
            config: SubsonicConfig with server URL and credentials
            http_client: Optional pre-configured httpx.Client. When omitted a
                client is created with the configured timeout.

        Raises:
            UriError: If config.url has no host
        """
        super().__init__(config)
        self.client = http_client or httpx.Client(
            timeout=self._timeout(),
            follow_redirects=True,
        )
        logger.info(f"Initialized Subsonic client for {self._base_url}")

    def _send(self, endpoint: str, params: Optional[Params] = None) -> Tuple[str, httpx.Response]:
        url = self.build_url(endpoint, params)
        logger.debug(f"Connecting to {self._base_url}/rest/{endpoint}")
        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to /rest/{endpoint} failed: {e}") from e
        return url, response

    def get(self, endpoint: str, params: Optional[Params] = None) -> Dict[str, Any]:
        """Issue a request and return the "ok" response envelope.

        A query should be one documented in the official API at
        http://www.subsonic.org/pages/api.jsp

        Args:
            endpoint: REST method name
            params: Endpoint-specific parameters

        Returns:
            The "subsonic-response" object

        Raises:
            TransportError: Connection failure or non-2xx HTTP status
            DecodeError: Body is not JSON
            ApiError: Server returned status="failed"
            ProtocolViolationError: Body is JSON but not a Subsonic envelope
        """
        _, response = self._send(endpoint, params)
        _check_status(response, endpoint)
        return parse_envelope(_decode_json(response, endpoint))

    def try_binary(self, endpoint: str, params: Optional[Params] = None) -> str:
        """Probe an endpoint that should answer with binary content.

        Returns the constructed, attempted URL when the body is not valid
        JSON, on the assumption that it is a binary (e.g. audio) stream.

        Raises:
            TransportError: Connection failure or non-2xx HTTP status
            ApiError: Server answered with a failure envelope
            ProtocolViolationError: Server answered with any other JSON
        """
        url, response = self._send(endpoint, params)
        _check_status(response, endpoint)
        return _classify_probe(response, endpoint, url)

    def get_raw(self, endpoint: str, params: Optional[Params] = None) -> str:
        """Return the response body as text, without interpreting it.

        Raises:
            TransportError: Connection failure or non-2xx HTTP status
            DecodeError: Body is not valid UTF-8
        """
        _, response = self._send(endpoint, params)
        _check_status(response, endpoint)
        return _decode_text(response, endpoint)

    def get_bytes(self, endpoint: str, params: Optional[Params] = None) -> bytes:
        """Return the response body bytes unchanged (e.g. stream, getCoverArt)."""
        _, response = self._send(endpoint, params)
        _check_status(response, endpoint)
        logger.info(f"Downloaded {len(response.content)} bytes from /rest/{endpoint}")
        return response.content

    def ping(self) -> bool:
        """Test server connectivity and authentication.

        Returns:
            True if ping successful

        Raises:
            AuthenticationError: If credentials are invalid
            VersionError: If API version incompatible
            TransportError: For network/HTTP errors
        """
        logger.debug(f"Pinging Subsonic server at {self._base_url}")
        return self._record_ping(self.get("ping"))

    def start_scan(self) -> None:
        """Ask the server to start a media library scan."""
        self.get("startScan")
        logger.info("Library scan started")

    def get_scan_status(self) -> ScanStatus:
        """Get the status of a library scan.

        Returns:
            ScanStatus(scanning, count): whether a scan is running and how
            many media items have been found

        Raises:
            ProtocolViolationError: If scanStatus is missing or malformed
        """
        scan_status = parse_scan_status(self.get("getScanStatus"))
        logger.info(f"Scan status: {scan_status}")
        return scan_status

    def close(self) -> None:
        """Close HTTP client and release resources."""
        self.client.close()
        logger.info("Closed Subsonic client")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - automatically close client."""
        self.close()


class AsyncSubsonicClient(_BaseClient):
    """Awaitable counterpart of SubsonicClient.

    Runs on the caller's event loop through httpx.AsyncClient; operations and
    error behaviour match SubsonicClient.

    Example:
        >>> async with AsyncSubsonicClient(config) as client:
        ...     status = await client.get_scan_status()
    """

    def __init__(self, config: SubsonicConfig, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self.client = http_client or httpx.AsyncClient(
            timeout=self._timeout(),
            follow_redirects=True,
        )
        logger.info(f"Initialized async Subsonic client for {self._base_url}")

    async def _send(
        self, endpoint: str, params: Optional[Params] = None
    ) -> Tuple[str, httpx.Response]:
        url = self.build_url(endpoint, params)
        logger.debug(f"Connecting to {self._base_url}/rest/{endpoint}")
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to /rest/{endpoint} failed: {e}") from e
        return url, response

    async def get(self, endpoint: str, params: Optional[Params] = None) -> Dict[str, Any]:
        """See SubsonicClient.get()."""
        _, response = await self._send(endpoint, params)
        _check_status(response, endpoint)
        return parse_envelope(_decode_json(response, endpoint))

    async def try_binary(self, endpoint: str, params: Optional[Params] = None) -> str:
        """See SubsonicClient.try_binary()."""
        url, response = await self._send(endpoint, params)
        _check_status(response, endpoint)
        return _classify_probe(response, endpoint, url)

    async def get_raw(self, endpoint: str, params: Optional[Params] = None) -> str:
        _, response = await self._send(endpoint, params)
        _check_status(response, endpoint)
        return _decode_text(response, endpoint)

    async def get_bytes(self, endpoint: str, params: Optional[Params] = None) -> bytes:
        _, response = await self._send(endpoint, params)
        _check_status(response, endpoint)
        logger.info(f"Downloaded {len(response.content)} bytes from /rest/{endpoint}")
        return response.content

    async def ping(self) -> bool:
        logger.debug(f"Pinging Subsonic server at {self._base_url}")
        return self._record_ping(await self.get("ping"))

    async def start_scan(self) -> None:
        await self.get("startScan")
        logger.info("Library scan started")

    async def get_scan_status(self) -> ScanStatus:
        scan_status = parse_scan_status(await self.get("getScanStatus"))
        logger.info(f"Scan status: {scan_status}")
        return scan_status

    async def aclose(self) -> None:
        await self.client.aclose()
        logger.info("Closed async Subsonic client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
