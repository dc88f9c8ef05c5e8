"""
Subsonic CLI - Command Line Interface

Small argparse front-end over SubsonicClient for checking a server from a
shell: ping it, start or inspect a library scan, or print authenticated URLs.
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from . import __version__
from .client import SubsonicClient
from .exceptions import (
    ApiError,
    AuthenticationError,
    SubsonicError,
    TransportError,
    UriError,
)
from .logger import setup_logging
from .models import SubsonicConfig

logger = logging.getLogger(__name__)


def parse_param(value: str) -> Tuple[str, str]:
    """Parse a KEY=VALUE command line parameter."""
    key, sep, param_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {value!r}")
    return key, param_value


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="sunk",
        description="Talk to a Subsonic-compatible music server",
        epilog="Example: SUBSONIC_URL=https://music.example.com sunk scan status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--url", metavar="URL", help="Server URL (default: $SUBSONIC_URL)")
    parser.add_argument("--user", metavar="NAME", help="Username (default: $SUBSONIC_USER)")
    parser.add_argument(
        "--password", metavar="SECRET", help="Password (default: $SUBSONIC_PASSWORD)"
    )
    parser.add_argument(
        "--api-version",
        metavar="X.Y.Z",
        help="Subsonic API version to speak (default: $SUBSONIC_API_VERSION or 1.14.0)",
    )
    parser.add_argument(
        "--client-name",
        metavar="NAME",
        help="Client identifier sent to the server (default: $SUBSONIC_CLIENT_NAME or sunk)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Request timeout in seconds (default: $SUBSONIC_TIMEOUT or 30)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    commands.add_parser("ping", help="Check connectivity and credentials")

    scan = commands.add_parser("scan", help="Media library scanning")
    scan_actions = scan.add_subparsers(dest="scan_action", metavar="ACTION")
    scan_actions.required = True
    scan_actions.add_parser("start", help="Start a library scan")
    scan_actions.add_parser("status", help="Show scan progress")

    for name, help_text in (
        ("url", "Print an authenticated URL without requesting it"),
        ("probe", "Request an endpoint expected to return binary content"),
        ("raw", "Print the response body of an endpoint unchanged"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("endpoint", help="REST method name, e.g. stream")
        sub.add_argument(
            "params",
            nargs="*",
            type=parse_param,
            metavar="KEY=VALUE",
            help="Endpoint parameters",
        )

    return parser


def build_config(args: argparse.Namespace) -> SubsonicConfig:
    """
    Merge command line options over environment configuration.

    Raises:
        EnvironmentError: If required settings are in neither place
        ValueError: If a setting is invalid
    """
    return SubsonicConfig.from_environment(
        url=args.url,
        username=args.user,
        password=args.password,
        client_name=args.client_name,
        api_version=args.api_version,
        timeout=args.timeout,
    )


def run_command(client: SubsonicClient, args: argparse.Namespace) -> int:
    """
    Execute the selected command against the server.

    Returns:
        Exit code (0 for success)
    """
    if args.command == "ping":
        client.ping()
        info = client.server_info
        print(f"ok (api {info.api_version})")
        if info.opensubsonic:
            print(f"OpenSubsonic server {info.server_version}")
    elif args.command == "scan" and args.scan_action == "start":
        client.start_scan()
        print("scan started")
    elif args.command == "scan":
        scanning, count = client.get_scan_status()
        print(f"scanning: {'yes' if scanning else 'no'}")
        print(f"count:    {count}")
    elif args.command == "url":
        print(client.build_url(args.endpoint, args.params))
    elif args.command == "probe":
        print(client.try_binary(args.endpoint, args.params))
    elif args.command == "raw":
        sys.stdout.write(client.get_raw(args.endpoint, args.params))
    return 0


def display_error(error: Exception) -> None:
    """
    Display error message with appropriate context.

    Args:
        error: Exception that occurred
    """
    if isinstance(error, AuthenticationError):
        print(f"Authentication failed: {error.message}", file=sys.stderr)
        print("Check the username and password.", file=sys.stderr)
    elif isinstance(error, ApiError):
        print(f"Server error: {error}", file=sys.stderr)
    elif isinstance(error, TransportError):
        print(f"Connection error: {error}", file=sys.stderr)
    elif isinstance(error, UriError):
        print(f"Invalid server URL: {error}", file=sys.stderr)
    else:
        print(f"Error: {error}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        config = build_config(args)
        with SubsonicClient(config) as client:
            return run_command(client, args)
    except (SubsonicError, EnvironmentError, ValueError) as e:
        display_error(e)
        if args.verbose:
            logger.exception("Detailed error traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
