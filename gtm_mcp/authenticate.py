"""Interactive authentication for the local Google Tag Manager MCP server.

Run this once (and again whenever the stored tokens are deleted) before
starting the server::

    gtm-mcp-auth
    gtm-mcp-auth --no-browser --timeout 600
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from gtm_mcp.core.config import get_settings
from gtm_mcp.core.errors import ConfigurationError
from gtm_mcp.core.logging import configure_logging
from gtm_mcp.dependencies import get_authorization_flow_runner, get_token_store

EXIT_OK = 0
EXIT_AUTH_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Authorize this machine to use the Google Tag Manager API."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the browser callback (default: 300).",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Only print the authorization URL instead of opening a browser.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)
    runner = get_authorization_flow_runner(
        timeout_seconds=args.timeout, open_browser=not args.no_browser
    )

    try:
        asyncio.run(runner.run())
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"\n✗ Authentication failed: {exc}", file=sys.stderr)
        return EXIT_AUTH_ERROR

    print("\n✓ Authentication successful!")
    print(f"Tokens saved to: {get_token_store().path}")
    print("\nYou can now start the MCP server with: gtm-mcp")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
