#!/usr/bin/env python3
"""apaleo Connect MCP Server - Module Entry Point.

Allows running the server as: python -m apaleo_connect_mcp
"""

import argparse
import asyncio
import sys

from apaleo_connect_mcp import __version__


def check_config() -> int:
    """Report missing APALEO_* settings without contacting apaleo."""
    from apaleo_connect_mcp.config.settings import get_settings

    settings = get_settings()
    missing = settings.validate_required_settings()
    if missing:
        print(f"Missing required environment variables: {', '.join(missing)}")
        return 1

    token_source = settings.token_store_path or "APALEO_REFRESH_TOKEN"
    print(f"Configuration OK (api: {settings.api_base_url}, tokens: {token_source})")
    return 0


def main() -> None:
    """Run the MCP server, or one of the informational commands."""
    parser = argparse.ArgumentParser(
        description="Read-only MCP server for the apaleo PMS",
        prog="apaleo-connect-mcp",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate APALEO_* settings and exit",
    )
    args = parser.parse_args()

    if args.version:
        print(f"apaleo Connect MCP Server v{__version__}")
        return
    if args.check_config:
        sys.exit(check_config())

    from apaleo_connect_mcp.main import main as server_main

    asyncio.run(server_main())


if __name__ == "__main__":
    main()
