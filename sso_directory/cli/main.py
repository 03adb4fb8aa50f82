#!/usr/bin/env python3
"""SSO directory CLI - small management utility for the directory cache."""

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

from sso_directory.client import RemoteDirectoryClient
from sso_directory.exceptions import RemoteError
from sso_directory.settings import settings
from sso_directory.utils.logger import logger

SETTINGS_TEMPLATE = """# SSO directory configuration file

# Server settings
port = 8000
host = "127.0.0.1"
debug = false

# Remote SSO service
sso_server_url = "http://localhost:8080/sso/"
application_name = "directory"
application_password = "change-this-password"
page_size = 100

# HTTP client
http_max_connections = 20
http_connect_timeout = 5.0
http_socket_timeout = 20.0

# Proxy (leave host empty to connect directly)
# http_proxy_host = "proxy.local"
# http_proxy_port = 3128

# Refresh interval in seconds
users_cache_ttl_seconds = 3600
"""


def init_project(path: str) -> None:
    """Write a starter settings.toml into ``path``."""
    project_path = Path(path).resolve()
    project_path.mkdir(parents=True, exist_ok=True)

    settings_file = project_path / "settings.toml"
    if settings_file.exists():
        logger.warning(f"Settings file already exists: {settings_file}")
        return

    settings_file.write_text(SETTINGS_TEMPLATE)
    logger.info(f"Created settings file: {settings_file}")


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the directory API server."""
    import uvicorn

    host = host or settings.host or "127.0.0.1"
    port = port or settings.port or 8000

    logger.info(f"Starting SSO directory server at http://{host}:{port}")

    uvicorn.run(
        "sso_directory.api.app:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )


async def sync_once() -> int:
    """Fetch the whole directory once and return the number of users."""
    async with RemoteDirectoryClient.from_settings(settings) as client:
        users = await client.fetch_all_users()
    logger.info(f"Fetched {len(users)} users from {settings.sso_server_url}")
    return len(users)


async def check_login(username: str, password: str) -> None:
    async with RemoteDirectoryClient.from_settings(settings) as client:
        await client.authenticate(username, password)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sso-directory", description="Read-only SSO directory cache"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Write a starter settings.toml")
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory for the settings file (default: current directory)",
    )

    run_parser = subparsers.add_parser("run", help="Run the directory API server")
    run_parser.add_argument(
        "--host", type=str, default=None, help="Host to bind to (default: 127.0.0.1)"
    )
    run_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default: 8000)"
    )

    subparsers.add_parser("sync", help="Fetch the whole directory once and print the user count")

    login_parser = subparsers.add_parser("login", help="Check user credentials against SSO")
    login_parser.add_argument("username", type=str, help="User login")

    args = parser.parse_args()

    if args.command == "init":
        init_project(args.path)
    elif args.command == "run":
        run_server(args.host, args.port)
    elif args.command == "sync":
        try:
            count = asyncio.run(sync_once())
        except RemoteError as e:
            logger.error(f"Directory sync failed: {e}")
            sys.exit(1)
        print(count)
    elif args.command == "login":
        password = getpass.getpass(f"Password for {args.username}: ")
        try:
            asyncio.run(check_login(args.username, password))
        except RemoteError as e:
            logger.error(f"Login failed: {e}")
            sys.exit(1)
        print("OK")
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
