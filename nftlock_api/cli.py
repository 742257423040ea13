"""
CLI entry point for the NFT Lock Status API.
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer

from .config import ENV_FILE_VAR, get_settings, load_settings
from .contract import Web3ContractCaller
from .errors import GatewayError
from .gateway import GatewayConfig, LockStatusGateway

# Configure structlog (stderr, so `check` output stays parseable)
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    logger_factory=structlog.PrintLoggerFactory(sys.stderr),
)

app = typer.Typer(
    name="nftlock-api",
    help="NFT lock status read gateway",
    add_completion=False,
)

EnvFileOption = typer.Option(
    None,
    "--env-file",
    "-e",
    help="Path to .env file selecting the network and contract",
)


@app.command()
def serve(env_file: Optional[Path] = EnvFileOption) -> None:
    """
    Start the HTTP API.

    The env file is exported before the app module loads, so the server
    and any reload worker build their settings from it.
    """
    if env_file is not None:
        os.environ[ENV_FILE_VAR] = str(env_file)
        get_settings.cache_clear()

    settings = get_settings()
    typer.echo(f"Network: {settings.network_name} ({settings.contract_address or 'no contract'})")

    from .main import run

    run()


@app.command()
def check(
    token_id: str = typer.Argument(..., help="Token id to query"),
    env_file: Optional[Path] = EnvFileOption,
) -> None:
    """
    Query a token's lock flag once and print it as JSON.
    """
    settings = load_settings(env_file)
    if not settings.contract_address:
        typer.echo("Error: CONTRACT_ADDRESS not configured", err=True)
        raise typer.Exit(code=2)

    gateway = LockStatusGateway(
        Web3ContractCaller(settings),
        GatewayConfig.from_settings(settings),
    )

    try:
        status = asyncio.run(gateway.get_lock_status(token_id))
    except GatewayError as e:
        typer.echo(json.dumps({"error": e.kind, "detail": e.message}), err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps({"tokenId": str(status.token_id), "isLocked": status.locked}))


@app.command()
def version() -> None:
    """Show the API version."""
    from nftlock_api import __version__
    typer.echo(f"nftlock-api v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
