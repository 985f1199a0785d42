"""Command-line interface for PracticeBase.

This module provides the CLI commands for running the server and
checking rule files.
"""

from typing import NoReturn

import click

from practicebase import __version__
from practicebase.core.config import get_settings
from practicebase.core.logging import configure_logging, get_logger
from practicebase.core.rules import RuleSyntaxError
from practicebase.infrastructure.persistence.seed_loader import (
    SeedDataError,
    load_rule_set,
)


@click.group()
@click.version_option(version=__version__, prog_name="PracticeBase")
def cli() -> None:
    """PracticeBase - in-memory REST backend for practice front-ends.

    Settings are read from PRACTICEBASE_* environment variables and .env.
    """


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the PracticeBase server.

    By default, the server runs on 0.0.0.0:3030.
    """
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting PracticeBase server",
        host=bind_host,
        port=bind_port,
        reload=reload,
        environment=settings.environment,
    )

    # Single worker: all state lives in this process
    uvicorn.run(
        "practicebase.infrastructure.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        workers=1,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command("check-rules")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def check_rules(path: str) -> None:
    """Parse a rules file and report errors."""
    try:
        rule_set = load_rule_set(path)
    except (SeedDataError, RuleSyntaxError) as e:
        click.echo(f"Invalid rules in {path}: {e}", err=True)
        raise SystemExit(1) from e

    click.echo(f"Rules OK: {len(rule_set.collections)} collection(s)")
    for name in sorted(rule_set.collections):
        rules = rule_set.collections[name]
        actions = ", ".join(sorted(rules.actions)) or "-"
        click.echo(
            f"  {name}: actions [{actions}], "
            f"{len(rules.wildcard.properties)} property rule(s), "
            f"{len(rules.records)} record override(s)"
        )


@cli.command()
def info() -> None:
    """Display PracticeBase configuration."""
    settings = get_settings()

    click.echo(f"""
PracticeBase v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Throttle:     {settings.throttle_enabled}

Data:
  Seed data:    {settings.seed_data_path or '(bundled)'}
  Protected:    {settings.protected_data_path or '(bundled)'}
  Rules:        {settings.rules_path or '(bundled)'}
  Page size:    {settings.default_page_size}

Identity:
  Field:        {settings.identity_field}
  Token header: {settings.auth_header}
  Admin header: {settings.admin_header}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `practicebase` command is run
    or when using `python -m practicebase`.
    """
    cli()


if __name__ == "__main__":
    main()
