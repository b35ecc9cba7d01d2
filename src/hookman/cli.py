"""Command-line interface for hookman.

This module provides commands for compiling trigger rules and argument
lists into the JSON layout used by webhook hook definitions.
"""

import json
from typing import Any, NoReturn

import click

from hookman.core.config import Settings, get_settings
from hookman.core.logging import LoggingContext, configure_logging, get_logger
from hookman.core.rules import RuleError, parse_arguments, parse_rule


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _dump(data: Any, indent: int | None, settings: Settings) -> None:
    if indent is None:
        indent = settings.json_indent
    click.echo(json.dumps(data, indent=indent or None))


def _fail(error: RuleError) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="hookman")
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides HOOKMAN_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_level: str | None) -> None:
    """hookman - compile webhook trigger rules.

    Rules combine match expressions with &&, || and !( ... ), e.g.

        "header.X-Event" == "push" && "payload.ref" ~= "^refs/heads/"
    """
    settings = get_settings()

    overrides: dict[str, Any] = {}
    if debug:
        overrides.update(debug=True, log_level="DEBUG")
    if log_level is not None:
        overrides["log_level"] = log_level
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("expression")
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=None,
    help="JSON indentation (overrides HOOKMAN_JSON_INDENT)",
)
@click.pass_context
def rule(ctx: click.Context, expression: str, indent: int | None) -> None:
    """Compile a trigger rule and print it as JSON."""
    logger = get_logger(__name__)

    with LoggingContext(command="rule"):
        try:
            compiled = parse_rule(expression)
        except RuleError as e:
            _fail(e)

        logger.debug("Printing compiled rule", expression=expression)
        _dump(compiled.to_dict(), indent, _settings(ctx))


@cli.command()
@click.argument("expression")
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=None,
    help="JSON indentation (overrides HOOKMAN_JSON_INDENT)",
)
@click.pass_context
def args(ctx: click.Context, expression: str, indent: int | None) -> None:
    """Compile a comma-separated argument list and print it as JSON."""
    with LoggingContext(command="args"):
        try:
            arguments = parse_arguments(expression)
        except RuleError as e:
            _fail(e)

        _dump([argument.to_dict() for argument in arguments], indent, _settings(ctx))


@cli.command()
@click.argument("expression")
def check(expression: str) -> None:
    """Check that a trigger rule compiles."""
    with LoggingContext(command="check"):
        try:
            parse_rule(expression)
        except RuleError as e:
            _fail(e)

    click.echo("ok")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display hookman configuration."""
    settings = _settings(ctx)

    click.echo(f"""
{settings.app_name} v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}

Output:
  JSON Indent:  {settings.json_indent}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `hookman` command is run
    or when using `python -m hookman`.
    """
    cli()


if __name__ == "__main__":
    main()
