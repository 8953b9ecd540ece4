"""CLI entry point — command definitions using Click.

Commands:
    init     Generate a template config file
    check    Load URLs in a browser and report collected issues
"""

import asyncio
import functools
import json
import logging
import sys
from typing import Any

import click

from page_lint import __version__

EXIT_ISSUES_FOUND = 1
EXIT_ERROR = 2


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_options(ctx: click.Context):
    """Return Options from --config, or defaults when no file was given. Exits on error."""
    from page_lint.config import ConfigError, defaults, load

    config_path = ctx.obj["config_path"]
    if not config_path:
        return defaults()
    try:
        return load(config_path)
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


def _emit(text: str, ctx: click.Context) -> None:
    """Write to stdout or to the file specified by --output."""
    output_path: str | None = ctx.obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _render_json(data: Any, ctx: click.Context) -> str:
    indent = 2 if ctx.obj["pretty"] else None
    return json.dumps(data, indent=indent, ensure_ascii=False)


def _handle_errors(func):
    """Decorator that catches validator and browser failures and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from playwright.async_api import Error as PlaywrightError

        from page_lint.validator import NetworkError, ValidatorError

        try:
            return func(*args, **kwargs)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(EXIT_ERROR)
        except ValidatorError as exc:
            click.echo(f"Validator error: {exc}", err=True)
            sys.exit(EXIT_ERROR)
        except PlaywrightError as exc:
            click.echo(f"Browser error: {exc}", err=True)
            sys.exit(EXIT_ERROR)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Path to a YAML configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write the report to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="page-lint")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """Collect console, network and HTML issues from pages loaded in a browser."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="page-lint.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template page-lint.yaml file."""
    from page_lint.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it to point at your validator and pick a browser.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@cli.command("check")
@click.argument("urls", nargs=-1, required=True)
@click.option("--browser", type=click.Choice(["chromium", "firefox", "webkit"]), default=None,
              help="Browser engine (overrides config).")
@click.option("--no-html", "no_html", is_flag=True, default=False,
              help="Skip HTML validation of page documents.")
@click.option("--headed", is_flag=True, default=False,
              help="Show the browser window.")
@click.option("--format", "output_format", type=click.Choice(["json", "text"]), default="json",
              show_default=True, help="Report format.")
@click.option("--fail-on-issues/--no-fail-on-issues", default=True, show_default=True,
              help="Exit with status 1 when any issue is found.")
@click.pass_context
@_handle_errors
def check_command(ctx: click.Context, urls: tuple[str, ...], browser: str | None,
                  no_html: bool, headed: bool, output_format: str,
                  fail_on_issues: bool) -> None:
    """Load URLS in order and report issues raised while they ran."""
    from page_lint.reports.summary import build_report, format_text
    from page_lint.runner import lint_urls

    options = _load_options(ctx)
    if browser:
        options.browser = browser
    if no_html:
        options.html = False
    if headed:
        options.headless = False

    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Checking {len(urls)} URL(s) with {options.browser}", err=True)

    pages = asyncio.run(lint_urls(list(urls), options))

    if output_format == "text":
        _emit(format_text(pages), ctx)
    else:
        _emit(_render_json(build_report(pages), ctx), ctx)

    if fail_on_issues and any(p.issue_count for p in pages):
        sys.exit(EXIT_ISSUES_FOUND)
