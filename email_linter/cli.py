"""CLI entry point for email-linter.

Commands:
    email-linter scan     find disposable addresses and who mails them
    email-linter logout   remove the stored API token
"""

import asyncio
import logging
import sys

import click

from email_linter.config import load_settings
from email_linter.credentials import delete_token, load_token, save_token
from email_linter.errors import ConfigError, LinterError
from email_linter.schemas.linter import LinterOutcome, LinterResult, LinterSettings

logger = logging.getLogger("email_linter")

TOKEN_PROMPT = (
    "Create a read-only JMAP API token and either:\n"
    "  * put it in a file named ~/.config/email-linter/jmap_token\n"
    "  * or put it in an environment variable named JMAP_TOKEN\n"
    "  * or enter the token here"
)


@click.group()
@click.version_option(package_name="email-linter")
@click.option("--verbose", "-v", is_flag=True, help="Display extra info while running.")
def cli(verbose: bool) -> None:
    """Find spam and phishing emails received at disposable email addresses."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ------------------------------------------------------------------
# email-linter scan
# ------------------------------------------------------------------


@cli.command()
@click.option(
    "--domains",
    "-d",
    default=None,
    help="Space-separated email protection service domains to search for.",
)
@click.option("--url", default=None, help="The JMAP session URL.")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Max threads per query.")
@click.option(
    "--max-senders",
    "-f",
    type=click.IntRange(min=0),
    default=None,
    help="Show senders of an address only if there are at most this many.",
)
@click.option("--json", "-j", "as_json", is_flag=True, help="Print output as JSON.")
@click.option("--save-token", "store_token", is_flag=True, help="Store an entered token for future runs.")
def scan(
    domains: str | None,
    url: str | None,
    limit: int | None,
    max_senders: int | None,
    as_json: bool,
    store_token: bool,
) -> None:
    """Find disposable addresses in the inbox and who has been mailing them."""
    try:
        settings = load_settings(
            session_url=url, domains=domains, limit=limit, max_senders=max_senders
        )
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if not settings.domains:
        click.echo("Error: No protection domains configured.", err=True)
        sys.exit(1)

    token = load_token()
    if token is None:
        token = click.prompt(TOKEN_PROMPT, hide_input=True).strip()
        if store_token:
            path = save_token(token)
            click.echo(f"Token saved to {path}", err=True)

    try:
        result = asyncio.run(_scan_async(token, settings))
    except LinterError as exc:
        logger.debug("Run failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    from email_linter.report import render_json, render_text

    if result.outcome == LinterOutcome.NO_DISPOSABLE_FOUND:
        click.echo("No disposable addresses found in your inbox.", err=True)
        return

    if as_json:
        click.echo(render_json(result))
    else:
        click.echo(render_text(result, settings.max_senders))


async def _scan_async(token: str, settings: LinterSettings) -> LinterResult:
    from email_linter.integrations.jmap import JmapClient
    from email_linter.orchestrator.pipeline import run_linter

    def _progress(msg: str) -> None:
        click.echo(msg, err=True)

    async with JmapClient(settings.session_url, token) as client:
        return await run_linter(client=client, settings=settings, on_progress=_progress)


# ------------------------------------------------------------------
# email-linter logout
# ------------------------------------------------------------------


@cli.command()
def logout() -> None:
    """Remove the stored API token."""
    if delete_token():
        click.echo("API token removed.")
    else:
        click.echo("No stored API token found.")
