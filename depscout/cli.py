"""depscout CLI: collect dependents and export their top contributors.

Usage:
    depscout run                              # Use GITHUB_USERNAME, GITHUB_TOKEN, TARGET_REPO
    depscout run --repo acme/widget -n 50     # Override target and cap
    depscout extract dependents_page_1.html   # Debug the page extraction
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import find_dotenv, load_dotenv

from depscout.common.exceptions import (
    ConfigurationError,
    HTMLStructuralAssumptionException,
)
from depscout.config import ScoutConfig
from depscout.driver.sync_driver import ScoutDriver
from depscout.export import NO_RECORDS_MESSAGE, export_csv
from depscout.github.dependents import extract_identifiers
from depscout.github.models import ContributorRecord


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if verbose else logging.WARNING
    )


@click.group()
@click.version_option(package_name="depscout")
def cli() -> None:
    """Find who maintains the repositories that depend on yours."""


@cli.command()
@click.option(
    "--repo",
    "target_repo",
    default=None,
    help="Target repository (owner/repo). Overrides TARGET_REPO.",
)
@click.option(
    "-n",
    "--max-dependents",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum number of dependents to collect.  [default: 500]",
)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="CSV file to write.  [default: contributors.csv]",
)
@click.option(
    "--delay",
    "rate_limit_delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait after a rate-limit response.  [default: 60]",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Per-request timeout in seconds.  [default: 30]",
)
@click.option(
    "--web-url",
    default=None,
    help="Base URL serving the dependents pages.  [default: https://github.com]",
)
@click.option(
    "--api-url",
    default=None,
    help="Base URL of the REST API.  [default: https://api.github.com]",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Load environment variables from this file instead of ./.env.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    target_repo: str | None,
    max_dependents: int | None,
    output_path: Path | None,
    rate_limit_delay: float | None,
    timeout: float | None,
    web_url: str | None,
    api_url: str | None,
    env_file: Path | None,
    verbose: bool,
) -> None:
    """Collect dependents, resolve their top contributors, write a CSV.

    Credentials come from GITHUB_USERNAME and GITHUB_TOKEN, read from the
    environment or a .env file.

    \b
    Examples:
        depscout run
        depscout run --repo acme/widget --max-dependents 50 -o widget.csv
    """
    _configure_logging(verbose)
    dotenv_path = env_file or find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    try:
        config = ScoutConfig.from_env(
            target_repo=target_repo,
            max_dependents=max_dependents,
            output_path=output_path,
            rate_limit_delay=rate_limit_delay,
            timeout=timeout,
            web_url=web_url,
            api_url=api_url,
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    click.echo(f"Target:  {config.target_repo}")
    click.echo(f"Cap:     {config.max_dependents}")

    def echo_record(record: ContributorRecord) -> None:
        click.echo(record.model_dump_json(by_alias=True))

    driver = ScoutDriver(config, on_data=echo_record)
    records = driver.run()

    if export_csv(records, config.output_path):
        click.echo(f"Wrote {len(records)} rows to {config.output_path}")
        click.echo("CSV file created successfully.")
    else:
        click.echo(NO_RECORDS_MESSAGE)


@cli.command()
@click.argument(
    "html_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Only print the first LIMIT identifiers.",
)
def extract(html_file: Path, limit: int | None) -> None:
    """Print the dependents found in a saved dependents page.

    HTML_FILE is a copy of a /network/dependents page.
    """
    document = html_file.read_text(encoding="utf-8", errors="replace")
    try:
        identifiers = extract_identifiers(document, str(html_file), limit)
    except HTMLStructuralAssumptionException as e:
        raise click.ClickException(e.message) from e
    for identifier in identifiers:
        click.echo(identifier)
    if not identifiers:
        click.echo("No dependents found.", err=True)


def main() -> None:
    """Entry point for the ``depscout`` console script."""
    cli()
