#!/usr/bin/env python3
"""
CLI for the Directory Scraper

Commands:
    run         - Crawl listing pages (and optionally detail pages) into a JSONL file
    extract     - Parse a saved listing page offline and print its records

Usage:
    directory-scraper run --practice-area personal-injury-plaintiff --region texas
    directory-scraper run --input run_input.json --output output/texas.jsonl
    directory-scraper extract saved_page.html

Examples:
    # First 50 listings for a county, with detail pages
    directory-scraper run --practice-area family-law --region california \\
        --sub-region los-angeles-county --results-wanted 50 --collect-details

    # Explicit start URL
    directory-scraper run --start-url "https://lawyers.findlaw.com/dui-law/ohio/"
"""
import json
import logging
import sys

import click
from bs4 import BeautifulSoup
from pydantic import ValidationError

from . import __version__, config
from .schemas import RunInput
from .scrapers import (
    FINDLAW,
    ConfigError,
    CrawlOrchestrator,
    JsonLinesSink,
    ListingPipeline,
    PageFetcher,
)
from .scrapers.extractors import extract_candidates
from .scrapers.orchestrator import HTML_PARSER
from .scrapers.utils import normalize_candidate

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def load_run_input(input_file, overrides: dict) -> RunInput:
    """Merge a JSON input file with CLI overrides (CLI wins) and validate."""
    data = {}
    if input_file:
        data = json.load(input_file)
        if not isinstance(data, dict):
            raise ConfigError("Run input file must contain a JSON object")
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return RunInput.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid run input: {e}") from e


@click.group()
@click.version_option(version=__version__, prog_name="directory-scraper")
def cli():
    """Directory Scraper CLI - Crawl lawyer directory listings."""
    pass


@cli.command("run")
@click.option("--input", "input_file", type=click.File("r"), help="JSON run input file")
@click.option("--start-url", "start_urls", multiple=True, help="Explicit listing URL (repeatable)")
@click.option("--practice-area", help="Practice area path segment, e.g. family-law")
@click.option("--region", help="State path segment, e.g. texas")
@click.option("--sub-region", help="County path segment")
@click.option("--locality", help="City path segment (ignored when --sub-region is set)")
@click.option("--results-wanted", help="Max records to save (non-numeric = unlimited)")
@click.option("--max-pages", help="Max listing pages to visit")
@click.option("--collect-details/--no-collect-details", default=None, help="Visit profile pages")
@click.option("--output", "output_path", type=click.Path(dir_okay=False), help="JSONL output file")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def run(input_file, start_urls, practice_area, region, sub_region, locality,
        results_wanted, max_pages, collect_details, output_path, log_level):
    """
    Crawl the directory and append records to a JSONL file.
    """
    configure_logging(log_level or config.get_log_level())

    try:
        run_input = load_run_input(input_file, {
            "startUrls": list(start_urls) or None,
            "practiceArea": practice_area,
            "region": region,
            "subRegion": sub_region,
            "locality": locality,
            "resultsWanted": results_wanted,
            "maxPages": max_pages,
            "collectDetails": collect_details,
        })
        urls = run_input.start_urls(FINDLAW)
    except (ConfigError, json.JSONDecodeError) as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)

    output_path = output_path or config.get_output_path()
    state = run_input.to_run_state()
    retries = run_input.max_request_retries
    fetcher = PageFetcher(
        timeout=config.get_request_timeout(),
        max_retries=config.get_max_retries() if retries is None else retries,
        proxy_urls=run_input.proxy_urls,
    )
    pipeline = ListingPipeline(
        urls,
        state,
        JsonLinesSink(output_path),
        profile=FINDLAW,
        batch_size=config.get_detail_batch_size(),
    )
    orchestrator = CrawlOrchestrator(
        pipeline,
        fetcher,
        max_concurrency=config.get_max_concurrency(),
        max_requests=config.get_max_requests(),
    )

    click.echo(f"Start URL(s): {', '.join(urls)}")
    click.echo(f"Output: {output_path}")
    click.echo()

    try:
        summary = orchestrator.run()
    finally:
        fetcher.close()

    click.echo("=" * 60)
    click.secho("RUN SUMMARY", fg="cyan", bold=True)
    click.echo("=" * 60)
    click.echo(f"Run ID:          {summary['run_id']}")
    click.echo(f"Saved:           {summary['saved']}")
    click.echo(f"Pages processed: {summary['pages_processed']}")
    click.echo(f"Pages failed:    {summary['pages_failed']}")
    if state.collect_details:
        click.echo(
            f"Details:         {summary['details_completed']} completed, "
            f"{summary['details_failed']} failed, {summary['details_skipped']} skipped"
        )
    errors = summary.get("errors_count", 0)
    click.echo(click.style("Errors:          ", fg="white") + click.style(str(errors), fg="red" if errors else "green"))
    click.echo(f"Duration:        {summary['duration_seconds']}s")


@cli.command("extract")
@click.argument("html_file", type=click.File("r", encoding="utf-8"))
@click.option("--base-url", default=FINDLAW.base_url, show_default=True,
              help="URL the page was saved from, for resolving relative links")
def extract(html_file, base_url):
    """
    Parse a saved listing page and print the records as JSON.

    HTML_FILE: Path to the saved HTML
    """
    soup = BeautifulSoup(html_file.read(), HTML_PARSER)
    strategy, candidates = extract_candidates(soup, base_url)
    records = [normalize_candidate(raw, base_url) for raw in candidates]

    click.echo(json.dumps(
        {
            "strategy": strategy,
            "count": len(records),
            "records": [r.to_dict(include_detail_fields=False) for r in records],
        },
        indent=2,
        ensure_ascii=False,
        default=str,
    ))


if __name__ == "__main__":
    cli()
