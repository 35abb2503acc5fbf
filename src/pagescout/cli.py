"""
cli.py
======
Command-line entry point: scrape from a request, export CSV with a known
scheme, or serve the HTTP API.
"""

import argparse
import asyncio
import json
import sys
from functools import partial

import logfire
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from pagescout.agent import AdaptiveScraper
from pagescout.bulk import BulkExtractor
from pagescout.config import Settings
from pagescout.exceptions import ExportDataEmpty, PageScoutError
from pagescout.models import ExtractionRecord, ScrapeResult, SelectorScheme
from pagescout.oracle import ReasoningClient
from pagescout.outputs.csv_output import export_filename, save_csv
from pagescout.outputs.json_output import save_json
from pagescout.session import open_browser_session
from pagescout.utils.files import get_exports_path, init_workdir
from pagescout.utils.logging import configure_logfire, setup_local_logging

THEME = Theme(
    {
        'info': 'dim cyan',
        'warning': 'magenta',
        'danger': 'bold red',
        'success': 'bold green',
        'step': 'bold blue',
    }
)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the pagescout command."""
    parser = argparse.ArgumentParser(
        prog='pagescout', description='Extract structured data from web pages using AI-discovered CSS selectors'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default='INFO',
        help='Level of the local file log in .pagescout/logs (DEBUG, INFO, WARNING, ERROR, ALL)',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    scrape = subparsers.add_parser('scrape', help='Scrape records described by a natural-language request')
    scrape.add_argument('query', type=str, help='What to scrape, optionally including the page URL')
    scrape.add_argument('--output', type=str, help='Save the full result as JSON to this file')
    scrape.add_argument('--csv', type=str, help='Save the records as CSV to this file')
    scrape.add_argument('--show-browser', action='store_true', help='Run the browser with a visible window')

    export = subparsers.add_parser('export', help='Extract every record with a known selector scheme as CSV')
    export.add_argument('--url', type=str, required=True, help='Page to extract from')
    export.add_argument('--selectors', type=str, required=True, help='JSON file holding the selector scheme')
    export.add_argument('--output', type=str, help='CSV file to write (defaults to .pagescout/exports)')
    export.add_argument('--show-browser', action='store_true', help='Run the browser with a visible window')

    serve = subparsers.add_parser('serve', help='Serve the HTTP API')
    serve.add_argument('--host', type=str, default='127.0.0.1', help='Interface to bind')
    serve.add_argument('--port', type=int, default=8000, help='Port to bind')

    return parser


def print_records(console: Console, records: list[ExtractionRecord], title: str = 'Extracted Records'):
    """Render records as a rich table."""
    if not records:
        console.print('[warning]No records extracted[/warning]')
        return

    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)

    table = Table(title=title)
    for column in columns:
        table.add_column(column, style='cyan', overflow='fold')
    for record in records:
        table.add_row(*(record.get(column, '') for column in columns))
    console.print(table)


def print_diagnostics(console: Console, result: ScrapeResult):
    """Summarize the agent diagnostics of a scrape."""
    agent = result.ai_agent
    console.print(f'[info]URL: {result.url}[/info]')
    console.print(f'[info]Attempts used: {agent.attempts_used}[/info]')
    console.print(f'[info]Final success rate: {agent.final_success_rate:.1%}[/info]')
    if agent.message:
        style = 'success' if result.success else 'warning'
        console.print(f'[{style}]{agent.message}[/{style}]')


def run_scrape(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    """Handle ``pagescout scrape``."""
    oracle = ReasoningClient(
        llm_config=settings.llm_config(),
        timeout=settings.oracle_timeout,
        max_retries=settings.oracle_retries,
        console=console,
    )
    scraper = AdaptiveScraper(
        oracle=oracle,
        session_factory=partial(
            open_browser_session,
            headless=settings.headless and not args.show_browser,
            settle_delay_ms=settings.settle_delay_ms,
            evaluate_timeout=settings.evaluate_timeout,
        ),
        max_attempts=settings.max_attempts,
        success_threshold=settings.success_threshold,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        min_fallback_matches=settings.min_fallback_matches,
        console=console,
    )

    console.print(Panel(f'Scraping: {args.query}', style='bold blue'))
    result = asyncio.run(scraper.scrape(args.query))

    print_records(console, result.data)
    print_diagnostics(console, result)

    if args.output:
        save_json(args.output, args.query, result)
        console.print(f'[success]Saved result to {args.output}[/success]')
    if args.csv and result.data:
        save_csv(args.csv, result.data)
        console.print(f'[success]Saved {result.count} records to {args.csv}[/success]')

    return 0 if result.success else 1


def run_export(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    """Handle ``pagescout export``."""
    try:
        with open(args.selectors, encoding='utf-8') as f:
            scheme = SelectorScheme.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f'[danger]Could not read selector scheme from {args.selectors}: {e}[/danger]')
        return 2

    extractor = BulkExtractor(
        session_factory=partial(
            open_browser_session,
            headless=settings.headless and not args.show_browser,
            settle_delay_ms=settings.settle_delay_ms,
            evaluate_timeout=settings.evaluate_timeout,
        ),
        navigation_timeout_ms=settings.navigation_timeout_ms,
        min_fallback_matches=settings.min_fallback_matches,
    )

    console.print('[step]Extracting all records for export...[/step]')
    records = asyncio.run(extractor.extract_all(scheme, args.url))
    if not records:
        raise ExportDataEmpty(args.url)

    output = args.output
    if not output:
        init_workdir()
        output = str(get_exports_path() / export_filename())

    save_csv(output, records)
    console.print(f'[success]Exported {len(records)} records to {output}[/success]')
    return 0


def run_serve(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    """Handle ``pagescout serve``."""
    import uvicorn

    from pagescout.server import create_app

    if not settings.has_api_key:
        console.print('[warning]No reasoning API key configured; scrape requests will fail with 500[/warning]')

    console.print(f'[step]Serving pagescout on http://{args.host}:{args.port}[/step]')
    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


COMMANDS = {
    'scrape': run_scrape,
    'export': run_export,
    'serve': run_serve,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console(theme=THEME)

    try:
        settings = Settings.from_env()
    except PageScoutError as e:
        console.print(f'[danger]{e}[/danger]')
        return 2

    if configure_logfire(settings.logfire_token):
        console.print('[info]Logfire setup complete[/info]')
    log_file = setup_local_logging(args.log_level)
    logfire.info('pagescout started', command=args.command, log_file=str(log_file))

    try:
        return COMMANDS[args.command](args, settings, console)
    except ExportDataEmpty as e:
        console.print(f'[danger]No data found for export: {e}[/danger]')
        return 1
    except PageScoutError as e:
        logfire.error('Command failed', command=args.command, error=str(e), error_type=type(e).__name__)
        console.print(f'[danger]{type(e).__name__}: {e}[/danger]')
        return 1
    except KeyboardInterrupt:
        console.print('\n[warning]Interrupted[/warning]')
        return 130


if __name__ == '__main__':
    sys.exit(main())
