"""
server.py
=========
HTTP surface: ``POST /api/scrape`` for adaptive scraping and CSV export.
"""

from functools import partial
from typing import Any

import logfire
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from pagescout import __version__
from pagescout.agent import AdaptiveScraper
from pagescout.bulk import BulkExtractor
from pagescout.config import API_KEY_VARIABLES, Settings
from pagescout.exceptions import ExportDataEmpty
from pagescout.models import ExtractionRecord, SelectorScheme
from pagescout.oracle import ReasoningClient
from pagescout.outputs.csv_output import export_filename, to_csv
from pagescout.session import SessionFactory, open_browser_session

MISSING_KEY_ERROR = 'Reasoning service API key is not configured'


async def export_records(bulk: BulkExtractor, scheme: SelectorScheme, url: str) -> list[ExtractionRecord]:
    """Bulk-extract records for export.

    Raises:
        ExportDataEmpty: If the page yields no records.
    """
    records = await bulk.extract_all(scheme, url)
    if not records:
        raise ExportDataEmpty(url)
    return records


def error_response(status_code: int, error: str, details: str | None = None, **extra: Any) -> JSONResponse:
    """JSON error body with an ``error`` message and optional ``details``."""
    body: dict[str, Any] = {'error': error}
    if details is not None:
        body['details'] = details
    body.update(extra)
    return JSONResponse(body, status_code=status_code)


def build_session_factory(settings: Settings) -> SessionFactory:
    """Browser session factory configured from settings."""
    return partial(
        open_browser_session,
        headless=settings.headless,
        settle_delay_ms=settings.settle_delay_ms,
        evaluate_timeout=settings.evaluate_timeout,
    )


def build_oracle(settings: Settings) -> ReasoningClient | None:
    """Reasoning client from settings, None when no API key is configured."""
    if not settings.has_api_key:
        return None
    return ReasoningClient(
        llm_config=settings.llm_config(),
        timeout=settings.oracle_timeout,
        max_retries=settings.oracle_retries,
    )


def create_app(
    settings: Settings | None = None,
    oracle: ReasoningClient | None = None,
    session_factory: SessionFactory | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    The reasoning client is built once here and shared by all requests. Each
    request opens and closes its own rendering session.

    Args:
        settings: Runtime settings, loaded from the environment when omitted
        oracle: Ready reasoning client, built from settings when omitted
        session_factory: Rendering session factory, a headless browser when omitted

    Returns:
        Configured FastAPI app.
    """
    settings = settings or Settings.from_env()
    oracle = oracle or build_oracle(settings)
    session_factory = session_factory or build_session_factory(settings)

    app = FastAPI(title='pagescout', version=__version__)
    app.state.settings = settings
    app.state.oracle = oracle

    bulk = BulkExtractor(
        session_factory=session_factory,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        min_fallback_matches=settings.min_fallback_matches,
    )

    def make_scraper(client: ReasoningClient) -> AdaptiveScraper:
        return AdaptiveScraper(
            oracle=client,
            session_factory=session_factory,
            max_attempts=settings.max_attempts,
            success_threshold=settings.success_threshold,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            min_fallback_matches=settings.min_fallback_matches,
        )

    async def export(body: dict[str, Any]) -> Response:
        selectors = body.get('selectors')
        url = body.get('url')
        if not selectors or not url:
            return error_response(400, 'Selectors and URL are required for export')

        try:
            scheme = SelectorScheme.model_validate(selectors)
        except ValidationError as e:
            return error_response(400, 'Invalid selectors', details=str(e))

        try:
            records = await export_records(bulk, scheme, str(url))
        except ExportDataEmpty as e:
            logfire.warn('Export found no data', url=e.url)
            return error_response(400, 'No data found for export', details=str(e))

        logfire.info('Export completed', url=url, count=len(records))
        return Response(
            content=to_csv(records),
            media_type='text/csv',
            headers={'Content-Disposition': f'attachment; filename="{export_filename()}"'},
        )

    @app.get('/health')
    async def health() -> dict[str, str]:
        return {'status': 'ok'}

    @app.post('/api/scrape')
    async def scrape(request: Request) -> Response:
        with logfire.span('POST /api/scrape'):
            client: ReasoningClient | None = app.state.oracle
            if client is None:
                names = ' or '.join(API_KEY_VARIABLES.get(settings.provider, ('an API key',)))
                return error_response(500, MISSING_KEY_ERROR, details=f'Set {names}')

            try:
                body = await request.json()
            except ValueError:
                return error_response(400, 'Request body must be a JSON object')
            if not isinstance(body, dict):
                return error_response(400, 'Request body must be a JSON object')

            try:
                if body.get('action') == 'export':
                    return await export(body)

                query = body.get('query')
                if not isinstance(query, str) or not query.strip():
                    return error_response(400, 'Query is required')

                result = await make_scraper(client).scrape(query)
            except Exception as e:
                logfire.exception('Scraping error', error_type=type(e).__name__)
                return error_response(
                    500, str(e) or 'An error occurred during scraping', details=f'{type(e).__name__}: {e}'
                )

            if result.success:
                return JSONResponse(result.to_response())
            return error_response(
                400,
                'Could not extract data from the website',
                details=result.ai_agent.message or 'AI agent exhausted all attempts',
                aiAgent=result.ai_agent.to_json_dict(),
            )

    return app
