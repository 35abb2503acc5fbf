"""
agent.py
========
The adaptive extraction loop.

Resolves the target page, navigates once, then alternates between asking the
oracle for a selector scheme and testing it on the page until a scheme clears
the success threshold or the attempts run out.
"""

import re

import logfire
from rich.console import Console

from pagescout.extraction import extract_records, full_mode
from pagescout.models import AgentDiagnostics, AttemptResult, ScrapeResult, SelectorScheme
from pagescout.oracle import ReasoningClient
from pagescout.sampler import PageSampler
from pagescout.session import PageSession, SessionFactory, open_browser_session
from pagescout.tester import SelectorTester

URL_PATTERN = re.compile(r'https?://\S+')

EXHAUSTED_MESSAGE = 'AI agent could not find suitable selectors. The website structure might be complex or protected.'


def find_url(query: str) -> str | None:
    """Return the first http(s) URL written in the query, if any."""
    match = URL_PATTERN.search(query)
    return match.group(0) if match else None


class AdaptiveScraper:
    """Drives one scrape request from query to records.

    One session is opened per request and closed on every exit path. At most
    ``max_attempts`` schemes are generated; an error inside one attempt is
    logged and the next attempt runs.

    Attributes:
        oracle: Reasoning client used for URL resolution and scheme generation
        tester: Scores schemes in test mode
        sampler: Builds structural samples for retry prompts
        session_factory: Opens a rendering session for the request
        max_attempts: Scheme generations allowed per request
        success_threshold: Success rate at which a scheme is accepted (inclusive)
        navigation_timeout_ms: Bound on the page navigation
        min_fallback_matches: Generic container threshold for full extraction
        console: Optional rich console for progress output

    """

    def __init__(
        self,
        oracle: ReasoningClient,
        tester: SelectorTester | None = None,
        sampler: PageSampler | None = None,
        session_factory: SessionFactory | None = None,
        max_attempts: int = 3,
        success_threshold: float = 0.25,
        navigation_timeout_ms: int = 30000,
        min_fallback_matches: int = 3,
        console: Console | None = None,
    ):
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')

        self.oracle = oracle
        self.tester = tester or SelectorTester(min_fallback_matches=min_fallback_matches, console=console)
        self.sampler = sampler or PageSampler()
        self.session_factory: SessionFactory = session_factory or open_browser_session
        self.max_attempts = max_attempts
        self.success_threshold = success_threshold
        self.navigation_timeout_ms = navigation_timeout_ms
        self.min_fallback_matches = min_fallback_matches
        self.console = console

    async def scrape(self, query: str) -> ScrapeResult:
        """Run the full loop for one request.

        Args:
            query: Natural-language scraping request, optionally containing a URL

        Returns:
            ScrapeResult from the accepted scheme, or the best attempt on exhaustion.

        Raises:
            OracleError: If the target URL cannot be resolved
            BrowserLaunchError: If the browser cannot start
            NavigationError: If the page does not load
        """
        with logfire.span('scrape {query}', query=query) as span:
            url = await self._resolve_url(query)
            span.set_attribute('url', url)

            async with self.session_factory() as session:
                await session.navigate(url, timeout_ms=self.navigation_timeout_ms)
                result = await self._attempt_loop(session, query, url)

            span.set_attribute('success', result.success)
            span.set_attribute('attempts_used', result.ai_agent.attempts_used)
            return result

    async def _resolve_url(self, query: str) -> str:
        url = find_url(query)
        if url:
            logfire.info('Using URL from query', url=url)
            if self.console:
                self.console.print(f'[info]Using URL from request: {url}[/info]')
            return url

        if self.console:
            self.console.print('[info]Asking the reasoning service for a target website...[/info]')
        site = await self.oracle.resolve_target_url(query)
        return site.url

    async def _attempt_loop(self, session: PageSession, query: str, url: str) -> ScrapeResult:
        best = AttemptResult.empty()

        for attempt in range(1, self.max_attempts + 1):
            if self.console:
                self.console.print(f'[step]Attempt {attempt}/{self.max_attempts}[/step]')

            with logfire.span('attempt {attempt}', attempt=attempt):
                try:
                    result = await self._run_attempt(session, query, attempt)

                    if result.success_rate > best.success_rate:
                        best = result

                    if result.success_rate >= self.success_threshold:
                        return await self._extract_full(session, url, result)

                    logfire.info('Success rate below threshold', attempt=attempt, success_rate=result.success_rate)
                    if self.console:
                        self.console.print(
                            f'[warning]  Success rate too low ({result.success_rate:.1%}), trying again[/warning]'
                        )
                except Exception as e:
                    logfire.error('Attempt failed', attempt=attempt, error=str(e), error_type=type(e).__name__)
                    if self.console:
                        self.console.print(f'[danger]  Attempt {attempt} failed: {e}[/danger]')

        return self._exhausted(url, best)

    async def _run_attempt(self, session: PageSession, query: str, attempt: int) -> AttemptResult:
        structural_sample = ''
        if attempt > 1:
            sample = await self.sampler.sample(session)
            structural_sample = sample.to_prompt_text()
            logfire.debug('Page sampled', probes=len(sample.structure))

        scheme = await self.oracle.generate_scheme(query, structural_sample, attempt)
        result = await self.tester.test(session, scheme)
        return result.model_copy(update={'attempt': attempt})

    async def _extract_full(self, session: PageSession, url: str, accepted: AttemptResult) -> ScrapeResult:
        scheme: SelectorScheme = accepted.scheme  # type: ignore[assignment]
        limits = full_mode(scheme.max_items).with_min_fallback_matches(self.min_fallback_matches)
        outcome = await session.evaluate(extract_records, scheme.elements, scheme.containers, limits)
        data = outcome['records']

        message = f'Extracted {len(data)} items on attempt {accepted.attempt}'
        logfire.info('Scheme accepted', attempt=accepted.attempt, success_rate=accepted.success_rate, count=len(data))
        if self.console:
            self.console.print(f'[success]  ✓ {message} ({accepted.success_rate:.1%} success rate)[/success]')

        return ScrapeResult(
            success=True,
            data=data,
            count=len(data),
            url=url,
            ai_agent=AgentDiagnostics(
                attempts_used=accepted.attempt,
                final_success_rate=accepted.success_rate,
                selectors_used=scheme,
                debug_info=accepted.debug_info,
                message=message,
            ),
        )

    def _exhausted(self, url: str, best: AttemptResult) -> ScrapeResult:
        data = best.filled_records
        if data:
            message = f'Found {len(data)} items with {best.success_rate * 100:.1f}% success rate'
        else:
            message = EXHAUSTED_MESSAGE

        logfire.warn('Attempts exhausted', best_attempt=best.attempt, success_rate=best.success_rate, count=len(data))
        if self.console:
            self.console.print(f'[warning]{message}[/warning]')

        return ScrapeResult(
            success=bool(data),
            data=data,
            count=len(data),
            url=url,
            ai_agent=AgentDiagnostics(
                attempts_used=self.max_attempts,
                final_success_rate=best.success_rate,
                selectors_used=best.scheme,
                debug_info=best.debug_info,
                message=message,
            ),
        )
