"""
session.py
==========
Rendering sessions: one browser page per request, navigated once and queried
through pure functions over a snapshot of the rendered DOM.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, TypeVar

import logfire
from bs4 import BeautifulSoup
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pagescout.exceptions import BrowserLaunchError, EvaluationTimeoutError, NavigationError

T = TypeVar('T')

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)
VIEWPORT = {'width': 1920, 'height': 1080}
LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']


class PageSession(ABC):
    """A single rendered page owned by one request.

    Subclasses provide navigation and the raw markup; evaluation is shared.
    Query functions take the parsed page plus positional arguments and must
    return JSON-serializable data only.
    """

    def __init__(self, evaluate_timeout: float | None = 30.0):
        self.evaluate_timeout = evaluate_timeout
        self.url = ''

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:
        """Load a URL and wait until the page has settled.

        Raises:
            NavigationError: If the page does not load in time.
        """

    @abstractmethod
    async def content(self) -> str:
        """Return the current rendered markup."""

    @abstractmethod
    async def close(self) -> None:
        """Release the page and everything behind it. Safe to call twice."""

    async def evaluate(self, query: Callable[..., T], *args: Any) -> T:
        """Run a query function over a snapshot of the rendered page.

        Parsing and the query run in a worker thread so the event loop stays
        responsive and the timeout applies to the whole evaluation.

        Args:
            query: Function called as ``query(soup, *args)``
            *args: Extra arguments for the query

        Returns:
            Whatever the query returns.

        Raises:
            EvaluationTimeoutError: If the snapshot or query exceeds ``evaluate_timeout``.
        """
        try:
            return await asyncio.wait_for(self._evaluate(query, *args), timeout=self.evaluate_timeout)
        except TimeoutError as e:
            logfire.error('Page evaluation timed out', timeout=self.evaluate_timeout, url=self.url)
            raise EvaluationTimeoutError(self.evaluate_timeout or 0.0) from e

    async def _evaluate(self, query: Callable[..., T], *args: Any) -> T:
        html = await self.content()
        soup = await asyncio.to_thread(BeautifulSoup, html, 'lxml')
        return await asyncio.to_thread(query, soup, *args)

    async def __aenter__(self) -> 'PageSession':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class BrowserSession(PageSession):
    """Headless Chromium page driven through Playwright."""

    def __init__(
        self,
        headless: bool = True,
        settle_delay_ms: int = 3000,
        evaluate_timeout: float | None = 30.0,
    ):
        super().__init__(evaluate_timeout=evaluate_timeout)
        self.headless = headless
        self.settle_delay_ms = settle_delay_ms

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    async def open(self) -> 'BrowserSession':
        """Start Playwright, launch Chromium and open one page.

        Raises:
            BrowserLaunchError: If anything fails to start. Partial state is released.
        """
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
            self._context = await self._browser.new_context(user_agent=USER_AGENT, viewport=VIEWPORT)
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            await self.close()
            logfire.error('Browser launch failed', error=str(e))
            raise BrowserLaunchError(f'Could not start headless browser: {e}') from e

        logfire.debug('Browser session opened', headless=self.headless)
        return self

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError('Browser session is not open')
        return self._page

    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:
        with logfire.span('navigate', url=url, timeout_ms=timeout_ms):
            try:
                await self.page.goto(url, wait_until='networkidle', timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                raise NavigationError(url, f'timed out after {timeout_ms} ms') from e
            except PlaywrightError as e:
                raise NavigationError(url, str(e)) from e

            # Let late scripts render after the network goes quiet
            await self.page.wait_for_timeout(self.settle_delay_ms)
            # Record where redirects ended, not what was requested
            self.url = self.page.url

    async def content(self) -> str:
        return await self.page.content()

    async def close(self) -> None:
        context, browser, playwright = self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None

        try:
            if context is not None:
                await context.close()
            if browser is not None:
                await browser.close()
        except PlaywrightError as e:
            logfire.warn('Error while closing browser', error=str(e))
        finally:
            if playwright is not None:
                await playwright.stop()


class SnapshotSession(PageSession):
    """Session over fixed markup, used for saved pages and tests.

    Navigation only records the URL; the markup never changes.
    """

    def __init__(self, html: str, url: str = '', evaluate_timeout: float | None = 30.0):
        super().__init__(evaluate_timeout=evaluate_timeout)
        self.html = html
        self.url = url
        self.navigations: list[str] = []
        self.closed = False

    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:  # noqa: ARG002
        self.navigations.append(url)
        self.url = url

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True


@asynccontextmanager
async def open_browser_session(
    headless: bool = True,
    settle_delay_ms: int = 3000,
    evaluate_timeout: float | None = 30.0,
) -> AsyncIterator[BrowserSession]:
    """Open a browser session that is closed on every exit path.

    Args:
        headless: Run without a window
        settle_delay_ms: Fixed wait after network quiescence
        evaluate_timeout: Bound on one evaluation, in seconds

    Yields:
        An opened BrowserSession.
    """
    session = BrowserSession(headless=headless, settle_delay_ms=settle_delay_ms, evaluate_timeout=evaluate_timeout)
    await session.open()
    try:
        yield session
    finally:
        await session.close()


# Zero-argument callable returning an async context manager that yields a session
SessionFactory = Callable[[], AbstractAsyncContextManager[PageSession]]
