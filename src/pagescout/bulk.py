"""
bulk.py
=======
Unrestricted extraction with a known scheme, used for CSV export.
"""

import logfire

from pagescout.extraction import BULK_MODE, extract_records
from pagescout.models import ExtractionRecord, SelectorScheme
from pagescout.session import SessionFactory, open_browser_session


class BulkExtractor:
    """Extracts every record a scheme finds on a page.

    Opens its own session for each call and always releases it.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        navigation_timeout_ms: int = 30000,
        min_fallback_matches: int = 3,
    ):
        self.session_factory: SessionFactory = session_factory or open_browser_session
        self.navigation_timeout_ms = navigation_timeout_ms
        self.limits = BULK_MODE.with_min_fallback_matches(min_fallback_matches)

    async def extract_all(self, scheme: SelectorScheme, url: str) -> list[ExtractionRecord]:
        """Extract all non-empty records from the page.

        Args:
            scheme: Selector scheme to apply
            url: Page to load

        Returns:
            Records in document order. Empty when nothing matched; the caller
            decides whether that is an error.

        Raises:
            BrowserLaunchError: If the browser cannot start
            NavigationError: If the page does not load
        """
        with logfire.span('bulk_extract {url}', url=url):
            async with self.session_factory() as session:
                await session.navigate(url, timeout_ms=self.navigation_timeout_ms)
                outcome = await session.evaluate(extract_records, scheme.elements, scheme.containers, self.limits)

            records = outcome['records']
            logfire.info(
                'Bulk extraction finished',
                count=len(records),
                containers_found=outcome['containers_found'],
            )
            return records
