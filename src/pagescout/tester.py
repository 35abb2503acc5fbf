"""
tester.py
=========
Scores a selector scheme against the live page by extracting a few sample
records and measuring how many of their fields were filled.
"""

import logfire
from rich.console import Console

from pagescout.extraction import TEST_MODE, ExtractionLimits, extract_records
from pagescout.models import AttemptResult, ExtractionRecord, SelectorScheme
from pagescout.session import PageSession


def fill_ratio(records: list[ExtractionRecord]) -> float:
    """Mean share of non-empty fields per record, 0 for no records.

    Args:
        records: Sampled records

    Returns:
        Value in [0, 1].
    """
    ratios = [sum(1 for value in record.values() if value) / len(record) for record in records if record]
    if not ratios:
        return 0.0
    return sum(ratios) / len(ratios)


class SelectorTester:
    """Runs the extraction routine in test mode and scores the result.

    Attributes:
        limits: Test-mode extraction limits
        console: Optional rich console for progress output

    """

    def __init__(self, min_fallback_matches: int = 3, console: Console | None = None):
        self.limits: ExtractionLimits = TEST_MODE.with_min_fallback_matches(min_fallback_matches)
        self.console = console

    async def test(self, session: PageSession, scheme: SelectorScheme) -> AttemptResult:
        """Test a scheme against the page the session is on.

        The caller attaches the attempt number. Selector errors never escape;
        they show up in the result's debug info.

        Args:
            session: Session positioned on the target page
            scheme: Scheme to test

        Returns:
            AttemptResult with success rate, container count, sample records and debug info.
        """
        outcome = await session.evaluate(extract_records, scheme.elements, scheme.containers, self.limits)

        records = outcome['records']
        result = AttemptResult(
            scheme=scheme,
            success_rate=fill_ratio(records),
            containers_found=outcome['containers_found'],
            sample_records=records,
            debug_info=outcome['debug_info'],
        )

        logfire.info(
            'Selector scheme tested',
            success_rate=result.success_rate,
            containers_found=result.containers_found,
            sampled=len(records),
        )
        if self.console:
            self.console.print(
                f'[info]  Found {result.containers_found} containers, '
                f'success rate {result.success_rate:.0%}[/info]'
            )
        return result
