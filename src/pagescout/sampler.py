"""
sampler.py
==========
Compact structural summary of a page, fed back to the oracle on retries.
"""

from typing import Any

from bs4 import BeautifulSoup

from pagescout.models import PageSample
from pagescout.session import PageSession

PROBE_SELECTORS: tuple[str, ...] = (
    'main',
    'section',
    'article',
    'div[class*="product"]',
    'div[class*="item"]',
    'div[class*="card"]',
    'div[class*="grid"]',
    'div[class*="collection"]',
    'div[class*="listing"]',
    'ul',
    'ol',
)

INNER_HTML_LIMIT = 300


def _class_name(element) -> str:
    classes = element.get('class') or []
    if isinstance(classes, str):
        return classes
    return ' '.join(classes)


def _inner_html(element) -> str:
    return ''.join(str(child) for child in element.children)


def probe_structure(soup: BeautifulSoup, probes: tuple[str, ...] = PROBE_SELECTORS) -> dict[str, Any]:
    """Summarize the page: title, body classes and one entry per matching probe."""
    structure = []
    for selector in probes:
        matches = soup.select(selector)
        if not matches:
            continue
        first = matches[0]
        structure.append(
            {
                'selector': selector,
                'match_count': len(matches),
                'sample_class_name': _class_name(first),
                'truncated_inner_html': _inner_html(first)[:INNER_HTML_LIMIT],
            }
        )

    title = soup.title.get_text().strip() if soup.title else ''
    body = soup.body
    return {
        'title': title,
        'body_class_names': _class_name(body) if body else '',
        'structure': structure,
    }


class PageSampler:
    """Produces a PageSample from the session's current page."""

    def __init__(self, probes: tuple[str, ...] = PROBE_SELECTORS):
        self.probes = probes

    async def sample(self, session: PageSession) -> PageSample:
        summary = await session.evaluate(probe_structure, self.probes)
        return PageSample.model_validate({**summary, 'url': session.url})
