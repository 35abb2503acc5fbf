"""
extraction.py
=============
The container/field/fallback extraction routine shared by every mode.

Test mode samples a few containers to score a scheme, full mode extracts up to
the scheme's item cap once a scheme is accepted, and bulk mode extracts every
container for export. All three run the same routine with different limits.

Functions here are pure queries over a parsed DOM snapshot and return only
JSON-serializable data.
"""

from dataclasses import dataclass, replace
from typing import Any

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from pagescout.exceptions import SelectorEvaluationError

GENERIC_CONTAINER_SELECTORS: tuple[str, ...] = (
    '[class*="product"]',
    '[class*="item"]',
    '[class*="card"]',
    '.grid > *',
    '.collection > *',
    '.listing > *',
    'li',
    'article',
    '.entry',
)

NAME_FALLBACK_SELECTORS: tuple[str, ...] = (
    'h1',
    'h2',
    'h3',
    'h4',
    'h5',
    'h6',
    '.title',
    '.name',
    '.product-title',
    '.product-name',
    '[class*="title"]',
    '[class*="name"]',
    '[class*="product"]',
    'a[href*="product"]',
    'a[href*="item"]',
    '.card-title',
    '.item-title',
    '.heading',
    'span[class*="title"]',
    'div[class*="title"]',
)

PRICE_FALLBACK_SELECTORS: tuple[str, ...] = (
    '.price',
    '.cost',
    '.amount',
    '.money',
    '.currency',
    '[class*="price"]',
    '[class*="cost"]',
    '[class*="money"]',
    '.product-price',
    '.item-price',
    '.sale-price',
    '[data-price]',
    'span[class*="price"]',
    'div[class*="price"]',
    '.price-current',
    '.price-new',
)

RATING_FALLBACK_SELECTORS: tuple[str, ...] = (
    '.rating',
    '.stars',
    '.score',
    '.review',
    '[class*="rating"]',
    '[class*="star"]',
    '[class*="review"]',
    '.product-rating',
    '.item-rating',
    '.star-rating',
    '[data-rating]',
    '[aria-label*="star"]',
    'span[class*="rating"]',
    'div[class*="star"]',
)

# Checked in order; the first family whose keyword occurs in the field name wins
FIELD_FAMILIES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ('name', ('name', 'title'), NAME_FALLBACK_SELECTORS),
    ('price', ('price', 'cost'), PRICE_FALLBACK_SELECTORS),
    ('rating', ('rating', 'star'), RATING_FALLBACK_SELECTORS),
)


@dataclass(frozen=True)
class ExtractionLimits:
    """Parameters that distinguish the extraction modes.

    Attributes:
        sample_limit: Only the first N containers are read (None for all)
        truncate_length: Field text is cut to N characters (None for no cut)
        item_cap: At most N containers are read (None for no cap)
        fallback_cap: Generic fallback containers are cut to N (None for no cut)
        min_fallback_matches: A generic selector must match MORE than N elements
        drop_empty: Drop records whose fields are all empty

    """

    sample_limit: int | None = None
    truncate_length: int | None = None
    item_cap: int | None = None
    fallback_cap: int | None = None
    min_fallback_matches: int = 3
    drop_empty: bool = True

    def with_min_fallback_matches(self, value: int) -> 'ExtractionLimits':
        """Copy of these limits with another generic-container threshold."""
        return replace(self, min_fallback_matches=value)


TEST_MODE = ExtractionLimits(sample_limit=3, truncate_length=100, fallback_cap=20, drop_empty=False)
BULK_MODE = ExtractionLimits()


def full_mode(max_items: int) -> ExtractionLimits:
    """Limits for the full extraction pass after a scheme is accepted."""
    return ExtractionLimits(item_cap=max_items)


def split_selectors(selector_string: str) -> list[str]:
    """Split a comma-separated selector string into its ordered sub-selectors."""
    return [s.strip() for s in selector_string.split(',') if s.strip()]


def fallback_family(field_name: str) -> str | None:
    """Name of the fallback family for a field, by case-insensitive substring."""
    lowered = field_name.lower()
    for family, keywords, _ in FIELD_FAMILIES:
        if any(keyword in lowered for keyword in keywords):
            return family
    return None


def fallback_selectors_for(field_name: str) -> tuple[str, ...]:
    """Curated fallback selectors for a field, empty if no family matches."""
    family = fallback_family(field_name)
    for name, _, selectors in FIELD_FAMILIES:
        if name == family:
            return selectors
    return ()


def select_all(root: BeautifulSoup | Tag, selector: str) -> list[Tag]:
    """Run a CSS selector, normalizing selector failures.

    Raises:
        SelectorEvaluationError: If the selector is invalid or unsupported.
    """
    try:
        return list(root.select(selector))
    except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
        raise SelectorEvaluationError(selector, str(e)) from e


def select_first(root: BeautifulSoup | Tag, selector: str) -> Tag | None:
    """Run a CSS selector and return the first match.

    Raises:
        SelectorEvaluationError: If the selector is invalid or unsupported.
    """
    try:
        return root.select_one(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
        raise SelectorEvaluationError(selector, str(e)) from e


def resolve_containers(
    soup: BeautifulSoup,
    container_selectors: list[str],
    limits: ExtractionLimits,
    debug_info: dict[str, str],
) -> list[Tag]:
    """Find record containers: declared selectors first, then generic ones.

    Args:
        soup: Parsed page
        container_selectors: Declared container selectors in priority order
        limits: Mode limits (fallback threshold and cap)
        debug_info: Receives the winning selector or selector errors

    Returns:
        Matched container elements, possibly empty.

    """
    for selector in container_selectors:
        try:
            elements = select_all(soup, selector.strip())
        except SelectorEvaluationError as e:
            debug_info[f'container_error_{selector}'] = e.reason
            continue
        if elements:
            debug_info['working_container_selector'] = selector
            return elements

    for selector in GENERIC_CONTAINER_SELECTORS:
        elements = select_all(soup, selector)
        if len(elements) > limits.min_fallback_matches:
            debug_info['fallback_container_selector'] = selector
            if limits.fallback_cap is not None:
                return elements[: limits.fallback_cap]
            return elements

    return []


def element_text(element: Tag | None) -> str:
    """Trimmed text content of an element, empty for None."""
    if element is None:
        return ''
    return element.get_text().strip()


def extract_field(
    container: Tag,
    field_name: str,
    selectors: list[str],
    limits: ExtractionLimits,
    debug_info: dict[str, str],
) -> str:
    """Extract one field from one container.

    Declared selectors are tried in order, then the field family's fallback
    selectors. The first element with non-empty text wins.

    Args:
        container: Container element to search within
        field_name: Name of the field being extracted
        selectors: Declared sub-selectors in priority order
        limits: Mode limits (truncation)
        debug_info: Receives the matching selector or selector errors

    Returns:
        Extracted text, or an empty string when nothing matched.

    """
    for selector in selectors:
        try:
            text = element_text(select_first(container, selector))
        except SelectorEvaluationError as e:
            debug_info[f'{field_name}_error_{selector}'] = e.reason
            continue
        if text:
            debug_info[f'{field_name}_working_selector'] = selector
            return _truncate(text, limits.truncate_length)

    for selector in fallback_selectors_for(field_name):
        text = element_text(select_first(container, selector))
        if text:
            debug_info[f'{field_name}_fallback_selector'] = selector
            return _truncate(text, limits.truncate_length)

    return ''


def extract_records(
    soup: BeautifulSoup,
    elements: dict[str, str],
    containers: list[str],
    limits: ExtractionLimits,
) -> dict[str, Any]:
    """Run the extraction routine over a parsed page.

    Args:
        soup: Parsed page
        elements: Field name to comma-separated selector list
        containers: Declared container selectors
        limits: Mode limits

    Returns:
        Dict with ``containers_found``, ``records`` and ``debug_info``.

    """
    debug_info: dict[str, str] = {}
    found = resolve_containers(soup, containers, limits, debug_info)

    selected = found
    if limits.sample_limit is not None:
        selected = selected[: limits.sample_limit]
    if limits.item_cap is not None:
        selected = selected[: limits.item_cap]

    field_selectors = {field_name: split_selectors(selector_string) for field_name, selector_string in elements.items()}

    records: list[dict[str, str]] = []
    for container in selected:
        record = {
            field_name: extract_field(container, field_name, selectors, limits, debug_info)
            for field_name, selectors in field_selectors.items()
        }
        if limits.drop_empty and not any(record.values()):
            continue
        records.append(record)

    return {'containers_found': len(found), 'records': records, 'debug_info': debug_info}


def _truncate(text: str, length: int | None) -> str:
    return text if length is None else text[:length]
