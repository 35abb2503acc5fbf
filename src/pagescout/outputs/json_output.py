"""JSON output formatter for scrape results."""

import json
import os
from datetime import datetime

from pagescout.models import ScrapeResult


def format_json(query: str, result: ScrapeResult) -> dict:
    """Format a scrape result as JSON with metadata.

    Args:
        query: The request that produced the result
        result: Scrape result

    Returns:
        Dictionary with metadata, records and agent diagnostics, ready for JSON serialization.

    """
    return {
        'query': query,
        'url': result.url,
        'extracted_at': datetime.now().isoformat(),
        'success': result.success,
        'count': result.count,
        'data': result.data,
        'aiAgent': result.ai_agent.to_json_dict(),
    }


def save_json(filepath: str, query: str, result: ScrapeResult):
    """Format and save a scrape result as a JSON file.

    Args:
        filepath: Path to save the file
        query: The request that produced the result
        result: Scrape result

    """
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(format_json(query, result), f, indent=2, ensure_ascii=False)
