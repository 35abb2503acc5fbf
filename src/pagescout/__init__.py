"""
pagescout - Adaptive AI-Guided Web Extraction
=============================================

pagescout turns a natural-language request into structured records from an
unknown web page. A reasoning model proposes CSS selector schemes, each scheme
is tested on the rendered page, and the loop retries with a structural sample
of the page until a scheme is good enough.

Main Components:
    - ReasoningClient: Resolves target URLs and generates selector schemes
    - AdaptiveScraper: The propose/test/retry extraction loop
    - BulkExtractor: Full extraction with a known scheme for CSV export
    - BrowserSession / SnapshotSession: Rendering sessions
    - create_app: FastAPI application exposing POST /api/scrape

Example:
    >>> from pagescout import AdaptiveScraper, ReasoningClient, gemini
    >>> oracle = ReasoningClient(llm_config=gemini('gemini-2.5-flash', 'your-api-key'))
    >>> result = await AdaptiveScraper(oracle).scrape('laptops from https://shop.example.com/laptops')
"""

__version__ = '0.1.0'

from pagescout.agent import AdaptiveScraper, find_url
from pagescout.bulk import BulkExtractor
from pagescout.config import Settings
from pagescout.exceptions import (
    BrowserLaunchError,
    ConfigurationError,
    ExportDataEmpty,
    NavigationError,
    OracleError,
    OracleFormatError,
    OracleTimeoutError,
    PageScoutError,
    SchemeValidationError,
    SelectorEvaluationError,
)
from pagescout.llm_config import LLMConfig, create_agent, create_model, gemini, groq, openai
from pagescout.models import AgentDiagnostics, AttemptResult, PageSample, ScrapeResult, SelectorScheme, TargetSite
from pagescout.oracle import ReasoningClient, extract_json_object
from pagescout.outputs.csv_output import to_csv
from pagescout.sampler import PageSampler
from pagescout.session import BrowserSession, PageSession, SnapshotSession, open_browser_session
from pagescout.tester import SelectorTester

__all__ = [
    'AdaptiveScraper',
    'find_url',
    'BulkExtractor',
    'Settings',
    'ReasoningClient',
    'extract_json_object',
    'SelectorTester',
    'PageSampler',
    'PageSession',
    'BrowserSession',
    'SnapshotSession',
    'open_browser_session',
    'to_csv',
    'SelectorScheme',
    'TargetSite',
    'AttemptResult',
    'PageSample',
    'AgentDiagnostics',
    'ScrapeResult',
    'LLMConfig',
    'create_model',
    'create_agent',
    'groq',
    'gemini',
    'openai',
    'PageScoutError',
    'ConfigurationError',
    'OracleError',
    'OracleFormatError',
    'SchemeValidationError',
    'OracleTimeoutError',
    'BrowserLaunchError',
    'NavigationError',
    'SelectorEvaluationError',
    'ExportDataEmpty',
]
