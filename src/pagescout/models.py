"""
models.py
=========
Pydantic models for selector schemes, attempt results and scrape output.

Python attributes are snake_case; the JSON exchanged with the oracle and the
HTTP clients uses camelCase aliases. Models accept either form on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ExtractionRecord = dict[str, str]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump the model with camelCase keys."""
        return self.model_dump(by_alias=True, mode='json')


class SelectorScheme(CamelModel):
    """CSS selector scheme proposed by the oracle for one page.

    Attributes:
        elements: Field name to comma-separated selector list (first match wins)
        containers: Candidate container selectors, first one matching wins
        max_items: Cap on records returned by full extraction

    """

    elements: dict[str, str] = Field(description='Field name to comma-separated CSS selectors')
    containers: list[str] = Field(default_factory=list, description='Candidate container selectors')
    max_items: int = Field(default=20, gt=0, description='Maximum number of items to extract')

    @field_validator('elements', mode='before')
    @classmethod
    def _join_selector_lists(cls, value: Any) -> Any:
        # Oracles sometimes answer with a list per field instead of one string
        if isinstance(value, dict):
            return {
                key: ', '.join(str(s) for s in selectors) if isinstance(selectors, list) else selectors
                for key, selectors in value.items()
            }
        return value

    @field_validator('elements')
    @classmethod
    def _require_elements(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError('elements must name at least one field')
        blank = [key for key, selectors in value.items() if not selectors.strip()]
        if blank:
            raise ValueError(f'elements has empty selectors for: {", ".join(blank)}')
        return value

    @field_validator('containers')
    @classmethod
    def _drop_blank_containers(cls, value: list[str]) -> list[str]:
        return [selector.strip() for selector in value if selector.strip()]


class TargetSite(CamelModel):
    """Oracle answer to 'which page holds this data?'.

    Attributes:
        url: Page to scrape
        reasoning: Why the oracle picked this page
        data_type: Kind of records expected (products, posts, ...)

    """

    url: str
    reasoning: str = ''
    data_type: str = ''

    @field_validator('url')
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(('http://', 'https://')):
            raise ValueError(f'url must be absolute http(s), got {value!r}')
        return value


class AttemptResult(CamelModel):
    """Outcome of testing one selector scheme against the live page.

    Attributes:
        attempt: 1-based attempt number (0 for the empty initial result)
        scheme: The scheme that was tested
        success_rate: Mean field-fill ratio over the sampled records
        containers_found: Number of containers resolved
        sample_records: Records extracted from the sampled containers
        debug_info: Matched selectors and selector errors, keyed by diagnostic name

    """

    attempt: int = 0
    scheme: SelectorScheme | None = None
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    containers_found: int = Field(default=0, ge=0)
    sample_records: list[ExtractionRecord] = Field(default_factory=list, max_length=3)
    debug_info: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> 'AttemptResult':
        """Initial best-so-far value before any attempt ran."""
        return cls()

    @property
    def filled_records(self) -> list[ExtractionRecord]:
        """Sampled records with at least one non-empty field."""
        return [record for record in self.sample_records if any(record.values())]


class StructureProbe(CamelModel):
    """One structural probe of a page sample.

    Attributes:
        selector: Probe selector
        match_count: Number of elements matching the probe
        sample_class_name: Class attribute of the first match
        truncated_inner_html: Leading part of the first match's inner markup

    """

    selector: str
    match_count: int
    sample_class_name: str = ''
    truncated_inner_html: str = ''


class PageSample(CamelModel):
    """Compact summary of a page's DOM shape, fed back to the oracle."""

    title: str = ''
    url: str = ''
    body_class_names: str = ''
    structure: list[StructureProbe] = Field(default_factory=list)

    def to_prompt_text(self) -> str:
        """Render the sample as indented JSON for embedding in a prompt."""
        return self.model_dump_json(by_alias=True, indent=2)


class AgentDiagnostics(CamelModel):
    """The ``aiAgent`` bundle reported with every scrape result.

    Attributes:
        attempts_used: Attempts consumed before success or exhaustion
        final_success_rate: Success rate of the reported scheme
        selectors_used: The reported scheme, if any attempt produced one
        debug_info: Diagnostic trail of the reported attempt
        message: Human-readable summary

    """

    attempts_used: int
    final_success_rate: float
    selectors_used: SelectorScheme | None = None
    debug_info: dict[str, str] = Field(default_factory=dict)
    message: str = ''


class ScrapeResult(CamelModel):
    """Terminal output of the adaptive extraction loop."""

    success: bool
    data: list[ExtractionRecord] = Field(default_factory=list)
    count: int = 0
    url: str
    ai_agent: AgentDiagnostics

    def to_response(self) -> dict[str, Any]:
        """JSON body returned to HTTP clients on success."""
        return {
            'success': True,
            'data': self.data,
            'count': self.count,
            'url': self.url,
            'aiAgent': self.ai_agent.to_json_dict(),
        }
