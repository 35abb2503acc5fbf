"""
oracle.py
=========
Reasoning client: turns natural-language requests into target URLs and
CSS selector schemes by prompting an LLM and parsing JSON from its answer.
"""

import asyncio
import json
from typing import Any, TypeVar

import logfire
from pydantic import BaseModel, ValidationError
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from rich.console import Console

from pagescout.exceptions import (
    OracleFormatError,
    OracleTimeoutError,
    OracleUnavailableError,
    SchemeValidationError,
)
from pagescout.llm_config import LLMConfig, create_agent
from pagescout.models import SelectorScheme, TargetSite
from pagescout.retry import get_async_retryer
from pagescout.utils.prompts import render_prompt

ModelT = TypeVar('ModelT', bound=BaseModel)

SYSTEM_PROMPT = (
    'You help a web scraper find data on unknown web pages. '
    'Answer with a single JSON object exactly as requested. '
    'Use only CSS selectors that browsers accept in querySelector.'
)


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the JSON object embedded in free text.

    The contract is a single greedy match: everything from the first ``{``
    to the last ``}`` inclusive must parse as one strict JSON object. Prose
    before and after the object is ignored; nested braces are fine. Two
    concatenated objects or a truncated stream do not parse and are rejected.

    Args:
        text: Raw oracle output

    Returns:
        The parsed JSON object.

    Raises:
        OracleFormatError: If there is no brace-delimited span or it is not valid JSON.

    """
    start = text.find('{')
    end = text.rfind('}')

    if start < 0 or end < start:
        raise OracleFormatError('Invalid JSON response from reasoning oracle: no JSON object found', raw_text=text)

    candidate = text[start : end + 1]
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise OracleFormatError(f'Invalid JSON response from reasoning oracle: {e}', raw_text=text) from e


class ReasoningClient:
    """Client for the external reasoning oracle.

    Built once at process start and passed to the scraping loop. Every call
    sends one prompt, collects the streamed answer, and validates the JSON it
    contains. Nothing is cached between calls.

    Attributes:
        agent: pydantic-ai agent producing free text
        timeout: Bound on one call in seconds, None for no bound
        max_retries: Tries per call on transient provider HTTP errors
        console: Optional rich console for progress output
        model_name: Model identifier used for logging
        provider: Provider name used for logging

    """

    def __init__(
        self,
        llm_config: LLMConfig | None = None,
        agent: Agent | None = None,
        timeout: float | None = 60.0,
        max_retries: int = 2,
        console: Console | None = None,
    ):
        """Initialize the client with LLM configuration or an agent.

        Args:
            llm_config: Configuration for the LLM provider and model
            agent: A ready pydantic-ai agent (takes priority over llm_config)
            timeout: Bound on one call in seconds
            max_retries: Tries per call on transient provider HTTP errors
            console: Rich console instance for formatted output

        Raises:
            ValueError: Must provide llm_config or an agent

        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.console = console

        # Priority: agent > llm_config
        if agent is not None:
            self.agent: Agent = agent
            self.model_name = 'custom-agent'
            self.provider = 'custom'
        elif llm_config is not None:
            self.agent = create_agent(llm_config, SYSTEM_PROMPT)
            self.model_name = llm_config.model_name
            self.provider = llm_config.provider
        else:
            raise ValueError('Either provide llm_config or agent parameter')

    @logfire.instrument('resolve_target_url', extract_args=False)
    async def resolve_target_url(self, query: str) -> TargetSite:
        """Ask the oracle which page holds the requested data.

        Args:
            query: Natural-language scraping request

        Returns:
            TargetSite with url, reasoning and data type.

        Raises:
            OracleFormatError: If the answer holds no valid JSON or no usable URL
            OracleTimeoutError: If the oracle does not answer in time

        """
        prompt = render_prompt('resolve_target', query=query)
        site = await self._ask(prompt, TargetSite)

        logfire.info('Target website resolved', url=site.url, data_type=site.data_type, reasoning=site.reasoning)
        if self.console:
            self.console.print(f'[success]  ✓ Target website: {site.url}[/success]')
            if site.reasoning:
                self.console.print(f'[info]    {site.reasoning}[/info]')
        return site

    async def generate_scheme(self, query: str, structural_sample: str, attempt: int) -> SelectorScheme:
        """Ask the oracle for a selector scheme.

        The first attempt sees only the request. Later attempts also see a
        structural sample of the page and are told to try different selectors.

        Args:
            query: Natural-language scraping request
            structural_sample: Page structure JSON, ignored on attempt 1
            attempt: 1-based attempt number

        Returns:
            Validated SelectorScheme.

        Raises:
            OracleFormatError: If the answer holds no valid JSON
            SchemeValidationError: If the JSON violates the scheme invariants
            OracleTimeoutError: If the oracle does not answer in time

        """
        with logfire.span('generate_scheme', attempt=attempt, has_sample=bool(structural_sample)):
            if attempt <= 1:
                prompt = render_prompt('scheme_initial', query=query)
            else:
                prompt = render_prompt(
                    'scheme_retry', query=query, page_sample=structural_sample or '{}', attempt=attempt
                )

            scheme = await self._ask(prompt, SelectorScheme)
            logfire.info('Selector scheme generated', attempt=attempt, scheme=scheme.to_json_dict())
            return scheme

    async def _ask(self, prompt: str, model: type[ModelT]) -> ModelT:
        """Send a prompt and validate the JSON object in the answer."""
        text = await self.complete(prompt)
        data = extract_json_object(text)

        try:
            return model.model_validate(data)
        except ValidationError as e:
            logfire.warn('Oracle JSON failed validation', model=model.__name__, errors=e.errors(include_url=False))
            raise SchemeValidationError(
                f'Reasoning oracle returned an invalid {model.__name__}: {e.error_count()} error(s)', raw_text=text
            ) from e

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the concatenated streamed answer.

        Args:
            prompt: User prompt text

        Returns:
            Full response text.

        Raises:
            OracleTimeoutError: If the call exceeds the configured timeout
            OracleUnavailableError: If the provider keeps failing after retries

        """
        retryer = get_async_retryer(max_attempts=self.max_retries, wait_min=1, wait_max=8, exceptions=(ModelHTTPError,))

        try:
            async for attempt in retryer:
                with attempt:
                    try:
                        return await asyncio.wait_for(self._stream_text(prompt), timeout=self.timeout)
                    except TimeoutError as e:
                        logfire.error('Oracle call timed out', timeout=self.timeout, provider=self.provider)
                        raise OracleTimeoutError(self.timeout or 0.0) from e
        except ModelHTTPError as e:
            logfire.error('Oracle provider failed', status_code=e.status_code, provider=self.provider)
            raise OracleUnavailableError(e.status_code, str(e)) from e

        raise AssertionError('unreachable: retryer either returns or reraises')

    async def _stream_text(self, prompt: str) -> str:
        chunks: list[str] = []
        async with self.agent.run_stream(prompt) as result:
            async for chunk in result.stream_text(delta=True):
                chunks.append(chunk)

        text = ''.join(chunks)
        logfire.debug('Oracle response received', chars=len(text), provider=self.provider, model=self.model_name)
        return text
