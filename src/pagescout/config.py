"""
config.py
=========
Runtime settings loaded from the environment (and a local .env file).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from pagescout.exceptions import ConfigurationError
from pagescout.llm_config import PROVIDER_FACTORIES, LLMConfig

# Environment variables checked for each provider's key, in order
API_KEY_VARIABLES: dict[str, tuple[str, ...]] = {
    'gemini': ('GEMINI_API_KEY', 'GEMINI_KEY'),
    'google': ('GEMINI_API_KEY', 'GEMINI_KEY'),
    'groq': ('GROQ_KEY', 'GROQ_API_KEY'),
    'openai': ('OPENAI_KEY', 'OPENAI_API_KEY'),
    'gpt': ('OPENAI_KEY', 'OPENAI_API_KEY'),
}

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


@dataclass
class Settings:
    """Settings shared by the CLI and the HTTP server.

    Attributes:
        provider: Reasoning provider name
        model_name: Reasoning model identifier
        api_key: Reasoning provider API key, None when unconfigured
        max_attempts: Scheme generations allowed per request
        success_threshold: Success rate at which an attempt is accepted (inclusive)
        min_fallback_matches: A generic container selector must match more than this
        navigation_timeout_ms: Bound on page navigation
        settle_delay_ms: Fixed wait after network quiescence
        oracle_timeout: Bound on one oracle call, in seconds
        oracle_retries: Tries per oracle call on transient provider errors
        evaluate_timeout: Bound on one in-page evaluation, in seconds
        headless: Run the browser without a window
        logfire_token: Token for exporting spans to logfire

    """

    provider: str = 'gemini'
    model_name: str = 'gemini-2.5-flash'
    api_key: str | None = None
    max_attempts: int = 3
    success_threshold: float = 0.25
    min_fallback_matches: int = 3
    navigation_timeout_ms: int = 30000
    settle_delay_ms: int = 3000
    oracle_timeout: float = 60.0
    oracle_retries: int = 2
    evaluate_timeout: float = 30.0
    headless: bool = True
    logfire_token: str | None = None

    def __post_init__(self) -> None:
        """Validate ranges.

        Raises:
            ConfigurationError: If a value is out of range or the provider is unknown.
        """
        if self.provider.lower() not in PROVIDER_FACTORIES:
            available = ', '.join(PROVIDER_FACTORIES)
            raise ConfigurationError(f'Unknown provider: {self.provider}. Available: {available}')
        if self.max_attempts < 1:
            raise ConfigurationError('max_attempts must be at least 1')
        if not 0.0 <= self.success_threshold <= 1.0:
            raise ConfigurationError('success_threshold must be within [0, 1]')
        if self.min_fallback_matches < 0:
            raise ConfigurationError('min_fallback_matches must not be negative')

    @classmethod
    def from_env(cls, dotenv: bool = True) -> 'Settings':
        """Build settings from environment variables.

        Args:
            dotenv: Load a .env file first. Defaults to True.

        Returns:
            Settings populated from PAGESCOUT_* variables and the provider key.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        if dotenv:
            load_dotenv()

        provider = os.getenv('PAGESCOUT_PROVIDER', cls.provider).lower()

        try:
            return cls(
                provider=provider,
                model_name=os.getenv('PAGESCOUT_MODEL', cls.model_name),
                api_key=_first_env(API_KEY_VARIABLES.get(provider, ())),
                max_attempts=int(os.getenv('PAGESCOUT_MAX_ATTEMPTS', cls.max_attempts)),
                success_threshold=float(os.getenv('PAGESCOUT_SUCCESS_THRESHOLD', cls.success_threshold)),
                min_fallback_matches=int(os.getenv('PAGESCOUT_MIN_FALLBACK_MATCHES', cls.min_fallback_matches)),
                navigation_timeout_ms=int(os.getenv('PAGESCOUT_NAVIGATION_TIMEOUT_MS', cls.navigation_timeout_ms)),
                settle_delay_ms=int(os.getenv('PAGESCOUT_SETTLE_DELAY_MS', cls.settle_delay_ms)),
                oracle_timeout=float(os.getenv('PAGESCOUT_ORACLE_TIMEOUT', cls.oracle_timeout)),
                oracle_retries=int(os.getenv('PAGESCOUT_ORACLE_RETRIES', cls.oracle_retries)),
                evaluate_timeout=float(os.getenv('PAGESCOUT_EVALUATE_TIMEOUT', cls.evaluate_timeout)),
                headless=os.getenv('PAGESCOUT_HEADLESS', 'true').strip().lower() in _TRUE_VALUES,
                logfire_token=os.getenv('LOGFIRE_TOKEN') or None,
            )
        except ValueError as e:
            raise ConfigurationError(f'Invalid pagescout setting: {e}') from e

    @property
    def has_api_key(self) -> bool:
        """Whether the reasoning provider key is configured."""
        return bool(self.api_key)

    def llm_config(self) -> LLMConfig:
        """Build the LLM configuration for the reasoning oracle.

        Raises:
            ConfigurationError: If the provider API key is not configured.
        """
        if not self.api_key:
            names = ' or '.join(API_KEY_VARIABLES.get(self.provider, ('an API key',)))
            raise ConfigurationError(f'Reasoning service API key is not configured (set {names})')
        return LLMConfig(provider=self.provider, model_name=self.model_name, api_key=self.api_key)


def _first_env(names: tuple[str, ...]) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None
