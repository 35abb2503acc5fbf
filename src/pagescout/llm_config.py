"""
llm_config.py
=============
LLM configuration for the reasoning oracle.

Maps a provider name, model and API key onto a pydantic-ai model and agent.
"""

from dataclasses import dataclass
from typing import Any

from pydantic_ai import Agent
from pydantic_ai.models.google import GoogleModel, GoogleModelSettings
from pydantic_ai.models.groq import GroqModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.groq import GroqProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

# ============================================================================
# 1. CONFIG DATACLASS
# ============================================================================


@dataclass
class LLMConfig:
    """Base configuration for any LLM provider.

    Attributes:
        provider: Provider name ('gemini', 'groq', 'openai', etc.)
        model_name: Model identifier string
        api_key: API key for authentication
        temperature: Sampling temperature (0.0-2.0). Defaults to 0.2.
        max_tokens: Maximum tokens for generation. Defaults to None.
        extra_params: Additional provider-specific settings. Defaults to None.
    """

    provider: str
    model_name: str
    api_key: str
    temperature: float = 0.2
    max_tokens: int | None = None
    extra_params: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If API key or model name is missing.
        """
        if not self.api_key:
            raise ValueError(f'API key required for {self.provider}')
        if not self.model_name:
            raise ValueError(f'Model name required for {self.provider}')


# ============================================================================
# 2. BUILT-IN PROVIDERS
# ============================================================================


def create_groq_model(config: LLMConfig) -> GroqModel:
    """Create a Groq model from configuration."""
    return GroqModel(config.model_name, provider=GroqProvider(api_key=config.api_key))


def create_gemini_model(config: LLMConfig) -> GoogleModel:
    """Create a Gemini (Google) model from configuration."""
    return GoogleModel(config.model_name, provider=GoogleProvider(api_key=config.api_key))


def create_openai_model(config: LLMConfig) -> OpenAIChatModel:
    """Create an OpenAI chat model from configuration."""
    return OpenAIChatModel(config.model_name, provider=OpenAIProvider(api_key=config.api_key))


PROVIDER_FACTORIES = {
    'groq': create_groq_model,
    'gemini': create_gemini_model,
    'google': create_gemini_model,  # Alias
    'openai': create_openai_model,
    'gpt': create_openai_model,  # Alias
}


# ============================================================================
# 3. MAIN FACTORY
# ============================================================================


def create_model(config: LLMConfig) -> Any:
    """
    Create a model from configuration.

    Args:
        config: LLMConfig specifying the provider and parameters

    Returns:
        Model instance (GroqModel, GoogleModel, OpenAIChatModel)

    Raises:
        ValueError: If provider is not supported

    Example:
        >>> config = LLMConfig(provider='gemini', model_name='gemini-2.5-flash', api_key='your-key')
        >>> model = create_model(config)
    """
    provider_name = config.provider.lower()

    if provider_name not in PROVIDER_FACTORIES:
        available = ', '.join(PROVIDER_FACTORIES.keys())
        raise ValueError(f'Unknown provider: {provider_name}. Available: {available}')

    return PROVIDER_FACTORIES[provider_name](config)


def create_model_settings(config: LLMConfig) -> ModelSettings:
    """Build per-run model settings from configuration.

    Gemini runs with thinking disabled: the oracle answers short JSON
    documents and latency matters more than deliberation.

    Args:
        config: LLM configuration

    Returns:
        Settings dict passed to the agent.
    """
    settings: dict[str, Any] = {'temperature': config.temperature}
    if config.max_tokens:
        settings['max_tokens'] = config.max_tokens

    if config.provider.lower() in ('gemini', 'google'):
        settings = GoogleModelSettings(**settings, google_thinking_config={'thinking_budget': 0})

    if config.extra_params:
        settings.update(config.extra_params)

    return settings  # type: ignore[return-value]


def create_agent(config: LLMConfig, system_prompt: str) -> Agent[None, str]:
    """
    Create a free-text Pydantic AI agent from configuration.

    The oracle answers in prose that contains a JSON object, so the agent
    output type stays ``str`` and parsing happens in the reasoning client.

    Args:
        config: LLMConfig specifying the provider and parameters
        system_prompt: System prompt for the agent

    Returns:
        Configured Pydantic AI Agent
    """
    return Agent(
        create_model(config),
        output_type=str,
        system_prompt=system_prompt,
        model_settings=create_model_settings(config),
    )


# ============================================================================
# 4. CONVENIENCE BUILDERS
# ============================================================================


def groq(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for Groq."""
    return LLMConfig(provider='groq', model_name=model_name, api_key=api_key, **kwargs)


def gemini(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for Gemini."""
    return LLMConfig(provider='gemini', model_name=model_name, api_key=api_key, **kwargs)


def openai(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for OpenAI."""
    return LLMConfig(provider='openai', model_name=model_name, api_key=api_key, **kwargs)
