"""Model provider factory."""

import logging

from anthropic import AsyncAnthropic

from src.config.settings import Settings
from src.infrastructure.llm.anthropic_provider import AnthropicProvider

logger = logging.getLogger(__name__)


def create_model_provider(settings: Settings) -> AnthropicProvider:
    """
    Create the model provider configured in settings.

    Retries are handled by ``run_with_retry`` inside the provider, so the SDK's
    own retry loop is disabled.

    Raises:
        ValueError: If no Anthropic API key is configured.
    """
    if not settings.anthropic_api_key:
        raise ValueError("ANTHROPIC_API_KEY is not configured")

    logger.debug("Creating Anthropic provider with model: %s", settings.agent_model)
    client = AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        timeout=settings.provider_timeout,
        max_retries=0,
    )
    return AnthropicProvider(
        client=client,
        model=settings.agent_model,
        max_tokens=settings.agent_max_tokens,
        temperature=settings.agent_temperature,
        parallel_tool_calls=settings.parallel_tool_calls,
        max_retries=settings.provider_max_retries,
        retry_delay=settings.provider_retry_delay,
        backoff_factor=settings.retry_backoff_factor,
    )
