"""LLM infrastructure module."""

from src.infrastructure.llm.anthropic_provider import AnthropicProvider
from src.infrastructure.llm.factory import create_model_provider
from src.infrastructure.llm.provider import ModelProvider, ModelTurn

__all__ = [
    "AnthropicProvider",
    "ModelProvider",
    "ModelTurn",
    "create_model_provider",
]
