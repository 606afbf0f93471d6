"""Remote solver providers and provider factory."""

import logging
from typing import Optional

from ..config.settings import get_ai_endpoint, get_ai_key, get_ai_model, get_ai_provider
from .client import AIClient
from .errors import (
    ErrorKind,
    RateLimitError,
    RemoteTransformError,
    TransientTransformError,
    as_transform_error,
    classify_error,
)
from .providers import ClaudeProvider, OpenAIProvider, SolverProvider

logger = logging.getLogger(__name__)


class ProviderConfigError(Exception):
    """Raised when a provider cannot be created from configuration."""
    pass


def create_provider(
    provider_name: Optional[str] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> SolverProvider:
    """Create a solver provider from arguments, falling back to configuration.

    Raises:
        ProviderConfigError: If the provider is unknown or missing credentials
    """
    name = (provider_name or get_ai_provider()).lower()
    model = model or get_ai_model(name)
    api_key = api_key or get_ai_key()

    try:
        if name == "http":
            endpoint = endpoint or get_ai_endpoint()
            if not endpoint:
                raise ProviderConfigError("AI_ENDPOINT is required for the http provider")
            return AIClient(endpoint, api_key=api_key)
        if not api_key:
            raise ProviderConfigError(f"AI_KEY is required for the {name} provider")
        if name == "openai":
            return OpenAIProvider(api_key=api_key, model=model)
        if name == "claude":
            return ClaudeProvider(api_key=api_key, model=model)
    except ImportError as e:
        raise ProviderConfigError(f"AI provider library not installed: {e}") from e

    raise ProviderConfigError(f"Unknown AI provider: {name}")


__all__ = [
    "AIClient",
    "ClaudeProvider",
    "ErrorKind",
    "OpenAIProvider",
    "ProviderConfigError",
    "RateLimitError",
    "RemoteTransformError",
    "SolverProvider",
    "TransientTransformError",
    "as_transform_error",
    "classify_error",
    "create_provider",
]
