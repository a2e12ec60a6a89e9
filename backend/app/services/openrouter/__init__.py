"""
OpenRouter integration package.
"""

from app.services.openrouter.client import (
    ImageDescriptionError,
    OpenRouterClient,
    UpstreamConfigurationError,
    UpstreamError,
)

__all__ = [
    "ImageDescriptionError",
    "OpenRouterClient",
    "UpstreamConfigurationError",
    "UpstreamError",
]
