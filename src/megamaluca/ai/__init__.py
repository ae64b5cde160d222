"""AI module for Mega Sena Maluca - Gemini commentary, images and speech."""

from megamaluca.ai.client import GeminiClient, GeminiConfig
from megamaluca.ai.capabilities import (
    CapabilityResult,
    CapabilityUnavailable,
    ChaosCapabilities,
    GeminiCapabilities,
)

__all__ = [
    # Client
    "GeminiClient",
    "GeminiConfig",
    # Capabilities
    "CapabilityResult",
    "CapabilityUnavailable",
    "ChaosCapabilities",
    "GeminiCapabilities",
]
