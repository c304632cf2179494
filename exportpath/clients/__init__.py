"""Expose constructed client wrappers."""

from .backend import ExportPathBackendClient
from .gemini import GeminiClient, GeminiModelError

__all__ = [
    "ExportPathBackendClient",
    "GeminiClient",
    "GeminiModelError",
]
