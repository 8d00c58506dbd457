"""External service integrations."""

from .gemini import GeminiClient, GeoLocation, ImagePayload, TextResult

__all__ = [
    "GeminiClient",
    "GeoLocation",
    "ImagePayload",
    "TextResult",
]
