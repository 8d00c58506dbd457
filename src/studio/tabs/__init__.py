"""Per-tab actions over the live project state."""

from .assistant import AssistantTab
from .image import ImageStudio
from .video import VideoStudio

__all__ = [
    "AssistantTab",
    "ImageStudio",
    "VideoStudio",
]
