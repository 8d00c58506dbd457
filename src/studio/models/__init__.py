"""Data models for the creative studio."""

from .media import Artifact, StoredImage, StoredVideo, VideoHandle
from .chat import ChatMessage, GroundingChunk
from .custom import CustomClothing, CustomLocation
from .history import SnapshotStore
from .state import (
    AssistantState,
    ImageStudioState,
    VideoStudioState,
    ProjectState,
    initial_project_state,
)
from .record import ProjectRecord

__all__ = [
    "Artifact",
    "StoredImage",
    "StoredVideo",
    "VideoHandle",
    "ChatMessage",
    "GroundingChunk",
    "CustomClothing",
    "CustomLocation",
    "SnapshotStore",
    "AssistantState",
    "ImageStudioState",
    "VideoStudioState",
    "ProjectState",
    "initial_project_state",
    "ProjectRecord",
]
