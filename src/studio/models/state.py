"""Project state tree: one record per studio tab plus the active tab."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .chat import ChatMessage
from .custom import CustomClothing, CustomLocation
from .history import SnapshotStore
from .media import Artifact, StoredImage, StoredVideo, VideoHandle

Tab = Literal["assistant", "image", "video"]
ImageAspectRatio = Literal["1:1", "16:9", "9:16", "4:3", "3:4"]
VideoAspectRatio = Literal["16:9", "9:16"]

TABS: tuple[str, ...] = ("assistant", "image", "video")
SECTIONS: tuple[str, ...] = ("assistant", "image_studio", "video_studio")
MAX_COMBINE_IMAGES = 3

WELCOME_MESSAGE = (
    "Hi! To use this app you need a Gemini API key. You can get one in Google AI Studio.\n\n"
    "Once you have a key, set it in your environment as `GEMINI_API_KEY` so the app can "
    "read it. For security the key is only ever read from the environment; the app never "
    "asks you to type it in."
)


class _Section(BaseModel):
    """Common config for tab sections: immutable, unknown fields rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class AssistantState(_Section):
    """Assistant tab state."""

    messages: List[ChatMessage] = Field(
        default_factory=lambda: [ChatMessage(role="model", text=WELCOME_MESSAGE)],
        description="Chat transcript",
    )


class PromptBuilderFields(_Section):
    """Persona, location and camera fields shared by both studio prompt builders."""

    job_title: str = ""
    age: str = ""
    facial_features: str = ""
    address: str = ""
    selected_clothing: str = ""
    selected_location: str = ""
    selected_location_detail: str = ""
    camera_horizontal: int = Field(default=5, ge=1, le=9)
    camera_vertical: int = Field(default=5, ge=1, le=9)


class ImageStudioState(PromptBuilderFields):
    """Image studio tab state."""

    mode: Literal["generate", "combine"] = "generate"
    generate_prompt: str = ""
    combine_prompt: str = ""
    edit_prompt: str = ""
    aspect_ratio: ImageAspectRatio = "1:1"
    combine_images: List[StoredImage] = Field(default_factory=list, max_length=MAX_COMBINE_IMAGES)
    history: SnapshotStore = Field(default_factory=SnapshotStore, description="Generated image history")
    result_image: Optional[Artifact] = Field(None, description="Combine mode result")
    custom_clothing: List[CustomClothing] = Field(default_factory=list)
    custom_locations: List[CustomLocation] = Field(default_factory=list)


class VideoStudioState(PromptBuilderFields):
    """Video studio tab state."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    mode: Literal["analyze", "generate"] = "generate"
    analysis_prompt: str = ""
    video_file: Optional[StoredVideo] = None
    analysis_result: str = ""
    generation_prompt: str = ""
    image_file: Optional[StoredImage] = None
    generated_video: Optional[VideoHandle] = Field(
        None, exclude=True, description="Transient handle; never serialized"
    )
    aspect_ratio: VideoAspectRatio = "9:16"
    location_category: str = "Office"


class ProjectState(BaseModel):
    """The complete session state across all tabs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    active_tab: Tab = "assistant"
    assistant: AssistantState = Field(default_factory=AssistantState)
    image_studio: ImageStudioState = Field(default_factory=ImageStudioState)
    video_studio: VideoStudioState = Field(default_factory=VideoStudioState)

    def without_transients(self) -> "ProjectState":
        """Return a copy with the runtime-only video handle cleared."""
        if self.video_studio.generated_video is None:
            return self
        video = self.video_studio.model_copy(update={"generated_video": None})
        return self.model_copy(update={"video_studio": video})


def initial_project_state() -> ProjectState:
    """Return a fresh default state."""
    return ProjectState()
