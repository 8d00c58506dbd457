"""Configuration management."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_path(name: str) -> Optional[Path]:
    """Read a path env var; unset or empty means no value."""
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else None


def _optional_int(name: str) -> Optional[int]:
    """Read a positive integer env var; unset, empty or zero means no value."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    value = int(raw)
    return value if value > 0 else None


class Config(BaseModel):
    """Application configuration."""

    # Credentials
    gemini_api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", ""),
        description="Gemini API key"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID (Vertex AI mode)"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("STUDIO_WORKSPACE", ".")),
        description="Workspace directory"
    )
    storage_path: Optional[Path] = Field(
        default_factory=lambda: _optional_path("STUDIO_STORAGE_PATH"),
        description="Project storage file (defaults to <workspace>/.studio/storage.json)"
    )

    # Limits
    storage_quota_bytes: int = Field(
        default_factory=lambda: int(os.getenv("STUDIO_STORAGE_QUOTA", str(5 * 1024 * 1024))),
        description="Capacity of the project store in bytes",
        gt=0,
    )
    history_limit: Optional[int] = Field(
        default_factory=lambda: _optional_int("STUDIO_HISTORY_LIMIT"),
        description="Maximum image history entries (unset for unlimited)"
    )

    # Model settings
    text_model: str = Field(default="gemini-2.5-flash", description="Chat model")
    thinking_model: str = Field(default="gemini-2.5-pro", description="Chat model in thinking mode")
    thinking_budget: int = Field(default=32768, description="Thinking token budget")
    analysis_model: str = Field(default="gemini-2.5-pro", description="Video analysis model")
    image_model: str = Field(default="imagen-4.0-generate-001", description="Text-to-image model")
    image_edit_model: str = Field(default="gemini-2.5-flash-image", description="Image edit/combine model")
    video_model: str = Field(default="veo-3.1-fast-generate-preview", description="Video generation model")
    video_resolution: str = Field(default="720p", description="Generated video resolution")

    # Video generation
    video_poll_interval: float = Field(default=10.0, description="Seconds between status polls", ge=0)
    video_max_poll_time: float = Field(default=600.0, description="Maximum seconds to wait for a video", gt=0)
    frame_count: int = Field(default=10, description="Frames sampled for video analysis", gt=0)

    @property
    def resolved_storage_path(self) -> Path:
        """Return the storage file path, defaulting into the workspace."""
        return self.storage_path or self.workspace / ".studio" / "storage.json"

    @property
    def use_vertex(self) -> bool:
        """Whether to talk to Vertex AI instead of the Gemini developer API."""
        return not self.gemini_api_key and bool(self.google_cloud_project)

    def validate_required(self) -> None:
        """Validate that generation credentials are set.

        Raises:
            ValueError: If neither an API key nor a Cloud project is configured.
        """
        if not self.gemini_api_key and not self.google_cloud_project:
            raise ValueError(
                "GEMINI_API_KEY not set. Set GEMINI_API_KEY (or API_KEY), "
                "or GOOGLE_CLOUD_PROJECT to use Vertex AI."
            )


# Global config instance
config = Config()
