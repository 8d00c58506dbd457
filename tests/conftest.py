"""Shared test fixtures for the creative studio."""

from __future__ import annotations

import base64
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest

from studio.config import Config
from studio.models.media import Artifact, StoredImage, StoredVideo, VideoHandle
from studio.persistence import ProjectStore
from studio.services.gemini import TextResult
from studio.session import SessionController
from studio.state import ProjectStateTree
from studio.storage import MemoryStore


def make_image(name: str = "photo.png", payload: bytes = b"png-bytes", mime_type: str = "image/png") -> StoredImage:
    """Build an inline StoredImage."""
    encoded = base64.b64encode(payload).decode("ascii")
    return StoredImage(data_url=f"data:{mime_type};base64,{encoded}", name=name, type=mime_type)


def make_video(name: str = "clip.mp4", payload: bytes = b"mp4-bytes") -> StoredVideo:
    encoded = base64.b64encode(payload).decode("ascii")
    return StoredVideo(data_url=f"data:video/mp4;base64,{encoded}", name=name, type="video/mp4")


class CountingHandle(VideoHandle):
    """VideoHandle that counts release() calls."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.release_calls = 0

    def release(self) -> None:
        self.release_calls += 1
        super().release()


class FakeGeminiClient:
    """In-memory stand-in for GeminiClient that records every call."""

    def __init__(self) -> None:
        self.calls: List[tuple[str, dict]] = []
        self.error: Optional[Exception] = None
        self.text_result = TextResult(text="Hello from the model")
        self.image = Artifact.from_bytes(b"generated-image", "image/png")
        self.analysis = "A person waves at the camera."
        self.polls_until_done = 2
        self.video_bytes = b"fake-mp4-payload"

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def generate_text(self, prompt, image=None, thinking_mode=False, use_maps=False, location=None):
        self._record(
            "generate_text",
            prompt=prompt,
            image=image,
            thinking_mode=thinking_mode,
            use_maps=use_maps,
            location=location,
        )
        return self.text_result

    def generate_image(self, prompt, aspect_ratio="1:1", count=1):
        self._record("generate_image", prompt=prompt, aspect_ratio=aspect_ratio, count=count)
        return [self.image]

    def edit_image(self, prompt, image_base64, mime_type):
        self._record("edit_image", prompt=prompt, image_base64=image_base64, mime_type=mime_type)
        return self.image

    def combine_images(self, prompt, images):
        self._record("combine_images", prompt=prompt, images=list(images))
        return self.image

    def analyze_video(self, prompt, frames):
        self._record("analyze_video", prompt=prompt, frames=list(frames))
        return self.analysis

    def generate_video(self, prompt, image_base64, mime_type, aspect_ratio):
        self._record(
            "generate_video",
            prompt=prompt,
            image_base64=image_base64,
            mime_type=mime_type,
            aspect_ratio=aspect_ratio,
        )
        return SimpleNamespace(done=False, polls=0)

    def poll_video_operation(self, operation):
        self._record("poll_video_operation")
        polls = operation.polls + 1
        return SimpleNamespace(done=polls >= self.polls_until_done, polls=polls)

    def download_video(self, operation):
        self._record("download_video")
        return self.video_bytes, "video/mp4"


@pytest.fixture
def memory_store() -> MemoryStore:
    """Provide an empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def clock() -> Callable[[], int]:
    """Provide a millisecond clock that advances 1000ms per call."""
    ticks = iter(range(1_700_000_000_000, 1_800_000_000_000, 1000))
    return lambda: next(ticks)


@pytest.fixture
def project_store(memory_store: MemoryStore, clock: Callable[[], int]) -> ProjectStore:
    return ProjectStore(memory_store, clock=clock)


@pytest.fixture
def tree() -> ProjectStateTree:
    """Provide a tree holding the default state."""
    return ProjectStateTree()


@pytest.fixture
def confirm_answers() -> List[bool]:
    """Answers handed out by the session's confirm callback, in order."""
    return []


@pytest.fixture
def controller(
    project_store: ProjectStore, tree: ProjectStateTree, confirm_answers: List[bool]
) -> SessionController:
    def _confirm(message: str) -> bool:
        return confirm_answers.pop(0) if confirm_answers else True

    return SessionController(project_store, tree, confirm=_confirm)


@pytest.fixture
def client() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture
def settings(tmp_path: Path) -> Config:
    """Provide a config isolated from the environment."""
    return Config(
        gemini_api_key="test-key",
        google_cloud_project="",
        workspace=tmp_path,
        storage_path=tmp_path / "storage.json",
        history_limit=None,
        video_poll_interval=0.0,
        video_max_poll_time=60.0,
        frame_count=4,
    )


@pytest.fixture
def make_handle(tmp_path: Path) -> Callable[..., CountingHandle]:
    """Factory fixture: a live CountingHandle backed by a real temp file."""
    counter = iter(range(1_000_000))

    def _factory(payload: bytes = b"video") -> CountingHandle:
        path = tmp_path / f"video-{next(counter)}.mp4"
        path.write_bytes(payload)
        return CountingHandle(path)

    return _factory
