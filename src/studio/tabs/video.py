"""Video studio: frame-based video analysis and image-to-video generation."""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from ..config import Config, config
from ..errors import RemoteServiceError, ValidationError
from ..models.media import StoredImage, StoredVideo, VideoHandle
from ..models.state import VideoStudioState
from ..prompts import build_video_prompt
from ..services.gemini import GeminiClient
from ..state import ProjectStateTree

logger = logging.getLogger(__name__)

FrameSampler = Callable[[StoredVideo, int], List[str]]

STATUS_MESSAGES = [
    "Compositing video frames...",
    "Applying lighting and shadows...",
    "Rendering audio track...",
    "Finalizing high-resolution output...",
    "Almost there, just polishing the pixels...",
]


def _default_sampler(video: StoredVideo, count: int) -> List[str]:
    from ..media.frames import sample_stored_video

    return sample_stored_video(video, count)


class VideoStudio:
    """Actions over the video studio section.

    The section's generated video is a temporary file owned by the state
    tree; it is released when a new video replaces it, when the mode changes
    and when ``discard_video`` is called.
    """

    def __init__(
        self,
        tree: ProjectStateTree,
        client: GeminiClient,
        settings: Optional[Config] = None,
        sampler: Optional[FrameSampler] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        video_dir: Optional[Path] = None,
    ) -> None:
        """Initialize the studio.

        Args:
            tree: Live state tree.
            client: Generation service.
            settings: Configuration for polling and frame sampling.
            sampler: Extracts base64 JPEG frames from a video. Defaults to
                moviepy-based sampling.
            sleep: Called between status polls.
            clock: Monotonic clock used for the poll timeout.
            video_dir: Directory for generated video files.
        """
        self._tree = tree
        self._client = client
        self._config = settings or config
        self._sampler = sampler or _default_sampler
        self._sleep = sleep
        self._clock = clock
        self._video_dir = video_dir

    @property
    def state(self) -> VideoStudioState:
        return self._tree.get().video_studio

    def _patch(self, **fields) -> VideoStudioState:
        return self._tree.update("video_studio", **fields).video_studio

    def set_mode(self, mode: str) -> VideoStudioState:
        """Switch mode, clearing all inputs and the generated video."""
        return self._patch(
            mode=mode,
            analysis_prompt="",
            video_file=None,
            analysis_result="",
            generation_prompt="",
            image_file=None,
            generated_video=None,
        )

    def set_aspect_ratio(self, aspect_ratio: str) -> VideoStudioState:
        return self._patch(aspect_ratio=aspect_ratio)

    def set_video_file(self, video: Optional[StoredVideo]) -> VideoStudioState:
        return self._patch(video_file=video)

    def set_image_file(self, image: Optional[StoredImage]) -> VideoStudioState:
        return self._patch(image_file=image)

    def set_analysis_prompt(self, prompt: str) -> VideoStudioState:
        return self._patch(analysis_prompt=prompt)

    def set_generation_prompt(self, prompt: str) -> VideoStudioState:
        return self._patch(generation_prompt=prompt)

    def set_builder(self, **fields) -> VideoStudioState:
        return self._patch(**fields)

    def analyze(self) -> str:
        """Analyze the loaded video with ``analysis_prompt``.

        Raises:
            ValidationError: If no video or prompt is set.
            RemoteServiceError: If frame sampling or the model call fails.
        """
        section = self.state
        prompt = section.analysis_prompt.strip()
        if section.video_file is None or not prompt:
            raise ValidationError("Please upload a video and provide a prompt.")

        try:
            frames = self._sampler(section.video_file, self._config.frame_count)
        except (OSError, ValueError) as e:
            logger.error(f"Frame extraction failed for {section.video_file.name}: {e}")
            raise RemoteServiceError("analyze_video", f"Could not read video frames: {e}") from e

        result = self._client.analyze_video(prompt, frames)
        self._patch(analysis_result=result)
        return result

    def build_prompt(self) -> str:
        """Fill ``generation_prompt`` from the prompt builder fields."""
        image_studio = self._tree.get().image_studio
        prompt = build_video_prompt(self.state, image_studio.custom_clothing, image_studio.custom_locations)
        self._patch(generation_prompt=prompt)
        return prompt

    def generate(self, on_status: Optional[Callable[[str], None]] = None) -> VideoHandle:
        """Generate a video from the reference image and ``generation_prompt``.

        Args:
            on_status: Receives progress messages while the video renders.

        Returns:
            The handle now held in ``generated_video``.

        Raises:
            ValidationError: If the image or prompt is missing.
            RemoteServiceError: If generation fails or does not finish within
                ``video_max_poll_time`` seconds.
        """
        section = self.state
        if section.image_file is None:
            raise ValidationError("Please upload an image.")
        if not section.generation_prompt.strip():
            raise ValidationError("Please build a prompt first.")

        notify = on_status or (lambda message: None)
        self._tree.release_video()

        notify("Sending request to Veo model... This may take a moment.")
        operation = self._client.generate_video(
            section.generation_prompt,
            section.image_file.base64,
            section.image_file.type,
            section.aspect_ratio,
        )

        start_time = self._clock()
        poll_count = 0
        while not operation.done:
            elapsed = self._clock() - start_time
            if elapsed > self._config.video_max_poll_time:
                logger.warning(f"Video generation timed out after {elapsed:.1f}s")
                raise RemoteServiceError(
                    "generate_video", f"Operation timed out after {self._config.video_max_poll_time}s"
                )
            notify(STATUS_MESSAGES[poll_count % len(STATUS_MESSAGES)])
            poll_count += 1
            self._sleep(self._config.video_poll_interval)
            logger.debug(f"Polling video operation (attempt {poll_count})")
            operation = self._client.poll_video_operation(operation)

        data, mime_type = self._client.download_video(operation)
        handle = VideoHandle.from_bytes(data, mime_type, directory=self._video_dir)
        self._patch(generated_video=handle)
        logger.info(f"Generated video saved to {handle.path}")
        return handle

    def discard_video(self) -> None:
        self._tree.release_video()
