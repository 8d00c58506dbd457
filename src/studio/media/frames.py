"""Still-frame sampling for video analysis."""

import base64
import io
import logging
import tempfile
from pathlib import Path
from typing import List

from moviepy import VideoFileClip
from PIL import Image

from ..models.media import StoredVideo
from .files import data_url_to_file

logger = logging.getLogger(__name__)


def sample_frames(video_path: Path, count: int = 10, quality: int = 85) -> List[str]:
    """Grab evenly spaced frames from a video as base64 JPEGs.

    Frame ``i`` is taken at ``duration / count * i``, so the first frame is
    the opening frame and the last lands one step before the end.

    Args:
        video_path: Path to the video file.
        count: Number of frames to sample.
        quality: JPEG quality.

    Returns:
        Base64-encoded JPEG images, in time order.

    Raises:
        FileNotFoundError: If the video file doesn't exist.
        ValueError: If count is not positive.
    """
    if count <= 0:
        raise ValueError("Frame count must be positive")
    if not video_path.exists():
        raise FileNotFoundError(f"Video not found: {video_path}")

    frames: List[str] = []
    clip = VideoFileClip(str(video_path))
    try:
        step = clip.duration / count
        for i in range(count):
            array = clip.get_frame(step * i)
            buffer = io.BytesIO()
            Image.fromarray(array).convert("RGB").save(buffer, format="JPEG", quality=quality)
            frames.append(base64.b64encode(buffer.getvalue()).decode("ascii"))
    finally:
        clip.close()

    logger.debug(f"Sampled {len(frames)} frames from {video_path}")
    return frames


def sample_stored_video(video: StoredVideo, count: int = 10) -> List[str]:
    """Sample frames from an inline video by spilling it to a temp file."""
    with tempfile.TemporaryDirectory(prefix="studio-frames-") as tmp:
        suffix = Path(video.name).suffix or ".mp4"
        path = data_url_to_file(video.data_url, Path(tmp) / f"input{suffix}")
        return sample_frames(path, count)
