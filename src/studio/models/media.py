"""Media data models: artifacts, uploaded files and transient video handles."""

import base64
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


def _split_data_url(data_url: str) -> tuple[str, str]:
    """Split a base64 data URL into its media type and payload."""
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not payload:
        raise ValueError("Not a base64 data URL")
    return header[5:].split(";", 1)[0], payload


class Artifact(BaseModel):
    """An immutable generated or uploaded image or video."""

    model_config = ConfigDict(frozen=True)

    data_url: str = Field(..., description="base64 data URL of the payload")
    mime_type: str = Field(..., description="Media type of the payload")

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "Artifact":
        """Wrap raw bytes in a data URL artifact."""
        encoded = base64.b64encode(data).decode("ascii")
        return cls(data_url=f"data:{mime_type};base64,{encoded}", mime_type=mime_type)

    @classmethod
    def from_data_url(cls, data_url: str) -> "Artifact":
        """Build an artifact, reading the media type from the data URL header."""
        mime_type, _ = _split_data_url(data_url)
        return cls(data_url=data_url, mime_type=mime_type)

    @property
    def base64(self) -> str:
        """Return the base64 payload without the data URL prefix."""
        return _split_data_url(self.data_url)[1]

    def to_bytes(self) -> bytes:
        """Decode the payload."""
        return base64.b64decode(self.base64)


class StoredFile(BaseModel):
    """A user-supplied file kept inline so it survives serialization."""

    model_config = ConfigDict(frozen=True)

    data_url: str = Field(..., description="base64 data URL of the file")
    name: str = Field(..., description="Original file name")
    type: str = Field(..., description="Media type")

    @property
    def base64(self) -> str:
        return _split_data_url(self.data_url)[1]

    def to_artifact(self) -> Artifact:
        return Artifact(data_url=self.data_url, mime_type=self.type)


class StoredImage(StoredFile):
    """An uploaded image."""


class StoredVideo(StoredFile):
    """An uploaded video."""


class VideoHandle:
    """Runtime handle to a generated video held in a temporary file.

    The handle owns the file. ``release()`` deletes it and may be called any
    number of times. Handles never serialize and copying a state that holds
    one shares the handle rather than duplicating ownership.
    """

    def __init__(self, path: Path, mime_type: str = "video/mp4") -> None:
        self._path = Path(path)
        self._mime_type = mime_type
        self._released = False

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        mime_type: str = "video/mp4",
        directory: Optional[Path] = None,
    ) -> "VideoHandle":
        """Write video bytes to a new temporary file and wrap it.

        Args:
            data: Encoded video bytes.
            mime_type: Media type of the video.
            directory: Directory for the temporary file. Defaults to the
                system temp directory.

        Returns:
            A live handle owning the new file.
        """
        if directory is not None:
            Path(directory).mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="studio-video-", suffix=".mp4", dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        logger.debug(f"Created video handle {name} ({len(data)} bytes)")
        return cls(Path(name), mime_type)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mime_type(self) -> str:
        return self._mime_type

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        if self._released:
            raise RuntimeError(f"Video handle already released: {self._path}")
        return self._path.read_bytes()

    def release(self) -> None:
        """Delete the backing file. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        try:
            self._path.unlink()
            logger.debug(f"Released video handle {self._path}")
        except FileNotFoundError:
            logger.debug(f"Video file already gone: {self._path}")

    def __enter__(self) -> "VideoHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def __copy__(self) -> "VideoHandle":
        return self

    def __deepcopy__(self, memo: dict) -> "VideoHandle":
        return self

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"VideoHandle({str(self._path)!r}, {state})"
