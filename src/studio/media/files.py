"""Conversions between files on disk, base64 and data URLs."""

import base64
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

from ..models.media import StoredImage, StoredVideo


def guess_mime_type(path: Path, default: str = "application/octet-stream") -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or default


def parse_data_url(data_url: str) -> Tuple[str, str]:
    """Split a base64 data URL into ``(mime_type, base64_payload)``.

    Raises:
        ValueError: If the string is not a base64 data URL.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError(f"Not a base64 data URL: {data_url[:40]}...")
    return header[5:-7] or "application/octet-stream", payload


def file_to_base64(path: Path) -> str:
    """Read a file and return its base64 encoding."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def file_to_data_url(path: Path, mime_type: Optional[str] = None) -> str:
    """Read a file into a ``data:<mime>;base64,...`` URL.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return f"data:{mime_type or guess_mime_type(path)};base64,{file_to_base64(path)}"


def data_url_to_file(data_url: str, path: Path) -> Path:
    """Decode a data URL and write it to ``path``."""
    _, payload = parse_data_url(data_url)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(base64.b64decode(payload))
    return path


def load_image(path: Path) -> StoredImage:
    """Read an image file into a StoredImage."""
    path = Path(path)
    mime_type = guess_mime_type(path, "image/png")
    if not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file: {path}")
    return StoredImage(data_url=file_to_data_url(path, mime_type), name=path.name, type=mime_type)


def load_video(path: Path) -> StoredVideo:
    """Read a video file into a StoredVideo."""
    path = Path(path)
    mime_type = guess_mime_type(path, "video/mp4")
    if not mime_type.startswith("video/"):
        raise ValueError(f"Not a video file: {path}")
    return StoredVideo(data_url=file_to_data_url(path, mime_type), name=path.name, type=mime_type)
