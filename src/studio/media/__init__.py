"""File, data URL and video frame helpers."""

from .files import (
    data_url_to_file,
    file_to_base64,
    file_to_data_url,
    guess_mime_type,
    load_image,
    load_video,
    parse_data_url,
)

__all__ = [
    "data_url_to_file",
    "file_to_base64",
    "file_to_data_url",
    "guess_mime_type",
    "load_image",
    "load_video",
    "parse_data_url",
]
