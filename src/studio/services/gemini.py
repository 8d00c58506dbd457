"""Google Gemini / Imagen / Veo client wrapper via the google-genai SDK."""

import base64
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import Config, config
from ..errors import RemoteServiceError
from ..models.chat import GroundingChunk, MapsSource, ReviewSnippet, WebSource
from ..models.media import Artifact, StoredImage
from ..prompts import GENERATION_SYSTEM_INSTRUCTION, PHOTO_ANALYST_INSTRUCTION, IMAGE_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)


@dataclass
class ImagePayload:
    """An inline image sent to the model."""

    base64: str
    mime_type: str

    @classmethod
    def from_stored(cls, image: StoredImage) -> "ImagePayload":
        return cls(base64=image.base64, mime_type=image.type)

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> "ImagePayload":
        return cls(base64=artifact.base64, mime_type=artifact.mime_type)

    def to_part(self) -> types.Part:
        return types.Part.from_bytes(data=base64.b64decode(self.base64), mime_type=self.mime_type)


@dataclass
class GeoLocation:
    latitude: float
    longitude: float


@dataclass
class TextResult:
    """Result of a text generation call."""

    text: str
    citations: List[GroundingChunk] = field(default_factory=list)


def _attr(obj: Any, *names: str) -> Any:
    """Return the first non-empty attribute among ``names``."""
    for name in names:
        value = getattr(obj, name, None)
        if value:
            return value
    return None


def _to_grounding_chunk(raw: Any) -> GroundingChunk:
    web = maps = None
    if getattr(raw, "web", None) is not None:
        web = WebSource(uri=_attr(raw.web, "uri"), title=_attr(raw.web, "title"))
    if getattr(raw, "maps", None) is not None:
        sources = getattr(raw.maps, "place_answer_sources", None)
        snippets = [
            ReviewSnippet(
                uri=_attr(s, "uri", "google_maps_uri"),
                title=_attr(s, "title"),
                snippet=_attr(s, "snippet", "text"),
                author=_attr(s, "author"),
            )
            for s in (getattr(sources, "review_snippets", None) or [])
        ]
        maps = MapsSource(uri=_attr(raw.maps, "uri"), title=_attr(raw.maps, "title"), review_snippets=snippets)
    return GroundingChunk(web=web, maps=maps)


@contextmanager
def _remote(operation: str) -> Iterator[None]:
    """Translate any failure inside the block into RemoteServiceError."""
    try:
        yield
    except RemoteServiceError:
        raise
    except genai_errors.APIError as e:
        reason = str(e)
        if "Requested entity was not found" in reason:
            reason += " Your API key might be invalid."
        logger.error(f"{operation} API error: {reason}")
        raise RemoteServiceError(operation, reason) from e
    except requests.RequestException as e:
        logger.error(f"{operation} request failed: {e}")
        raise RemoteServiceError(operation, str(e)) from e
    except Exception as e:
        logger.error(f"{operation} failed unexpectedly: {e}")
        raise RemoteServiceError(operation, str(e) or type(e).__name__) from e


class GeminiClient:
    """Client wrapper for the generation calls the studio makes.

    Every method raises RemoteServiceError on any failure (API error, network
    error or a response without the expected content). Nothing is retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[genai.Client] = None,
        settings: Optional[Config] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key. Defaults to GEMINI_API_KEY env var.
            client: Preconfigured genai client. Created if not provided.
            settings: Configuration. Defaults to the global config.

        Raises:
            ValueError: If no API key or Cloud project is configured.
        """
        self._config = settings or config
        self._api_key = api_key or self._config.gemini_api_key

        if client is None:
            if self._api_key:
                client = genai.Client(api_key=self._api_key)
            elif self._config.google_cloud_project:
                client = genai.Client(
                    vertexai=True,
                    project=self._config.google_cloud_project,
                    location=self._config.google_cloud_location,
                )
                logger.info(f"Using Vertex AI project {self._config.google_cloud_project}")
            else:
                raise ValueError("Gemini API key not provided. Set GEMINI_API_KEY env var.")
        self._client = client

    def generate_text(
        self,
        prompt: str,
        image: Optional[ImagePayload] = None,
        thinking_mode: bool = False,
        use_maps: bool = False,
        location: Optional[GeoLocation] = None,
    ) -> TextResult:
        """Generate a chat reply.

        With an image attached the model acts as a photo analyst and writes a
        prompt that would recreate the picture; maps grounding only applies
        to text-only requests.

        Args:
            prompt: User text.
            image: Optional attached image.
            thinking_mode: Use the larger model with a thinking budget.
            use_maps: Ground the answer with Google Maps near ``location``.
            location: User location for maps grounding.

        Returns:
            The reply text and its citations.
        """
        model = self._config.thinking_model if thinking_mode else self._config.text_model
        kwargs: dict = {}

        if image is not None:
            contents: Any = [image.to_part(), types.Part.from_text(text=prompt or IMAGE_ANALYSIS_PROMPT)]
            kwargs["system_instruction"] = PHOTO_ANALYST_INSTRUCTION
        else:
            contents = prompt
            if use_maps and location is not None:
                kwargs["tools"] = [types.Tool(google_maps=types.GoogleMaps())]
                kwargs["tool_config"] = types.ToolConfig(
                    retrieval_config=types.RetrievalConfig(
                        lat_lng=types.LatLng(latitude=location.latitude, longitude=location.longitude)
                    )
                )

        if thinking_mode:
            kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=self._config.thinking_budget)

        logger.info(f"Generating text with {model}: {prompt[:50]}...")
        with _remote("generate_text"):
            response = self._client.models.generate_content(
                model=model,
                contents=contents,
                config=types.GenerateContentConfig(**kwargs),
            )
            text = response.text or ""
            candidates = response.candidates or []
            metadata = getattr(candidates[0], "grounding_metadata", None) if candidates else None
            raw_chunks = getattr(metadata, "grounding_chunks", None) or []

        return TextResult(text=text, citations=[_to_grounding_chunk(c) for c in raw_chunks])

    def generate_image(self, prompt: str, aspect_ratio: str = "1:1", count: int = 1) -> List[Artifact]:
        """Generate images from a text prompt with Imagen."""
        logger.info(f"Generating {count} image(s) with {self._config.image_model}: {prompt[:50]}...")
        with _remote("generate_image"):
            response = self._client.models.generate_images(
                model=self._config.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=count,
                    output_mime_type="image/jpeg",
                    aspect_ratio=aspect_ratio,
                ),
            )
            artifacts = [
                Artifact.from_bytes(generated.image.image_bytes, "image/jpeg")
                for generated in (response.generated_images or [])
                if generated.image is not None and generated.image.image_bytes
            ]

        if not artifacts:
            raise RemoteServiceError("generate_image", "Model did not return an image.")
        return artifacts

    def edit_image(self, prompt: str, image_base64: str, mime_type: str) -> Artifact:
        """Apply a text instruction to one image."""
        return self._image_from_parts(
            "edit_image",
            [ImagePayload(image_base64, mime_type).to_part(), types.Part.from_text(text=prompt)],
        )

    def combine_images(self, prompt: str, images: Sequence[ImagePayload]) -> Artifact:
        """Generate one image from a prompt and several reference images."""
        parts = [types.Part.from_text(text=prompt)] + [image.to_part() for image in images]
        return self._image_from_parts("combine_images", parts)

    def _image_from_parts(self, operation: str, parts: List[types.Part]) -> Artifact:
        logger.info(f"{operation} with {self._config.image_edit_model}")
        with _remote(operation):
            response = self._client.models.generate_content(
                model=self._config.image_edit_model,
                contents=parts,
                config=types.GenerateContentConfig(
                    response_modalities=[types.Modality.IMAGE],
                    system_instruction=GENERATION_SYSTEM_INSTRUCTION,
                ),
            )
            candidates = response.candidates or []
            content = candidates[0].content if candidates else None
            for part in (content.parts if content is not None and content.parts else []):
                if part.inline_data is not None and part.inline_data.data:
                    return Artifact.from_bytes(part.inline_data.data, part.inline_data.mime_type or "image/png")

        raise RemoteServiceError(operation, "No image was generated by the model.")

    def analyze_video(self, prompt: str, frames: Sequence[str]) -> str:
        """Answer a prompt about a video from its sampled JPEG frames."""
        parts = [types.Part.from_text(text=prompt)] + [
            types.Part.from_bytes(data=base64.b64decode(frame), mime_type="image/jpeg") for frame in frames
        ]
        logger.info(f"Analyzing {len(frames)} frames with {self._config.analysis_model}")
        with _remote("analyze_video"):
            response = self._client.models.generate_content(model=self._config.analysis_model, contents=parts)
            return response.text or ""

    def generate_video(self, prompt: str, image_base64: str, mime_type: str, aspect_ratio: str) -> Any:
        """Start a Veo generation from a reference image.

        Returns:
            The long-running operation; pass it to ``poll_video_operation``
            until ``operation.done``.
        """
        full_prompt = f"{GENERATION_SYSTEM_INSTRUCTION}\n\n---\n\nUser Prompt:\n{prompt}"
        logger.info(f"Starting video generation with {self._config.video_model} ({aspect_ratio})")
        with _remote("generate_video"):
            return self._client.models.generate_videos(
                model=self._config.video_model,
                prompt=full_prompt,
                image=types.Image(image_bytes=base64.b64decode(image_base64), mime_type=mime_type),
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    resolution=self._config.video_resolution,
                    aspect_ratio=aspect_ratio,
                ),
            )

    def poll_video_operation(self, operation: Any) -> Any:
        """Refresh a video generation operation."""
        with _remote("poll_video_operation"):
            return self._client.operations.get(operation)

    def download_video(self, operation: Any, timeout: float = 120.0) -> Tuple[bytes, str]:
        """Fetch the first generated video of a finished operation.

        Returns:
            ``(video_bytes, mime_type)``.
        """
        with _remote("download_video"):
            error = getattr(operation, "error", None)
            if error:
                raise RemoteServiceError("generate_video", str(error))
            response = getattr(operation, "response", None)
            videos = getattr(response, "generated_videos", None) or []
            video = videos[0].video if videos else None
            if video is None:
                raise RemoteServiceError(
                    "download_video", "Video generation completed, but no download link was found."
                )
            mime_type = getattr(video, "mime_type", None) or "video/mp4"
            if getattr(video, "video_bytes", None):
                return video.video_bytes, mime_type
            if not video.uri:
                raise RemoteServiceError(
                    "download_video", "Video generation completed, but no download link was found."
                )

            headers = {"x-goog-api-key": self._api_key} if self._api_key else {}
            logger.info(f"Downloading generated video from {video.uri.split('?')[0]}")
            resp = requests.get(video.uri, headers=headers, timeout=timeout)
            resp.raise_for_status()
            return resp.content, mime_type
