"""Assistant chat data models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .media import StoredImage


class ReviewSnippet(BaseModel):
    """A review excerpt backing a maps citation."""

    model_config = ConfigDict(frozen=True)

    uri: Optional[str] = None
    title: Optional[str] = None
    snippet: Optional[str] = None
    author: Optional[str] = None


class WebSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: Optional[str] = None
    title: Optional[str] = None


class MapsSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: Optional[str] = None
    title: Optional[str] = None
    review_snippets: List[ReviewSnippet] = Field(default_factory=list)


class GroundingChunk(BaseModel):
    """A citation attached to a model reply (web page or maps place)."""

    model_config = ConfigDict(frozen=True)

    web: Optional[WebSource] = None
    maps: Optional[MapsSource] = None

    @property
    def link(self) -> Optional[tuple[str, str]]:
        """Return ``(title, uri)`` for display, or None if there is no link."""
        for source in (self.web, self.maps):
            if source is not None and source.uri:
                return source.title or source.uri, source.uri
        return None


class ChatMessage(BaseModel):
    """A single chat turn."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"] = Field(..., description="Who wrote the message")
    text: str = Field(default="", description="Message text")
    image: Optional[StoredImage] = Field(None, description="Attached image")
    grounding_chunks: List[GroundingChunk] = Field(
        default_factory=list, description="Citations for model replies"
    )
