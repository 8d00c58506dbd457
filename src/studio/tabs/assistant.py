"""Assistant tab: chat with optional image analysis and maps grounding."""

import logging
from typing import List, Optional

from ..errors import RemoteServiceError, ValidationError
from ..models.chat import ChatMessage
from ..models.custom import CustomClothing, CustomLocation
from ..models.media import StoredImage
from ..services.gemini import GeminiClient, GeoLocation, ImagePayload
from ..state import ProjectStateTree
from .image import ImageStudio

logger = logging.getLogger(__name__)


class AssistantTab:
    """Chat actions over the assistant section of the state tree."""

    def __init__(self, tree: ProjectStateTree, client: GeminiClient) -> None:
        self._tree = tree
        self._client = client

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._tree.get().assistant.messages)

    def _append(self, message: ChatMessage) -> None:
        self._tree.update("assistant", messages=self.messages + [message])

    def send(
        self,
        text: str = "",
        image: Optional[StoredImage] = None,
        thinking_mode: bool = False,
        use_maps: bool = False,
        location: Optional[GeoLocation] = None,
    ) -> ChatMessage:
        """Send a message and append the model's reply.

        Maps grounding is ignored while an image is attached.

        Args:
            text: Message text. May be empty when an image is attached.
            image: Optional image to analyze.
            thinking_mode: Use the thinking model.
            use_maps: Ground the reply with Google Maps.
            location: User location, required for maps grounding.

        Returns:
            The model's reply message.

        Raises:
            ValidationError: If there is neither text nor an image.
            RemoteServiceError: If the model call fails. An apology message is
                appended to the transcript first.
        """
        text = text.strip()
        if not text and image is None:
            raise ValidationError("Please enter a message or attach an image.")
        if use_maps and image is not None:
            logger.warning("Location services cannot be used while an image is attached")

        self._append(ChatMessage(role="user", text=text, image=image))

        try:
            result = self._client.generate_text(
                text,
                ImagePayload.from_stored(image) if image is not None else None,
                thinking_mode=thinking_mode,
                use_maps=use_maps and image is None,
                location=location,
            )
        except RemoteServiceError as e:
            self._append(ChatMessage(role="model", text=f"Sorry, I ran into an error: {e}"))
            raise

        reply = ChatMessage(role="model", text=result.text, grounding_chunks=result.citations)
        self._append(reply)
        return reply

    def save_to_builder_clothing(self, name: str, prompt: str) -> CustomClothing:
        """Add text from the chat to the image studio as custom clothing."""
        return ImageStudio(self._tree, self._client).add_custom_clothing(name, prompt)

    def save_to_builder_location(self, category: str, detail: str, prompt: str) -> CustomLocation:
        """Add text from the chat to the image studio as a custom location."""
        return ImageStudio(self._tree, self._client).add_custom_location(category, detail, prompt)
