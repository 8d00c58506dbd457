"""Image studio: text-to-image, reference edits, combining and the prompt builder."""

import logging
from typing import Iterable, List, Optional

from ..config import config
from ..errors import ValidationError
from ..models.custom import CustomClothing, CustomLocation, time_based_id
from ..models.history import SnapshotStore
from ..models.media import Artifact, StoredImage
from ..models.state import MAX_COMBINE_IMAGES, ImageStudioState
from ..prompts import build_image_prompt
from ..services.gemini import GeminiClient, ImagePayload
from ..state import ProjectStateTree

logger = logging.getLogger(__name__)


class ImageStudio:
    """Actions over the image studio section.

    Each action validates its inputs, calls the service and only then
    patches the tree, so a failed call leaves the section as it was.
    """

    def __init__(
        self,
        tree: ProjectStateTree,
        client: GeminiClient,
        history_limit: Optional[int] = None,
    ) -> None:
        """Initialize the studio.

        Args:
            tree: Live state tree.
            client: Generation service.
            history_limit: Max history entries. Defaults to config.history_limit.
        """
        self._tree = tree
        self._client = client
        self._history_limit = history_limit if history_limit is not None else config.history_limit

    @property
    def state(self) -> ImageStudioState:
        return self._tree.get().image_studio

    def _patch(self, **fields) -> ImageStudioState:
        return self._tree.update("image_studio", **fields).image_studio

    def set_mode(self, mode: str) -> ImageStudioState:
        return self._patch(mode=mode)

    def set_aspect_ratio(self, aspect_ratio: str) -> ImageStudioState:
        return self._patch(aspect_ratio=aspect_ratio)

    def set_prompt(self, generate: Optional[str] = None, edit: Optional[str] = None,
                   combine: Optional[str] = None) -> ImageStudioState:
        """Set any of the three prompt fields."""
        fields = {}
        if generate is not None:
            fields["generate_prompt"] = generate
        if edit is not None:
            fields["edit_prompt"] = edit
        if combine is not None:
            fields["combine_prompt"] = combine
        return self._patch(**fields)

    def set_builder(self, **fields) -> ImageStudioState:
        """Update prompt builder fields (job title, clothing, camera...)."""
        return self._patch(**fields)

    def current_image(self) -> Optional[Artifact]:
        return self.state.history.current()

    def _with_history(self, history: SnapshotStore) -> ImageStudioState:
        return self._patch(history=history)

    def _append_to_history(self, artifact: Artifact) -> ImageStudioState:
        history = self.state.history.model_copy(deep=True)
        history.append(artifact, limit=self._history_limit)
        return self._with_history(history)

    def load_reference(self, image: StoredImage) -> ImageStudioState:
        """Start a fresh history from an uploaded image."""
        history = SnapshotStore()
        history.reset([image.to_artifact()], 0)
        logger.info(f"Loaded reference image {image.name}")
        return self._with_history(history)

    def clear_history(self) -> ImageStudioState:
        return self._with_history(SnapshotStore())

    def generate(self) -> Artifact:
        """Generate an image from ``generate_prompt`` and make it current.

        With a reference image (the first history entry) the prompt is applied
        to that image; otherwise the image is created from text alone.

        Raises:
            ValidationError: If the prompt is empty.
            RemoteServiceError: If generation fails. Nothing is changed.
        """
        section = self.state
        prompt = section.generate_prompt.strip()
        if not prompt:
            raise ValidationError("Please provide a prompt.")

        reference = section.history.first()
        if reference is not None:
            logger.info("Generating from reference image")
            artifact = self._client.combine_images(prompt, [ImagePayload.from_artifact(reference)])
        else:
            artifact = self._client.generate_image(prompt, section.aspect_ratio, 1)[0]

        self._append_to_history(artifact)
        return artifact

    def edit(self) -> Artifact:
        """Apply ``edit_prompt`` to the current image.

        Raises:
            ValidationError: If there is no current image or the prompt is empty.
            RemoteServiceError: If the edit fails. Nothing is changed.
        """
        section = self.state
        current = section.history.current()
        if current is None:
            raise ValidationError("Please provide an input image first.")
        prompt = section.edit_prompt.strip()
        if not prompt:
            raise ValidationError("Please provide an edit prompt.")

        artifact = self._client.edit_image(prompt, current.base64, current.mime_type)
        self._append_to_history(artifact)
        return artifact

    def undo(self) -> bool:
        history = self.state.history.model_copy(deep=True)
        if not history.undo():
            return False
        self._with_history(history)
        return True

    def redo(self) -> bool:
        history = self.state.history.model_copy(deep=True)
        if not history.redo():
            return False
        self._with_history(history)
        return True

    def add_combine_images(self, images: Iterable[StoredImage]) -> List[StoredImage]:
        """Add images to combine, up to the limit; extra images are ignored.

        Returns:
            The images that were added.
        """
        current = list(self.state.combine_images)
        room = MAX_COMBINE_IMAGES - len(current)
        incoming = list(images)
        added = incoming[: max(room, 0)]
        if len(added) < len(incoming):
            logger.warning(f"Maximum of {MAX_COMBINE_IMAGES} images reached; ignored {len(incoming) - len(added)}")
        if added:
            self._patch(combine_images=current + added)
        return added

    def remove_combine_image(self, index: int) -> ImageStudioState:
        current = list(self.state.combine_images)
        if not 0 <= index < len(current):
            raise ValidationError(f"No combine image at position {index}")
        del current[index]
        return self._patch(combine_images=current)

    def combine(self) -> Artifact:
        """Merge the combine images according to ``combine_prompt``.

        Raises:
            ValidationError: If the prompt is empty or fewer than two images
                are loaded.
            RemoteServiceError: If the call fails. Nothing is changed.
        """
        section = self.state
        prompt = section.combine_prompt.strip()
        if not prompt:
            raise ValidationError("Please provide a prompt.")
        if len(section.combine_images) < 2:
            raise ValidationError("Please provide at least two images to combine.")

        artifact = self._client.combine_images(
            prompt, [ImagePayload.from_stored(image) for image in section.combine_images]
        )
        self._patch(result_image=artifact)
        return artifact

    def add_custom_clothing(self, name: str, prompt: str) -> CustomClothing:
        if not name.strip() or not prompt.strip():
            raise ValidationError("Please provide both a name and a prompt.")
        existing = self.state.custom_clothing
        item = CustomClothing(
            id=time_based_id("c-cloth", (c.id for c in existing)),
            name=name.strip(),
            prompt=prompt.strip(),
        )
        self._patch(custom_clothing=list(existing) + [item])
        logger.info(f"Added custom clothing '{item.name}'")
        return item

    def add_custom_location(self, category: str, detail: str, prompt: str) -> CustomLocation:
        if not category.strip() or not detail.strip() or not prompt.strip():
            raise ValidationError("Please provide a category, a detail and a prompt.")
        existing = self.state.custom_locations
        item = CustomLocation(
            id=time_based_id("c-loc", (c.id for c in existing)),
            category=category.strip(),
            detail=detail.strip(),
            prompt=prompt.strip(),
        )
        self._patch(custom_locations=list(existing) + [item])
        logger.info(f"Added custom location '{item.category} / {item.detail}'")
        return item

    def delete_custom_clothing(self, item_id: str) -> bool:
        """Remove a custom clothing item. Returns False if it did not exist."""
        existing = self.state.custom_clothing
        kept = [c for c in existing if c.id != item_id]
        if len(kept) == len(existing):
            return False
        self._patch(custom_clothing=kept)
        return True

    def delete_custom_location(self, item_id: str) -> bool:
        """Remove a custom location. Returns False if it did not exist."""
        existing = self.state.custom_locations
        kept = [c for c in existing if c.id != item_id]
        if len(kept) == len(existing):
            return False
        self._patch(custom_locations=kept)
        return True

    def build_prompt(self) -> str:
        """Fill ``generate_prompt`` from the prompt builder fields."""
        prompt = build_image_prompt(self.state)
        self._patch(generate_prompt=prompt)
        return prompt
