"""Owner of the live project state tree."""

import logging
from typing import Any, Optional

import pydantic

from .errors import ValidationError
from .models.media import VideoHandle
from .models.state import SECTIONS, TABS, ProjectState, initial_project_state

logger = logging.getLogger(__name__)


class ProjectStateTree:
    """Holds the current ProjectState and applies typed patches to it.

    The state value is frozen, so callers read it through ``get()`` and change
    it only through ``update``, ``replace`` and ``set_active_tab``. The tree
    also owns the video studio's transient video handle and releases it
    whenever the handle is superseded.
    """

    def __init__(self, state: Optional[ProjectState] = None) -> None:
        self._state = state if state is not None else initial_project_state()

    def get(self) -> ProjectState:
        """Return the current state."""
        return self._state

    @property
    def video(self) -> Optional[VideoHandle]:
        """Return the live generated video handle, if any."""
        return self._state.video_studio.generated_video

    def update(self, section: str, **fields: Any) -> ProjectState:
        """Merge ``fields`` into one section, leaving every other section alone.

        Args:
            section: One of ``assistant``, ``image_studio``, ``video_studio``.
            **fields: Section fields to overwrite.

        Returns:
            The new state.

        Raises:
            ValidationError: If the section or a field name is unknown, or a
                value fails validation. The state is unchanged.
        """
        if section not in SECTIONS:
            raise ValidationError(f"Unknown section: {section!r}")

        current = getattr(self._state, section)
        known = type(current).model_fields
        unknown = sorted(set(fields) - set(known))
        if unknown:
            raise ValidationError(f"Unknown {section} field(s): {', '.join(unknown)}")

        merged = {name: getattr(current, name) for name in known}
        merged.update(fields)
        try:
            patched = type(current).model_validate(merged)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid {section} update: {e}") from e

        outgoing = self.video if section == "video_studio" else None
        self._state = self._state.model_copy(update={section: patched})
        if outgoing is not None and outgoing is not self.video:
            outgoing.release()

        logger.debug(f"Updated {section}: {', '.join(fields) or '(no fields)'}")
        return self._state

    def replace(self, state: ProjectState) -> ProjectState:
        """Swap in a whole new state, releasing the outgoing video handle."""
        outgoing = self.video
        self._state = state
        if outgoing is not None and outgoing is not self.video:
            outgoing.release()
        return self._state

    def set_active_tab(self, tab: str) -> ProjectState:
        """Select a tab without touching any section."""
        if tab not in TABS:
            raise ValidationError(f"Unknown tab: {tab!r}. Expected one of: {', '.join(TABS)}")
        self._state = self._state.model_copy(update={"active_tab": tab})
        return self._state

    def release_video(self) -> None:
        """Release and clear the generated video handle, if there is one."""
        handle = self.video
        if handle is None:
            return
        video = self._state.video_studio.model_copy(update={"generated_video": None})
        self._state = self._state.model_copy(update={"video_studio": video})
        handle.release()
