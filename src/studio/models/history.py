"""Branching undo/redo history of image artifacts."""

from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, model_validator

from ..errors import ValidationError
from .media import Artifact


class SnapshotStore(BaseModel):
    """Ordered artifacts plus a cursor marking the current one.

    The cursor is -1 when the store is empty and otherwise indexes
    ``entries``. Appending while the cursor is behind the end prunes the
    redo branch first; undo and redo only move the cursor.
    """

    entries: List[Artifact] = Field(default_factory=list, description="History entries, oldest first")
    cursor: int = Field(default=-1, description="Index of the current entry, -1 when empty")

    @model_validator(mode="after")
    def _check_cursor(self) -> "SnapshotStore":
        if not -1 <= self.cursor <= len(self.entries) - 1:
            raise ValueError(
                f"cursor {self.cursor} out of range for {len(self.entries)} entries"
            )
        if self.entries and self.cursor == -1:
            raise ValueError("cursor must point at an entry when history is not empty")
        return self

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0

    @property
    def can_redo(self) -> bool:
        return self.cursor < len(self.entries) - 1

    def current(self) -> Optional[Artifact]:
        """Return the artifact at the cursor, or None when empty."""
        if self.cursor == -1:
            return None
        return self.entries[self.cursor]

    def first(self) -> Optional[Artifact]:
        """Return the oldest entry (the reference image), or None."""
        return self.entries[0] if self.entries else None

    def append(self, artifact: Artifact, limit: Optional[int] = None) -> None:
        """Add an artifact after the cursor and make it current.

        Args:
            artifact: The new artifact.
            limit: Optional cap on entries; the oldest are evicted once the
                redo branch has been pruned and the artifact appended.
        """
        if self.cursor < len(self.entries) - 1:
            del self.entries[self.cursor + 1:]
        self.entries.append(artifact)
        if limit is not None and limit > 0 and len(self.entries) > limit:
            del self.entries[: len(self.entries) - limit]
        self.cursor = len(self.entries) - 1

    def undo(self) -> bool:
        """Step back one entry. Returns False at the oldest entry or when empty."""
        if self.cursor <= 0:
            return False
        self.cursor -= 1
        return True

    def redo(self) -> bool:
        """Step forward one entry. Returns False at the newest entry."""
        if self.cursor >= len(self.entries) - 1:
            return False
        self.cursor += 1
        return True

    def reset(self, artifacts: Iterable[Artifact], index: Optional[int] = None) -> None:
        """Replace the whole history.

        Args:
            artifacts: New entries, oldest first.
            index: New cursor. Defaults to the last entry (-1 when empty).

        Raises:
            ValidationError: If ``index`` does not fit the new entries.
        """
        entries = list(artifacts)
        cursor = len(entries) - 1 if index is None else index
        if not -1 <= cursor <= len(entries) - 1 or (entries and cursor == -1):
            raise ValidationError(f"History index {cursor} out of range for {len(entries)} entries")
        self.entries = entries
        self.cursor = cursor
