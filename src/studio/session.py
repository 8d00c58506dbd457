"""Session controller: project lifecycle over the live state tree."""

import logging
from typing import Callable, List, Optional

from .config import Config
from .models.record import ProjectRecord
from .models.state import ProjectState, initial_project_state
from .persistence import ProjectStore
from .state import ProjectStateTree
from .storage import FileStore

logger = logging.getLogger(__name__)

NEW_PROJECT_PROMPT = "Start a new project? Any unsaved changes will be lost."

Confirm = Callable[[str], bool]


class SessionController:
    """Wires project actions to the state tree and the project store.

    The controller is the single owner of the live ProjectStateTree for one
    session. Errors raised by the store propagate unchanged.
    """

    def __init__(
        self,
        projects: ProjectStore,
        tree: Optional[ProjectStateTree] = None,
        confirm: Optional[Confirm] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            projects: Saved project store.
            tree: Live state tree. A default tree is created if not provided.
            confirm: Asked before discarding the current project. Without it
                ``new_project`` never resets.
        """
        self._projects = projects
        self._tree = tree or ProjectStateTree()
        self._confirm = confirm

    @classmethod
    def from_config(cls, cfg: Config, confirm: Optional[Confirm] = None) -> "SessionController":
        """Build a session backed by the configured storage file."""
        storage = FileStore(cfg.resolved_storage_path, quota_bytes=cfg.storage_quota_bytes)
        return cls(ProjectStore(storage), confirm=confirm)

    @property
    def tree(self) -> ProjectStateTree:
        return self._tree

    @property
    def projects(self) -> ProjectStore:
        return self._projects

    @property
    def state(self) -> ProjectState:
        return self._tree.get()

    def set_active_tab(self, tab: str) -> None:
        self._tree.set_active_tab(tab)

    def list_projects(self) -> List[ProjectRecord]:
        """Return saved projects, newest first."""
        return self._projects.list_newest_first()

    def new_project(self) -> bool:
        """Reset to the default state once the user confirms.

        Returns:
            True if the project was reset.
        """
        if self._confirm is None or not self._confirm(NEW_PROJECT_PROMPT):
            logger.debug("New project cancelled")
            return False
        self._tree.release_video()
        self._tree.replace(initial_project_state())
        logger.info("Started a new project")
        return True

    def save_current_as_project(self, name: str) -> ProjectRecord:
        """Save an independent copy of the live state under ``name``."""
        snapshot = self._tree.get().model_copy(deep=True).without_transients()
        return self._projects.save(name, snapshot)

    def load_project(self, record_id: str) -> ProjectRecord:
        """Replace the live state with a saved project.

        Raises:
            NotFoundError: If the record does not exist. The live state is
                left untouched.
        """
        record = self._projects.load(record_id)
        self._tree.release_video()
        self._tree.replace(record.state.model_copy(deep=True))
        logger.info(f"Loaded project '{record.name}' ({record.id})")
        return record

    def delete_project(self, record_id: str) -> None:
        self._projects.delete(record_id)

    def close(self) -> None:
        """Release runtime resources held by the live state."""
        self._tree.release_video()

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
