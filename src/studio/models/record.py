"""Saved project record."""

from datetime import datetime
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .state import ProjectState


class ProjectRecord(BaseModel):
    """A named, timestamped copy of the project state."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique record identifier")
    name: str = Field(..., description="Display name", min_length=1)
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    state: ProjectState = Field(..., description="Saved project state")

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000)

    @classmethod
    def from_yaml(cls, path: Path) -> "ProjectRecord":
        """Load a record from an exported YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Export the record to a YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)
