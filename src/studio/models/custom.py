"""User-authored prompt builder items."""

import time
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


def time_based_id(prefix: str, taken: Iterable[str] = (), now_ms: Optional[int] = None) -> str:
    """Generate ``<prefix>-<epoch millis>``, bumped until it is not in ``taken``."""
    used = set(taken)
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    candidate = f"{prefix}-{stamp}"
    while candidate in used:
        stamp += 1
        candidate = f"{prefix}-{stamp}"
    return candidate


class CustomClothing(BaseModel):
    """A named clothing description added to the prompt builder."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")
    prompt: str = Field(..., description="Prompt fragment")


class CustomLocation(BaseModel):
    """A location (category + detail) added to the prompt builder."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier")
    category: str = Field(..., description="Location category")
    detail: str = Field(..., description="Location detail within the category")
    prompt: str = Field(..., description="Prompt fragment")
