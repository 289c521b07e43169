"""Container runtime inventory models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class InstalledImage(BaseModel):
    """An image present in the local runtime, as reported by ``list``."""

    model_config = ConfigDict(frozen=True)

    image_id: str
    tags: list[str] = []
    size_bytes: int = 0
