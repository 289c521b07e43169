"""Manifest records, image references and archive entries."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Opaque registry/repo:tag string. Never mutated, only sanitized for storage.
ImageReference = str


class ModuleRecord(BaseModel):
    """One entry of the allow-list manifest.

    ``module_id`` is either a direct image reference (``redis:7``) or a URL
    to a module repository whose template names the image.  ``image`` starts
    empty and is assigned once, by resolution.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    module_id: str = Field(alias="ModuleId")
    image: str = Field(default="", alias="Image")
    cid: str = Field(default="", alias="Cid")

    @property
    def is_url(self) -> bool:
        """Whether the identifier points at a module repository."""
        return self.module_id.startswith(("http://", "https://"))

    def with_image(self, image: ImageReference) -> ModuleRecord:
        """Return a copy of this record with the resolved image assigned."""
        return self.model_copy(update={"image": image})


class ArchiveEntry(BaseModel):
    """A portable image archive on disk and the reference it holds."""

    model_config = ConfigDict(frozen=True)

    path: Path
    reference: ImageReference
