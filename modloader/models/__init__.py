"""modloader data models — all Pydantic v2, all frozen (immutable)."""

from modloader.models.modules import ArchiveEntry, ImageReference, ModuleRecord
from modloader.models.outcomes import (
    PullResult,
    SyncFlow,
    SyncOutcome,
    SyncReport,
    SyncResult,
)
from modloader.models.runtime import InstalledImage

__all__ = [
    # modules
    "ImageReference",
    "ModuleRecord",
    "ArchiveEntry",
    # outcomes
    "SyncOutcome",
    "SyncFlow",
    "SyncResult",
    "SyncReport",
    "PullResult",
    # runtime
    "InstalledImage",
]
