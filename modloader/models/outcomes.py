"""Per-module sync outcomes and the aggregated run report."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SyncOutcome(str, Enum):
    """Result class of one module's sync attempt.

    Every failure is non-fatal to the batch.
    """

    RESOLVED = "resolved"
    SKIPPED_NO_IMAGE_FOUND = "skipped_no_image_found"
    FETCH_FAILED = "fetch_failed"
    ARCHIVE_FAILED = "archive_failed"
    RUNTIME_FAILED = "runtime_failed"


class SyncFlow(str, Enum):
    """Which convergence procedure produced a report."""

    ENSURE_EXPORTED = "ensure_exported"
    ENSURE_LOADED = "ensure_loaded"
    EXPORT_INSTALLED = "export_installed"


class PullResult(BaseModel):
    """Result of a best-effort pull.

    Callers inspect or ignore it explicitly; a failed pull never raises.
    """

    model_config = ConfigDict(frozen=True)

    reference: str
    ok: bool
    output: str = ""
    error: str = ""


class SyncResult(BaseModel):
    """What happened to a single module during one run."""

    model_config = ConfigDict(frozen=True)

    module_id: str
    outcome: SyncOutcome
    reference: str = ""
    detail: str = ""
    archive_path: Path | None = None
    pulled: bool = False
    exported: bool = False  # a new archive was written
    loaded: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == SyncOutcome.RESOLVED


class SyncReport(BaseModel):
    """Ordered per-module results of one flow over a manifest."""

    model_config = ConfigDict(frozen=True)

    flow: SyncFlow
    results: list[SyncResult] = []
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def outcomes(self) -> list[SyncOutcome]:
        return [r.outcome for r in self.results]

    @property
    def succeeded(self) -> list[SyncResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[SyncResult]:
        return [r for r in self.results if not r.ok]

    def counts(self) -> dict[SyncOutcome, int]:
        """Number of modules per outcome, in enum order, zeros omitted."""
        tally = Counter(self.outcomes)
        return {outcome: tally[outcome] for outcome in SyncOutcome if tally[outcome]}
