"""Sync driver — the convergence engine for module images.

The SyncDriver wires the ModuleResolver, ArchiveCache and ImageStore into
the two flows a run can take over a manifest:

- ensure-exported: resolve, pull (best-effort), save the archive.
- ensure-loaded:   resolve, self-heal a missing archive (pull + save), load.

Every per-module error is caught at the module boundary and recorded as that
module's ``SyncResult``; the batch always completes.  Modules are independent,
so they may run on a bounded thread pool.  Results keep manifest order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from modloader.core.archive_cache import ArchiveCache
from modloader.core.errors import ModuleLoaderError, RuntimeFailedError
from modloader.core.resolver import ModuleResolver
from modloader.models.modules import ImageReference, ModuleRecord
from modloader.models.outcomes import (
    PullResult,
    SyncFlow,
    SyncOutcome,
    SyncReport,
    SyncResult,
)
from modloader.runtime.base import ImageStore

logger = logging.getLogger(__name__)

# (module_id, resolved reference) -> result
_Step = Callable[[str, ImageReference], SyncResult]


class SyncDriver:
    """Runs convergence flows over module records.

    Parameters
    ----------
    resolver:
        Turns module identifiers into image references.
    cache:
        Archive cache the flows save to and load from.
    store:
        Runtime used for pulls and local inventory.
    max_workers:
        Modules processed concurrently.  1 keeps the run sequential.
    """

    def __init__(
        self,
        resolver: ModuleResolver,
        cache: ArchiveCache,
        store: ImageStore,
        *,
        max_workers: int = 1,
    ) -> None:
        self.resolver = resolver
        self.cache = cache
        self.store = store
        self.max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def ensure_exported(self, records: Sequence[ModuleRecord]) -> SyncReport:
        """Make sure an archive exists for every module's image.

        Pulls even when an archive is already present; only the save step
        is skipped for existing archives.
        """
        return self._run(SyncFlow.ENSURE_EXPORTED, records, self._export_one)

    def ensure_loaded(self, records: Sequence[ModuleRecord]) -> SyncReport:
        """Make sure every module's image is loaded into the local runtime."""
        return self._run(SyncFlow.ENSURE_LOADED, records, self._load_one)

    def export_installed(self) -> SyncReport:
        """Archive every tag of every image already installed locally.

        Raises ``RuntimeFailedError`` if the runtime cannot be listed.
        """
        records = [
            ModuleRecord(module_id=tag)
            for image in self.store.list_images()
            for tag in image.tags
        ]
        return self._run(SyncFlow.EXPORT_INSTALLED, records, self._save_one)

    def plan(self, records: Sequence[ModuleRecord], *, use_ipfs: bool = False) -> list[str]:
        """Return the shell commands that would fetch each module's image.

        Unresolvable modules are logged and left out.  No runtime calls.
        """
        commands: list[str] = []
        for record in records:
            try:
                image = self.resolver.resolve(record.module_id)
            except ModuleLoaderError as exc:
                logger.warning("%s: %s", record.module_id, exc)
                continue
            if use_ipfs and record.cid:
                commands.append(f"ipfs get {record.cid}; docker load -i {record.cid}")
            else:
                commands.append(f"docker pull {image}")
        return commands

    # ------------------------------------------------------------------
    # Best-effort side calls
    # ------------------------------------------------------------------

    def pull(self, reference: ImageReference) -> PullResult:
        """Pull *reference*, reporting failure in the result instead of raising."""
        try:
            output = self.store.pull(reference)
        except RuntimeFailedError as exc:
            logger.warning("Error pulling image %s: %s", reference, exc)
            return PullResult(reference=reference, ok=False, error=str(exc))
        logger.info("Successfully pulled image %s", reference)
        return PullResult(reference=reference, ok=True, output=output)

    # ------------------------------------------------------------------
    # Per-module steps (run after resolution)
    # ------------------------------------------------------------------

    def _export_one(self, module_id: str, reference: ImageReference) -> SyncResult:
        pulled = self.pull(reference)
        exported = self.cache.save(reference)
        return SyncResult(
            module_id=module_id,
            reference=reference,
            outcome=SyncOutcome.RESOLVED,
            detail="exported" if exported else "archive already present",
            archive_path=self.cache.path_for(reference),
            pulled=pulled.ok,
            exported=exported,
        )

    def _load_one(self, module_id: str, reference: ImageReference) -> SyncResult:
        pulled = False
        exported = False
        if not self.cache.exists(reference):
            pulled = self.pull(reference).ok
            exported = self.cache.save(reference)
        output = self.cache.load(reference)
        return SyncResult(
            module_id=module_id,
            reference=reference,
            outcome=SyncOutcome.RESOLVED,
            detail=output or "loaded",
            archive_path=self.cache.path_for(reference),
            pulled=pulled,
            exported=exported,
            loaded=True,
        )

    def _save_one(self, module_id: str, reference: ImageReference) -> SyncResult:
        exported = self.cache.save(reference)
        return SyncResult(
            module_id=module_id,
            reference=reference,
            outcome=SyncOutcome.RESOLVED,
            detail="exported" if exported else "archive already present",
            archive_path=self.cache.path_for(reference),
            exported=exported,
        )

    # ------------------------------------------------------------------
    # Batch execution
    # ------------------------------------------------------------------

    def _run(
        self,
        flow: SyncFlow,
        records: Sequence[ModuleRecord],
        step: _Step,
    ) -> SyncReport:
        logger.info("Running %s over %d modules", flow.value, len(records))

        def guarded(record: ModuleRecord) -> SyncResult:
            return self._sync_module(record, step)

        if self.max_workers == 1 or len(records) <= 1:
            results = [guarded(record) for record in records]
        else:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="modloader-sync"
            ) as executor:
                results = list(executor.map(guarded, records))

        report = SyncReport(flow=flow, results=results)
        logger.info(
            "%s finished: %d ok, %d failed",
            flow.value, len(report.succeeded), len(report.failed),
        )
        return report

    def _sync_module(self, record: ModuleRecord, step: _Step) -> SyncResult:
        """Resolve one record and run *step*; per-module errors become results."""
        reference = record.image
        try:
            reference = self.resolver.resolve(record.module_id)
            result = step(record.module_id, reference)
        except ModuleLoaderError as exc:
            logger.warning("%s: %s (%s)", record.module_id, exc, exc.outcome.value)
            return SyncResult(
                module_id=record.module_id,
                reference=reference,
                outcome=exc.outcome,
                detail=str(exc),
            )
        logger.info("%s: %s (%s)", record.module_id, reference, result.detail)
        return result
