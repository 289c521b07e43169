"""Reference-keyed archive cache for exported images.

Storage layout: {base_dir}/{reference with "/" replaced by "_"}.tar
There is no delete method. Archives persist across runs.

The key is not collision-free: ``org/app:1`` and ``org_app:1`` share a file.
Keeping names human-readable takes precedence; see ``path_for``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from modloader.core.errors import ArchiveIOError
from modloader.models.modules import ArchiveEntry, ImageReference
from modloader.runtime.base import ImageStore

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar"


def sanitize_reference(reference: ImageReference) -> str:
    """Turn an image reference into a file stem by replacing every ``/``."""
    return reference.replace("/", "_")


class ArchiveCache:
    """Maps image references to archive files and moves images through them.

    Saving the same reference twice is a no-op (idempotent).  Existence is
    checked before writing but not locked, so two concurrent savers of one
    reference may both export; each write replaces the whole file.

    Parameters
    ----------
    base_dir:
        Directory holding the archives.
    store:
        Runtime used to export and import archives.
    create:
        Create *base_dir* if missing.  Pass False for read-only use.
    """

    def __init__(self, base_dir: Path, store: ImageStore, *, create: bool = True) -> None:
        self._base = Path(base_dir)
        self._store = store
        if create:
            self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def path_for(self, reference: ImageReference) -> Path:
        """Compute the archive path for a reference. Pure and deterministic."""
        return self._base / f"{sanitize_reference(reference)}{ARCHIVE_SUFFIX}"

    def entry_for(self, reference: ImageReference) -> ArchiveEntry:
        return ArchiveEntry(path=self.path_for(reference), reference=reference)

    def exists(self, reference: ImageReference) -> bool:
        """Check if an archive for *reference* is on disk."""
        return self.path_for(reference).is_file()

    def list_entries(self) -> list[ArchiveEntry]:
        """List archives on disk.

        The reference is recovered by mapping ``_`` back to ``/``, which is a
        guess for names that contained an underscore originally.
        """
        if not self._base.is_dir():
            return []
        return [
            ArchiveEntry(path=path, reference=path.stem.replace("_", "/"))
            for path in sorted(self._base.glob(f"*{ARCHIVE_SUFFIX}"))
        ]

    # ------------------------------------------------------------------
    # Save and load
    # ------------------------------------------------------------------

    def save(self, reference: ImageReference) -> bool:
        """Export *reference* from the runtime into its archive.

        Returns False without touching the runtime when the archive already
        exists.  The export is written to a temporary file in the archive
        directory and renamed into place, so a failed export never leaves a
        partial archive behind.

        Raises
        ------
        RuntimeFailedError
            The runtime could not export the image.
        ArchiveIOError
            The archive file could not be written.
        """
        target = self.path_for(reference)
        if target.exists():
            logger.info("File already exists, skipping: %s", target)
            return False

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._base, prefix=f".{target.stem}.", suffix=".partial"
            )
        except OSError as exc:
            raise ArchiveIOError(f"Error creating output file {target}: {exc}") from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                self._store.export(reference, handle)
            os.replace(tmp_name, target)
        except OSError as exc:
            raise ArchiveIOError(f"Error writing image to file {target}: {exc}") from exc
        finally:
            _discard(tmp_name)

        logger.info("Docker image saved successfully to %s", target)
        return True

    def load(self, reference: ImageReference) -> str:
        """Import the archive of *reference* into the runtime.

        Raises
        ------
        ArchiveIOError
            No archive exists, or it could not be opened.
        RuntimeFailedError
            The runtime rejected the archive.
        """
        source = self.path_for(reference)
        try:
            with source.open("rb") as handle:
                output = self._store.import_archive(handle)
        except OSError as exc:
            raise ArchiveIOError(f"Error opening archive {source}: {exc}") from exc
        logger.info("Successfully loaded image %s: %s", source, output)
        return output


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
