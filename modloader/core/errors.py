"""Error taxonomy for manifest, template, archive and runtime failures.

Every error carries the ``SyncOutcome`` it is reported as when caught at a
module boundary.  Manifest-level errors (``FetchError`` and ``DecodeError``
raised by the manifest loader) are never caught there; they abort the run.
"""

from __future__ import annotations

from modloader.models.outcomes import SyncOutcome


class ModuleLoaderError(RuntimeError):
    """Base class for every error the loader raises on purpose."""

    outcome: SyncOutcome = SyncOutcome.RUNTIME_FAILED


class FetchError(ModuleLoaderError):
    """Network failure or non-2xx response from the manifest or template host."""

    outcome = SyncOutcome.FETCH_FAILED

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class DecodeError(ModuleLoaderError):
    """Manifest body is not a JSON array of module records.

    Only raised for the manifest, so it aborts the run and keeps the base
    class outcome; it is never reported against a module.
    """


class NoImageFoundError(ModuleLoaderError):
    """Template fetched but no ``"Image": "..."`` field could be matched."""

    outcome = SyncOutcome.SKIPPED_NO_IMAGE_FOUND

    def __init__(self, module_id: str, body: str) -> None:
        self.module_id = module_id
        self.body = body
        super().__init__(f"No image found in template for {module_id}")


class RuntimeFailedError(ModuleLoaderError):
    """A pull, export or import call to the container runtime failed."""

    outcome = SyncOutcome.RUNTIME_FAILED


class ArchiveIOError(ModuleLoaderError):
    """A local archive file could not be created, written or read."""

    outcome = SyncOutcome.ARCHIVE_FAILED
