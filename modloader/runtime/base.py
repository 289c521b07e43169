"""Image store protocol — the only seam between the loader and a container runtime.

Backends:
1. ``DockerApiImageStore`` — Docker Engine API through the ``docker`` SDK.
2. ``DockerCliImageStore`` — the ``docker`` command-line client.
3. Anything else satisfying ``ImageStore`` (tests use an in-memory fake).

Every failure surfaces as ``RuntimeFailedError``.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable

from modloader.models.runtime import InstalledImage


@runtime_checkable
class ImageStore(Protocol):
    """Protocol for container runtime backends."""

    def list_images(self) -> list[InstalledImage]:
        """Return every image installed in the local runtime."""
        ...

    def pull(self, reference: str) -> str:
        """Pull *reference* from its registry and return the runtime's output."""
        ...

    def export(self, reference: str, writer: BinaryIO) -> None:
        """Stream the portable archive of *reference* into *writer*."""
        ...

    def import_archive(self, reader: BinaryIO) -> str:
        """Load an archive from *reader* and return the runtime's output."""
        ...
