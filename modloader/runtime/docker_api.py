"""Docker Engine API backend for the image store.

Talks to the local daemon through the ``docker`` SDK (``DOCKER_HOST`` or the
default socket).  The client is created lazily so constructing the store
never touches the daemon.

The SDK passes ``requests`` transport errors (read timeouts, a daemon that
goes away mid-call) through unwrapped, so both families are caught.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from modloader.core.errors import RuntimeFailedError
from modloader.models.runtime import InstalledImage

logger = logging.getLogger(__name__)

_DAEMON_ERRORS = (DockerException, RequestException)


def with_default_tag(reference: str) -> str:
    """Append ``:latest`` to a reference that names neither a tag nor a digest."""
    if "@" in reference:
        return reference
    name = reference.rsplit("/", 1)[-1]
    return reference if ":" in name else f"{reference}:latest"


class DockerApiImageStore:
    """Image store backed by the Docker Engine API.

    Parameters
    ----------
    client:
        A ready ``docker.DockerClient``.  Created on first use if omitted.
    docker_host:
        Daemon URL (e.g. ``tcp://host.docker.internal:2375``).  When None the
        environment (``DOCKER_HOST``) or local socket is used.
    timeout_seconds:
        Per-request timeout for daemon calls.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        docker_host: str | None = None,
        timeout_seconds: float = 600.0,
    ) -> None:
        self._client = client
        self._docker_host = docker_host
        self._timeout = int(timeout_seconds)

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                if self._docker_host:
                    self._client = docker.DockerClient(
                        base_url=self._docker_host, timeout=self._timeout
                    )
                else:
                    self._client = docker.from_env(timeout=self._timeout)
            except _DAEMON_ERRORS as exc:
                raise RuntimeFailedError(
                    f"Cannot connect to the Docker daemon: {exc}"
                ) from exc
        return self._client

    def list_images(self) -> list[InstalledImage]:
        try:
            images = self.client.images.list()
        except _DAEMON_ERRORS as exc:
            raise RuntimeFailedError(f"Error listing Docker images: {exc}") from exc
        return [
            InstalledImage(
                image_id=image.id,
                tags=list(image.tags),
                size_bytes=image.attrs.get("Size", 0),
            )
            for image in images
        ]

    def pull(self, reference: str) -> str:
        try:
            image = self.client.images.pull(reference)
        except _DAEMON_ERRORS as exc:
            raise RuntimeFailedError(f"Error pulling image {reference}: {exc}") from exc
        logger.debug("Pulled %s as %s", reference, image.id)
        return image.id

    def export(self, reference: str, writer: BinaryIO) -> None:
        try:
            image = self.client.images.get(reference)
            # Keep the requested tag in the archive so `load` restores it.
            tagged = with_default_tag(reference)
            named = tagged if tagged in image.tags else True
            for chunk in image.save(named=named):
                writer.write(chunk)
        except _DAEMON_ERRORS as exc:
            raise RuntimeFailedError(f"Error saving Docker image {reference}: {exc}") from exc

    def import_archive(self, reader: BinaryIO) -> str:
        try:
            images = self.client.images.load(reader)
        except _DAEMON_ERRORS as exc:
            raise RuntimeFailedError(f"Error loading image archive: {exc}") from exc
        return ", ".join(tag for image in images for tag in image.tags)
