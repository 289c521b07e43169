"""Container runtime backends behind the ``ImageStore`` protocol."""

from __future__ import annotations

from modloader.config import LoaderConfig
from modloader.runtime.base import ImageStore
from modloader.runtime.docker_api import DockerApiImageStore
from modloader.runtime.docker_cli import DockerCliImageStore


def create_image_store(config: LoaderConfig) -> ImageStore:
    """Build the image store selected by ``config.runtime_transport``."""
    if config.runtime_transport == "cli":
        return DockerCliImageStore(
            config.docker_binary, timeout_seconds=config.runtime_timeout_seconds
        )
    return DockerApiImageStore(
        docker_host=config.docker_host,
        timeout_seconds=config.runtime_timeout_seconds,
    )


__all__ = [
    "ImageStore",
    "DockerApiImageStore",
    "DockerCliImageStore",
    "create_image_store",
]
