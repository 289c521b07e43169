"""Docker command-line backend for the image store.

Alternative transport to the same runtime: every operation invokes the
``docker`` client binary with a per-call timeout.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import BinaryIO

from modloader.core.errors import RuntimeFailedError
from modloader.models.runtime import InstalledImage

logger = logging.getLogger(__name__)


class DockerCliImageStore:
    """Image store that shells out to ``docker``.

    Parameters
    ----------
    binary:
        Name or path of the docker client.
    timeout_seconds:
        Deadline for each invocation.
    """

    def __init__(self, binary: str = "docker", *, timeout_seconds: float = 600.0) -> None:
        self._binary = binary
        self._timeout = timeout_seconds

    def _run(self, *args: str, **kwargs) -> subprocess.CompletedProcess:
        cmd = [self._binary, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, timeout=self._timeout, check=False, **kwargs)
        except subprocess.TimeoutExpired as exc:
            raise RuntimeFailedError(
                f"'{' '.join(cmd)}' timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise RuntimeFailedError(f"Cannot run {self._binary}: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            raise RuntimeFailedError(
                f"'{' '.join(cmd)}' failed ({result.returncode}): {(stderr or '').strip()}"
            )
        return result

    def list_images(self) -> list[InstalledImage]:
        result = self._run(
            "image", "ls", "--no-trunc", "--format", "{{json .}}",
            capture_output=True, text=True,
        )
        tags_by_id: dict[str, list[str]] = {}
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            row = json.loads(line)
            tags = tags_by_id.setdefault(row["ID"], [])
            if row.get("Repository", "<none>") != "<none>" and row.get("Tag", "<none>") != "<none>":
                tags.append(f"{row['Repository']}:{row['Tag']}")
        return [InstalledImage(image_id=image_id, tags=tags) for image_id, tags in tags_by_id.items()]

    def pull(self, reference: str) -> str:
        result = self._run("pull", reference, capture_output=True, text=True)
        return result.stdout.strip()

    def export(self, reference: str, writer: BinaryIO) -> None:
        self._run("save", reference, stdout=writer, stderr=subprocess.PIPE)

    def import_archive(self, reader: BinaryIO) -> str:
        result = self._run("load", stdin=reader, capture_output=True)
        return result.stdout.decode("utf-8", errors="replace").strip()
