"""Unit tests for the Docker image store backends.

The SDK backend is exercised against a mocked ``docker.DockerClient``; the
CLI backend with ``subprocess.run`` patched out.
"""

from __future__ import annotations

import io
import subprocess
from unittest.mock import MagicMock, patch

import pytest
import requests
from docker.errors import APIError, ImageNotFound

from modloader.config import LoaderConfig
from modloader.core.archive_cache import ArchiveCache
from modloader.core.errors import RuntimeFailedError
from modloader.core.sync_driver import SyncDriver
from modloader.models.modules import ModuleRecord
from modloader.models.outcomes import SyncOutcome
from modloader.runtime import (
    DockerApiImageStore,
    DockerCliImageStore,
    ImageStore,
    create_image_store,
)
from modloader.runtime.docker_api import with_default_tag


# ---------------------------------------------------------------------------
# Test: Docker Engine API backend
# ---------------------------------------------------------------------------


class TestDockerApiImageStore:
    def _image(self, tags: list[str], image_id: str = "sha256:abc", size: int = 42) -> MagicMock:
        image = MagicMock()
        image.id = image_id
        image.tags = tags
        image.attrs = {"Size": size}
        return image

    def test_satisfies_protocol(self):
        assert isinstance(DockerApiImageStore(client=MagicMock()), ImageStore)

    def test_list_images(self):
        client = MagicMock()
        client.images.list.return_value = [self._image(["redis:7", "redis:latest"])]
        images = DockerApiImageStore(client=client).list_images()
        assert images[0].tags == ["redis:7", "redis:latest"]
        assert images[0].size_bytes == 42

    def test_pull(self):
        client = MagicMock()
        client.images.pull.return_value = self._image(["redis:7"], "sha256:r7")
        assert DockerApiImageStore(client=client).pull("redis:7") == "sha256:r7"
        client.images.pull.assert_called_once_with("redis:7")

    def test_pull_failure(self):
        client = MagicMock()
        client.images.pull.side_effect = APIError("manifest unknown")
        with pytest.raises(RuntimeFailedError, match="redis:99"):
            DockerApiImageStore(client=client).pull("redis:99")

    def test_export_streams_chunks_with_requested_tag(self):
        image = self._image(["org/app:1"])
        image.save.return_value = iter([b"chunk-1", b"chunk-2"])
        client = MagicMock()
        client.images.get.return_value = image
        buffer = io.BytesIO()

        DockerApiImageStore(client=client).export("org/app:1", buffer)

        assert buffer.getvalue() == b"chunk-1chunk-2"
        image.save.assert_called_once_with(named="org/app:1")

    def test_export_missing_image(self):
        client = MagicMock()
        client.images.get.side_effect = ImageNotFound("no such image")
        with pytest.raises(RuntimeFailedError):
            DockerApiImageStore(client=client).export("ghost:1", io.BytesIO())

    def test_pull_read_timeout_raises_runtime_failure(self):
        client = MagicMock()
        client.images.pull.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with pytest.raises(RuntimeFailedError, match="read timed out"):
            DockerApiImageStore(client=client).pull("big/model:1")

    def test_daemon_gone_during_load(self):
        client = MagicMock()
        client.images.load.side_effect = requests.exceptions.ConnectionError("connection aborted")
        with pytest.raises(RuntimeFailedError, match="connection aborted"):
            DockerApiImageStore(client=client).import_archive(io.BytesIO(b"tar"))

    def test_transport_errors_do_not_stop_batch(self, resolver, archive_dir):
        client = MagicMock()
        client.images.pull.side_effect = requests.exceptions.ReadTimeout("read timed out")
        client.images.get.side_effect = requests.exceptions.ConnectionError("daemon gone")
        store = DockerApiImageStore(client=client)
        driver = SyncDriver(resolver, ArchiveCache(archive_dir, store), store)

        report = driver.ensure_exported([ModuleRecord(module_id="a:1"), ModuleRecord(module_id="b:1")])

        assert [r.module_id for r in report.results] == ["a:1", "b:1"]
        assert report.outcomes == [SyncOutcome.RUNTIME_FAILED, SyncOutcome.RUNTIME_FAILED]
        assert "daemon gone" in report.results[0].detail

    def test_export_untagged_reference_keeps_latest(self):
        image = self._image(["mirror/nginx:1.27", "nginx:latest"])
        image.save.return_value = iter([b"layers"])
        client = MagicMock()
        client.images.get.return_value = image

        DockerApiImageStore(client=client).export("nginx", io.BytesIO())

        image.save.assert_called_once_with(named="nginx:latest")

    @pytest.mark.parametrize(
        "reference, expected",
        [
            ("nginx", "nginx:latest"),
            ("nginx:1.27", "nginx:1.27"),
            ("registry.local:5000/org/app", "registry.local:5000/org/app:latest"),
            ("org/app@sha256:abc", "org/app@sha256:abc"),
        ],
    )
    def test_with_default_tag(self, reference, expected):
        assert with_default_tag(reference) == expected

    def test_import_archive(self):
        client = MagicMock()
        client.images.load.return_value = [self._image(["redis:7"])]
        reader = io.BytesIO(b"tar")
        assert DockerApiImageStore(client=client).import_archive(reader) == "redis:7"
        client.images.load.assert_called_once_with(reader)

    def test_client_created_lazily(self):
        with patch("modloader.runtime.docker_api.docker.from_env") as from_env:
            store = DockerApiImageStore(timeout_seconds=30)
            from_env.assert_not_called()
            store.list_images()
            from_env.assert_called_once_with(timeout=30)

    def test_explicit_host(self):
        with patch("modloader.runtime.docker_api.docker.DockerClient") as docker_client:
            DockerApiImageStore(docker_host="tcp://host.docker.internal:2375").client
            docker_client.assert_called_once_with(
                base_url="tcp://host.docker.internal:2375", timeout=600
            )


# ---------------------------------------------------------------------------
# Test: docker CLI backend
# ---------------------------------------------------------------------------


def _completed(returncode: int = 0, stdout="", stderr="") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestDockerCliImageStore:
    def test_satisfies_protocol(self):
        assert isinstance(DockerCliImageStore(), ImageStore)

    def test_pull(self):
        with patch("subprocess.run", return_value=_completed(stdout="Status: Downloaded\n")) as run:
            output = DockerCliImageStore(timeout_seconds=5).pull("redis:7")
        assert output == "Status: Downloaded"
        args, kwargs = run.call_args
        assert args[0] == ["docker", "pull", "redis:7"]
        assert kwargs["timeout"] == 5

    def test_nonzero_exit_raises(self):
        with patch("subprocess.run", return_value=_completed(1, stderr="pull access denied")):
            with pytest.raises(RuntimeFailedError, match="pull access denied"):
                DockerCliImageStore().pull("private/app:1")

    def test_timeout_raises(self):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["docker"], 5)):
            with pytest.raises(RuntimeFailedError, match="timed out"):
                DockerCliImageStore(timeout_seconds=5).pull("redis:7")

    def test_missing_binary_raises(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("docker")):
            with pytest.raises(RuntimeFailedError, match="Cannot run"):
                DockerCliImageStore().pull("redis:7")

    def test_export_pipes_stdout_to_writer(self):
        writer = io.BytesIO()
        with patch("subprocess.run", return_value=_completed(stderr=b"")) as run:
            DockerCliImageStore().export("redis:7", writer)
        args, kwargs = run.call_args
        assert args[0] == ["docker", "save", "redis:7"]
        assert kwargs["stdout"] is writer

    def test_export_failure_decodes_stderr(self):
        with patch("subprocess.run", return_value=_completed(1, stderr=b"No such image")):
            with pytest.raises(RuntimeFailedError, match="No such image"):
                DockerCliImageStore().export("ghost:1", io.BytesIO())

    def test_import_feeds_stdin(self):
        reader = io.BytesIO(b"tar")
        with patch("subprocess.run", return_value=_completed(stdout=b"Loaded image: redis:7\n")) as run:
            output = DockerCliImageStore(binary="podman").import_archive(reader)
        assert output == "Loaded image: redis:7"
        args, kwargs = run.call_args
        assert args[0] == ["podman", "load"]
        assert kwargs["stdin"] is reader

    def test_list_images_groups_tags_by_id(self):
        stdout = "\n".join([
            '{"ID":"sha256:1","Repository":"redis","Tag":"7"}',
            '{"ID":"sha256:1","Repository":"redis","Tag":"latest"}',
            '{"ID":"sha256:2","Repository":"<none>","Tag":"<none>"}',
            "",
        ])
        with patch("subprocess.run", return_value=_completed(stdout=stdout)):
            images = DockerCliImageStore().list_images()
        assert [(i.image_id, i.tags) for i in images] == [
            ("sha256:1", ["redis:7", "redis:latest"]),
            ("sha256:2", []),
        ]


class TestCreateImageStore:
    def test_api_by_default(self):
        assert isinstance(create_image_store(LoaderConfig()), DockerApiImageStore)

    def test_cli_transport(self):
        store = create_image_store(LoaderConfig(runtime_transport="cli"))
        assert isinstance(store, DockerCliImageStore)
