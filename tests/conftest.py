"""Shared test fixtures for modloader."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

import httpx
import pytest

from modloader.config import LoaderConfig
from modloader.core.archive_cache import ArchiveCache
from modloader.core.errors import RuntimeFailedError
from modloader.core.resolver import ModuleResolver
from modloader.core.sync_driver import SyncDriver
from modloader.models.runtime import InstalledImage

MANIFEST_URL = "https://allowlist.test/allowlist.json"


# ---------------------------------------------------------------------------
# Fake container runtime
# ---------------------------------------------------------------------------


class FakeImageStore:
    """In-memory ImageStore that records every call.

    ``images`` maps an installed reference to the bytes its archive holds.
    Pulling a reference in ``registry`` installs it; anything else fails.
    """

    def __init__(
        self,
        installed: dict[str, bytes] | None = None,
        registry: dict[str, bytes] | None = None,
        *,
        fail_imports: bool = False,
    ) -> None:
        self.images: dict[str, bytes] = dict(installed or {})
        self.registry: dict[str, bytes] = dict(registry or {})
        self.fail_imports = fail_imports
        self.calls: list[tuple[str, str]] = []
        self.imported: list[bytes] = []

    def calls_of(self, kind: str) -> list[str]:
        return [arg for name, arg in self.calls if name == kind]

    def list_images(self) -> list[InstalledImage]:
        self.calls.append(("list", ""))
        return [
            InstalledImage(image_id=f"sha256:{i:064x}", tags=[ref], size_bytes=len(data))
            for i, (ref, data) in enumerate(sorted(self.images.items()))
        ]

    def pull(self, reference: str) -> str:
        self.calls.append(("pull", reference))
        if reference not in self.registry:
            raise RuntimeFailedError(f"Error pulling image {reference}: not found")
        self.images[reference] = self.registry[reference]
        return f"sha256:{reference}"

    def export(self, reference: str, writer: BinaryIO) -> None:
        self.calls.append(("export", reference))
        if reference not in self.images:
            raise RuntimeFailedError(f"No such image: {reference}")
        writer.write(self.images[reference])

    def import_archive(self, reader: BinaryIO) -> str:
        data = reader.read()
        self.calls.append(("import", data.decode("utf-8", errors="replace")))
        if self.fail_imports:
            raise RuntimeFailedError("Error loading image archive: invalid tar header")
        self.imported.append(data)
        return f"Loaded image: {data.decode('utf-8', errors='replace')}"


# ---------------------------------------------------------------------------
# Fake HTTP hosts
# ---------------------------------------------------------------------------


class FakeWeb:
    """Route table for ``httpx.MockTransport``; unknown URLs answer 404."""

    def __init__(self, routes: dict[str, tuple[int, str]] | None = None) -> None:
        self.routes: dict[str, tuple[int, str]] = dict(routes or {})
        self.requested: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        status, body = self.routes.get(url, (404, "404: Not Found"))
        return httpx.Response(status, text=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    """Provide the archive directory, mirroring the default ``images/`` layout."""
    return tmp_path / "images"


@pytest.fixture
def fake_store() -> FakeImageStore:
    """Provide an empty runtime whose registry serves redis:7."""
    return FakeImageStore(registry={"redis:7": b"redis-7-layers"})


@pytest.fixture
def web() -> FakeWeb:
    """Provide a fake web with no routes."""
    return FakeWeb()


@pytest.fixture
def cache(archive_dir: Path, fake_store: FakeImageStore) -> ArchiveCache:
    """Provide an ArchiveCache over the temp archive dir and fake runtime."""
    return ArchiveCache(archive_dir, fake_store)


@pytest.fixture
def resolver(web: FakeWeb) -> ModuleResolver:
    """Provide a ModuleResolver talking to the fake web."""
    return ModuleResolver(web.client())


@pytest.fixture
def driver(resolver: ModuleResolver, cache: ArchiveCache, fake_store: FakeImageStore) -> SyncDriver:
    """Provide a sequential SyncDriver wired to the fakes."""
    return SyncDriver(resolver, cache, fake_store)


@pytest.fixture
def make_config(archive_dir: Path) -> Callable[..., LoaderConfig]:
    """Factory fixture: build a LoaderConfig pointing at temp paths."""

    def _factory(**overrides) -> LoaderConfig:
        defaults = {"manifest_url": MANIFEST_URL, "archive_dir": archive_dir}
        defaults.update(overrides)
        return LoaderConfig(**defaults)

    return _factory


@pytest.fixture
def make_store() -> Callable[..., FakeImageStore]:
    """Factory fixture: build a FakeImageStore with custom contents."""
    return FakeImageStore


@pytest.fixture
def make_web() -> Callable[..., FakeWeb]:
    """Factory fixture: build a FakeWeb from a ``{url: (status, body)}`` table."""
    return FakeWeb


@pytest.fixture
def manifest_url() -> str:
    """The manifest URL every test config points at."""
    return MANIFEST_URL
