"""Module loader — wires config, HTTP, runtime and cache into one entry point.

The ModuleLoader owns the HTTP client and builds the ManifestLoader,
ModuleResolver, ArchiveCache and SyncDriver from a LoaderConfig.  Every
collaborator can be injected, which is how tests swap in fakes.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from modloader.config import LoaderConfig
from modloader.core.archive_cache import ArchiveCache
from modloader.core.manifest import ManifestLoader
from modloader.core.resolver import ModuleResolver
from modloader.core.sync_driver import SyncDriver
from modloader.models.modules import ModuleRecord
from modloader.models.outcomes import SyncReport
from modloader.runtime import ImageStore, create_image_store

logger = logging.getLogger(__name__)


class ModuleLoader:
    """Top-level coordinator for one loader run.

    Parameters
    ----------
    config:
        Loader configuration. Uses defaults (and the environment) if not provided.
    store:
        Container runtime backend. Built from ``config.runtime_transport`` if None.
    http_client:
        Client for manifest and template fetches. Built with
        ``config.http_timeout_seconds`` if None; closed by ``close()`` only
        when built here.
    """

    def __init__(
        self,
        config: LoaderConfig | None = None,
        *,
        store: ImageStore | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config or LoaderConfig()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(
            timeout=self.config.http_timeout_seconds, follow_redirects=True
        )
        self.store = store or create_image_store(self.config)

        self.manifest = ManifestLoader(self.config.manifest_url, self.http_client)
        self.resolver = ModuleResolver(
            self.http_client,
            template_filename=self.config.template_filename,
            branch=self.config.template_branch,
        )
        self.cache = ArchiveCache(self.config.archive_dir, self.store)
        self.driver = SyncDriver(
            self.resolver,
            self.cache,
            self.store,
            max_workers=self.config.max_workers,
        )

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def load_manifest(self) -> list[ModuleRecord]:
        """Fetch the allow-list. FetchError / DecodeError propagate."""
        return self.manifest.load()

    def ensure_loaded(self, records: list[ModuleRecord] | None = None) -> SyncReport:
        records = self.load_manifest() if records is None else records
        return self.driver.ensure_loaded(records)

    def ensure_exported(self, records: list[ModuleRecord] | None = None) -> SyncReport:
        records = self.load_manifest() if records is None else records
        return self.driver.ensure_exported(records)

    def export_installed(self) -> SyncReport:
        return self.driver.export_installed()

    def plan(self, records: list[ModuleRecord] | None = None) -> list[str]:
        records = self.load_manifest() if records is None else records
        return self.driver.plan(records, use_ipfs=self.config.use_ipfs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> ModuleLoader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
