"""modloader: keep a local container-image cache in step with a module allow-list.

Resolves allow-listed module identifiers to image references, then drives
idempotent pull / export / load flows against the local runtime and a
directory of portable image archives.
"""

__version__ = "0.1.0"
__description__ = "Module allow-list image loader with a portable archive cache"

from modloader.core.loader import ModuleLoader
from modloader.core.sync_driver import SyncDriver
from modloader.cli.app import app as cli

__all__ = ["ModuleLoader", "SyncDriver", "cli", "__version__"]
