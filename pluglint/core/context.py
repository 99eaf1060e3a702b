"""
Resolution context: the explicit owner of every per-run cache.

Components take a ``context`` argument instead of reaching for module
globals. Callers that do not care get a lazily created process-wide
default via ``default_context()``.
"""

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from .cache import ConcurrentCache
from .config import Config, load_config
from .logging import get_logger
from .tempfiles import TempFileTracker

if TYPE_CHECKING:
    from ..inspection.registry import TypeRegistry
    from ..resources.archives import ArchiveIndex
    from ..resources.materialize import MaterializedEntry
    from ..resources.roots import ResourceRoot

logger = get_logger(__name__)


def canonical_key(path: Union[str, Path]) -> str:
    """Canonical absolute path used as a cache key."""
    return str(Path(path).expanduser().resolve())


class ResolutionContext:
    """Caches shared by every linting task of one run.

    Attributes:
        config: Loaded configuration
        roots: ResourceRoot per project (and per plugin within a project)
        archives: ArchiveIndex per project, i.e. per visible archive set
        materialized: Temporary file per (project, archive entry)
        registries: TypeRegistry per project, ``#deep`` suffix for the deep variant
        temp_files: Tracker for materialized files
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else load_config()
        self.temp_files = TempFileTracker(prefix=self.config.resources.temp_prefix)
        self.roots: ConcurrentCache[str, "ResourceRoot"] = ConcurrentCache()
        self.archives: ConcurrentCache[str, "ArchiveIndex"] = ConcurrentCache()
        self.materialized: ConcurrentCache[str, "MaterializedEntry"] = ConcurrentCache(
            cleanup=lambda m: self.temp_files.discard(m.file)
        )
        self.registries: ConcurrentCache[str, "TypeRegistry"] = ConcurrentCache()
        self._builds_lock = threading.Lock()
        self._registry_builds = 0

    def record_registry_build(self) -> None:
        with self._builds_lock:
            self._registry_builds += 1

    @property
    def registry_builds(self) -> int:
        """How many type registries have been constructed so far."""
        with self._builds_lock:
            return self._registry_builds

    def cache_stats(self) -> dict[str, Any]:
        return {
            "roots": len(self.roots),
            "archives": len(self.archives),
            "materialized": len(self.materialized),
            "registries": len(self.registries),
            "registry_builds": self.registry_builds,
        }

    def close(self) -> None:
        """Drop all caches and delete materialized files now."""
        self.materialized.clear()
        self.archives.clear()
        self.roots.clear()
        self.registries.clear()
        self.temp_files.cleanup()
        logger.debug("Resolution context closed")

    def __enter__(self) -> "ResolutionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_default_context: Optional[ResolutionContext] = None
_default_lock = threading.Lock()


def default_context() -> ResolutionContext:
    """Return the process-wide context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = ResolutionContext()
        return _default_context


def reset_default_context() -> None:
    """Close and forget the process-wide context (useful for testing)."""
    global _default_context
    with _default_lock:
        context, _default_context = _default_context, None
    if context is not None:
        context.close()
