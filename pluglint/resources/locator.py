"""
Resource location and classification.

``locate`` turns one declared reference into exactly one classified
result. Search order is a priority order, not a performance detail:

1. ``<root>/<ref>``
2. ``<root>/<subfolder>/<ref>`` for each well-known subfolder
3. ``<project>/<ref>`` and absolute references (still disk hits)
4. the project's visible dependency archives

Disk hits are classified by containment of canonical paths, so a file
reached through a symlink that leaves the root is reported as outside
the root, never silently accepted.
"""

import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Iterable, Optional, Union

from ..core.context import ResolutionContext, canonical_key, default_context
from ..core.logging import get_logger
from .archives import archive_index
from .materialize import ARCHIVE_ERRORS, MaterializedEntry, materialize_entry
from .normalizer import is_empty, normalize_reference
from .roots import ResourceRoot

logger = get_logger(__name__)


class ResolutionSource(Enum):
    NOT_FOUND = "not_found"
    DISK_IN_ROOT = "disk_in_root"
    DISK_OUTSIDE_ROOT = "disk_outside_root"
    DEPENDENCY = "dependency"


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of locating one reference. Exactly one subclass applies."""
    expected_root: Path

    source: ClassVar[ResolutionSource] = ResolutionSource.NOT_FOUND

    @property
    def found(self) -> bool:
        return self.source is not ResolutionSource.NOT_FOUND

    @property
    def file(self) -> Optional[Path]:
        return None


@dataclass(frozen=True)
class NotFound(ResolutionResult):
    pass


@dataclass(frozen=True)
class FoundInRoot(ResolutionResult):
    path: Path = field(default=Path())

    source: ClassVar[ResolutionSource] = ResolutionSource.DISK_IN_ROOT

    @property
    def file(self) -> Path:
        return self.path


@dataclass(frozen=True)
class FoundOutsideRoot(ResolutionResult):
    """A disk file whose canonical location is not under the expected root.

    ``path`` is the file as found; ``actual_location`` its canonical path.
    """
    path: Path = field(default=Path())
    actual_location: Path = field(default=Path())

    source: ClassVar[ResolutionSource] = ResolutionSource.DISK_OUTSIDE_ROOT

    @property
    def file(self) -> Path:
        return self.path


@dataclass(frozen=True)
class FoundInDependency(ResolutionResult):
    """An archive entry, materialized to a temporary file.

    ``actual_location`` is the archive, ``entry`` the name inside it.
    """
    path: Path = field(default=Path())
    actual_location: Path = field(default=Path())
    entry: str = ""

    source: ClassVar[ResolutionSource] = ResolutionSource.DEPENDENCY

    @property
    def file(self) -> Path:
        return self.path

    @property
    def archive_name(self) -> str:
        return self.actual_location.name


def is_under_directory(file: Union[str, Path], directory: Union[str, Path]) -> bool:
    """Containment check on canonical (symlink-resolved) paths."""
    try:
        file_path = Path(file).resolve()
        dir_path = Path(directory).resolve()
    except (OSError, RuntimeError):
        return False
    return file_path == dir_path or dir_path in file_path.parents


def classify(candidate: Path, root: Path) -> ResolutionResult:
    """Classify an existing disk file against the expected root."""
    if is_under_directory(candidate, root):
        return FoundInRoot(expected_root=root, path=candidate.resolve())
    try:
        actual = candidate.resolve()
    except (OSError, RuntimeError):
        actual = candidate.absolute()
    return FoundOutsideRoot(expected_root=root, path=candidate, actual_location=actual)


def _disk_candidates(
    reference: str,
    normalized: str,
    root: Path,
    project_dir: Path,
    subfolders: Iterable[str],
) -> Iterable[Path]:
    yield root / normalized
    for sub in subfolders:
        yield root / sub / normalized
    if project_dir != root:
        yield project_dir / normalized
    raw = Path(reference.strip())
    if raw.is_absolute():
        yield raw


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def materialize_from_dependencies(
    normalized: str,
    project_dir: Path,
    context: ResolutionContext,
) -> Optional[MaterializedEntry]:
    """Extract an entry from the first visible archive holding it.

    Cached per (project, entry); returns None when no archive has it.
    """
    def create(_key: str) -> Optional[MaterializedEntry]:
        index = archive_index(project_dir, context)
        archive = index.find(normalized)
        if archive is None:
            return None
        try:
            entry = materialize_entry(archive, normalized, context.temp_files)
        except (*ARCHIVE_ERRORS, KeyError) as e:
            logger.debug(f"Could not extract {normalized} from {archive}: {e}")
            return None
        logger.debug(f"Materialized {normalized} from {archive.name} to {entry.file}")
        return entry

    key = f"{canonical_key(project_dir)}::dep::{normalized}"
    return context.materialized.get_or_create(key, create)


def materialize_archive_entry(
    archive: Path,
    entry: str,
    context: ResolutionContext,
) -> Optional[MaterializedEntry]:
    """Extract an entry from one specific archive, cached per (archive, entry)."""
    def create(_key: str) -> Optional[MaterializedEntry]:
        try:
            return materialize_entry(archive, entry, context.temp_files)
        except (*ARCHIVE_ERRORS, KeyError) as e:
            logger.debug(f"Could not extract {entry} from {archive}: {e}")
            return None

    key = f"{canonical_key(archive)}::entry::{entry}"
    return context.materialized.get_or_create(key, create)


def locate(
    reference: Optional[str],
    root: Union[ResourceRoot, str, Path],
    context: Optional[ResolutionContext] = None,
) -> ResolutionResult:
    """Locate a declared reference relative to a resource root.

    Args:
        reference: Raw reference as declared by the plugin
        root: ResourceRoot, or a plain directory used as both root and project
        context: Resolution context holding the archive and materialization caches

    Returns:
        NotFound, FoundInRoot, FoundOutsideRoot or FoundInDependency
    """
    context = context or default_context()
    if isinstance(root, ResourceRoot):
        root_path, project_dir = root.path, root.project_dir
    else:
        root_path = project_dir = Path(root)

    normalized = normalize_reference(reference)
    if is_empty(normalized):
        return NotFound(expected_root=root_path)

    subfolders = context.config.resources.subfolders
    for candidate in _disk_candidates(reference, normalized, root_path, project_dir, subfolders):
        logger.trace(f"Probing {candidate}")
        if _is_file(candidate):
            return classify(candidate, root_path)

    materialized = materialize_from_dependencies(normalized, project_dir, context)
    if materialized is not None:
        return FoundInDependency(
            expected_root=root_path,
            path=materialized.file,
            actual_location=materialized.archive,
            entry=materialized.entry,
        )

    logger.debug(f"Reference not found: {reference!r} (root {root_path})")
    return NotFound(expected_root=root_path)


@dataclass
class ResolvedResources:
    """Results of resolving many references, grouped by outcome.

    Files found in a dependency count as usable files too.
    """
    valid_files: list[Path] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    outside_root: dict[str, FoundOutsideRoot] = field(default_factory=dict)
    from_dependency: dict[str, FoundInDependency] = field(default_factory=dict)
    results: dict[str, ResolutionResult] = field(default_factory=dict)


def resolve_many(
    references: Iterable[str],
    root: Union[ResourceRoot, str, Path],
    context: Optional[ResolutionContext] = None,
) -> ResolvedResources:
    """Locate each reference once, preserving declaration order."""
    resolved = ResolvedResources()
    for ref in references:
        if ref in resolved.results:
            continue
        result = locate(ref, root, context)
        resolved.results[ref] = result
        if isinstance(result, FoundInRoot):
            resolved.valid_files.append(result.file)
        elif isinstance(result, FoundInDependency):
            resolved.valid_files.append(result.file)
            resolved.from_dependency[ref] = result
        elif isinstance(result, FoundOutsideRoot):
            resolved.outside_root[ref] = result
        else:
            resolved.missing.append(ref)
    return resolved
