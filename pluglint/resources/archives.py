"""
Dependency archives visible to a project, indexed once per project.

Visible archives are, in priority order: archives sitting in the project
root, archives directly under ``target/dependency`` and archives anywhere
under ``target/dependencies``.
"""

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..core.context import ResolutionContext, canonical_key, default_context
from ..core.logging import get_logger
from .materialize import ARCHIVE_ERRORS

logger = get_logger(__name__)

DEPENDENCY_DIR = ("target", "dependency")
DEPENDENCIES_DIR = ("target", "dependencies")


def _archives_in(directory: Path, suffixes: tuple[str, ...], recursive: bool) -> list[Path]:
    if not directory.is_dir():
        return []
    try:
        candidates = directory.rglob("*") if recursive else directory.iterdir()
        return sorted(
            p for p in candidates if p.is_file() and p.name.lower().endswith(suffixes)
        )
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return []


def root_archives(project_dir: Path, suffixes: tuple[str, ...] = (".jar",)) -> list[Path]:
    """Archives sitting directly in the project directory."""
    return _archives_in(project_dir, suffixes, recursive=False)


def visible_archives(project_dir: Path, suffixes: tuple[str, ...] = (".jar",)) -> list[Path]:
    """Archives bundled with or staged for a project, in lookup order."""
    return [
        *root_archives(project_dir, suffixes),
        *_archives_in(project_dir.joinpath(*DEPENDENCY_DIR), suffixes, recursive=False),
        *_archives_in(project_dir.joinpath(*DEPENDENCIES_DIR), suffixes, recursive=True),
    ]


@dataclass
class ArchiveIndex:
    """Entry names of every readable visible archive of one project."""
    project_dir: Path
    entries: dict[Path, frozenset[str]] = field(default_factory=dict)
    skipped: list[Path] = field(default_factory=list)

    @classmethod
    def build(cls, project_dir: Path, suffixes: tuple[str, ...] = (".jar",)) -> "ArchiveIndex":
        index = cls(project_dir=project_dir)
        for archive in visible_archives(project_dir, suffixes):
            try:
                with zipfile.ZipFile(archive) as zf:
                    index.entries[archive] = frozenset(
                        info.filename for info in zf.infolist() if not info.is_dir()
                    )
            except ARCHIVE_ERRORS as e:
                logger.debug(f"Skipping unreadable archive {archive}: {e}")
                index.skipped.append(archive)
        logger.debug(
            f"Indexed {len(index.entries)} archives for {project_dir}"
            + (f" ({len(index.skipped)} skipped)" if index.skipped else "")
        )
        return index

    def find(self, entry: str) -> Optional[Path]:
        """First archive containing the entry."""
        for archive, names in self.entries.items():
            if entry in names:
                return archive
        return None

    @property
    def archives(self) -> list[Path]:
        return list(self.entries)


def archive_index(
    project_dir: Union[str, Path],
    context: Optional[ResolutionContext] = None,
) -> ArchiveIndex:
    """Cached ArchiveIndex for a project."""
    context = context or default_context()
    suffixes = tuple(context.config.resources.archive_suffixes)
    return context.archives.get_or_create(
        canonical_key(project_dir), lambda k: ArchiveIndex.build(Path(k), suffixes)
    )
