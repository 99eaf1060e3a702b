"""
Per-project type registry.

A registry answers "does this type exist, and what are its supertypes"
by asking an ordered list of lookup strategies:

1. the ambient type space (platform API),
2. the project: its root, compiled output directories, root-level
   archives and staged dependency archives,
3. a file-existence heuristic against conventional build-output shapes.

Building the project layer means listing directories and indexing every
archive, so one registry is built per canonical project path and reused
for the whole run. The "deep" variant walks nested module subtrees.
"""

import os
import threading
from collections import deque
from pathlib import Path
from typing import Optional, Union

from ..core.context import ResolutionContext, canonical_key, default_context
from ..core.exceptions import ClassFileError
from ..core.logging import get_logger
from ..resources.archives import root_archives, visible_archives
from .ambient import AmbientTypeSpace
from .classfile import class_file_name, parse_class_file
from .sources import Lookup, TypeDescriptor, open_source

logger = get_logger(__name__)

MAVEN_CLASSES = ("target", "classes")
GRADLE_CLASSES = ("build", "classes", "java", "main")
INTELLIJ_CLASSES = ("out", "production", "classes")

DEPENDENCY_SEGMENTS = {"dependency", "dependencies"}

# Directories tried by the file-existence heuristic, relative to the project
PROBE_DIRS = ((), MAVEN_CLASSES, GRADLE_CLASSES, ("build", "classes"))

DEEP_SUFFIX = "#deep"


def collect_locations(project_dir: Path, suffixes: tuple[str, ...] = (".jar",)) -> list[Path]:
    """Ordered lookup locations for the standard registry."""
    locations = [project_dir]
    for shape in (MAVEN_CLASSES, GRADLE_CLASSES):
        candidate = project_dir.joinpath(*shape)
        if candidate.is_dir():
            locations.append(candidate)
    locations.extend(visible_archives(project_dir, suffixes))
    return locations


def collect_locations_deep(project_dir: Path, suffixes: tuple[str, ...] = (".jar",)) -> list[Path]:
    """Ordered lookup locations for the deep (multi-module) registry."""
    output_dirs: list[Path] = []
    dependency_archives: list[Path] = []
    shapes = (MAVEN_CLASSES, GRADLE_CLASSES, INTELLIJ_CLASSES)

    def on_error(error: OSError) -> None:
        logger.debug(f"Cannot walk {error.filename}: {error}")

    for dirpath, dirnames, filenames in os.walk(project_dir, onerror=on_error):
        dirnames.sort()
        current = Path(dirpath)
        parts = current.relative_to(project_dir).parts
        if any(parts[-len(shape):] == shape for shape in shapes if len(parts) >= len(shape)):
            output_dirs.append(current)
        if DEPENDENCY_SEGMENTS.intersection(parts):
            dependency_archives.extend(
                current / f for f in sorted(filenames) if f.lower().endswith(suffixes)
            )

    # Root-level archives come last here, after dependency archives
    bundled = root_archives(project_dir, suffixes)
    seen: set[Path] = set()
    ordered: list[Path] = []
    for location in [project_dir, *output_dirs, *dependency_archives, *bundled]:
        if location not in seen:
            seen.add(location)
            ordered.append(location)
    return ordered


class ProjectTypeSpace:
    """Project-scoped lookup over directories and archives.

    Locations that cannot be opened are left out.
    """

    def __init__(self, locations: list[Path]):
        self.locations: list[Path] = []
        self._sources: list[Lookup] = []
        for location in locations:
            source = open_source(location)
            if source is None:
                continue
            self.locations.append(location)
            self._sources.append(source)

    def __call__(self, name: str) -> Optional[TypeDescriptor]:
        for source in self._sources:
            found = source(name)
            if found is not None:
                return found
        return None


class FileProbe:
    """Last-resort check for loose class files in conventional places.

    A file that exists but cannot be parsed still counts as an existing
    type, with unknown shape.
    """

    def __init__(self, project_dir: Path):
        self.project_dir = project_dir

    def __call__(self, name: str) -> Optional[TypeDescriptor]:
        rel = class_file_name(name)
        for shape in PROBE_DIRS:
            candidate = self.project_dir.joinpath(*shape, rel)
            try:
                if not candidate.is_file():
                    continue
                header = parse_class_file(candidate.read_bytes())
            except OSError:
                continue
            except ClassFileError:
                return TypeDescriptor(name=name, origin=candidate.parent, shape_known=False)
            if header.name != name:
                logger.debug(f"{candidate} declares {header.name}, not {name}")
                continue
            return TypeDescriptor.from_header(header, candidate.parent)
        return None


class TypeRegistry:
    """Answers existence and ancestry questions for one project.

    Read-only after construction; resolved descriptors are memoized.
    """

    def __init__(
        self,
        project_dir: Path,
        lookups: list[tuple[str, Lookup]],
        locations: Optional[list[Path]] = None,
        deep: bool = False,
    ):
        self.project_dir = project_dir
        self.lookups = lookups
        self.locations = locations or []
        self.deep = deep
        self._memo: dict[str, Optional[tuple[str, TypeDescriptor]]] = {}
        self._lock = threading.Lock()

    def _resolve(self, name: str) -> Optional[tuple[str, TypeDescriptor]]:
        with self._lock:
            if name in self._memo:
                return self._memo[name]
        found = None
        for layer, lookup in self.lookups:
            descriptor = lookup(name)
            if descriptor is not None:
                logger.trace(f"{name} resolved by {layer}")
                found = (layer, descriptor)
                break
        with self._lock:
            self._memo[name] = found
        return found

    def describe(self, name: str) -> Optional[TypeDescriptor]:
        """Return the shape of a type, or None if no layer knows it."""
        name = (name or "").strip()
        if not name:
            return None
        found = self._resolve(name)
        return found[1] if found else None

    def exists(self, name: str) -> bool:
        return self.describe(name) is not None

    def layer_of(self, name: str) -> Optional[str]:
        """Name of the lookup layer that resolved a type ("ambient", "project", "probe")."""
        name = (name or "").strip()
        found = self._resolve(name) if name else None
        return found[0] if found else None

    def code_source_of(self, name: str) -> Optional[Path]:
        """Directory or archive the type was read from."""
        descriptor = self.describe(name)
        return descriptor.origin if descriptor else None

    def supertypes_of(self, name: str) -> list[str]:
        """All ancestors of a type, nearest first.

        Superclasses and interfaces that no layer can resolve are still
        listed; their own ancestry is simply unknown.
        """
        descriptor = self.describe(name)
        if descriptor is None:
            return []
        ancestors: list[str] = []
        seen = {descriptor.name}
        queue = deque(descriptor.direct_supertypes)
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            ancestors.append(current)
            parent = self.describe(current)
            if parent is not None:
                queue.extend(parent.direct_supertypes)
        return ancestors

    def is_subtype_of(self, name: str, of: str, proper: bool = False) -> bool:
        """Whether ``name`` is ``of`` or extends/implements it.

        With ``proper=True`` identity does not count.
        """
        if not self.exists(name):
            return False
        if name == of:
            return not proper
        return of in self.supertypes_of(name)

    def __repr__(self) -> str:
        kind = "deep " if self.deep else ""
        return f"<TypeRegistry {kind}{self.project_dir} ({len(self.locations)} locations)>"


def build_registry(
    project_dir: Path,
    context: ResolutionContext,
    deep: bool = False,
) -> TypeRegistry:
    """Construct a registry. Prefer ``for_project`` which caches."""
    suffixes = tuple(context.config.resources.archive_suffixes)
    if deep:
        locations = collect_locations_deep(project_dir, suffixes)
    else:
        locations = collect_locations(project_dir, suffixes)

    project_space = ProjectTypeSpace(locations)
    ambient = AmbientTypeSpace(context.config.types.ambient_archives)
    context.record_registry_build()
    logger.debug(
        f"Built {'deep ' if deep else ''}type registry for {project_dir}: "
        f"{len(project_space.locations)} of {len(locations)} locations usable"
    )
    return TypeRegistry(
        project_dir,
        lookups=[
            ("ambient", ambient),
            ("project", project_space),
            ("probe", FileProbe(project_dir)),
        ],
        locations=project_space.locations,
        deep=deep,
    )


def for_project(
    project_dir: Union[str, Path],
    context: Optional[ResolutionContext] = None,
) -> TypeRegistry:
    """Return the cached registry for a project, building it on first use."""
    context = context or default_context()
    key = canonical_key(project_dir)
    return context.registries.get_or_create(
        key, lambda k: build_registry(Path(k), context)
    )


def for_project_deep(
    project_dir: Union[str, Path],
    context: Optional[ResolutionContext] = None,
) -> TypeRegistry:
    """Like ``for_project`` but includes nested module build outputs."""
    context = context or default_context()
    key = canonical_key(project_dir) + DEEP_SUFFIX
    return context.registries.get_or_create(
        key, lambda k: build_registry(Path(k[: -len(DEEP_SUFFIX)]), context, deep=True)
    )
