"""
Resource root resolution.

The resource root is the only directory tree a plugin's own resources
may live in. It is resolved once per project (and once per plugin within
a project) and memoized in the ResolutionContext.

Strategies, in order:

1. Code source: the directory the plugin definition type was loaded from
2. Maven: ``target/classes``, else ``src/main/resources``
3. Gradle: ``build/resources/main``, else ``src/main/resources``
4. Nested source layout without a build file: ``src/main/resources``
5. Flat layout: the project itself, when it holds ``fhir``, ``bpe`` or ``bpmn``
6. The project directory as a degraded root

When several plugins share a project, the shared root is resolved with
the first plugin only. This mirrors long-standing behaviour and is a
candidate for revisiting.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from ..core.context import ResolutionContext, canonical_key, default_context
from ..core.descriptor import PluginDescriptor
from ..core.logging import get_logger

logger = get_logger(__name__)

SOURCE_RESOURCES = ("src", "main", "resources")
FLAT_MARKERS = ("fhir", "bpe", "bpmn")


class RootStrategy(Enum):
    CODE_SOURCE_MAVEN = "code_source_maven"
    CODE_SOURCE_GRADLE = "code_source_gradle"
    CODE_SOURCE_DIRECT = "code_source_direct"
    MAVEN_TARGET_CLASSES = "maven_target_classes"
    MAVEN_SOURCE_RESOURCES = "maven_source_resources"
    GRADLE_BUILD_RESOURCES = "gradle_build_resources"
    GRADLE_SOURCE_RESOURCES = "gradle_source_resources"
    SOURCE_RESOURCES = "source_resources"
    FLAT_LAYOUT = "flat_layout"
    PROJECT_ROOT_FALLBACK = "project_root_fallback"


@dataclass(frozen=True)
class ResourceRoot:
    """Authoritative resource directory for a plugin (or a whole project)."""
    path: Path
    project_dir: Path
    strategy: RootStrategy
    description: str = ""

    @property
    def degraded(self) -> bool:
        return self.strategy is RootStrategy.PROJECT_ROOT_FALLBACK

    def __str__(self) -> str:
        return f"ResourceRoot[{self.strategy.name}]: {self.path} ({self.description})"


def _from_code_source(location: Optional[Path], project_dir: Path) -> Optional[ResourceRoot]:
    if location is None or not location.is_dir():
        return None
    norm = location.as_posix()
    if norm.endswith("/target/classes"):
        return ResourceRoot(
            location, project_dir, RootStrategy.CODE_SOURCE_MAVEN,
            "Detected from plugin code source (Maven)",
        )
    if norm.endswith("/build/classes/java/main"):
        gradle_resources = location.parent.parent.parent / "resources" / "main"
        if gradle_resources.is_dir():
            return ResourceRoot(
                gradle_resources, project_dir, RootStrategy.CODE_SOURCE_GRADLE,
                "Detected from plugin code source (Gradle resources)",
            )
        return ResourceRoot(
            location, project_dir, RootStrategy.CODE_SOURCE_GRADLE,
            "Detected from plugin code source (Gradle classes, no resources dir)",
        )
    return ResourceRoot(
        location, project_dir, RootStrategy.CODE_SOURCE_DIRECT,
        "Detected from plugin code source (unknown layout)",
    )


def code_source_of(
    plugin: PluginDescriptor,
    project_dir: Path,
    context: ResolutionContext,
) -> Optional[Path]:
    """Directory the plugin definition type is loaded from, if any.

    Types from the ambient space or from archives have no usable code source.
    """
    if plugin.code_source is not None:
        return plugin.code_source
    if not plugin.definition_type:
        return None
    # Imported here: the registry itself depends on this package
    from ..inspection.registry import for_project

    registry = for_project(project_dir, context)
    if registry.layer_of(plugin.definition_type) == "ambient":
        return None
    origin = registry.code_source_of(plugin.definition_type)
    if origin is None or not origin.is_dir():
        return None
    return origin


def _try_code_source(
    plugin: Optional[PluginDescriptor],
    project_dir: Path,
    context: ResolutionContext,
) -> Optional[ResourceRoot]:
    if plugin is None:
        return None
    return _from_code_source(code_source_of(plugin, project_dir, context), project_dir)


def _try_maven(project_dir: Path) -> Optional[ResourceRoot]:
    if not (project_dir / "pom.xml").exists():
        return None
    target_classes = project_dir / "target" / "classes"
    if target_classes.is_dir():
        return ResourceRoot(
            target_classes, project_dir, RootStrategy.MAVEN_TARGET_CLASSES,
            "Maven project with compiled classes",
        )
    source = project_dir.joinpath(*SOURCE_RESOURCES)
    if source.is_dir():
        return ResourceRoot(
            source, project_dir, RootStrategy.MAVEN_SOURCE_RESOURCES,
            "Maven project with source resources (not yet compiled)",
        )
    return None


def _try_gradle(project_dir: Path) -> Optional[ResourceRoot]:
    if not ((project_dir / "build.gradle").exists() or (project_dir / "build.gradle.kts").exists()):
        return None
    build_resources = project_dir / "build" / "resources" / "main"
    if build_resources.is_dir():
        return ResourceRoot(
            build_resources, project_dir, RootStrategy.GRADLE_BUILD_RESOURCES,
            "Gradle project with compiled resources",
        )
    source = project_dir.joinpath(*SOURCE_RESOURCES)
    if source.is_dir():
        return ResourceRoot(
            source, project_dir, RootStrategy.GRADLE_SOURCE_RESOURCES,
            "Gradle project with source resources (not yet compiled)",
        )
    return None


def _try_layout(project_dir: Path) -> Optional[ResourceRoot]:
    source = project_dir.joinpath(*SOURCE_RESOURCES)
    if source.is_dir():
        return ResourceRoot(
            source, project_dir, RootStrategy.SOURCE_RESOURCES,
            "Nested source layout",
        )
    if any((project_dir / marker).is_dir() for marker in FLAT_MARKERS):
        return ResourceRoot(
            project_dir, project_dir, RootStrategy.FLAT_LAYOUT,
            "Flat resource layout",
        )
    return None


def _resolve_default(
    project_dir: Path,
    plugin: Optional[PluginDescriptor],
    context: ResolutionContext,
) -> ResourceRoot:
    for attempt in (
        lambda: _try_code_source(plugin, project_dir, context),
        lambda: _try_maven(project_dir),
        lambda: _try_gradle(project_dir),
        lambda: _try_layout(project_dir),
    ):
        root = attempt()
        if root is not None:
            logger.debug(f"Resource root for {project_dir}: {root}")
            return root
    logger.debug(f"No resource layout detected in {project_dir}, using project root")
    return ResourceRoot(
        project_dir, project_dir, RootStrategy.PROJECT_ROOT_FALLBACK,
        "Using project root as last resort",
    )


def _try_package_module(base_dir: Path, plugin: PluginDescriptor) -> Optional[ResourceRoot]:
    package = plugin.package_name
    if not package or "." not in package:
        return None
    module_dir = base_dir / package.rsplit(".", 1)[-1]
    if not module_dir.is_dir():
        return None
    maven_classes = module_dir / "target" / "classes"
    if maven_classes.is_dir():
        return ResourceRoot(
            maven_classes, base_dir, RootStrategy.MAVEN_TARGET_CLASSES,
            "Detected from package-based module resolution (Maven)",
        )
    gradle_resources = module_dir / "build" / "resources" / "main"
    if gradle_resources.is_dir():
        return ResourceRoot(
            gradle_resources, base_dir, RootStrategy.GRADLE_BUILD_RESOURCES,
            "Detected from package-based module resolution (Gradle)",
        )
    return None


def resolve_shared_root(
    project_dir: Union[str, Path],
    plugins: Iterable[PluginDescriptor] = (),
    context: Optional[ResolutionContext] = None,
) -> ResourceRoot:
    """Project-wide default root, resolved with the first plugin only."""
    context = context or default_context()
    key = canonical_key(project_dir)
    first = next(iter(plugins), None)
    return context.roots.get_or_create(
        key, lambda k: _resolve_default(Path(k), first, context)
    )


def resolve_root(
    project_dir: Union[str, Path],
    plugin: Optional[PluginDescriptor] = None,
    context: Optional[ResolutionContext] = None,
) -> ResourceRoot:
    """Resolve the resource root for a project, or for one plugin in it.

    Without a plugin this is the shared project root. With a plugin the
    plugin's code source wins, then a module directory named after the
    last segment of its package, then the default strategies applied to
    the shared root's parent directory.
    """
    context = context or default_context()
    if plugin is None:
        return resolve_shared_root(project_dir, (), context)

    project_key = canonical_key(project_dir)

    def create(_key: str) -> ResourceRoot:
        project = Path(project_key)
        root = _try_code_source(plugin, project, context)
        if root is not None:
            return root
        shared = resolve_shared_root(project, (plugin,), context)
        # A shared root equal to the project has no meaningful parent
        base = shared.path if shared.path == project else shared.path.parent
        root = _try_package_module(base, plugin)
        if root is not None:
            return root
        return _resolve_default(base, None, context)

    return context.roots.get_or_create(f"{project_key}::plugin::{plugin.name}", create)
