"""Resource reference normalization, root resolution, location and cross-referencing."""

from .archives import ArchiveIndex, archive_index, visible_archives
from .crossref import CrossReferenceKind, cross_reference, definition_exists, find_definition
from .locator import (
    FoundInDependency,
    FoundInRoot,
    FoundOutsideRoot,
    NotFound,
    ResolutionResult,
    ResolutionSource,
    ResolvedResources,
    is_under_directory,
    locate,
    resolve_many,
)
from .normalizer import normalize_directory, normalize_reference, remove_version_suffix
from .roots import ResourceRoot, RootStrategy, resolve_root, resolve_shared_root

__all__ = [
    "ArchiveIndex",
    "CrossReferenceKind",
    "FoundInDependency",
    "FoundInRoot",
    "FoundOutsideRoot",
    "NotFound",
    "ResolutionResult",
    "ResolutionSource",
    "ResolvedResources",
    "ResourceRoot",
    "RootStrategy",
    "archive_index",
    "cross_reference",
    "definition_exists",
    "find_definition",
    "is_under_directory",
    "locate",
    "normalize_directory",
    "normalize_reference",
    "remove_version_suffix",
    "resolve_many",
    "resolve_root",
    "resolve_shared_root",
    "visible_archives",
]
