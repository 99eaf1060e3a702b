"""
pluglint - Static resolution and verification of process plugins

Locates the resources a plugin declares across Maven, Gradle and flat
layouts (and inside dependency archives), and checks declared
implementation types against the capability contracts of the plugin's
API generation, without executing any plugin code.
"""

__version__ = "0.1.0"

from .core.context import ResolutionContext, default_context
from .core.descriptor import ApiVersion, ElementRole, PluginDescriptor
from .inspection.capabilities import capabilities_for
from .inspection.registry import TypeRegistry, for_project, for_project_deep
from .inspection.verifier import VerificationResult, verify
from .lint import LintReport, lint_plugin
from .resources.crossref import cross_reference, find_definition
from .resources.locator import (
    FoundInDependency,
    FoundInRoot,
    FoundOutsideRoot,
    NotFound,
    ResolutionResult,
    locate,
)
from .resources.roots import ResourceRoot, resolve_root, resolve_shared_root

__all__ = [
    "ApiVersion",
    "ElementRole",
    "FoundInDependency",
    "FoundInRoot",
    "FoundOutsideRoot",
    "LintReport",
    "NotFound",
    "PluginDescriptor",
    "ResolutionContext",
    "ResolutionResult",
    "ResourceRoot",
    "TypeRegistry",
    "VerificationResult",
    "__version__",
    "capabilities_for",
    "cross_reference",
    "default_context",
    "find_definition",
    "for_project",
    "for_project_deep",
    "lint_plugin",
    "locate",
    "resolve_root",
    "resolve_shared_root",
    "verify",
]
