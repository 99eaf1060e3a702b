"""
Lint one plugin: resolve every declared reference and verify every
declared implementation type, collecting findings.

This is the thin glue between a PluginDescriptor and the resolution
engine; rule checks on the content of the resolved files live elsewhere.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from .core.context import ResolutionContext, default_context
from .core.descriptor import PluginDescriptor
from .core.exceptions import ProjectNotFound
from .core.logging import get_plugin_logger
from .inspection.capabilities import capabilities_for, definition_capabilities
from .inspection.registry import for_project, for_project_deep
from .inspection.verifier import FailureReason, VerificationResult, verify
from .resources.locator import (
    FoundInDependency,
    FoundOutsideRoot,
    NotFound,
    ResolutionResult,
    locate,
)
from .resources.roots import ResourceRoot, resolve_root


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Finding:
    """A single lint finding."""

    severity: Severity
    code: str
    subject: str
    message: str
    location: Optional[str] = None
    fix_hint: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "subject": self.subject,
            "message": self.message,
            "location": self.location,
            "fix_hint": self.fix_hint,
        }


@dataclass
class LintReport:
    """Everything learned about one plugin."""

    plugin: str
    api_version: str
    project_dir: Path
    resource_root: Optional[ResourceRoot] = None
    findings: list[Finding] = field(default_factory=list)
    resolutions: dict[str, ResolutionResult] = field(default_factory=dict)
    verifications: dict[str, VerificationResult] = field(default_factory=dict)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    @property
    def passed(self) -> bool:
        return not self.errors

    def to_markdown(self) -> str:
        """Format the report as markdown."""
        lines = []
        status = "✅ Passed" if self.passed else "❌ Failed"
        lines.append(f"## {self.plugin} ({self.api_version}): {status}")
        lines.append("")
        if self.resource_root is not None:
            lines.append(f"Resource root: `{self.resource_root.path}` ({self.resource_root.strategy.name})")
            lines.append("")
        lines.append(
            f"{len(self.resolutions)} references, {len(self.verifications)} types checked"
        )
        lines.append("")

        for title, items in (("Errors", self.errors), ("Warnings", self.warnings)):
            if not items:
                continue
            lines.append(f"### {title} ({len(items)})")
            lines.append("")
            for finding in items:
                lines.append(f"- **{finding.subject}**: {finding.message}")
                if finding.location:
                    lines.append(f"  - Location: {finding.location}")
                if finding.fix_hint:
                    lines.append(f"  - Fix: {finding.fix_hint}")
            lines.append("")

        return "\n".join(lines)

    def to_json(self) -> dict[str, Any]:
        return {
            "plugin": self.plugin,
            "api_version": self.api_version,
            "project_dir": str(self.project_dir),
            "resource_root": {
                "path": str(self.resource_root.path),
                "strategy": self.resource_root.strategy.value,
                "description": self.resource_root.description,
            } if self.resource_root else None,
            "passed": self.passed,
            "errors": [f.to_dict() for f in self.errors],
            "warnings": [f.to_dict() for f in self.warnings],
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "references": {
                ref: {
                    "source": result.source.value,
                    "file": str(result.file) if result.file else None,
                }
                for ref, result in self.resolutions.items()
            },
            "types": {name: v.to_json() for name, v in self.verifications.items()},
        }


def _resource_finding(reference: str, result: ResolutionResult) -> Optional[Finding]:
    if isinstance(result, NotFound):
        return Finding(
            Severity.ERROR, "resource-not-found", reference,
            "Referenced resource not found",
            location=str(result.expected_root),
        )
    if isinstance(result, FoundOutsideRoot):
        return Finding(
            Severity.ERROR, "resource-outside-root", reference,
            f"Resource found outside the expected root at {result.actual_location}",
            location=str(result.expected_root),
            fix_hint="Move the file below the plugin's resource root",
        )
    if isinstance(result, FoundInDependency):
        return Finding(
            Severity.WARNING, "resource-from-dependency", reference,
            f"Resource provided by dependency {result.archive_name}",
            location=str(result.actual_location),
        )
    return None


def _type_finding(result: VerificationResult, role: str) -> Optional[Finding]:
    if result.passed:
        return None
    if result.reason is FailureReason.NOT_FOUND:
        return Finding(
            Severity.ERROR, "type-not-found", result.type_name or "<blank>",
            f"Implementation type not found ({role})",
            fix_hint="Build the project so compiled classes or archives are present",
        )
    return Finding(
        Severity.ERROR, "type-missing-capability", result.type_name,
        f"{role}: {result.message}",
        fix_hint="Accepted supertypes: " + ", ".join(result.required),
    )


def lint_plugin(
    descriptor: PluginDescriptor,
    project_dir: Union[str, Path],
    context: Optional[ResolutionContext] = None,
    deep: bool = False,
) -> LintReport:
    """Resolve references and verify types for one plugin.

    Raises:
        ProjectNotFound: If the project directory does not exist
    """
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise ProjectNotFound(project_dir)
    context = context or default_context()
    log = get_plugin_logger(__name__, descriptor.name, descriptor.api_version.value)

    root = resolve_root(project_dir, descriptor, context)
    log.info(f"Resource root: {root}")
    report = LintReport(
        plugin=descriptor.name,
        api_version=descriptor.api_version.value,
        project_dir=project_dir,
        resource_root=root,
    )

    for reference in descriptor.references:
        result = locate(reference, root, context)
        report.resolutions[reference] = result
        finding = _resource_finding(reference, result)
        if finding is not None:
            report.findings.append(finding)

    registry = for_project_deep(project_dir, context) if deep else for_project(project_dir, context)

    if descriptor.definition_type:
        result = verify(
            descriptor.definition_type,
            definition_capabilities(descriptor.api_version),
            registry,
        )
        report.verifications[descriptor.definition_type] = result
        finding = _type_finding(result, "plugin definition")
        if finding is not None:
            report.findings.append(finding)

    for impl in descriptor.implementations:
        result = verify(
            impl.type_name,
            capabilities_for(descriptor.api_version, impl.role),
            registry,
        )
        report.verifications[impl.type_name] = result
        finding = _type_finding(result, impl.role.value)
        if finding is not None:
            report.findings.append(finding)

    log.info(
        f"{len(report.resolutions)} references, {len(report.verifications)} types, "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings"
    )
    return report
