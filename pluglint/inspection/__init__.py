"""Static type inspection: class files, registries and capability checks."""

from .capabilities import Capability, CapabilitySet, capabilities_for, definition_capabilities
from .classfile import ClassHeader, parse_class_file
from .registry import TypeRegistry, for_project, for_project_deep
from .sources import TypeDescriptor
from .verifier import FailureReason, VerificationResult, verify

__all__ = [
    "Capability",
    "CapabilitySet",
    "ClassHeader",
    "FailureReason",
    "TypeDescriptor",
    "TypeRegistry",
    "VerificationResult",
    "capabilities_for",
    "definition_capabilities",
    "for_project",
    "for_project_deep",
    "parse_class_file",
    "verify",
]
