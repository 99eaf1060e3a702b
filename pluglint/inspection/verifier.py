"""
Capability verification: does a declared type satisfy its contract?

Purely structural. The type is looked up in a TypeRegistry and its
ancestry compared against the capability set by name; nothing is loaded
or executed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..core.logging import get_logger
from .capabilities import Capability, CapabilitySet
from .registry import TypeRegistry

logger = get_logger(__name__)


class FailureReason(Enum):
    NOT_FOUND = "not_found"
    NO_CAPABILITY = "no_capability"


@dataclass(frozen=True)
class VerificationResult:
    """Pass with the matched capability, or fail with a reason."""
    type_name: str
    passed: bool
    matched: Optional[Capability] = None
    reason: Optional[FailureReason] = None
    required: tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def ok(cls, type_name: str, matched: Capability) -> "VerificationResult":
        return cls(type_name=type_name, passed=True, matched=matched)

    @classmethod
    def fail(
        cls,
        type_name: str,
        reason: FailureReason,
        capabilities: CapabilitySet,
    ) -> "VerificationResult":
        return cls(
            type_name=type_name,
            passed=False,
            reason=reason,
            required=tuple(capabilities.names),
            description=capabilities.description,
        )

    @property
    def matched_name(self) -> Optional[str]:
        return self.matched.name if self.matched else None

    @property
    def message(self) -> str:
        if self.passed:
            return f"{self.type_name} satisfies {self.matched_name}"
        if self.reason is FailureReason.NOT_FOUND:
            return f"Type not found: {self.type_name}"
        return f"{self.type_name} {self.description or 'satisfies no required capability'}"

    def to_json(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "passed": self.passed,
            "matched": self.matched_name,
            "reason": self.reason.value if self.reason else None,
            "required": list(self.required),
            "message": self.message,
        }


def satisfies(registry: TypeRegistry, type_name: str, capability: Capability) -> bool:
    return registry.is_subtype_of(type_name, capability.name, proper=capability.proper)


def verify(
    type_name: str,
    capabilities: CapabilitySet,
    registry: TypeRegistry,
) -> VerificationResult:
    """Check a type against a capability set.

    Capabilities are tried in declaration order; the first satisfied one
    is reported. A blank name is simply not found.
    """
    type_name = (type_name or "").strip()
    if not registry.exists(type_name):
        logger.debug(f"Type not found: {type_name!r}")
        return VerificationResult.fail(type_name, FailureReason.NOT_FOUND, capabilities)

    for capability in capabilities:
        if satisfies(registry, type_name, capability):
            logger.trace(f"{type_name} matches {capability.name}")
            return VerificationResult.ok(type_name, capability)

    return VerificationResult.fail(type_name, FailureReason.NO_CAPABILITY, capabilities)
