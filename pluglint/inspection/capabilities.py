"""
Capability contracts per API generation and element role.

A capability is a supertype an implementation type must have. Sets are
static data, ordered: the first satisfied capability is reported.
"""

from dataclasses import dataclass
from typing import Union

from ..core.descriptor import ApiVersion, ElementRole
from . import ambient as api


@dataclass(frozen=True)
class Capability:
    """A required supertype.

    Attributes:
        name: Dotted name of the required type
        proper: If True, the type itself does not satisfy the capability
    """
    name: str
    proper: bool = False

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class CapabilitySet:
    """Ordered acceptable capabilities for one (generation, role)."""
    api_version: ApiVersion
    role: ElementRole
    capabilities: tuple[Capability, ...]
    description: str = ""

    def __iter__(self):
        return iter(self.capabilities)

    def __len__(self) -> int:
        return len(self.capabilities)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.capabilities]


_V1_DELEGATE = (Capability(api.CAMUNDA_JAVA_DELEGATE),)
_V1_USER_TASK_LISTENER = (
    Capability(api.V1_DEFAULT_USER_TASK_LISTENER, proper=True),
    Capability(api.CAMUNDA_TASK_LISTENER),
)
_V1_EXECUTION_LISTENER = (Capability(api.CAMUNDA_EXECUTION_LISTENER),)

_V2_ACTIVITIES = (
    Capability(api.V2_SERVICE_TASK),
    Capability(api.V2_MESSAGE_SEND_TASK),
    Capability(api.V2_MESSAGE_INTERMEDIATE_THROW_EVENT),
    Capability(api.V2_MESSAGE_END_EVENT),
    Capability(api.V2_USER_TASK_LISTENER),
    Capability(api.V2_EXECUTION_LISTENER),
)

_TABLE: dict[tuple[ApiVersion, ElementRole], tuple[tuple[Capability, ...], str]] = {
    (ApiVersion.V1, ElementRole.SERVICE_TASK): (_V1_DELEGATE, "must implement JavaDelegate"),
    (ApiVersion.V1, ElementRole.SEND_TASK): (_V1_DELEGATE, "must implement JavaDelegate"),
    (ApiVersion.V1, ElementRole.MESSAGE_INTERMEDIATE_THROW_EVENT): (
        _V1_DELEGATE, "must implement JavaDelegate"
    ),
    (ApiVersion.V1, ElementRole.MESSAGE_END_EVENT): (_V1_DELEGATE, "must implement JavaDelegate"),
    (ApiVersion.V1, ElementRole.USER_TASK_LISTENER): (
        _V1_USER_TASK_LISTENER,
        "must extend DefaultUserTaskListener or implement TaskListener",
    ),
    (ApiVersion.V1, ElementRole.EXECUTION_LISTENER): (
        _V1_EXECUTION_LISTENER, "must implement ExecutionListener"
    ),
    (ApiVersion.V1, ElementRole.RECEIVE_TASK): (
        _V1_DELEGATE + _V1_USER_TASK_LISTENER[1:] + _V1_EXECUTION_LISTENER,
        "must implement JavaDelegate, TaskListener or ExecutionListener",
    ),
    (ApiVersion.V1, ElementRole.GENERIC): (
        _V1_DELEGATE + _V1_USER_TASK_LISTENER[1:] + _V1_EXECUTION_LISTENER,
        "must implement JavaDelegate, TaskListener or ExecutionListener",
    ),
    (ApiVersion.V2, ElementRole.SERVICE_TASK): (
        (Capability(api.V2_SERVICE_TASK),), "must implement ServiceTask"
    ),
    (ApiVersion.V2, ElementRole.SEND_TASK): (
        (Capability(api.V2_MESSAGE_SEND_TASK),), "must implement MessageSendTask"
    ),
    (ApiVersion.V2, ElementRole.MESSAGE_INTERMEDIATE_THROW_EVENT): (
        (Capability(api.V2_MESSAGE_INTERMEDIATE_THROW_EVENT),),
        "must implement MessageIntermediateThrowEvent",
    ),
    (ApiVersion.V2, ElementRole.MESSAGE_END_EVENT): (
        (Capability(api.V2_MESSAGE_END_EVENT),), "must implement MessageEndEvent"
    ),
    (ApiVersion.V2, ElementRole.USER_TASK_LISTENER): (
        (
            Capability(api.V2_DEFAULT_USER_TASK_LISTENER, proper=True),
            Capability(api.V2_USER_TASK_LISTENER),
        ),
        "must extend DefaultUserTaskListener or implement UserTaskListener",
    ),
    (ApiVersion.V2, ElementRole.EXECUTION_LISTENER): (
        (Capability(api.V2_EXECUTION_LISTENER),), "must implement ExecutionListener"
    ),
    (ApiVersion.V2, ElementRole.RECEIVE_TASK): (
        _V2_ACTIVITIES, "must implement one of the v2 activity interfaces"
    ),
    (ApiVersion.V2, ElementRole.GENERIC): (
        _V2_ACTIVITIES, "must implement one of the v2 activity interfaces"
    ),
}


def capabilities_for(
    api_version: Union[ApiVersion, str],
    role: Union[ElementRole, str] = ElementRole.GENERIC,
) -> CapabilitySet:
    """Return the capability set for a generation and element role.

    Raises:
        ValueError: If the generation or role is unknown
    """
    if not isinstance(api_version, ApiVersion):
        api_version = ApiVersion.parse(api_version)
    if not isinstance(role, ElementRole):
        role = ElementRole.parse(role)
    capabilities, description = _TABLE[(api_version, role)]
    return CapabilitySet(
        api_version=api_version,
        role=role,
        capabilities=capabilities,
        description=description,
    )


def definition_capabilities(api_version: Union[ApiVersion, str]) -> CapabilitySet:
    """Contract for the plugin definition class itself."""
    if not isinstance(api_version, ApiVersion):
        api_version = ApiVersion.parse(api_version)
    name = api.V1_PLUGIN_DEFINITION if api_version is ApiVersion.V1 else api.V2_PLUGIN_DEFINITION
    return CapabilitySet(
        api_version=api_version,
        role=ElementRole.GENERIC,
        capabilities=(Capability(name),),
        description=f"must implement {name}",
    )
