"""
Ambient type space: types visible no matter which project is inspected.

This is the platform API a plugin is compiled against (the DSF BPE API
and the process engine delegate interfaces), described statically, plus
any API archives listed under ``types.ambient_archives`` in the config.
"""

from pathlib import Path
from typing import Iterable, Optional

from ..core.logging import get_logger
from .sources import Lookup, TypeDescriptor, open_source

logger = get_logger(__name__)

OBJECT = "java.lang.Object"

CAMUNDA_JAVA_DELEGATE = "org.camunda.bpm.engine.delegate.JavaDelegate"
CAMUNDA_TASK_LISTENER = "org.camunda.bpm.engine.delegate.TaskListener"
CAMUNDA_EXECUTION_LISTENER = "org.camunda.bpm.engine.delegate.ExecutionListener"

V1_PLUGIN_DEFINITION = "dev.dsf.bpe.v1.ProcessPluginDefinition"
V1_ABSTRACT_SERVICE_DELEGATE = "dev.dsf.bpe.v1.activity.AbstractServiceDelegate"
V1_ABSTRACT_TASK_MESSAGE_SEND = "dev.dsf.bpe.v1.activity.AbstractTaskMessageSend"
V1_DEFAULT_USER_TASK_LISTENER = "dev.dsf.bpe.v1.activity.DefaultUserTaskListener"

V2_PLUGIN_DEFINITION = "dev.dsf.bpe.v2.ProcessPluginDefinition"
V2_ACTIVITY = "dev.dsf.bpe.v2.activity.Activity"
V2_SERVICE_TASK = "dev.dsf.bpe.v2.activity.ServiceTask"
V2_MESSAGE_ACTIVITY = "dev.dsf.bpe.v2.activity.MessageActivity"
V2_MESSAGE_SEND_TASK = "dev.dsf.bpe.v2.activity.MessageSendTask"
V2_MESSAGE_INTERMEDIATE_THROW_EVENT = "dev.dsf.bpe.v2.activity.MessageIntermediateThrowEvent"
V2_MESSAGE_END_EVENT = "dev.dsf.bpe.v2.activity.MessageEndEvent"
V2_USER_TASK_LISTENER = "dev.dsf.bpe.v2.activity.UserTaskListener"
V2_DEFAULT_USER_TASK_LISTENER = "dev.dsf.bpe.v2.activity.DefaultUserTaskListener"
V2_EXECUTION_LISTENER = "dev.dsf.bpe.v2.activity.ExecutionListener"


def _interface(name: str, *extends: str) -> TypeDescriptor:
    return TypeDescriptor(name=name, interfaces=extends, is_interface=True, is_abstract=True)


def _class(name: str, *implements: str, abstract: bool = False, extends: str = OBJECT) -> TypeDescriptor:
    return TypeDescriptor(name=name, super_name=extends, interfaces=implements, is_abstract=abstract)


PLATFORM_TYPES: dict[str, TypeDescriptor] = {
    t.name: t
    for t in (
        TypeDescriptor(name=OBJECT),
        # Process engine
        _interface(CAMUNDA_JAVA_DELEGATE),
        _interface(CAMUNDA_TASK_LISTENER),
        _interface(CAMUNDA_EXECUTION_LISTENER),
        # BPE API v1
        _interface(V1_PLUGIN_DEFINITION),
        _class(V1_ABSTRACT_SERVICE_DELEGATE, CAMUNDA_JAVA_DELEGATE, abstract=True),
        _class(V1_ABSTRACT_TASK_MESSAGE_SEND, CAMUNDA_JAVA_DELEGATE, abstract=True),
        _class(V1_DEFAULT_USER_TASK_LISTENER, CAMUNDA_TASK_LISTENER),
        # BPE API v2
        _interface(V2_PLUGIN_DEFINITION),
        _interface(V2_ACTIVITY),
        _interface(V2_SERVICE_TASK, V2_ACTIVITY),
        _interface(V2_MESSAGE_ACTIVITY, V2_ACTIVITY),
        _interface(V2_MESSAGE_SEND_TASK, V2_MESSAGE_ACTIVITY),
        _interface(V2_MESSAGE_INTERMEDIATE_THROW_EVENT, V2_MESSAGE_ACTIVITY),
        _interface(V2_MESSAGE_END_EVENT, V2_MESSAGE_ACTIVITY),
        _interface(V2_USER_TASK_LISTENER),
        _class(V2_DEFAULT_USER_TASK_LISTENER, V2_USER_TASK_LISTENER),
        _interface(V2_EXECUTION_LISTENER),
    )
}


def platform_lookup(name: str) -> Optional[TypeDescriptor]:
    """Look a name up in the static platform API table."""
    return PLATFORM_TYPES.get(name)


class AmbientTypeSpace:
    """Static platform table followed by configured API archives."""

    def __init__(self, archives: Iterable[Path] = ()):
        self._sources: list[Lookup] = [platform_lookup]
        for archive in archives:
            source = open_source(archive)
            if source is not None:
                self._sources.append(source)

    def __call__(self, name: str) -> Optional[TypeDescriptor]:
        for source in self._sources:
            found = source(name)
            if found is not None:
                return found
        return None

    def __len__(self) -> int:
        return len(self._sources)
