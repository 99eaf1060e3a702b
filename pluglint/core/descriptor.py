"""
Plugin descriptor model.

A descriptor is what the outer discovery layer hands to the resolution
engine: the plugin's declared resource references, its implementation
type names with the structural role of the declaring element, and the
API generation that selects the capability contracts.

Descriptors are stored as YAML:

    name: ping-pong
    api_version: v2
    definition_type: dev.dsf.bpe.ping.PingProcessPluginDefinition
    process_models:
      - bpe/ping.bpmn
    fhir_resources:
      dsfdev_ping:
        - fhir/ActivityDefinition/dsf-ping.xml
    implementations:
      - type: dev.dsf.bpe.ping.SendPing
        role: send_task
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import InvalidDescriptor


class ApiVersion(Enum):
    """Plugin API generation."""
    V1 = "v1"
    V2 = "v2"

    @classmethod
    def parse(cls, value: Any) -> "ApiVersion":
        """Parse 'v1', 'V2', '2', 2 ... into an ApiVersion.

        Raises:
            ValueError: If the value names no known generation
        """
        text = str(value).strip().lower()
        if not text.startswith("v"):
            text = f"v{text}"
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown API version: {value!r}. Expected v1 or v2")


class ElementRole(Enum):
    """Structural role of the process element that declares a type."""
    SERVICE_TASK = "service_task"
    SEND_TASK = "send_task"
    MESSAGE_INTERMEDIATE_THROW_EVENT = "message_intermediate_throw_event"
    MESSAGE_END_EVENT = "message_end_event"
    USER_TASK_LISTENER = "user_task_listener"
    EXECUTION_LISTENER = "execution_listener"
    RECEIVE_TASK = "receive_task"
    GENERIC = "generic"

    @classmethod
    def parse(cls, value: Any) -> "ElementRole":
        text = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown element role: {value!r}")


@dataclass
class Implementation:
    """An implementation type declared by a process element."""
    type_name: str
    role: ElementRole = ElementRole.GENERIC


@dataclass
class PluginDescriptor:
    """Declared references and type names of one plugin."""

    name: str
    api_version: ApiVersion = ApiVersion.V2
    definition_type: Optional[str] = None
    code_source: Optional[Path] = None
    process_models: list[str] = field(default_factory=list)
    fhir_resources: dict[str, list[str]] = field(default_factory=dict)
    implementations: list[Implementation] = field(default_factory=list)
    source_path: Optional[Path] = None

    @property
    def references(self) -> list[str]:
        """Process models then FHIR resources, in declaration order, without duplicates."""
        seen: set[str] = set()
        ordered: list[str] = []
        candidates = list(self.process_models)
        for refs in self.fhir_resources.values():
            candidates.extend(refs)
        for ref in candidates:
            if ref not in seen:
                seen.add(ref)
                ordered.append(ref)
        return ordered

    @property
    def type_names(self) -> list[str]:
        return [impl.type_name for impl in self.implementations]

    @property
    def package_name(self) -> Optional[str]:
        """Package of the plugin definition type, if one is declared."""
        if not self.definition_type or "." not in self.definition_type:
            return None
        return self.definition_type.rsplit(".", 1)[0]

    @classmethod
    def from_dict(cls, data: Any, source_path: Optional[Path] = None) -> "PluginDescriptor":
        """Build a descriptor from parsed YAML.

        Raises:
            InvalidDescriptor: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise InvalidDescriptor(source_path, f"expected a mapping, got {type(data).__name__}")

        name = data.get("name")
        if not name:
            if source_path is None:
                raise InvalidDescriptor(source_path, "missing 'name'")
            name = source_path.stem

        try:
            api_version = ApiVersion.parse(data.get("api_version", "v2"))
        except ValueError as e:
            raise InvalidDescriptor(source_path, str(e)) from e

        process_models = data.get("process_models") or []
        if not isinstance(process_models, list):
            raise InvalidDescriptor(source_path, "'process_models' must be a list")

        fhir_resources: dict[str, list[str]] = {}
        raw_fhir = data.get("fhir_resources") or {}
        if isinstance(raw_fhir, list):
            # Unkeyed list: all resources belong to one anonymous process
            raw_fhir = {"": raw_fhir}
        if not isinstance(raw_fhir, dict):
            raise InvalidDescriptor(source_path, "'fhir_resources' must be a mapping")
        for process_id, refs in raw_fhir.items():
            if not isinstance(refs, list):
                raise InvalidDescriptor(
                    source_path, f"'fhir_resources.{process_id}' must be a list"
                )
            fhir_resources[str(process_id)] = [str(r) for r in refs]

        implementations: list[Implementation] = []
        for entry in data.get("implementations") or []:
            if isinstance(entry, str):
                implementations.append(Implementation(type_name=entry))
                continue
            if not isinstance(entry, dict) or not entry.get("type"):
                raise InvalidDescriptor(source_path, f"invalid implementation entry: {entry!r}")
            try:
                role = ElementRole.parse(entry.get("role", "generic"))
            except ValueError as e:
                raise InvalidDescriptor(source_path, str(e)) from e
            implementations.append(Implementation(type_name=str(entry["type"]), role=role))

        code_source = data.get("code_source")
        if code_source:
            code_source = Path(str(code_source)).expanduser()
            if not code_source.is_absolute() and source_path is not None:
                code_source = source_path.parent / code_source

        return cls(
            name=str(name),
            api_version=api_version,
            definition_type=data.get("definition_type"),
            code_source=code_source or None,
            process_models=[str(p) for p in process_models],
            fhir_resources=fhir_resources,
            implementations=implementations,
            source_path=source_path,
        )

    @classmethod
    def from_file(cls, path: Path) -> "PluginDescriptor":
        """Load a descriptor from a YAML file."""
        try:
            data = yaml.safe_load(path.read_text())
        except OSError as e:
            raise InvalidDescriptor(path, f"cannot read file: {e}") from e
        except yaml.YAMLError as e:
            raise InvalidDescriptor(path, f"invalid YAML: {e}") from e
        return cls.from_dict(data, source_path=path)
