"""
FHIR content cross-referencing.

Answers questions such as "does any ActivityDefinition declare message
name X" or "is there a StructureDefinition with URL Y". Resources may be
FHIR XML or FHIR JSON; JSON is mapped onto the same element model as XML
(primitive values become ``value`` attributes, extension ``url`` and
element ``id`` become attributes) so one set of matchers serves both.

Unparsable files never raise: they simply do not match.
"""

import json
import xml.etree.ElementTree as ET
import zipfile
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union

from ..core.context import ResolutionContext, default_context
from ..core.logging import get_logger
from .archives import archive_index
from .locator import ResolutionResult, materialize_archive_entry
from .materialize import ARCHIVE_ERRORS
from .normalizer import remove_version_suffix

logger = get_logger(__name__)

RESOURCE_SUFFIXES = (".xml", ".json")

# Searched in order, relative to the project directory
SEARCH_BASES = (("src", "main", "resources", "fhir"), ("fhir",))


class CrossReferenceKind(Enum):
    MESSAGE_NAME = "message-name"
    ACTIVITY_DEFINITION_URL = "activity-definition-url"
    STRUCTURE_DEFINITION = "structure-definition"
    QUESTIONNAIRE_URL = "questionnaire-url"

    @property
    def resource_type(self) -> str:
        return {
            CrossReferenceKind.MESSAGE_NAME: "ActivityDefinition",
            CrossReferenceKind.ACTIVITY_DEFINITION_URL: "ActivityDefinition",
            CrossReferenceKind.STRUCTURE_DEFINITION: "StructureDefinition",
            CrossReferenceKind.QUESTIONNAIRE_URL: "Questionnaire",
        }[self]

    @classmethod
    def parse(cls, value: Union[str, "CrossReferenceKind"]) -> "CrossReferenceKind":
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value or member.name.lower() == str(value).lower():
                return member
        raise ValueError(f"Unknown cross-reference kind: {value!r}")


def local_name(tag: str) -> str:
    """Tag without its XML namespace."""
    return tag.rsplit("}", 1)[-1]


def _primitive(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _add_json_property(parent: ET.Element, key: str, value: Any) -> None:
    if key.startswith("_") or value is None:
        return
    if isinstance(value, list):
        for item in value:
            _add_json_property(parent, key, item)
        return
    child = ET.SubElement(parent, key)
    if not isinstance(value, dict):
        child.set("value", _primitive(value))
        return
    if "resourceType" in value:
        child.append(json_to_element(value))
        return
    for k, v in value.items():
        if k == "url" and key in ("extension", "modifierExtension"):
            child.set("url", _primitive(v))
        elif k == "id" and not isinstance(v, (dict, list)):
            child.set("id", _primitive(v))
        else:
            _add_json_property(child, k, v)


def json_to_element(data: dict) -> ET.Element:
    """Map a FHIR JSON resource onto the FHIR XML element model.

    Raises:
        ValueError: If the object has no resourceType
    """
    resource_type = data.get("resourceType") if isinstance(data, dict) else None
    if not resource_type:
        raise ValueError("Not a FHIR resource: missing resourceType")
    root = ET.Element(str(resource_type))
    for key, value in data.items():
        if key != "resourceType":
            _add_json_property(root, key, value)
    return root


def parse_resource(data: bytes, name: str) -> Optional[ET.Element]:
    """Parse FHIR XML or JSON content; None if unparsable."""
    try:
        if name.lower().endswith(".json"):
            return json_to_element(json.loads(data.decode("utf-8")))
        return ET.fromstring(data)
    except (ET.ParseError, ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unparsable FHIR resource {name}: {e}")
        return None


def load_resource(path: Path) -> Optional[ET.Element]:
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return None
    return parse_resource(data, path.name)


def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    return (child for child in element if local_name(child.tag) == name)


def _descendants(element: ET.Element, *names: str) -> Iterator[ET.Element]:
    return (e for e in element.iter() if local_name(e.tag) in names)


def _has_message_name(root: ET.Element, value: str) -> bool:
    for extension in _descendants(root, "extension"):
        if extension.get("url") != "message-name":
            continue
        for child in extension:
            if local_name(child.tag) in ("valueString", "fixedString") and child.get("value") == value:
                return True
    return False


def _has_root_url(root: ET.Element, value: str) -> bool:
    return any(url.get("value") == value for url in _children(root, "url"))


def _has_structure_value(root: ET.Element, value: str) -> bool:
    return any(
        e.get("value") == value
        for e in _descendants(root, "url", "fixedString", "valueString")
    )


def matches(root: Optional[ET.Element], kind: CrossReferenceKind, value: str) -> bool:
    """Whether a parsed resource declares ``value`` in the way ``kind`` asks."""
    if root is None or not value:
        return False
    if local_name(root.tag) != kind.resource_type:
        return False
    if kind is CrossReferenceKind.MESSAGE_NAME:
        return _has_message_name(root, value)
    base = remove_version_suffix(value).strip()
    if kind is CrossReferenceKind.STRUCTURE_DEFINITION:
        return _has_structure_value(root, base)
    return _has_root_url(root, base)


def cross_reference(
    result: ResolutionResult,
    kind: Union[str, CrossReferenceKind],
    value: str,
) -> bool:
    """Check a located resource for a declaration of ``value``.

    Any found variant qualifies; a NotFound result never matches.
    """
    kind = CrossReferenceKind.parse(kind)
    if not result.found or result.file is None:
        return False
    return matches(load_resource(result.file), kind, value)


def _resource_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    try:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.name.lower().endswith(RESOURCE_SUFFIXES)
        )
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return []


def _find_in_archives(
    project_dir: Path,
    prefix: str,
    predicate: Callable[[ET.Element], bool],
    context: ResolutionContext,
) -> Optional[Path]:
    index = archive_index(project_dir, context)
    for archive, names in index.entries.items():
        candidates = sorted(
            n for n in names
            if n.startswith(prefix) and "/" not in n[len(prefix):]
            and n.lower().endswith(RESOURCE_SUFFIXES)
        )
        if not candidates:
            continue
        for name in candidates:
            try:
                with zipfile.ZipFile(archive) as zf:
                    data = zf.read(name)
            except ARCHIVE_ERRORS as e:
                logger.debug(f"Skipping unreadable entry {name} in {archive}: {e}")
                continue
            if predicate(parse_resource(data, name)):
                materialized = materialize_archive_entry(archive, name, context)
                if materialized is not None:
                    return materialized.file
    return None


def find_definition(
    project_dir: Union[str, Path],
    kind: Union[str, CrossReferenceKind],
    value: str,
    context: Optional[ResolutionContext] = None,
    include_dependencies: bool = True,
) -> Optional[Path]:
    """Find the first resource file declaring ``value``.

    Searches ``src/main/resources/fhir/<Type>`` then ``fhir/<Type>`` under
    the project, then the same ``fhir/<Type>/`` folder inside visible
    dependency archives (matches there are materialized to temp files).
    """
    kind = CrossReferenceKind.parse(kind)
    project_dir = Path(project_dir)
    if not value or not value.strip():
        return None

    def predicate(root: Optional[ET.Element]) -> bool:
        return matches(root, kind, value)

    for base in SEARCH_BASES:
        directory = project_dir.joinpath(*base, kind.resource_type)
        for path in _resource_files(directory):
            if predicate(load_resource(path)):
                return path

    if include_dependencies:
        context = context or default_context()
        return _find_in_archives(project_dir, f"fhir/{kind.resource_type}/", predicate, context)
    return None


def definition_exists(
    project_dir: Union[str, Path],
    kind: Union[str, CrossReferenceKind],
    value: str,
    context: Optional[ResolutionContext] = None,
) -> bool:
    return find_definition(project_dir, kind, value, context) is not None
