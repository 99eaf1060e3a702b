"""
Canonicalization of declared resource references.

A reference as written in plugin metadata may carry a ``classpath:``
scheme, the conventional ``src/main/resources/`` prefix, leading
separators or Windows separators. The normalized form is a project
relative, forward-slash path. Pure functions, no I/O.
"""

from typing import Optional

CLASSPATH_PREFIX = "classpath:"
SOURCE_RESOURCES_PREFIX = "src/main/resources/"

# Returned for blank references
EMPTY = ""


def normalize_reference(reference: Optional[str]) -> str:
    """Normalize a raw reference to a project-relative path.

    Steps, in order: trim, strip ``classpath:``, strip leading ``/`` and
    ``\\``, strip ``src/main/resources/``, strip leading separators again,
    convert backslashes to forward slashes.

    Returns:
        The normalized path, or EMPTY for blank input

    Examples:
        >>> normalize_reference(" classpath:/bpe/ping.bpmn ")
        'bpe/ping.bpmn'
        >>> normalize_reference("src/main/resources/fhir/x.xml")
        'fhir/x.xml'
    """
    if reference is None:
        return EMPTY
    ref = reference.strip()
    if not ref:
        return EMPTY

    if ref.startswith(CLASSPATH_PREFIX):
        ref = ref[len(CLASSPATH_PREFIX):]
    ref = ref.lstrip("/\\")

    if ref.startswith(SOURCE_RESOURCES_PREFIX):
        ref = ref[len(SOURCE_RESOURCES_PREFIX):]

    ref = ref.lstrip("/\\")
    return ref.replace("\\", "/")


def is_empty(normalized: str) -> bool:
    return normalized == EMPTY


def normalize_directory(directory: Optional[str]) -> str:
    """Normalize a directory reference, always ending with ``/``.

    Blank input stays blank.
    """
    if directory is None:
        return EMPTY
    d = directory.strip().replace("\\", "/")
    if not d:
        return EMPTY
    if not d.endswith("/"):
        d += "/"
    return d


def remove_version_suffix(value: Optional[str]) -> Optional[str]:
    """Strip a ``|version`` suffix from a canonical URL.

    >>> remove_version_suffix("http://dsf.dev/fhir/ActivityDefinition/ping|1.0")
    'http://dsf.dev/fhir/ActivityDefinition/ping'
    """
    if value is None:
        return None
    return value.split("|", 1)[0]
