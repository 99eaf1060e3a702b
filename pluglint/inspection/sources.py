"""
Type lookup sources.

Each source answers one question: "given a dotted type name, what is its
shape?" A source is a callable from name to an optional TypeDescriptor,
so a registry is simply an ordered list of them.
"""

import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..core.exceptions import ClassFileError
from ..core.logging import get_logger
from ..resources.materialize import ARCHIVE_ERRORS
from .classfile import ClassHeader, class_file_name, parse_class_file

logger = get_logger(__name__)


@dataclass(frozen=True)
class TypeDescriptor:
    """Static shape of a type.

    Attributes:
        name: Dotted binary name
        super_name: Direct superclass, None for interfaces' roots and Object
        interfaces: Directly implemented (or extended) interfaces
        is_interface: Declared as an interface
        is_abstract: Declared abstract
        origin: Directory or archive the type was read from, None for built-ins
        shape_known: False when only the type's existence is known
    """
    name: str
    super_name: Optional[str] = None
    interfaces: tuple[str, ...] = ()
    is_interface: bool = False
    is_abstract: bool = False
    origin: Optional[Path] = None
    shape_known: bool = True

    @classmethod
    def from_header(cls, header: ClassHeader, origin: Optional[Path]) -> "TypeDescriptor":
        return cls(
            name=header.name,
            super_name=header.super_name,
            interfaces=tuple(header.interfaces),
            is_interface=header.is_interface,
            is_abstract=header.is_abstract,
            origin=origin,
        )

    @property
    def direct_supertypes(self) -> list[str]:
        """Superclass first, then interfaces in declaration order."""
        names = [self.super_name] if self.super_name else []
        names.extend(self.interfaces)
        return names


# A lookup strategy: plain function from name to optional descriptor
Lookup = Callable[[str], Optional[TypeDescriptor]]


class DirectoryTypeSource:
    """Reads ``<root>/<a/b/C>.class`` files."""

    def __init__(self, root: Path):
        self.root = root

    def __call__(self, name: str) -> Optional[TypeDescriptor]:
        candidate = self.root / class_file_name(name)
        if not candidate.is_file():
            return None
        try:
            header = parse_class_file(candidate.read_bytes())
        except (OSError, ClassFileError) as e:
            logger.debug(f"Unreadable class file {candidate}: {e}")
            return None
        if header.name != name:
            logger.debug(f"{candidate} declares {header.name}, not {name}")
            return None
        return TypeDescriptor.from_header(header, self.root)

    def __repr__(self) -> str:
        return f"DirectoryTypeSource({self.root})"


class ArchiveTypeSource:
    """Reads class entries from one ``.jar`` archive.

    The entry index is read once at construction, so opening a malformed
    archive fails here (with one of ``ARCHIVE_ERRORS``) rather
    than on every lookup.
    """

    def __init__(self, archive: Path):
        self.archive = archive
        with zipfile.ZipFile(archive) as zf:
            self._entries = frozenset(
                n for n in zf.namelist() if n.endswith(".class")
            )

    def __call__(self, name: str) -> Optional[TypeDescriptor]:
        entry = class_file_name(name)
        if entry not in self._entries:
            return None
        try:
            with zipfile.ZipFile(self.archive) as zf:
                data = zf.read(entry)
            header = parse_class_file(data)
        except (*ARCHIVE_ERRORS, ClassFileError) as e:
            logger.debug(f"Unreadable entry {entry} in {self.archive}: {e}")
            return None
        return TypeDescriptor.from_header(header, self.archive)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ArchiveTypeSource({self.archive})"


def open_source(location: Path) -> Optional[Lookup]:
    """Build the lookup for a directory or archive location.

    Returns None, after a debug log, when the location cannot be opened.
    """
    if location.is_dir():
        return DirectoryTypeSource(location)
    try:
        return ArchiveTypeSource(location)
    except ARCHIVE_ERRORS as e:
        logger.debug(f"Skipping unreadable archive {location}: {e}")
        return None
