"""
Minimal JVM class-file header reader.

Only the parts needed to answer "what is this type's shape" are decoded:
access flags, this class, super class and the implemented interfaces.
Method and field tables are never read.
"""

import struct
from dataclasses import dataclass, field
from typing import Optional

from ..core.exceptions import ClassFileError

MAGIC = 0xCAFEBABE

ACC_PUBLIC = 0x0001
ACC_FINAL = 0x0010
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400
ACC_ANNOTATION = 0x2000
ACC_ENUM = 0x4000

# Constant pool tags
CONSTANT_UTF8 = 1
CONSTANT_INTEGER = 3
CONSTANT_FLOAT = 4
CONSTANT_LONG = 5
CONSTANT_DOUBLE = 6
CONSTANT_CLASS = 7
CONSTANT_STRING = 8
CONSTANT_FIELDREF = 9
CONSTANT_METHODREF = 10
CONSTANT_INTERFACE_METHODREF = 11
CONSTANT_NAME_AND_TYPE = 12
CONSTANT_METHOD_HANDLE = 15
CONSTANT_METHOD_TYPE = 16
CONSTANT_DYNAMIC = 17
CONSTANT_INVOKE_DYNAMIC = 18
CONSTANT_MODULE = 19
CONSTANT_PACKAGE = 20

# Payload size in bytes for fixed-size entries
_FIXED_SIZES = {
    CONSTANT_INTEGER: 4,
    CONSTANT_FLOAT: 4,
    CONSTANT_LONG: 8,
    CONSTANT_DOUBLE: 8,
    CONSTANT_CLASS: 2,
    CONSTANT_STRING: 2,
    CONSTANT_FIELDREF: 4,
    CONSTANT_METHODREF: 4,
    CONSTANT_INTERFACE_METHODREF: 4,
    CONSTANT_NAME_AND_TYPE: 4,
    CONSTANT_METHOD_HANDLE: 3,
    CONSTANT_METHOD_TYPE: 2,
    CONSTANT_DYNAMIC: 4,
    CONSTANT_INVOKE_DYNAMIC: 4,
    CONSTANT_MODULE: 2,
    CONSTANT_PACKAGE: 2,
}


@dataclass
class ClassHeader:
    """Decoded class-file header. Names use dotted binary form."""
    name: str
    super_name: Optional[str]
    interfaces: list[str] = field(default_factory=list)
    access_flags: int = 0
    major_version: int = 0

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & ACC_INTERFACE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & ACC_ABSTRACT)


def binary_name(internal_name: str) -> str:
    """``dev/dsf/Foo$Bar`` -> ``dev.dsf.Foo$Bar``"""
    return internal_name.replace("/", ".")


def class_file_name(type_name: str) -> str:
    """``dev.dsf.Foo`` -> ``dev/dsf/Foo.class``"""
    return type_name.replace(".", "/") + ".class"


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, fmt: str):
        size = struct.calcsize(fmt)
        if self.pos + size > len(self.data):
            raise ClassFileError(f"Truncated class file at offset {self.pos}")
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values

    def skip(self, size: int) -> None:
        if self.pos + size > len(self.data):
            raise ClassFileError(f"Truncated class file at offset {self.pos}")
        self.pos += size

    def raw(self, size: int) -> bytes:
        start = self.pos
        self.skip(size)
        return self.data[start:self.pos]


def parse_class_file(data: bytes) -> ClassHeader:
    """Decode the header of a class file.

    Raises:
        ClassFileError: If the data is not a class file or is truncated
    """
    reader = _Reader(data)
    magic, _minor, major = reader.take(">IHH")
    if magic != MAGIC:
        raise ClassFileError(f"Bad magic 0x{magic:08X}")

    (pool_count,) = reader.take(">H")
    utf8: dict[int, str] = {}
    class_refs: dict[int, int] = {}

    index = 1
    while index < pool_count:
        (tag,) = reader.take(">B")
        if tag == CONSTANT_UTF8:
            (length,) = reader.take(">H")
            # Modified UTF-8; only class names are needed, which decode fine
            utf8[index] = reader.raw(length).decode("utf-8", errors="replace")
        elif tag == CONSTANT_CLASS:
            (name_index,) = reader.take(">H")
            class_refs[index] = name_index
        elif tag in _FIXED_SIZES:
            reader.skip(_FIXED_SIZES[tag])
        else:
            raise ClassFileError(f"Unknown constant pool tag {tag} at entry {index}")
        # Long and double entries occupy two slots
        index += 2 if tag in (CONSTANT_LONG, CONSTANT_DOUBLE) else 1

    def class_name(cp_index: int) -> str:
        try:
            return binary_name(utf8[class_refs[cp_index]])
        except KeyError:
            raise ClassFileError(f"Invalid class reference #{cp_index}") from None

    access_flags, this_class, super_class = reader.take(">HHH")
    (interface_count,) = reader.take(">H")
    interface_indexes = reader.take(f">{interface_count}H") if interface_count else ()

    return ClassHeader(
        name=class_name(this_class),
        super_name=class_name(super_class) if super_class else None,
        interfaces=[class_name(i) for i in interface_indexes],
        access_flags=access_flags,
        major_version=major,
    )
