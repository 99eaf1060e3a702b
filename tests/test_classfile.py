"""Tests for pluglint/inspection/classfile.py - class-file header reader."""

import pytest

from pluglint.core.exceptions import ClassFileError
from pluglint.inspection.classfile import (
    ACC_ABSTRACT,
    ACC_INTERFACE,
    binary_name,
    class_file_name,
    parse_class_file,
)

pytestmark = pytest.mark.unit


class TestParseClassFile:
    """Test decoding of synthetic class files."""

    def test_plain_class(self, class_bytes):
        header = parse_class_file(class_bytes("com.example.Impl"))
        assert header.name == "com.example.Impl"
        assert header.super_name == "java.lang.Object"
        assert header.interfaces == []
        assert not header.is_interface
        assert header.major_version == 61

    def test_superclass_and_interfaces(self, class_bytes):
        data = class_bytes(
            "com.example.Impl",
            super_name="com.example.Base",
            interfaces=("dev.dsf.bpe.v2.activity.ServiceTask", "java.io.Serializable"),
        )
        header = parse_class_file(data)
        assert header.super_name == "com.example.Base"
        assert header.interfaces == [
            "dev.dsf.bpe.v2.activity.ServiceTask",
            "java.io.Serializable",
        ]

    def test_interface_flags(self, class_bytes):
        data = class_bytes("com.example.Api", access=ACC_INTERFACE | ACC_ABSTRACT | 0x0001)
        header = parse_class_file(data)
        assert header.is_interface
        assert header.is_abstract

    def test_object_has_no_super(self, class_bytes):
        header = parse_class_file(class_bytes("java.lang.Object", super_name=None))
        assert header.super_name is None

    def test_long_constant_takes_two_slots(self, class_bytes):
        data = class_bytes("com.example.Impl", interfaces=("com.example.Api",), with_long_constant=True)
        header = parse_class_file(data)
        assert header.name == "com.example.Impl"
        assert header.interfaces == ["com.example.Api"]

    def test_nested_class_name(self, class_bytes):
        header = parse_class_file(class_bytes("com.example.Outer$Inner"))
        assert header.name == "com.example.Outer$Inner"


class TestMalformed:
    """Test rejection of data that is not a class file."""

    def test_bad_magic(self):
        with pytest.raises(ClassFileError, match="magic"):
            parse_class_file(b"PK\x03\x04" + b"\x00" * 20)

    def test_truncated(self, class_bytes):
        data = class_bytes("com.example.Impl")
        with pytest.raises(ClassFileError):
            parse_class_file(data[:20])

    def test_empty(self):
        with pytest.raises(ClassFileError):
            parse_class_file(b"")

    def test_class_file_error_is_value_error(self):
        assert issubclass(ClassFileError, ValueError)


class TestNames:
    def test_round_trip_names(self):
        assert class_file_name("dev.dsf.Foo") == "dev/dsf/Foo.class"
        assert binary_name("dev/dsf/Foo$Bar") == "dev.dsf.Foo$Bar"
