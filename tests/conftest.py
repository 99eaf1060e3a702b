"""Shared fixtures: synthetic class files, archives, FHIR resources and contexts."""

import struct
import zipfile
from pathlib import Path
from typing import Optional, Union

import pytest

from pluglint.core.config import Config, clear_config_cache
from pluglint.core.context import ResolutionContext

ACC_PUBLIC_SUPER = 0x0021
ACC_PUBLIC_INTERFACE = 0x0601


def build_class_file(
    name: str,
    super_name: Optional[str] = "java.lang.Object",
    interfaces: tuple[str, ...] = (),
    access: int = ACC_PUBLIC_SUPER,
    with_long_constant: bool = False,
) -> bytes:
    pool: list[bytes] = []
    index = 1

    if with_long_constant:
        pool.append(struct.pack(">Bq", 5, 42))
        index += 2

    def add_class(type_name: str) -> int:
        nonlocal index
        internal = type_name.replace(".", "/").encode()
        pool.append(struct.pack(">BH", 1, len(internal)) + internal)
        pool.append(struct.pack(">BH", 7, index))
        index += 2
        return index - 1

    this_index = add_class(name)
    super_index = add_class(super_name) if super_name else 0
    interface_indexes = [add_class(i) for i in interfaces]

    data = struct.pack(">IHHH", 0xCAFEBABE, 0, 61, index) + b"".join(pool)
    data += struct.pack(">HHH", access, this_index, super_index)
    data += struct.pack(">H", len(interface_indexes))
    data += b"".join(struct.pack(">H", i) for i in interface_indexes)
    data += struct.pack(">HHH", 0, 0, 0)
    return data


def class_entry(name: str) -> str:
    return name.replace(".", "/") + ".class"


@pytest.fixture
def class_bytes():
    """Factory: build_class_file(name, super_name, interfaces, access)."""
    return build_class_file


@pytest.fixture
def write_class():
    """Factory writing a class file under a directory, returning its path."""
    def _write(directory: Path, name: str, **kwargs) -> Path:
        target = directory / class_entry(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(build_class_file(name, **kwargs))
        return target
    return _write


@pytest.fixture
def write_jar():
    """Factory writing a zip archive from {entry: bytes | str}."""
    def _write(path: Path, entries: dict[str, Union[bytes, str]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for entry, content in entries.items():
                zf.writestr(entry, content)
        return path
    return _write


@pytest.fixture
def corrupt_jar():
    """Factory writing a deflated archive whose entries fail to inflate.

    The central directory stays intact, so the entry names are listed, but
    reading any entry raises ``zlib.error``.
    """
    def _write(path: Path, entries: dict[str, Union[bytes, str]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for entry, content in entries.items():
                zf.writestr(entry, content)
        data = bytearray(path.read_bytes())
        with zipfile.ZipFile(path) as zf:
            for info in zf.infolist():
                name_len, extra_len = struct.unpack_from("<HH", data, info.header_offset + 26)
                # 0x07 is a reserved deflate block type
                data[info.header_offset + 30 + name_len + extra_len] = 0x07
        path.write_bytes(bytes(data))
        return path
    return _write


@pytest.fixture
def class_jar(write_jar):
    """Factory writing a jar of classes from {name: dict(super_name=..., interfaces=...)}."""
    def _write(path: Path, classes: dict[str, dict]) -> Path:
        return write_jar(path, {
            class_entry(name): build_class_file(name, **kwargs)
            for name, kwargs in classes.items()
        })
    return _write


ACTIVITY_DEFINITION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ActivityDefinition xmlns="http://hl7.org/fhir">
  <extension url="http://dsf.dev/fhir/StructureDefinition/extension-process-authorization">
    <extension url="message-name">
      <valueString value="{message}"/>
    </extension>
  </extension>
  <url value="{url}"/>
  <version value="#{{version}}"/>
  <status value="unknown"/>
</ActivityDefinition>
"""

STRUCTURE_DEFINITION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<StructureDefinition xmlns="http://hl7.org/fhir">
  <url value="{url}"/>
  <differential>
    <element id="Task.input:message-name.value[x]">
      <path value="Task.input.value[x]"/>
      <fixedString value="{message}"/>
    </element>
  </differential>
</StructureDefinition>
"""

QUESTIONNAIRE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Questionnaire xmlns="http://hl7.org/fhir">
  <url value="{url}"/>
  <status value="active"/>
</Questionnaire>
"""


@pytest.fixture
def fhir_xml():
    """Templates for minimal FHIR resources."""
    return {
        "ActivityDefinition": ACTIVITY_DEFINITION_XML,
        "StructureDefinition": STRUCTURE_DEFINITION_XML,
        "Questionnaire": QUESTIONNAIRE_XML,
    }


@pytest.fixture
def config() -> Config:
    """Default configuration, independent of any .pluglint.yaml on the machine."""
    return Config()


@pytest.fixture
def context(config):
    """Fresh resolution context, closed after the test."""
    ctx = ResolutionContext(config)
    yield ctx
    ctx.close()


@pytest.fixture(autouse=True)
def _isolate_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()
