"""Shared fixtures: synthesize compiled class files for the scanner tests."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Any

import pytest

ACC_PUBLIC = 0x0001
ACC_PRIVATE = 0x0002
ACC_SUPER = 0x0020


def _u1(value: int) -> bytes:
    return struct.pack(">B", value)


def _u2(value: int) -> bytes:
    return struct.pack(">H", value)


def _u4(value: int) -> bytes:
    return struct.pack(">I", value)


class _Pool:
    def __init__(self):
        self.entries: list[bytes] = []
        self.index: dict[tuple, int] = {}
        self.next = 1

    def _add(self, key: tuple, data: bytes, slots: int = 1) -> int:
        if key not in self.index:
            self.index[key] = self.next
            self.entries.append(data)
            self.next += slots
        return self.index[key]

    def utf8(self, text: str) -> int:
        raw = text.encode("utf-8", "surrogatepass")
        return self._add(("utf8", text), _u1(1) + _u2(len(raw)) + raw)

    def cls(self, name: str) -> int:
        name_index = self.utf8(name)
        return self._add(("class", name), _u1(7) + _u2(name_index))

    def integer(self, value: int) -> int:
        return self._add(("int", value), _u1(3) + struct.pack(">i", value))

    def long(self, value: int) -> int:
        return self._add(("long", value), _u1(5) + struct.pack(">q", value), slots=2)

    def element_value(self, value: Any) -> bytes:
        if isinstance(value, bool):
            return b"Z" + _u2(self.integer(int(value)))
        if isinstance(value, int):
            return b"J" + _u2(self.long(value))
        if isinstance(value, str):
            return b"s" + _u2(self.utf8(value))
        if isinstance(value, tuple) and value[0] == "e":
            _, type_descriptor, const_name = value
            return b"e" + _u2(self.utf8(type_descriptor)) + _u2(self.utf8(const_name))
        if isinstance(value, tuple) and value[0] == "@":
            _, descriptor, values = value
            return b"@" + self.annotation(descriptor, values)
        if isinstance(value, list):
            return b"[" + _u2(len(value)) + b"".join(self.element_value(v) for v in value)
        raise TypeError(f"unsupported element value {value!r}")

    def annotation(self, descriptor: str, values: dict[str, Any] | None = None) -> bytes:
        values = values or {}
        out = _u2(self.utf8(descriptor)) + _u2(len(values))
        for name, value in values.items():
            out += _u2(self.utf8(name)) + self.element_value(value)
        return out

    def to_bytes(self) -> bytes:
        return _u2(self.next) + b"".join(self.entries)


def _annotations_attribute(pool: _Pool, attribute_name: str, annotations) -> bytes:
    parts = []
    for annotation in annotations:
        if isinstance(annotation, str):
            parts.append(pool.annotation(annotation))
        else:
            parts.append(pool.annotation(*annotation))
    body = _u2(len(parts)) + b"".join(parts)
    return _u2(pool.utf8(attribute_name)) + _u4(len(body)) + body


def build_class(
    name: str,
    *,
    super_name: str | None = "java/lang/Object",
    interfaces: tuple[str, ...] = (),
    access_flags: int = ACC_PUBLIC | ACC_SUPER,
    annotations=(),
    invisible_annotations=(),
    major_version: int = 61,
    extra_strings: tuple[str, ...] = (),
) -> bytes:
    """Build a small but complete class file.

    Annotations are descriptors or (descriptor, {element: value}) pairs.
    Element values are bools, ints, strings, lists, ("e", type, const) enum
    constants or ("@", descriptor, values) nested annotations.
    ``extra_strings`` are added to the constant pool as unused Utf8 entries.
    """
    pool = _Pool()
    this_index = pool.cls(name)
    super_index = pool.cls(super_name) if super_name else 0
    interface_indexes = [pool.cls(i) for i in interfaces]
    pool.long(42)
    pool.integer(7)
    for text in extra_strings:
        pool.utf8(text)

    fields = (
        _u2(1)
        + _u2(ACC_PRIVATE) + _u2(pool.utf8("count")) + _u2(pool.utf8("I"))
        + _u2(0)
    )
    code = bytes([0x2A, 0xB7, 0x00, 0x01, 0xB1])
    methods = (
        _u2(1)
        + _u2(ACC_PUBLIC) + _u2(pool.utf8("<init>")) + _u2(pool.utf8("()V"))
        + _u2(1) + _u2(pool.utf8("Code")) + _u4(len(code)) + code
    )

    attributes = [
        _u2(pool.utf8("SourceFile")) + _u4(2) + _u2(pool.utf8("Source.java")),
    ]
    if annotations:
        attributes.append(_annotations_attribute(pool, "RuntimeVisibleAnnotations", annotations))
    if invisible_annotations:
        attributes.append(
            _annotations_attribute(pool, "RuntimeInvisibleAnnotations", invisible_annotations)
        )

    return (
        _u4(0xCAFEBABE)
        + _u2(0)
        + _u2(major_version)
        + pool.to_bytes()
        + _u2(access_flags)
        + _u2(this_index)
        + _u2(super_index)
        + _u2(len(interface_indexes))
        + b"".join(_u2(i) for i in interface_indexes)
        + fields
        + methods
        + _u2(len(attributes))
        + b"".join(attributes)
    )


@pytest.fixture
def class_bytes():
    """Return the build_class helper."""
    return build_class


@pytest.fixture
def write_class():
    """Write a class file under a root; the binary name comes from the relative path."""

    def _write(root: Path, relative_path: str, **kwargs) -> Path:
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        name = relative_path[: -len(".class")]
        path.write_bytes(build_class(name, **kwargs))
        return path

    return _write
