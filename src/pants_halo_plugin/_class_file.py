"""Pure Python class-file header reader (no Pants dependencies).

Reads just enough of a compiled JVM class file to classify it:

    magic, version
    constant pool
    access flags, this_class, super_class, interfaces
    fields / methods            (skipped)
    class attributes            (RuntimeVisibleAnnotations and
                                 RuntimeInvisibleAnnotations are decoded)

Nothing is loaded, linked or executed, so a class whose dependencies are
not on any classpath can still be inspected.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from pants_halo_plugin._exceptions import ClassFileFormatError

CLASS_FILE_MAGIC = 0xCAFEBABE

ACC_PUBLIC = 0x0001
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400
ACC_ANNOTATION = 0x2000

_ANNOTATION_ATTRIBUTES = frozenset(
    {"RuntimeVisibleAnnotations", "RuntimeInvisibleAnnotations"}
)

# Constant pool tag -> fixed payload size in bytes (Utf8 is variable length).
_CP_UTF8 = 1
_CP_CLASS = 7
_CP_LONG = 5
_CP_DOUBLE = 6
_CP_FIXED_SIZES = {
    3: 4,  # Integer
    4: 4,  # Float
    _CP_LONG: 8,
    _CP_DOUBLE: 8,
    _CP_CLASS: 2,
    8: 2,  # String
    9: 4,  # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    15: 3,  # MethodHandle
    16: 2,  # MethodType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}


@dataclass(frozen=True)
class ClassInfo:
    """Static facts about one compiled class."""

    name: str  # Binary name, slash separated (e.g. com/example/Foo$Inner)
    super_name: str | None
    interfaces: tuple[str, ...] = ()
    access_flags: int = 0
    annotations: tuple[str, ...] = ()  # Field descriptors, e.g. Lcom/example/Ann;
    major_version: int = 0
    minor_version: int = 0

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & ACC_INTERFACE)

    @property
    def is_annotation(self) -> bool:
        return bool(self.access_flags & ACC_ANNOTATION)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & ACC_ABSTRACT)

    @property
    def is_concrete(self) -> bool:
        return not (self.is_interface or self.is_annotation or self.is_abstract)

    def has_annotation(self, descriptor: str) -> bool:
        return descriptor in self.annotations


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the JVM's modified UTF-8 (2-byte NUL, surrogate pairs as 2 x 3 bytes).

    Unpaired surrogates are legal in Java strings and are kept as-is.
    """
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


class _Reader:
    """Big-endian cursor over the class-file bytes."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def u1(self) -> int:
        value = self.data[self.offset]
        self.offset += 1
        return value

    def u2(self) -> int:
        (value,) = struct.unpack_from(">H", self.data, self.offset)
        self.offset += 2
        return value

    def u4(self) -> int:
        (value,) = struct.unpack_from(">I", self.data, self.offset)
        self.offset += 4
        return value

    def raw(self, length: int) -> bytes:
        end = self.offset + length
        if end > len(self.data):
            raise IndexError("read past end of class file")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def skip(self, length: int) -> None:
        self.raw(length)


class _ConstantPool:
    def __init__(self, reader: _Reader):
        count = reader.u2()
        # Slot 0 is unused; long/double occupy two slots. Utf8 entries hold raw
        # bytes until looked up.
        self.tags: list[int | None] = [None] * count
        self.values: list[object] = [None] * count
        index = 1
        while index < count:
            tag = reader.u1()
            self.tags[index] = tag
            if tag == _CP_UTF8:
                length = reader.u2()
                self.values[index] = reader.raw(length)
            elif tag == _CP_CLASS:
                self.values[index] = reader.u2()
            elif tag in _CP_FIXED_SIZES:
                reader.skip(_CP_FIXED_SIZES[tag])
            else:
                raise ValueError(f"unknown constant pool tag {tag} at index {index}")
            index += 2 if tag in (_CP_LONG, _CP_DOUBLE) else 1

    def utf8(self, index: int) -> str:
        if not 0 < index < len(self.tags) or self.tags[index] != _CP_UTF8:
            raise ValueError(f"constant pool index {index} is not a Utf8 entry")
        value = self.values[index]
        if isinstance(value, bytes):
            value = self.values[index] = decode_modified_utf8(value)
        return value  # type: ignore[return-value]

    def class_name(self, index: int) -> str:
        if not 0 < index < len(self.tags) or self.tags[index] != _CP_CLASS:
            raise ValueError(f"constant pool index {index} is not a Class entry")
        return self.utf8(self.values[index])  # type: ignore[arg-type]


def _skip_members(reader: _Reader) -> None:
    """Skip a fields or methods table."""
    for _ in range(reader.u2()):
        reader.skip(6)  # access_flags, name_index, descriptor_index
        for _ in range(reader.u2()):
            reader.skip(2)
            reader.skip(reader.u4())


def _skip_element_value(reader: _Reader) -> None:
    tag = chr(reader.u1())
    if tag in "BCDFIJSZsc":
        reader.skip(2)
    elif tag == "e":
        reader.skip(4)
    elif tag == "@":
        _skip_annotation(reader)
    elif tag == "[":
        for _ in range(reader.u2()):
            _skip_element_value(reader)
    else:
        raise ValueError(f"unknown annotation element tag {tag!r}")


def _skip_annotation(reader: _Reader) -> None:
    reader.skip(2)  # type_index
    for _ in range(reader.u2()):
        reader.skip(2)  # element_name_index
        _skip_element_value(reader)


def _read_annotation_types(reader: _Reader, pool: _ConstantPool) -> list[str]:
    descriptors = []
    for _ in range(reader.u2()):
        descriptors.append(pool.utf8(reader.u2()))
        for _ in range(reader.u2()):
            reader.skip(2)
            _skip_element_value(reader)
    return descriptors


def read_class_info(data: bytes, *, path: str | None = None) -> ClassInfo:
    """Parse class-file bytes into a ClassInfo.

    Args:
        data: Raw class-file contents.
        path: Used only to label errors.

    Raises:
        ClassFileFormatError: If the bytes are truncated or structurally invalid.
    """
    reader = _Reader(data)
    try:
        magic = reader.u4()
        if magic != CLASS_FILE_MAGIC:
            raise ValueError(f"bad magic number 0x{magic:08X}")
        minor_version = reader.u2()
        major_version = reader.u2()
        pool = _ConstantPool(reader)

        access_flags = reader.u2()
        name = pool.class_name(reader.u2())
        super_index = reader.u2()
        super_name = pool.class_name(super_index) if super_index else None
        interfaces = tuple(pool.class_name(reader.u2()) for _ in range(reader.u2()))

        _skip_members(reader)  # fields
        _skip_members(reader)  # methods

        annotations: list[str] = []
        for _ in range(reader.u2()):
            attribute_name = pool.utf8(reader.u2())
            length = reader.u4()
            if attribute_name in _ANNOTATION_ATTRIBUTES:
                body = _Reader(reader.raw(length))
                annotations.extend(_read_annotation_types(body, pool))
            else:
                reader.skip(length)
    except (struct.error, IndexError, ValueError) as exc:
        raise ClassFileFormatError(f"Malformed class file: {exc}", path=path) from exc

    return ClassInfo(
        name=name,
        super_name=super_name,
        interfaces=interfaces,
        access_flags=access_flags,
        annotations=tuple(annotations),
        major_version=major_version,
        minor_version=minor_version,
    )


def read_class_file(path: Union[str, Path]) -> ClassInfo:
    """Read and parse a class file from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ClassFileFormatError(f"Unable to read class file: {exc}", path=str(path)) from exc
    return read_class_info(data, path=str(path))
