"""Pure Python plugin components index generation (no Pants dependencies).

Scans compiled classes directories and writes ``META-INF/plugin-components.idx``,
the file Halo reads at plugin-load time to decide which classes to register
as components.

Format::

    # Generated by Halo
    com.example.Foo.Inner
    com.example.FooComponent
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Union

from pants_halo_plugin._class_file import ClassInfo, read_class_file
from pants_halo_plugin._exceptions import InputError, OutputError
from pants_halo_plugin._ordered_set import OrderedSet

logger = logging.getLogger(__name__)

CLASS_SUFFIX = ".class"
COMPONENTS_INDEX_PATH = "META-INF/plugin-components.idx"
COMPONENTS_INDEX_HEADER = "# Generated by Halo"

DEFAULT_COMPONENT_ANNOTATIONS: tuple[str, ...] = (
    "org.springframework.stereotype.Component",
    "org.springframework.stereotype.Service",
    "org.springframework.stereotype.Repository",
    "org.springframework.stereotype.Controller",
    "org.springframework.web.bind.annotation.RestController",
    "org.springframework.context.annotation.Configuration",
    "org.springframework.web.bind.annotation.ControllerAdvice",
    "org.springframework.web.bind.annotation.RestControllerAdvice",
)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ComponentsIndexResult:
    """Outcome of a components index run."""

    output_path: Path
    components: tuple[str, ...]
    scanned_classes: int


def to_annotation_descriptor(name: str) -> str:
    """Convert ``com.example.Ann`` (or an existing descriptor) to ``Lcom/example/Ann;``."""
    if name.startswith("L") and name.endswith(";"):
        return name
    return f"L{name.replace('.', '/')};"


def component_annotation_descriptors(extra: Iterable[str] = ()) -> frozenset[str]:
    """The default component annotations plus any configured extras, as descriptors."""
    return frozenset(
        to_annotation_descriptor(name)
        for name in (*DEFAULT_COMPONENT_ANNOTATIONS, *extra)
    )


def is_component_class(info: ClassInfo, annotation_descriptors: Iterable[str]) -> bool:
    """Whether a class should be instantiated by Halo as a component.

    The class must be concrete (not an interface, annotation or abstract
    class) and carry at least one of the component annotations.
    """
    if not info.is_concrete:
        return False
    wanted = set(annotation_descriptors)
    return any(descriptor in wanted for descriptor in info.annotations)


def to_component_reference(root: PathLike, class_file: PathLike) -> str:
    """Turn a class file path into a dotted class name relative to ``root``.

    Example: to_component_reference("/out", "/out/com/example/Foo$Inner.class")
             -> "com.example.Foo.Inner"
    """
    root_str = str(root)
    path_str = str(class_file)
    relative = path_str[len(root_str):] if path_str.startswith(root_str) else path_str

    reference = relative.replace(os.sep, ".")
    if os.altsep:
        reference = reference.replace(os.altsep, ".")
    if reference.startswith("."):
        reference = reference[1:]
    reference = reference.replace("$", ".")
    if reference.endswith(CLASS_SUFFIX):
        reference = reference[: -len(CLASS_SUFFIX)]
    return reference


def resolve_roots(roots: Iterable[PathLike]) -> list[Path]:
    """Make roots absolute and drop duplicates, keeping the first occurrence."""
    resolved: OrderedSet[Path] = OrderedSet(Path(root).resolve() for root in roots)
    return resolved.to_list()


def discover_class_files(root: Path) -> Iterator[Path]:
    """Yield every ``*.class`` file under ``root`` in lexicographic traversal order.

    A root that does not exist yet yields nothing.
    """
    if not root.exists():
        logger.debug("Classes directory %s does not exist, skipping", root)
        return
    if not root.is_dir():
        raise InputError("Classes directory is not a directory", path=str(root))

    def _raise(exc: OSError) -> None:
        raise InputError(f"Unable to read classes directory: {exc}", path=str(root)) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.endswith(CLASS_SUFFIX):
                continue
            path = Path(dirpath) / filename
            if path.is_file():
                yield path


def build_components_index(
    roots: Sequence[PathLike],
    *,
    extra_annotations: Iterable[str] = (),
) -> ComponentsIndexResult:
    """Scan ``roots`` and compute the index in memory without writing anything.

    Raises:
        InputError: If a root is unusable.
        ClassFileFormatError: If any class file cannot be parsed.
    """
    resolved = resolve_roots(roots)
    if not resolved:
        raise InputError("No classes directories configured")

    descriptors = component_annotation_descriptors(extra_annotations)
    lines: OrderedSet[str] = OrderedSet([COMPONENTS_INDEX_HEADER])
    scanned = 0

    for root in resolved:
        for class_file in discover_class_files(root):
            scanned += 1
            info = read_class_file(class_file)
            if is_component_class(info, descriptors):
                reference = to_component_reference(root, class_file)
                if lines.add(reference):
                    logger.debug("Found component %s", reference)

    output_path = resolved[0] / COMPONENTS_INDEX_PATH
    components = tuple(line for line in lines if line != COMPONENTS_INDEX_HEADER)
    return ComponentsIndexResult(
        output_path=output_path,
        components=components,
        scanned_classes=scanned,
    )


def render_components_index(components: Iterable[str]) -> str:
    """Render index file content: header first, one entry per line."""
    lines: OrderedSet[str] = OrderedSet([COMPONENTS_INDEX_HEADER, *components])
    return "\n".join(lines) + "\n"


def write_components_index(output_path: PathLike, components: Iterable[str]) -> None:
    """Write the index, creating parent directories and overwriting any old file."""
    output_path = Path(output_path)
    content = render_components_index(components)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"Unable to write components index: {exc}", path=str(output_path)) from exc


def generate_components_index(
    roots: Sequence[PathLike],
    *,
    extra_annotations: Iterable[str] = (),
) -> ComponentsIndexResult:
    """Build the index for ``roots`` and write it under the first root."""
    logger.info("Generating plugin components index file...")
    result = build_components_index(roots, extra_annotations=extra_annotations)
    write_components_index(result.output_path, result.components)
    logger.info(
        "Wrote %d component(s) from %d class file(s) to %s",
        len(result.components),
        result.scanned_classes,
        result.output_path,
    )
    return result
