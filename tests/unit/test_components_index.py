"""Tests for components index generation (pure functions, no Pants engine)."""

from __future__ import annotations

import os

import pytest

from pants_halo_plugin._class_file import (
    ACC_ABSTRACT,
    ACC_INTERFACE,
    ACC_PUBLIC,
    ClassInfo,
)
from pants_halo_plugin._components_index import (
    COMPONENTS_INDEX_HEADER,
    COMPONENTS_INDEX_PATH,
    build_components_index,
    component_annotation_descriptors,
    generate_components_index,
    is_component_class,
    render_components_index,
    resolve_roots,
    to_annotation_descriptor,
    to_component_reference,
    write_components_index,
)
from pants_halo_plugin._exceptions import (
    ClassFileFormatError,
    InputError,
    OutputError,
)

COMPONENT = "Lorg/springframework/stereotype/Component;"
SERVICE = "Lorg/springframework/stereotype/Service;"


def _read_index(root):
    return (root / COMPONENTS_INDEX_PATH).read_text(encoding="utf-8")


# =============================================================================
# Name normalization
# =============================================================================


class TestToComponentReference:
    """Test class file path -> dotted class name."""

    root = os.path.join(os.sep, "build", "classes")

    def _path(self, *parts: str) -> str:
        return os.path.join(self.root, *parts)

    def test_top_level_class(self):
        assert to_component_reference(self.root, self._path("com", "example", "Foo.class")) == (
            "com.example.Foo"
        )

    def test_nested_class(self):
        assert to_component_reference(self.root, self._path("com", "example", "Foo$Inner.class")) == (
            "com.example.Foo.Inner"
        )

    def test_deeply_nested_class(self):
        assert to_component_reference(self.root, self._path("a", "Outer$Mid$Leaf.class")) == (
            "a.Outer.Mid.Leaf"
        )

    def test_default_package(self):
        assert to_component_reference(self.root, self._path("Foo.class")) == "Foo"

    def test_root_with_trailing_separator(self):
        root = self.root + os.sep
        assert to_component_reference(root, self._path("com", "Foo.class")) == "com.Foo"

    def test_no_leading_dot(self):
        reference = to_component_reference(self.root, self._path("com", "Foo.class"))
        assert not reference.startswith(".")

    def test_only_trailing_suffix_is_stripped(self):
        assert to_component_reference(self.root, self._path("com", "classy", "Foo.class")) == (
            "com.classy.Foo"
        )

    def test_accepts_path_objects(self, tmp_path):
        assert to_component_reference(tmp_path, tmp_path / "com" / "Foo$Bar.class") == "com.Foo.Bar"

    def test_pure(self):
        path = self._path("com", "example", "Foo$Inner.class")
        assert to_component_reference(self.root, path) == to_component_reference(self.root, path)


# =============================================================================
# Classification
# =============================================================================


class TestIsComponentClass:
    """Test the component classification predicate."""

    descriptors = component_annotation_descriptors()

    def test_annotated_concrete_class(self):
        info = ClassInfo(name="a/Foo", super_name="java/lang/Object", annotations=(COMPONENT,))
        assert is_component_class(info, self.descriptors)

    def test_service_stereotype(self):
        info = ClassInfo(name="a/Foo", super_name="java/lang/Object", annotations=(SERVICE,))
        assert is_component_class(info, self.descriptors)

    def test_unannotated_class(self):
        info = ClassInfo(name="a/Foo", super_name="java/lang/Object")
        assert not is_component_class(info, self.descriptors)

    def test_unrelated_annotation(self):
        info = ClassInfo(name="a/Foo", super_name="java/lang/Object", annotations=("Llombok/Data;",))
        assert not is_component_class(info, self.descriptors)

    def test_interface_is_not_a_component(self):
        info = ClassInfo(
            name="a/Api",
            super_name="java/lang/Object",
            access_flags=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT,
            annotations=(COMPONENT,),
        )
        assert not is_component_class(info, self.descriptors)

    def test_abstract_class_is_not_a_component(self):
        info = ClassInfo(
            name="a/Base",
            super_name="java/lang/Object",
            access_flags=ACC_PUBLIC | ACC_ABSTRACT,
            annotations=(COMPONENT,),
        )
        assert not is_component_class(info, self.descriptors)

    def test_extra_annotation(self):
        info = ClassInfo(name="a/Foo", super_name="java/lang/Object", annotations=("Lcom/example/Ext;",))
        assert not is_component_class(info, self.descriptors)
        assert is_component_class(info, component_annotation_descriptors(["com.example.Ext"]))


class TestAnnotationDescriptors:
    """Test annotation name -> descriptor conversion."""

    def test_dotted_name(self):
        assert to_annotation_descriptor("com.example.Ann") == "Lcom/example/Ann;"

    def test_descriptor_unchanged(self):
        assert to_annotation_descriptor("Lcom/example/Ann;") == "Lcom/example/Ann;"

    def test_defaults_include_component(self):
        assert COMPONENT in component_annotation_descriptors()

    def test_extras_are_added(self):
        descriptors = component_annotation_descriptors(["com.example.Ext"])
        assert "Lcom/example/Ext;" in descriptors
        assert COMPONENT in descriptors


# =============================================================================
# Scanning and writing
# =============================================================================


class TestGenerateComponentsIndex:
    """Test end-to-end index generation over real directories."""

    def test_mixed_classes(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/FooComponent.class", annotations=(COMPONENT,))
        write_class(tmp_path, "com/example/Bar.class")
        write_class(tmp_path, "com/example/Foo$Inner.class", annotations=(COMPONENT,))

        result = generate_components_index([tmp_path])

        assert result.output_path == tmp_path.resolve() / COMPONENTS_INDEX_PATH
        # Sorted traversal: "Foo$Inner.class" sorts before "FooComponent.class".
        assert _read_index(tmp_path) == (
            "# Generated by Halo\n"
            "com.example.Foo.Inner\n"
            "com.example.FooComponent\n"
        )
        assert result.scanned_classes == 3

    def test_unpaired_surrogate_in_string_constant(self, tmp_path, write_class):
        write_class(
            tmp_path,
            "com/example/Foo.class",
            annotations=(COMPONENT,),
            extra_strings=("\ud800",),
        )

        result = generate_components_index([tmp_path])

        assert result.components == ("com.example.Foo",)
        assert _read_index(tmp_path) == "# Generated by Halo\ncom.example.Foo\n"

    def test_non_matching_classes_are_absent(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Bar.class")
        write_class(tmp_path, "com/example/Api.class", annotations=(COMPONENT,),
                    access_flags=ACC_PUBLIC | ACC_INTERFACE | ACC_ABSTRACT)

        generate_components_index([tmp_path])

        assert _read_index(tmp_path) == "# Generated by Halo\n"

    def test_empty_root(self, tmp_path):
        result = generate_components_index([tmp_path])
        assert result.components == ()
        assert _read_index(tmp_path) == "# Generated by Halo\n"

    def test_missing_root_gets_header_only_index(self, tmp_path):
        root = tmp_path / "build" / "classes"
        generate_components_index([root])
        assert _read_index(root) == "# Generated by Halo\n"

    def test_header_is_first_line(self, tmp_path, write_class):
        write_class(tmp_path, "a/A.class", annotations=(COMPONENT,))
        generate_components_index([tmp_path])
        lines = _read_index(tmp_path).splitlines()
        assert lines[0] == COMPONENTS_INDEX_HEADER
        assert COMPONENTS_INDEX_HEADER not in lines[1:]

    def test_two_roots_same_simple_name(self, tmp_path, write_class):
        java = tmp_path / "java"
        kotlin = tmp_path / "kotlin"
        write_class(java, "com/one/Handler.class", annotations=(COMPONENT,))
        write_class(kotlin, "com/two/Handler.class", annotations=(SERVICE,))

        result = generate_components_index([java, kotlin])

        assert result.components == ("com.one.Handler", "com.two.Handler")
        assert result.output_path == java.resolve() / COMPONENTS_INDEX_PATH
        assert not (kotlin / COMPONENTS_INDEX_PATH).exists()

    def test_same_class_through_equivalent_roots(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Foo.class", annotations=(COMPONENT,))
        equivalent = tmp_path / "com" / ".."

        result = generate_components_index([tmp_path, equivalent, str(tmp_path)])

        assert result.components == ("com.example.Foo",)
        assert _read_index(tmp_path).splitlines().count("com.example.Foo") == 1

    def test_non_class_files_are_ignored(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Foo.class", annotations=(COMPONENT,))
        (tmp_path / "com" / "example" / "messages.properties").write_text("k=v\n")
        (tmp_path / "com" / "example" / "Readme.classic").write_text("not a class\n")

        result = generate_components_index([tmp_path])

        assert result.components == ("com.example.Foo",)
        assert result.scanned_classes == 1

    def test_idempotent(self, tmp_path, write_class):
        write_class(tmp_path, "com/b/B.class", annotations=(COMPONENT,))
        write_class(tmp_path, "com/a/A.class", annotations=(COMPONENT,))
        write_class(tmp_path, "com/a/A$1.class")

        generate_components_index([tmp_path])
        first = (tmp_path / COMPONENTS_INDEX_PATH).read_bytes()
        generate_components_index([tmp_path])
        second = (tmp_path / COMPONENTS_INDEX_PATH).read_bytes()

        assert first == second

    def test_overwrites_previous_index(self, tmp_path, write_class):
        index = tmp_path / COMPONENTS_INDEX_PATH
        index.parent.mkdir(parents=True)
        index.write_text("# Generated by Halo\ncom.example.Stale\n", encoding="utf-8")
        write_class(tmp_path, "com/example/Fresh.class", annotations=(COMPONENT,))

        generate_components_index([tmp_path])

        assert _read_index(tmp_path) == "# Generated by Halo\ncom.example.Fresh\n"

    def test_extra_annotations(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Ext.class", annotations=("Lcom/example/HaloExtension;",))

        assert generate_components_index([tmp_path]).components == ()
        result = generate_components_index(
            [tmp_path], extra_annotations=["com.example.HaloExtension"]
        )
        assert result.components == ("com.example.Ext",)


class TestFailures:
    """Test that failures abort without producing an index."""

    def test_malformed_class_fails(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Foo.class", annotations=(COMPONENT,))
        (tmp_path / "com" / "example" / "Broken.class").write_bytes(b"\xca\xfe\xba\xbe\x00\x00")

        with pytest.raises(ClassFileFormatError) as excinfo:
            generate_components_index([tmp_path])

        assert "Broken.class" in str(excinfo.value)
        assert not (tmp_path / COMPONENTS_INDEX_PATH).exists()

    def test_malformed_class_keeps_previous_index(self, tmp_path, write_class):
        index = tmp_path / COMPONENTS_INDEX_PATH
        index.parent.mkdir(parents=True)
        index.write_text("previous\n", encoding="utf-8")
        (tmp_path / "Broken.class").write_bytes(b"garbage")

        with pytest.raises(ClassFileFormatError):
            generate_components_index([tmp_path])

        assert index.read_text(encoding="utf-8") == "previous\n"

    def test_root_is_a_file(self, tmp_path):
        root = tmp_path / "classes"
        root.write_text("not a directory")
        with pytest.raises(InputError, match="not a directory"):
            build_components_index([root])

    def test_no_roots(self):
        with pytest.raises(InputError):
            build_components_index([])

    def test_output_directory_cannot_be_created(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Foo.class", annotations=(COMPONENT,))
        (tmp_path / "META-INF").write_text("a file where the directory should be")

        with pytest.raises(OutputError) as excinfo:
            generate_components_index([tmp_path])

        assert excinfo.value.path.endswith("plugin-components.idx")


class TestHelpers:
    """Test smaller building blocks."""

    def test_build_does_not_write(self, tmp_path, write_class):
        write_class(tmp_path, "com/example/Foo.class", annotations=(COMPONENT,))
        result = build_components_index([tmp_path])
        assert result.components == ("com.example.Foo",)
        assert not (tmp_path / COMPONENTS_INDEX_PATH).exists()

    def test_render_suppresses_duplicates(self):
        assert render_components_index(["a.B", "a.C", "a.B"]) == "# Generated by Halo\na.B\na.C\n"

    def test_render_empty(self):
        assert render_components_index([]) == "# Generated by Halo\n"

    def test_write_creates_parents(self, tmp_path):
        output = tmp_path / "x" / "y" / "index.idx"
        write_components_index(output, ["a.B"])
        assert output.read_text(encoding="utf-8") == "# Generated by Halo\na.B\n"

    def test_resolve_roots_deduplicates(self, tmp_path):
        roots = resolve_roots([tmp_path, tmp_path / ".", str(tmp_path)])
        assert roots == [tmp_path.resolve()]
