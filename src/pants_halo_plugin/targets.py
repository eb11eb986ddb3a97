"""Halo plugin target type for Pants BUILD files.

Provides:
  - halo_plugin: a Halo CMS plugin project whose classes are compiled by an
    external JVM build (Gradle, Maven, javac)
"""

from __future__ import annotations

from pants.engine.target import (
    COMMON_TARGET_FIELDS,
    StringField,
    StringSequenceField,
    Target,
)
from pants.util.strutil import softwrap


# =============================================================================
# Plugin fields
# =============================================================================


class HaloPluginVersionField(StringField):
    alias = "version"
    default = None
    help = softwrap(
        """
        Plugin version written into plugin.yaml (spec.version) by the
        halo-version goal.
        """
    )


class ClassesDirsField(StringSequenceField):
    alias = "classes_dirs"
    default = ("build/classes/java/main",)
    help = softwrap(
        """
        Compiled classes directories, relative to the BUILD file. The
        components index is written to META-INF/plugin-components.idx under
        the first directory. Directories that do not exist yet are allowed.
        """
    )


class ResourcesDirField(StringField):
    alias = "resources_dir"
    default = "src/main/resources"
    help = softwrap(
        """
        Main resources directory, relative to the BUILD file. Must contain
        plugin.yaml (or plugin.yml).
        """
    )


class PluginDirField(StringField):
    alias = "plugin_dir"
    default = None
    help = softwrap(
        """
        Directory Halo loads the plugin from in development mode, relative to
        the BUILD file. Defaults to the BUILD file's directory.
        """
    )


# =============================================================================
# Target definitions
# =============================================================================


class HaloPluginTarget(Target):
    alias = "halo_plugin"
    help = softwrap(
        """
        A Halo CMS plugin.

        Example:

            halo_plugin(
                name="plugin",
                version="1.0.0",
                classes_dirs=["build/classes/java/main"],
            )
        """
    )
    core_fields = (
        *COMMON_TARGET_FIELDS,
        HaloPluginVersionField,
        ClassesDirsField,
        ResourcesDirField,
        PluginDirField,
    )
