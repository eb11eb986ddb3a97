"""Plugin resolution rule: halo_plugin target -> HaloPluginContext.

Everything later goals need to know about a plugin (its name from
plugin.yaml, its version, where its classes live) is carried in the
context value rather than in process-wide state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pants.base.build_root import BuildRoot
from pants.engine.fs import DigestContents, PathGlobs
from pants.engine.rules import Get, collect_rules, rule
from pants.engine.target import FieldSet

from pants_halo_plugin._manifest import (
    manifest_candidates,
    parse_manifest,
    select_manifest,
)
from pants_halo_plugin.subsystem import HaloPluginSubsystem
from pants_halo_plugin.targets import (
    ClassesDirsField,
    HaloPluginVersionField,
    PluginDirField,
    ResourcesDirField,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result types
# =============================================================================


@dataclass(frozen=True)
class HaloPluginFieldSet(FieldSet):
    """Fields of a halo_plugin target."""

    required_fields = (ClassesDirsField, ResourcesDirField)

    version: HaloPluginVersionField
    classes_dirs: ClassesDirsField
    resources_dir: ResourcesDirField
    plugin_dir: PluginDirField


@dataclass(frozen=True)
class HaloPluginRequest:
    field_set: HaloPluginFieldSet


@dataclass(frozen=True)
class HaloPluginContext:
    """Resolved plugin settings shared by every Halo goal."""

    address: str
    plugin_name: str
    version: str | None
    require: str
    manifest_path: str  # Relative to the build root
    classes_dirs: tuple[str, ...]  # Absolute
    plugin_dir: str  # Absolute
    work_dir: str  # Absolute


# =============================================================================
# Rules
# =============================================================================


@rule(desc="Resolve Halo plugin")
async def resolve_halo_plugin(
    request: HaloPluginRequest,
    subsystem: HaloPluginSubsystem,
) -> HaloPluginContext:
    fs = request.field_set
    spec_path = fs.address.spec_path
    build_root = BuildRoot().path

    # --- Locate and parse plugin.yaml ---
    resources_dir = os.path.normpath(os.path.join(spec_path, fs.resources_dir.value))
    contents = await Get(DigestContents, PathGlobs(manifest_candidates(resources_dir)))
    by_path = {fc.path: fc for fc in contents}
    manifest_file = by_path[select_manifest(resources_dir, by_path)]

    manifest = parse_manifest(
        manifest_file.content.decode("utf-8"),
        path=manifest_file.path,
    )

    # --- Resolve directories ---
    classes_dirs = tuple(
        os.path.normpath(os.path.join(build_root, spec_path, d))
        for d in fs.classes_dirs.value or ()
    )
    plugin_dir = os.path.normpath(
        os.path.join(build_root, spec_path, fs.plugin_dir.value or ".")
    )
    work_dir = os.path.normpath(os.path.join(build_root, subsystem.work_dir))

    logger.info(
        "Resolved Halo plugin %s (requires Halo %s) from %s",
        manifest.name,
        manifest.require,
        manifest_file.path,
    )

    return HaloPluginContext(
        address=str(fs.address),
        plugin_name=manifest.name,
        version=fs.version.value,
        require=manifest.require,
        manifest_path=manifest_file.path,
        classes_dirs=classes_dirs,
        plugin_dir=plugin_dir,
        work_dir=work_dir,
    )


def rules():
    return collect_rules()
