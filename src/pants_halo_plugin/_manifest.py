"""Pure Python Halo plugin manifest handling (no Pants dependencies).

A Halo plugin ships a ``plugin.yaml`` in its main resources directory::

    apiVersion: plugin.halo.run/v1alpha1
    kind: Plugin
    metadata:
      name: my-plugin
    spec:
      version: 1.0.0
      requires: ">=2.0.0"
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import yaml

from pants_halo_plugin._exceptions import ManifestError

MANIFEST_FILENAMES = ("plugin.yaml", "plugin.yml")

DEFAULT_REQUIRE = "*"


@dataclass(frozen=True)
class PluginManifest:
    """The parts of plugin.yaml the build needs."""

    name: str
    version: Optional[str] = None
    require: str = DEFAULT_REQUIRE
    path: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


def manifest_candidates(resources_dir: str) -> list[str]:
    """Manifest paths to look for under ``resources_dir``, in order of preference."""
    prefix = "" if resources_dir in ("", ".") else resources_dir
    return [posixpath.join(prefix, filename) for filename in MANIFEST_FILENAMES]


def select_manifest(resources_dir: str, existing_paths: Iterable[str]) -> str:
    """Return the preferred manifest path among ``existing_paths``.

    Raises:
        ManifestError: If neither plugin.yaml nor plugin.yml exists.
    """
    existing = set(existing_paths)
    for candidate in manifest_candidates(resources_dir):
        if candidate in existing:
            return candidate
    raise ManifestError(
        f"The plugin manifest file [plugin.yaml] not found in {resources_dir}"
    )


def _load_yaml(content: str, path: Optional[str]) -> dict[str, Any]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid YAML: {exc}", path=path) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a YAML mapping", path=path)
    return data


def _section(data: dict[str, Any], key: str, path: Optional[str]) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ManifestError(f"'{key}' must be a mapping", path=path)
    return value


def parse_manifest(content: str, *, path: Optional[str] = None) -> PluginManifest:
    """Parse plugin.yaml content.

    ``spec.requires`` is the current key; ``spec.require`` is accepted too.

    Raises:
        ManifestError: If the YAML is invalid or ``metadata.name`` is blank.
    """
    data = _load_yaml(content, path)
    metadata = _section(data, "metadata", path)
    spec = _section(data, "spec", path)

    name = metadata.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError("Plugin name must not be blank.", path=path)

    version = spec.get("version")
    require = spec.get("requires", spec.get("require")) or DEFAULT_REQUIRE

    return PluginManifest(
        name=name.strip(),
        version=str(version) if version is not None else None,
        require=str(require),
        path=path,
        raw=data,
    )


def populate_manifest_version(content: str, version: str, *, path: Optional[str] = None) -> str:
    """Return manifest content with ``spec.version`` set to ``version``.

    Content is returned untouched when the version already matches, so the
    file is only rewritten when something changed.
    """
    if not version:
        raise ManifestError("Plugin version must not be blank.", path=path)

    data = _load_yaml(content, path)
    spec = _section(data, "spec", path)
    if str(spec.get("version")) == version:
        return content

    spec["version"] = version
    data["spec"] = spec
    return yaml.dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
