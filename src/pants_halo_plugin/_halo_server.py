"""Pure Python Halo server helpers (no Pants dependencies).

Work directory layout used for local development::

    <work_dir>/
        halo-<version>.jar
        themes/
            <theme-name>/
        plugins/
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence, Union
from urllib.parse import urlparse

from pants_halo_plugin._exceptions import HaloPluginError

DEFAULT_HALO_VERSION = "2.0.0"
DEFAULT_HALO_REPOSITORY_URL = (
    "https://github.com/halo-dev/halo/releases/download/v{version}/halo-{version}.jar"
)
DEFAULT_THEME_URL = "https://github.com/halo-dev/theme-earth/archive/refs/heads/main.zip"

DEFAULT_DOCKER_IMAGE = "halohub/halo:2.0.0"
DEFAULT_DOCKER_PLATFORM = "linux/amd64"
DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
HALO_PORT = 8090
CONTAINER_WORK_DIR = "/root/.halo2"


@dataclass(frozen=True)
class KnownVersion:
    """A pinned download: 'version|sha256|size'."""

    version: str
    sha256: str
    size: int


@dataclass(frozen=True)
class HaloWorkDir:
    """Paths inside the Halo work directory."""

    root: Path

    def jar_path(self, version: str) -> Path:
        return self.root / halo_jar_name(version)

    @property
    def themes_dir(self) -> Path:
        return self.root / "themes"

    @property
    def plugins_dir(self) -> Path:
        return self.root / "plugins"

    def theme_dir(self, theme_name: str) -> Path:
        return self.themes_dir / theme_name


def halo_jar_name(version: str) -> str:
    return f"halo-{version}.jar"


def halo_download_url(repository_url: str, version: str) -> str:
    """Expand the repository URL template for a Halo version.

    Example: halo_download_url(DEFAULT_HALO_REPOSITORY_URL, "2.0.0")
             -> "https://github.com/halo-dev/halo/releases/download/v2.0.0/halo-2.0.0.jar"
    """
    if "{version}" not in repository_url:
        return f"{repository_url.rstrip('/')}/{halo_jar_name(version)}"
    return repository_url.format(version=version)


def theme_name_from_url(theme_url: str) -> str:
    """Derive a theme directory name from a theme archive URL.

    GitHub archive URLs (``.../<repo>/archive/...``) use the repository name,
    anything else uses the archive file name without its extension.
    """
    parts = [p for p in PurePosixPath(urlparse(theme_url).path).parts if p != "/"]
    if "archive" in parts:
        index = parts.index("archive")
        if index > 0:
            return parts[index - 1]
    if not parts:
        raise HaloPluginError(f"Cannot derive a theme name from {theme_url!r}")
    name = parts[-1]
    return name[: -len(".zip")] if name.endswith(".zip") else name


def parse_known_versions(entries: Sequence[str]) -> dict[str, KnownVersion]:
    """Parse 'version|sha256|size' entries; malformed or placeholder entries are skipped."""
    known: dict[str, KnownVersion] = {}
    for entry in entries:
        parts = entry.split("|")
        if len(parts) != 3:
            continue
        version, sha256, size_str = (p.strip() for p in parts)
        if sha256.startswith("<") or not size_str.isdigit():
            continue
        known[version] = KnownVersion(version=version, sha256=sha256, size=int(size_str))
    return known


def extract_theme_archive(data: bytes, dest: Union[str, Path]) -> list[Path]:
    """Unpack a theme zip into ``dest``.

    A single top-level directory in the archive (as in GitHub archives) is
    stripped. Returns the written file paths.
    """
    dest = Path(dest)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        members = [m for m in archive.infolist() if not m.is_dir()]
        tops = {PurePosixPath(m.filename).parts[0] for m in members}
        strip = len(tops) == 1 and all(
            len(PurePosixPath(m.filename).parts) > 1 for m in members
        )

        written: list[Path] = []
        root = dest.resolve()
        for member in members:
            parts = PurePosixPath(member.filename).parts
            if strip:
                parts = parts[1:]
            target = dest.joinpath(*parts)
            if root not in target.resolve().parents:
                raise HaloPluginError(f"Theme archive entry escapes destination: {member.filename}")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(archive.read(member))
            written.append(target)
    return written


def resolve_java(java: str, java_home: Optional[str] = None) -> str:
    """Prefer $JAVA_HOME/bin/java over the configured executable."""
    if java_home:
        return str(Path(java_home) / "bin" / "java")
    return java


def single_file_content(contents: Sequence, description: str) -> bytes:
    """Return the bytes of the only file in a downloaded digest's contents."""
    if len(contents) != 1:
        raise HaloPluginError(
            f"Expected exactly one file for {description}, got {len(contents)}"
        )
    return contents[0].content


def install_halo_files(
    work_dir: HaloWorkDir,
    *,
    version: str,
    theme_name: str,
    jar: Optional[bytes] = None,
    theme_archive: Optional[bytes] = None,
) -> list[str]:
    """Write downloaded Halo files into the work directory.

    ``None`` skips that part. Returns one message per installed part.
    """
    installed: list[str] = []
    if jar is not None:
        jar_path = work_dir.jar_path(version)
        jar_path.parent.mkdir(parents=True, exist_ok=True)
        jar_path.write_bytes(jar)
        installed.append(f"Installed Halo {version}: {jar_path}")
    if theme_archive is not None:
        theme_dir = work_dir.theme_dir(theme_name)
        files = extract_theme_archive(theme_archive, theme_dir)
        installed.append(f"Installed theme {theme_name}: {theme_dir} ({len(files)} files)")
    return installed


def build_server_argv(
    *,
    jar_path: Union[str, Path],
    work_dir: Union[str, Path],
    plugin_dir: Union[str, Path],
    java: str = "java",
    jvm_args: Sequence[str] = (),
    extra_args: Sequence[str] = (),
) -> tuple[str, ...]:
    """Command line that runs Halo with the plugin loaded in development mode."""
    return (
        java,
        *jvm_args,
        "-jar",
        str(jar_path),
        f"--halo.work-dir={work_dir}",
        "--halo.plugin.runtime-mode=development",
        f"--halo.plugin.fixed-plugin-path={plugin_dir}",
        *extra_args,
    )


def build_docker_run_argv(
    *,
    plugin_name: str,
    plugin_dir: Union[str, Path],
    image: str = DEFAULT_DOCKER_IMAGE,
    platform: Optional[str] = DEFAULT_DOCKER_PLATFORM,
    port: int = HALO_PORT,
    docker: str = "docker",
    extra_args: Sequence[str] = (),
) -> tuple[str, ...]:
    """``docker run`` command for Halo with the plugin mounted."""
    argv = [
        docker,
        "run",
        "--rm",
        "--name",
        f"{plugin_name}-halo",
    ]
    if platform:
        argv.extend(["--platform", platform])
    argv.extend(
        [
            "-p",
            f"{port}:{HALO_PORT}",
            "-v",
            f"{plugin_dir}:{CONTAINER_WORK_DIR}/plugins/{plugin_name}",
            image,
            "--halo.plugin.runtime-mode=development",
            f"--halo.plugin.fixed-plugin-path={CONTAINER_WORK_DIR}/plugins/{plugin_name}",
            *extra_args,
        ]
    )
    return tuple(argv)


def docker_env(docker_host: str) -> dict[str, str]:
    return {"DOCKER_HOST": docker_host} if docker_host else {}
