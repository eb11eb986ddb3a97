"""Subsystem for Halo server jar and default theme downloads.

Uses a plain Subsystem (NOT ExternalTool) because the Halo jar is platform
independent and is installed into a work directory rather than a sandbox.
"""

from __future__ import annotations

from pants.engine.fs import FileDigest
from pants.option.option_types import StrListOption, StrOption
from pants.option.subsystem import Subsystem

from pants_halo_plugin._halo_server import (
    DEFAULT_HALO_REPOSITORY_URL,
    DEFAULT_HALO_VERSION,
    DEFAULT_THEME_URL,
    halo_download_url,
    halo_jar_name,
    parse_known_versions,
    theme_name_from_url,
)


class HaloServerSubsystem(Subsystem):
    """Halo server executable jar used for local plugin development."""

    options_scope = "halo-server"
    help = "Configuration for downloading the Halo server and its default theme."

    version = StrOption(
        default=DEFAULT_HALO_VERSION,
        help="Halo server version to install.",
    )

    repository_url = StrOption(
        default=DEFAULT_HALO_REPOSITORY_URL,
        help=(
            "Download URL template for the Halo jar; '{version}' is substituted. "
            "Without a placeholder, 'halo-<version>.jar' is appended."
        ),
    )

    known_versions = StrListOption(
        default=[],
        help=(
            "Known version entries: 'version|sha256|size'. "
            "Pinned versions are downloaded with digest verification; others fall back to curl."
        ),
    )

    theme_url = StrOption(
        default=DEFAULT_THEME_URL,
        help="URL of the default theme zip installed next to the server.",
    )

    theme_digest = StrOption(
        default="",
        help="Optional 'sha256|size' pin for the theme archive.",
    )

    @property
    def jar_name(self) -> str:
        return halo_jar_name(self.version)

    @property
    def theme_name(self) -> str:
        return theme_name_from_url(self.theme_url)

    def download_url(self) -> str:
        return halo_download_url(self.repository_url, self.version)

    def file_digest(self) -> FileDigest | None:
        """FileDigest for the configured version, or None if it is not pinned."""
        known = parse_known_versions(self.known_versions).get(self.version)
        if known is None:
            return None
        return FileDigest(fingerprint=known.sha256, serialized_bytes_length=known.size)

    def theme_file_digest(self) -> FileDigest | None:
        if not self.theme_digest:
            return None
        known = parse_known_versions([f"theme|{self.theme_digest}"]).get("theme")
        if known is None:
            return None
        return FileDigest(fingerprint=known.sha256, serialized_bytes_length=known.size)
