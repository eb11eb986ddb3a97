"""Halo server download rules.

Downloads the Halo executable jar and the default theme archive. A pinned
digest uses DownloadFile; otherwise the download falls back to curl.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pants.engine.fs import Digest, DigestContents, DownloadFile, FileDigest
from pants.engine.process import Process, ProcessResult
from pants.engine.rules import Get, collect_rules, rule

from pants_halo_plugin._halo_server import HaloWorkDir, single_file_content
from pants_halo_plugin.subsystems.halo_server import HaloServerSubsystem

logger = logging.getLogger(__name__)

THEME_ARCHIVE_NAME = "theme.zip"


# =============================================================================
# Request / Result types
# =============================================================================


@dataclass(frozen=True)
class HaloJarRequest:
    """Request to download the configured Halo server jar."""


@dataclass(frozen=True)
class HaloJar:
    """Digest containing the single downloaded jar."""

    digest: Digest
    version: str
    file_name: str


@dataclass(frozen=True)
class HaloThemeRequest:
    """Request to download the configured default theme archive."""


@dataclass(frozen=True)
class HaloTheme:
    """Digest containing the single downloaded theme zip."""

    digest: Digest
    name: str


@dataclass(frozen=True)
class HaloInstallRequest:
    """Request the downloads a Halo work directory is missing."""

    jar: bool
    theme: bool

    @classmethod
    def missing_from(
        cls, work_dir: HaloWorkDir, version: str, theme_name: str
    ) -> HaloInstallRequest:
        return cls(
            jar=not work_dir.jar_path(version).exists(),
            theme=not work_dir.theme_dir(theme_name).exists(),
        )


@dataclass(frozen=True)
class HaloInstallFiles:
    """Downloaded file contents; None for parts that were not requested."""

    jar: Optional[bytes] = None
    theme_archive: Optional[bytes] = None


# =============================================================================
# Internal types
# =============================================================================


@dataclass(frozen=True)
class _Download:
    url: str
    file_name: str
    expected_digest: Optional[FileDigest]
    description: str


@dataclass(frozen=True)
class _Downloaded:
    digest: Digest


# =============================================================================
# Rules
# =============================================================================


@rule(desc="Download a Halo artifact")
async def _download(request: _Download) -> _Downloaded:
    if request.expected_digest is not None:
        # Verified download (preferred path)
        digest = await Get(
            Digest,
            DownloadFile(url=request.url, expected_digest=request.expected_digest),
        )
        return _Downloaded(digest=digest)

    # Fall back to curl when no digest is pinned
    result = await Get(
        ProcessResult,
        Process(
            argv=[
                "curl",
                "-fSL",
                "--retry", "3",
                "-o", request.file_name,
                request.url,
            ],
            description=request.description,
            output_files=(request.file_name,),
        ),
    )
    return _Downloaded(digest=result.output_digest)


@rule(desc="Download Halo server")
async def download_halo_jar(
    request: HaloJarRequest,
    subsystem: HaloServerSubsystem,
) -> HaloJar:
    url = subsystem.download_url()
    downloaded = await Get(
        _Downloaded,
        _Download(
            url=url,
            file_name=subsystem.jar_name,
            expected_digest=subsystem.file_digest(),
            description=f"Download Halo {subsystem.version}",
        ),
    )
    logger.info("Downloaded Halo %s from %s", subsystem.version, url)
    return HaloJar(
        digest=downloaded.digest,
        version=subsystem.version,
        file_name=subsystem.jar_name,
    )


@rule(desc="Download Halo default theme")
async def download_halo_theme(
    request: HaloThemeRequest,
    subsystem: HaloServerSubsystem,
) -> HaloTheme:
    downloaded = await Get(
        _Downloaded,
        _Download(
            url=subsystem.theme_url,
            file_name=THEME_ARCHIVE_NAME,
            expected_digest=subsystem.theme_file_digest(),
            description=f"Download Halo theme {subsystem.theme_name}",
        ),
    )
    logger.info("Downloaded theme %s from %s", subsystem.theme_name, subsystem.theme_url)
    return HaloTheme(digest=downloaded.digest, name=subsystem.theme_name)


@rule(desc="Download missing Halo installation files")
async def download_halo_install_files(request: HaloInstallRequest) -> HaloInstallFiles:
    jar_content = None
    if request.jar:
        jar = await Get(HaloJar, HaloJarRequest())
        contents = await Get(DigestContents, Digest, jar.digest)
        jar_content = single_file_content(contents, jar.file_name)

    theme_content = None
    if request.theme:
        theme = await Get(HaloTheme, HaloThemeRequest())
        contents = await Get(DigestContents, Digest, theme.digest)
        theme_content = single_file_content(contents, theme.name)

    return HaloInstallFiles(jar=jar_content, theme_archive=theme_content)


def rules():
    return collect_rules()
