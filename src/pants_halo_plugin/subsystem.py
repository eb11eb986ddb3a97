"""Global Halo plugin development configuration subsystem."""

from __future__ import annotations

from pants.option.option_types import IntOption, StrListOption, StrOption
from pants.option.subsystem import Subsystem

from pants_halo_plugin._halo_server import (
    DEFAULT_DOCKER_HOST,
    DEFAULT_DOCKER_IMAGE,
    DEFAULT_DOCKER_PLATFORM,
    HALO_PORT,
)


class HaloPluginSubsystem(Subsystem):
    """Global configuration for Halo plugin development."""

    options_scope = "halo-plugin"
    help = "Configuration for the Halo plugin development backend."

    component_annotations = StrListOption(
        default=[],
        help=(
            "Additional annotations (e.g. 'com.example.MyStereotype') that mark a class "
            "as a Halo component, on top of the Spring stereotype annotations."
        ),
    )

    work_dir = StrOption(
        default="workplace",
        help="Halo work directory for local runs, relative to the build root.",
    )

    java = StrOption(
        default="java",
        help="Java executable used to run Halo. JAVA_HOME takes precedence when set.",
    )

    jvm_args = StrListOption(
        default=[],
        help="Extra JVM arguments for the local Halo server (e.g. '-Xmx512m').",
    )

    server_args = StrListOption(
        default=[],
        help="Extra application arguments for the local Halo server.",
    )

    docker_image = StrOption(
        default=DEFAULT_DOCKER_IMAGE,
        help="Halo image used by the halo-docker goal.",
    )

    docker_platform = StrOption(
        default=DEFAULT_DOCKER_PLATFORM,
        help="Platform passed to docker run. Empty = let Docker decide.",
    )

    docker_host = StrOption(
        default=DEFAULT_DOCKER_HOST,
        help="Docker daemon address, exported as DOCKER_HOST.",
    )

    docker_port = IntOption(
        default=HALO_PORT,
        help="Host port mapped to Halo's port inside the container.",
    )
