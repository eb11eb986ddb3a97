"""Pants plugin registration for Halo plugin development.

Backend path: pants_halo_plugin

Enable in pants.toml:

    [GLOBAL]
    backend_packages = [
        "pants_halo_plugin",
    ]

    [halo-plugin]
    work_dir = "workplace"

    [halo-server]
    version = "2.0.0"
"""

from __future__ import annotations

from typing import Iterable, Type

from pants.engine.rules import Rule
from pants.option.subsystem import Subsystem

from pants_halo_plugin.goals import components_index as components_index_goal
from pants_halo_plugin.goals import docker as docker_goal
from pants_halo_plugin.goals import install as install_goal
from pants_halo_plugin.goals import server as server_goal
from pants_halo_plugin.goals import version as version_goal
from pants_halo_plugin.rules import install as install_rule
from pants_halo_plugin.rules import plugin as plugin_rule
from pants_halo_plugin.subsystem import HaloPluginSubsystem
from pants_halo_plugin.subsystems.halo_server import HaloServerSubsystem
from pants_halo_plugin.targets import HaloPluginTarget


def rules() -> Iterable[Rule]:
    return [
        *plugin_rule.rules(),
        *install_rule.rules(),
        *components_index_goal.rules(),
        *version_goal.rules(),
        *install_goal.rules(),
        *server_goal.rules(),
        *docker_goal.rules(),
    ]


def target_types() -> Iterable[type]:
    return [HaloPluginTarget]


def subsystems() -> Iterable[Type[Subsystem]]:
    return [HaloPluginSubsystem, HaloServerSubsystem]
