"""halo-install goal: install the Halo server jar and default theme locally."""

from __future__ import annotations

from pathlib import Path

from pants.base.build_root import BuildRoot
from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, collect_rules, goal_rule

from pants_halo_plugin._halo_server import HaloWorkDir, install_halo_files
from pants_halo_plugin.rules.install import HaloInstallFiles, HaloInstallRequest
from pants_halo_plugin.subsystem import HaloPluginSubsystem
from pants_halo_plugin.subsystems.halo_server import HaloServerSubsystem


class HaloInstallGoalSubsystem(GoalSubsystem):
    name = "halo-install"
    help = "Install the Halo server executable jar and default theme locally."


class HaloInstallGoal(Goal):
    subsystem_cls = HaloInstallGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_halo_install(
    console: Console,
    plugin_subsystem: HaloPluginSubsystem,
    server_subsystem: HaloServerSubsystem,
) -> HaloInstallGoal:
    work_dir = HaloWorkDir(Path(BuildRoot().path) / plugin_subsystem.work_dir)

    version = server_subsystem.version
    theme_name = server_subsystem.theme_name
    request = HaloInstallRequest.missing_from(work_dir, version, theme_name)

    if not request.jar:
        console.print_stdout(f"Halo {version} already installed: {work_dir.jar_path(version)}")
    if not request.theme:
        console.print_stdout(f"Theme already installed: {work_dir.theme_dir(theme_name)}")

    files = await Get(HaloInstallFiles, HaloInstallRequest, request)
    for line in install_halo_files(
        work_dir,
        version=version,
        theme_name=theme_name,
        jar=files.jar,
        theme_archive=files.theme_archive,
    ):
        console.print_stdout(line)

    return HaloInstallGoal(exit_code=0)


def rules():
    return collect_rules()
