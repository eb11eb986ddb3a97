"""halo-run goal: run a local Halo server with the plugin in development mode."""

from __future__ import annotations

from pathlib import Path

from pants.engine.console import Console
from pants.engine.env_vars import EnvironmentVars, EnvironmentVarsRequest
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.process import InteractiveProcess, InteractiveProcessResult
from pants.engine.rules import Effect, Get, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_halo_plugin._halo_server import (
    HaloWorkDir,
    build_server_argv,
    install_halo_files,
    resolve_java,
)
from pants_halo_plugin.rules.install import HaloInstallFiles, HaloInstallRequest
from pants_halo_plugin.rules.plugin import (
    HaloPluginContext,
    HaloPluginFieldSet,
    HaloPluginRequest,
)
from pants_halo_plugin.subsystem import HaloPluginSubsystem
from pants_halo_plugin.subsystems.halo_server import HaloServerSubsystem


class HaloRunGoalSubsystem(GoalSubsystem):
    name = "halo-run"
    help = "Run Halo server locally with the plugin being developed."


class HaloRunGoal(Goal):
    subsystem_cls = HaloRunGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_halo_server(
    console: Console,
    targets: FilteredTargets,
    plugin_subsystem: HaloPluginSubsystem,
    server_subsystem: HaloServerSubsystem,
) -> HaloRunGoal:
    plugin_targets = [t for t in targets if HaloPluginFieldSet.is_applicable(t)]

    if len(plugin_targets) != 1:
        console.print_stderr(
            f"halo-run needs exactly one halo_plugin target, got {len(plugin_targets)}."
        )
        return HaloRunGoal(exit_code=1)

    context = await Get(
        HaloPluginContext,
        HaloPluginRequest(HaloPluginFieldSet.create(plugin_targets[0])),
    )
    work_dir = HaloWorkDir(Path(context.work_dir))

    # --- Install server and theme if missing ---
    version = server_subsystem.version
    theme_name = server_subsystem.theme_name
    files = await Get(
        HaloInstallFiles,
        HaloInstallRequest,
        HaloInstallRequest.missing_from(work_dir, version, theme_name),
    )
    for line in install_halo_files(
        work_dir,
        version=version,
        theme_name=theme_name,
        jar=files.jar,
        theme_archive=files.theme_archive,
    ):
        console.print_stdout(line)

    # --- Launch ---
    env = await Get(EnvironmentVars, EnvironmentVarsRequest(["PATH", "HOME", "JAVA_HOME"]))
    argv = build_server_argv(
        java=resolve_java(plugin_subsystem.java, env.get("JAVA_HOME")),
        jar_path=work_dir.jar_path(version),
        work_dir=work_dir.root,
        plugin_dir=context.plugin_dir,
        jvm_args=plugin_subsystem.jvm_args,
        extra_args=plugin_subsystem.server_args,
    )

    console.print_stdout(
        f"Starting Halo {version} with plugin {context.plugin_name} "
        f"(work dir: {work_dir.root})"
    )
    result = await Effect(
        InteractiveProcessResult,
        InteractiveProcess(
            argv=argv,
            env=dict(env),
            run_in_workspace=True,
        ),
    )
    return HaloRunGoal(exit_code=result.exit_code)


def rules():
    return collect_rules()
