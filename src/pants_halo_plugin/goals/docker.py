"""halo-docker goal: run Halo in a Docker container with the plugin mounted."""

from __future__ import annotations

from pants.engine.console import Console
from pants.engine.env_vars import EnvironmentVars, EnvironmentVarsRequest
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.process import InteractiveProcess, InteractiveProcessResult
from pants.engine.rules import Effect, Get, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_halo_plugin._halo_server import build_docker_run_argv, docker_env
from pants_halo_plugin.rules.plugin import (
    HaloPluginContext,
    HaloPluginFieldSet,
    HaloPluginRequest,
)
from pants_halo_plugin.subsystem import HaloPluginSubsystem


class HaloDockerGoalSubsystem(GoalSubsystem):
    name = "halo-docker"
    help = "Run Halo server in a Docker container with the plugin being developed."


class HaloDockerGoal(Goal):
    subsystem_cls = HaloDockerGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_halo_docker(
    console: Console,
    targets: FilteredTargets,
    subsystem: HaloPluginSubsystem,
) -> HaloDockerGoal:
    plugin_targets = [t for t in targets if HaloPluginFieldSet.is_applicable(t)]

    if len(plugin_targets) != 1:
        console.print_stderr(
            f"halo-docker needs exactly one halo_plugin target, got {len(plugin_targets)}."
        )
        return HaloDockerGoal(exit_code=1)

    context = await Get(
        HaloPluginContext,
        HaloPluginRequest(HaloPluginFieldSet.create(plugin_targets[0])),
    )

    argv = build_docker_run_argv(
        plugin_name=context.plugin_name,
        plugin_dir=context.plugin_dir,
        image=subsystem.docker_image,
        platform=subsystem.docker_platform or None,
        port=subsystem.docker_port,
    )
    env = await Get(EnvironmentVars, EnvironmentVarsRequest(["PATH", "HOME"]))

    console.print_stdout(
        f"Running {subsystem.docker_image} with plugin {context.plugin_name} "
        f"on port {subsystem.docker_port}"
    )
    result = await Effect(
        InteractiveProcessResult,
        InteractiveProcess(
            argv=argv,
            env={**env, **docker_env(subsystem.docker_host)},
            run_in_workspace=True,
        ),
    )
    return HaloDockerGoal(exit_code=result.exit_code)


def rules():
    return collect_rules()
