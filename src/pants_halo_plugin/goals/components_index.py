"""halo-index goal: generate META-INF/plugin-components.idx for Halo plugins."""

from __future__ import annotations

from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, MultiGet, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_halo_plugin._components_index import generate_components_index
from pants_halo_plugin.rules.plugin import (
    HaloPluginContext,
    HaloPluginFieldSet,
    HaloPluginRequest,
)
from pants_halo_plugin.subsystem import HaloPluginSubsystem


class HaloIndexGoalSubsystem(GoalSubsystem):
    name = "halo-index"
    help = "Generate the plugin components index from compiled classes."


class HaloIndexGoal(Goal):
    subsystem_cls = HaloIndexGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_halo_index(
    console: Console,
    targets: FilteredTargets,
    subsystem: HaloPluginSubsystem,
) -> HaloIndexGoal:
    plugin_targets = [t for t in targets if HaloPluginFieldSet.is_applicable(t)]

    if not plugin_targets:
        console.print_stderr("No halo_plugin targets found.")
        return HaloIndexGoal(exit_code=0)

    contexts = await MultiGet(
        Get(
            HaloPluginContext,
            HaloPluginRequest(HaloPluginFieldSet.create(t)),
        )
        for t in plugin_targets
    )

    # Classes come from an external compiler and are read from disk directly.
    for context in contexts:
        result = generate_components_index(
            context.classes_dirs,
            extra_annotations=subsystem.component_annotations,
        )
        console.print_stdout(
            f"Generated components index: {result.output_path} "
            f"({len(result.components)} components, {context.plugin_name})"
        )

    return HaloIndexGoal(exit_code=0)


def rules():
    return collect_rules()
