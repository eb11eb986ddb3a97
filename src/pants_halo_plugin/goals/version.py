"""halo-version goal: write the target version into plugin.yaml."""

from __future__ import annotations

from pathlib import Path

from pants.base.build_root import BuildRoot
from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, MultiGet, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_halo_plugin._manifest import populate_manifest_version
from pants_halo_plugin.rules.plugin import (
    HaloPluginContext,
    HaloPluginFieldSet,
    HaloPluginRequest,
)


class HaloVersionGoalSubsystem(GoalSubsystem):
    name = "halo-version"
    help = "Auto populate the plugin version into the plugin manifest file."


class HaloVersionGoal(Goal):
    subsystem_cls = HaloVersionGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


@goal_rule
async def run_halo_version(
    console: Console,
    targets: FilteredTargets,
) -> HaloVersionGoal:
    plugin_targets = [t for t in targets if HaloPluginFieldSet.is_applicable(t)]

    if not plugin_targets:
        console.print_stderr("No halo_plugin targets found.")
        return HaloVersionGoal(exit_code=0)

    contexts = await MultiGet(
        Get(
            HaloPluginContext,
            HaloPluginRequest(HaloPluginFieldSet.create(t)),
        )
        for t in plugin_targets
    )

    build_root = Path(BuildRoot().path)
    has_errors = False

    for context in contexts:
        if not context.version:
            has_errors = True
            console.print_stderr(f"FAIL  {context.address}: no `version` set on the target")
            continue

        manifest_path = build_root / context.manifest_path
        content = manifest_path.read_text(encoding="utf-8")
        updated = populate_manifest_version(
            content, context.version, path=context.manifest_path
        )

        if updated == content:
            console.print_stdout(
                f"Up to date: {context.manifest_path} ({context.plugin_name} v{context.version})"
            )
            continue

        manifest_path.write_text(updated, encoding="utf-8")
        console.print_stdout(
            f"Updated manifest: {context.manifest_path} ({context.plugin_name} v{context.version})"
        )

    return HaloVersionGoal(exit_code=1 if has_errors else 0)


def rules():
    return collect_rules()
