"""
Learning Plan Tracker
=====================

Command line interface: ``python -m learnplan <command>``.
"""

import argparse
import logging
import sys
from datetime import datetime

from rich.markup import escape

from learnplan.config import resolve_paths
from learnplan.domain.errors import (
    ConfigNotFoundError,
    LearnPlanError,
    MalformedJSONError,
    PrerequisitesNotMetError,
    ProgressError,
    TaskError,
    TaskNotFoundError,
)
from learnplan.domain.task import LearningPlan
from learnplan.services import health, statistics
from learnplan.services.lifecycle import TaskLifecycle
from learnplan.services.repair import Fix, fix_issues
from learnplan.services.scaffold import COMMAND, init_plan
from learnplan.services.store import JsonProgressStore, PlanStore
from learnplan.visualization import console as view

logger = logging.getLogger("learnplan.cli")

LAYOUT_CHOICES = ["spring", "dot", "circular", "shell", "spectral"]


def now():
    return datetime.now().astimezone()


def _load_plan(paths):
    return PlanStore(paths.config_file).load()


def _load_plan_for_diagnostics(paths):
    """
    Load the plan, substituting an empty one when the document is unreadable.

    The format checks report the problem; only a missing document is fatal.
    """
    try:
        return _load_plan(paths), None
    except (MalformedJSONError, TaskError) as e:
        logger.warning("Using an empty plan: %s", e)
        return LearningPlan(), e


def _load_progress(paths):
    return JsonProgressStore(paths.progress_file, clock=now).load()


def cmd_list(args, paths, console):
    plan = _load_plan(paths)
    view.render_task_list(console, plan, _load_progress(paths), today_only=args.today)
    return 0


def cmd_start(args, paths, console):
    if not args.task_id:
        view.render_error(
            console, "❌ Please specify a task ID", f"Usage: {COMMAND} start <task-id>"
        )
        return 1
    plan = _load_plan(paths)
    store = JsonProgressStore(paths.progress_file, clock=now)
    lifecycle = TaskLifecycle(plan, store, clock=now)
    try:
        result = lifecycle.start(args.task_id)
    except PrerequisitesNotMetError as e:
        view.render_prerequisites(console, e)
        return 1
    view.render_started(console, result)
    return 0


def cmd_complete(args, paths, console):
    if not args.task_id:
        view.render_error(
            console, "❌ Please specify a task ID", f"Usage: {COMMAND} complete <task-id>"
        )
        return 1
    plan = _load_plan(paths)
    store = JsonProgressStore(paths.progress_file, clock=now)
    lifecycle = TaskLifecycle(plan, store, clock=now)
    view.render_completed(console, lifecycle.complete(args.task_id))
    return 0


def cmd_progress(args, paths, console):
    plan = _load_plan(paths)
    summary = statistics.progress_summary(plan, _load_progress(paths), now().date())
    view.render_progress(console, summary)
    return 0


def cmd_next(args, paths, console):
    plan = _load_plan(paths)
    view.render_next(console, plan, _load_progress(paths))
    return 0


def cmd_stats(args, paths, console):
    plan = _load_plan(paths)
    stats = statistics.study_stats(plan, _load_progress(paths), now().date())
    view.render_stats(console, stats)
    return 0


def cmd_check(args, paths, console):
    if not paths.config_file.exists():
        raise ConfigNotFoundError(paths.config_file)
    plan, _ = _load_plan_for_diagnostics(paths)
    view.render_health(console, health.health_check(plan, paths), verbose=args.verbose)
    return 0


def cmd_diagnose(args, paths, console):
    if not paths.config_file.exists():
        raise ConfigNotFoundError(paths.config_file)
    plan, plan_error = _load_plan_for_diagnostics(paths)
    if plan_error is not None:
        view.render_error(console, f"❌ {plan_error}")

    document = None
    if paths.progress_file.exists():
        try:
            document = _load_progress(paths)
        except (MalformedJSONError, ProgressError) as e:
            view.render_error(console, f"❌ Progress data unreadable: {e}")

    view.render_diagnosis(console, health.diagnose(plan, document, now()))
    return 0


def cmd_verify(args, paths, console):
    if not paths.config_file.exists():
        raise ConfigNotFoundError(paths.config_file)
    plan, _ = _load_plan_for_diagnostics(paths)

    target = args.target
    if target == "deps":
        view.render_verify_dependencies(console, health.verify_dependencies(plan))
        return 0

    if target and target in plan:
        try:
            document = _load_progress(paths)
        except (MalformedJSONError, ProgressError) as e:
            view.render_error(console, f"❌ Progress data unreadable: {e}")
            return 0
        states = health.verify_task(plan, target, document)
        view.render_verify_task(console, plan.get_task(target), states)
        return 0

    if target:
        logger.info("No task %s, running the general verification", target)
    view.render_verify_config(console, health.verify_config(paths))
    return 0


def cmd_fix(args, paths, console):
    if not paths.config_file.exists():
        raise ConfigNotFoundError(paths.config_file)
    try:
        plan = _load_plan(paths)
    except (MalformedJSONError, TaskError) as e:
        # Without readable definitions every progress entry would look orphaned
        fixes = [Fix("Unreadable config.json", f"Repair by hand: {e}", manual=True)]
    else:
        fixes = fix_issues(plan, paths, dry_run=args.dry_run, clock=now)
    view.render_fixes(console, fixes, dry_run=args.dry_run)
    return 0


def cmd_init(args, paths, console):
    steps = init_plan(paths, clock=now)
    view.render_init(console, steps, paths.root)
    return 0


def _use_file_backend():
    import matplotlib

    matplotlib.use("Agg")


def cmd_graph(args, paths, console):
    plan = _load_plan(paths)
    document = _load_progress(paths)
    _use_file_backend()
    import matplotlib.pyplot as plt

    from learnplan.visualization.network import create_network_diagram

    fig = create_network_diagram(plan, document, filename=args.output, layout=args.layout)
    plt.close(fig)
    console.print(f"[green]✅ Network diagram saved to {escape(args.output)}[/green]")
    return 0


def cmd_chart(args, paths, console):
    plan = _load_plan(paths)
    stats = statistics.study_stats(plan, _load_progress(paths), now().date())
    _use_file_backend()
    import matplotlib.pyplot as plt

    from learnplan.visualization.activity import create_activity_chart

    fig = create_activity_chart(stats, filename=args.output, title=plan.name)
    plt.close(fig)
    console.print(f"[green]✅ Activity chart saved to {escape(args.output)}[/green]")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="learnplan", description="Learning plan task tracker"
    )
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Plan directory (default: $LEARNPLAN_ROOT or the current directory)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List all tasks with their status")
    list_parser.add_argument(
        "--today", action="store_true", help="Only tasks that can be started now"
    )
    list_parser.set_defaults(handler=cmd_list)

    start_parser = subparsers.add_parser("start", help="Start a task")
    start_parser.add_argument("task_id", nargs="?", help="Task ID")
    start_parser.set_defaults(handler=cmd_start)

    complete_parser = subparsers.add_parser("complete", help="Complete a task")
    complete_parser.add_argument("task_id", nargs="?", help="Task ID")
    complete_parser.set_defaults(handler=cmd_complete)

    subparsers.add_parser("progress", help="Show the progress dashboard").set_defaults(
        handler=cmd_progress
    )
    subparsers.add_parser("next", help="Recommend the next tasks").set_defaults(
        handler=cmd_next
    )
    subparsers.add_parser("stats", help="Show study statistics").set_defaults(
        handler=cmd_stats
    )

    check_parser = subparsers.add_parser("check", help="Run a health check")
    check_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show details of passing checks"
    )
    check_parser.set_defaults(handler=cmd_check)

    subparsers.add_parser("diagnose", help="Run deep diagnostics").set_defaults(
        handler=cmd_diagnose
    )

    verify_parser = subparsers.add_parser(
        "verify", help="Verify the configuration, dependencies or one task"
    )
    verify_parser.add_argument(
        "target", nargs="?", help="'deps' or a task ID (default: configuration)"
    )
    verify_parser.set_defaults(handler=cmd_verify)

    fix_parser = subparsers.add_parser("fix", help="Repair progress data")
    fix_parser.add_argument(
        "--dry-run", action="store_true", help="Report fixes without applying them"
    )
    fix_parser.set_defaults(handler=cmd_fix)

    subparsers.add_parser("init", help="Create a new plan directory").set_defaults(
        handler=cmd_init
    )

    graph_parser = subparsers.add_parser("graph", help="Draw the dependency network")
    graph_parser.add_argument(
        "--output",
        type=str,
        default="learnplan_network.png",
        help="Output filename for the diagram",
    )
    graph_parser.add_argument(
        "--layout", choices=LAYOUT_CHOICES, default="spring", help="Network layout"
    )
    graph_parser.set_defaults(handler=cmd_graph)

    chart_parser = subparsers.add_parser("chart", help="Chart the last seven days")
    chart_parser.add_argument(
        "--output",
        type=str,
        default="learnplan_activity.png",
        help="Output filename for the chart",
    )
    chart_parser.set_defaults(handler=cmd_chart)

    return parser


def main(argv=None, console=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console = console or view.make_console()

    if not args.command:
        parser.print_help()
        return 0

    paths = resolve_paths(args.root)
    logger.debug("Plan directory: %s", paths.root)

    try:
        return args.handler(args, paths, console)
    except ConfigNotFoundError:
        view.render_error(
            console,
            "❌ No learning plan found in this directory",
            f"Run: {COMMAND} init to create a new plan",
        )
        return 1
    except TaskNotFoundError as e:
        view.render_error(console, f"❌ Task {e.task_key} not found")
        return 1
    except LearnPlanError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        view.render_error(console, f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
