"""
Terminal rendering of task lists, dashboards and reports.

Every function writes to the rich Console it is given, so tests can capture
the output with ``Console(file=io.StringIO())``.
"""

from rich.console import Console
from rich.markup import escape

from learnplan.config import NEXT_TASK_COUNT
from learnplan.domain.progress import TaskStatus
from learnplan.services.health import CheckStatus
from learnplan.services.scaffold import COMMAND
from learnplan.utils.graph import available_tasks, is_satisfied

RULE = "=" * 60

CHECK_ICONS = {
    CheckStatus.PASS: "[green]✅[/green]",
    CheckStatus.WARNING: "[yellow]⚠️[/yellow]",
    CheckStatus.FAIL: "[red]❌[/red]",
}


def make_console(**kwargs):
    return Console(highlight=False, **kwargs)


def progress_bar(percentage, width=40):
    filled = max(0, min(width, round(percentage / 100 * width)))
    return f"[green]{'█' * filled}[/green][bright_black]{'░' * (width - filled)}[/bright_black]"


def _heading(console, title):
    console.print(f"\n[bold]{title}[/bold]\n")
    console.print(RULE)
    console.print()


def _status_icon(task_key, plan, document):
    status = document.status_of(task_key)
    if status == TaskStatus.COMPLETED:
        return "[green]✅[/green]"
    if status == TaskStatus.IN_PROGRESS:
        return "[yellow]🔄[/yellow]"
    if is_satisfied(task_key, plan.tasks, document.tasks):
        return "[blue]⏳[/blue]"
    return "[red]🔒[/red]"


def render_task_list(console, plan, document, today_only=False):
    console.print("\n[bold]📋 Learning Plan Tasks[/bold]\n")
    console.print("=" * 70)

    shown = available_tasks(plan.tasks, document.tasks) if today_only else list(plan.tasks)
    current_stage = None
    for task_key in shown:
        task = plan.tasks[task_key]
        if task.stage != current_stage:
            current_stage = task.stage
            console.print(f"\n[cyan]🎯 Stage {current_stage}[/cyan]")
            console.print("-" * 70)

        icon = _status_icon(task_key, plan, document)
        console.print(f"{icon} [bold]{escape(f'[{task_key}]')}[/bold] {escape(task.name or '')}")
        deps = ", ".join(task.deps) or "none"
        console.print(
            f"   Week {task.week}, Day {task.day} | "
            f"[yellow]{escape(str(task.duration))}[/yellow] | Deps: {escape(deps)}"
        )
        record = document.tasks.get(task_key)
        if record and record.completed_at:
            console.print(f"   [green]✓[/green] Completed: {record.completed_at[:10]}")
        console.print()

    if today_only:
        console.print(f"\n[cyan]📌 You have {len(shown)} task(s) ready to start[/cyan]")


def render_started(console, result):
    if result.paused_task:
        console.print(
            f"\n[yellow]⚠️  Previous task \"{escape(result.paused_task)}\" was in progress[/yellow]"
        )
        console.print("[cyan]Marking it as paused[/cyan]\n")
    console.print(
        f"\n[green]🚀 Started Task: {escape(f'[{result.task_key}]')} {escape(result.task_name)}[/green]"
    )
    console.print("\n[cyan]When finished, run:[/cyan]")
    console.print(f"[bold]  {COMMAND} complete {escape(result.task_key)}[/bold]")
    console.print()


def render_prerequisites(console, error):
    console.print(f"[red]❌ Prerequisites not met for task {escape(error.task_key)}[/red]")
    console.print("\n[yellow]Complete these tasks first:[/yellow]")
    for dep_key, dep_name in error.blocking:
        console.print(f"  🔒 {escape(dep_key)}: {escape(dep_name)}")


def render_completed(console, result):
    console.print(
        f"\n[green]✅ Task Completed: {escape(f'[{result.task_key}]')} {escape(result.task_name)}[/green]"
    )
    if result.duration_minutes > 0:
        console.print(f"[cyan]⏱️  Time spent: {result.duration_minutes} minutes[/cyan]")
    console.print(
        f"[blue]📊 Total study time: {round(result.total_study_time / 60, 1)} hours[/blue]"
    )
    console.print()
    if result.milestone:
        console.print(f"[magenta]🎉 Milestone: {result.milestone} tasks completed![/magenta]")


def render_next(console, plan, document):
    available = available_tasks(plan.tasks, document.tasks)
    if not available:
        console.print("\n[green]🎊 Congratulations! All tasks completed![/green]")
        console.print("[cyan]You've finished your learning plan![/cyan]")
        return

    console.print("\n[bold]📌 Recommended Next Steps:[/bold]")
    console.print()
    for index, task_key in enumerate(available[:NEXT_TASK_COUNT], start=1):
        task = plan.tasks[task_key]
        console.print(f"{index}. [bold]{escape(f'[{task_key}]')}[/bold] {escape(task.name or '')}")
        console.print(
            f"   Stage {task.stage}, Week {task.week} | [yellow]{escape(str(task.duration))}[/yellow]"
        )
        console.print()
    console.print(f"[cyan]Run: {COMMAND} start <task-id> to begin[/cyan]")
    console.print()


def render_progress(console, summary):
    _heading(console, "📊 Learning Progress Dashboard")
    console.print(f"[bold]Overall Progress:[/bold] [green]{summary.percentage}%[/green]")
    console.print(progress_bar(summary.percentage, 50))
    console.print()
    console.print(f"[green]✅[/green] Completed: {summary.completed}/{summary.total} tasks")
    console.print(f"[yellow]🔄[/yellow] In Progress: {summary.in_progress} tasks")
    console.print(f"[blue]⏳[/blue] Remaining: {summary.remaining} tasks")
    console.print()

    console.print("[bold]Stage Breakdown:[/bold]")
    console.print()
    for stage in summary.stages:
        console.print(
            f"Stage {stage.stage}: {progress_bar(stage.percentage, 30)} "
            f"{stage.percentage}% ({stage.completed}/{stage.total})"
        )
    console.print()

    if summary.start_date:
        console.print(f"[cyan]📅[/cyan] Started: {escape(str(summary.start_date)[:10])}")
    console.print(f"[magenta]⏱️[/magenta]  Total Study Time: {summary.total_hours} hours")

    days = summary.days_since_study
    if days is not None:
        if days <= 0:
            console.print("[green]🔥 Studying today! Keep it up![/green]")
        elif days == 1:
            console.print("[yellow]📚 Last studied yesterday[/yellow]")
        else:
            console.print(f"[red]⏰ Last studied {days} days ago[/red]")
    console.print()


def render_stats(console, stats):
    _heading(console, "📈 Learning Statistics")
    console.print(f"[cyan]📅[/cyan] Study Days: [bold]{stats.study_days}[/bold]")
    console.print(f"[blue]📊[/blue] Average Daily: [bold]{stats.average_daily_hours} hours[/bold]")
    console.print()

    console.print("[bold]Last 7 Days:[/bold]")
    console.print()
    for activity in stats.last_days:
        bar_length = min(round(activity.hours * 2), 20)
        bar = f"[green]{'█' * bar_length}[/green][bright_black]{'░' * (20 - bar_length)}[/bright_black]"
        label = activity.day.strftime("%a, %b %d")
        console.print(f"  {label}: {bar} {activity.hours}h")
    console.print()

    pace = stats.days_at_current_pace
    console.print("[bold]🎯 Completion Projection:[/bold]")
    console.print(f"  Remaining Tasks: [yellow]{stats.remaining_tasks}[/yellow]")
    console.print(f"  Estimated Hours: [yellow]{stats.remaining_hours}[/yellow]")
    console.print(f"  At Current Pace: [cyan]{pace if pace is not None else '∞'} days[/cyan]")
    console.print()

    if stats.streak > 0:
        plural = "s" if stats.streak > 1 else ""
        console.print(f"[magenta]🔥 Current Streak: {stats.streak} day{plural}![/magenta]")
    console.print()


def _render_checks(console, checks, verbose=True, names=True):
    for check in checks:
        icon = CHECK_ICONS[check.status]
        if not names:
            console.print(f"{icon} {escape(check.message)}")
            continue
        console.print(f"{icon} {escape(check.name)}")
        if verbose or check.status != CheckStatus.PASS:
            console.print(f"   {escape(check.message)}")
        console.print()


def render_health(console, report, verbose=False):
    _heading(console, "🔍 Health Check")
    _render_checks(console, report.checks, verbose=verbose)

    console.print(RULE)
    console.print()
    console.print("[bold]Summary:[/bold]")
    console.print(f"  [green]✅[/green] Pass: {report.pass_count}")
    console.print(f"  [yellow]⚠️[/yellow] Warning: {report.warning_count}")
    console.print(f"  [red]❌[/red] Fail: {report.fail_count}")
    console.print()

    if report.is_healthy:
        console.print("[green]🎉 All checks passed! Your learning plan is ready.[/green]")
    elif report.fail_count == 0:
        console.print("[yellow]⚠️  Plan is functional but has warnings. Review above.[/yellow]")
    else:
        console.print("[red]❌ Critical issues found. Run `fix` to auto-repair:[/red]")
        console.print(f"[cyan]   {COMMAND} fix[/cyan]")
    console.print()


def render_diagnosis(console, diagnosis):
    _heading(console, "🔬 Deep Diagnostics")

    console.print("[cyan]📊 Task Distribution:[/cyan]")
    for stage, count in diagnosis.stage_distribution:
        console.print(f"  Stage {stage}: {count} tasks")
    console.print()

    console.print("[cyan]🔗 Dependency Analysis:[/cyan]")
    if diagnosis.max_depth is None:
        console.print("  Maximum dependency depth: unavailable (circular dependencies)")
    else:
        console.print(f"  Maximum dependency depth: {diagnosis.max_depth}")
    console.print()

    if diagnosis.progress is not None:
        progress = diagnosis.progress
        console.print("[cyan]📈 Progress Statistics:[/cyan]")
        console.print(f"  Total study time: {progress['total_hours']} hours")
        console.print(f"  Study days: {progress['study_days']}")
        console.print(f"  Completed tasks: {progress['completed']}")
        console.print(f"  In-progress tasks: {progress['in_progress']}")
        console.print()

    console.print("[cyan]⏱️  Duration Analysis:[/cyan]")
    console.print(f"  Total estimated time: {diagnosis.total_estimated_hours} hours")
    console.print(f"  Average task duration: {diagnosis.average_task_hours} hours")
    console.print()

    console.print("[bold]💡 Recommendations:[/bold]")
    console.print()
    for recommendation in diagnosis.recommendations:
        console.print(f"[yellow]  ⚠️  {escape(recommendation)}[/yellow]")
    if not diagnosis.issues:
        console.print("[green]  ✅ No issues detected[/green]")
    for issue in diagnosis.issues:
        icon = "[yellow]⚠️[/yellow]" if issue.kind == "warning" else "[red]❌[/red]"
        console.print(f"  {icon} {escape(issue.message)}")
        if issue.tasks:
            console.print(f"     Tasks: {escape(', '.join(issue.tasks))}")
    console.print()


def render_verify_config(console, report):
    _heading(console, "✓ Configuration Verification")
    for check in report.checks:
        console.print(f"{CHECK_ICONS[check.status]} {escape(check.name)}")
        console.print(f"   {escape(check.message)}")
    console.print()


def render_verify_dependencies(console, report):
    _heading(console, "✓ Dependency Verification")
    _render_checks(console, report.checks, names=False)
    console.print()


DEPENDENCY_STATE_LABELS = {
    "missing": "[red]❌[/red]",
    "completed": "[green]✅[/green]",
    "in_progress": "[yellow]🔄[/yellow]",
    "pending": "[blue]⏳[/blue]",
}


def render_verify_task(console, task, states):
    _heading(console, f"✓ Task Verification: {escape(task.key)}")
    console.print(f"Name: {escape(str(task.name))}")
    console.print(f"Stage: {task.stage}")
    console.print(f"Week: {task.week}, Day: {task.day}")
    console.print(f"Duration: {escape(str(task.duration))}")
    console.print(f"Dependencies: {escape(', '.join(task.deps) or 'none')}")
    if states:
        console.print()
        console.print("[cyan]Dependency Status:[/cyan]")
        for state in states:
            icon = DEPENDENCY_STATE_LABELS[state.state]
            if state.state == "missing":
                console.print(f"  {icon} {escape(state.key)}: Not found")
            else:
                label = state.state.replace("_", " ")
                console.print(f"  {icon} {escape(state.key)}: {escape(str(state.name))} ({label})")
    console.print()


def render_fixes(console, fixes, dry_run=False):
    _heading(console, "🔧 Auto-Fix Issues")
    if dry_run:
        console.print("[yellow]🔍 DRY RUN - No changes will be made[/yellow]\n")

    if not fixes:
        console.print("[green]✅ No issues to fix[/green]")
        console.print()
        return

    console.print(f"[cyan]Found {len(fixes)} issue(s):[/cyan]\n")
    for index, fix in enumerate(fixes, start=1):
        console.print(f"{index}. [yellow]{escape(fix.issue)}[/yellow]")
        console.print(f"   Action: {escape(fix.action)}")
        console.print()

    if dry_run:
        console.print("[cyan]Run without --dry-run to apply fixes[/cyan]")
    elif any(fix.manual for fix in fixes):
        console.print("[yellow]⚠️  Some issues need manual repair[/yellow]")
    else:
        console.print("[green]✅ All issues fixed[/green]")
    console.print()


def render_init(console, steps, root):
    _heading(console, "🚀 Learning Plan Creator")
    for step in steps:
        try:
            label = step.path.relative_to(root).as_posix()
        except ValueError:
            label = str(step.path)
        if step.path.is_dir():
            label += "/"
        verb = "Created" if step.created else "Exists:"
        console.print(f"[green]✅[/green] {verb} {escape(label)}")

    console.print()
    console.print("[cyan]📋 Next steps:[/cyan]")
    console.print("  1. Edit data/config.json to define your tasks")
    console.print("  2. Review learning-plan.md for your plan overview")
    console.print(f"  3. Run: {COMMAND} check")
    console.print(f"  4. Start learning: ./scripts/launch.sh or {COMMAND} list")
    console.print()


def render_error(console, message, hint=None):
    console.print(f"[red]{escape(message)}[/red]")
    if hint:
        console.print(f"[cyan]{escape(hint)}[/cyan]")
