"""
Health checks, diagnostics and verification of a plan directory.

Findings are returned as data and never raised: a plan with missing
dependencies, cycles or a corrupted progress file still yields a complete
report.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from learnplan.config import (
    DEEP_CHAIN_DEPTH,
    HIGH_AVERAGE_HOURS,
    STUCK_TASK_DAYS,
)
from learnplan.domain.errors import MalformedJSONError, ProgressError
from learnplan.domain.progress import ProgressDocument, TaskStatus
from learnplan.services.store import read_json
from learnplan.utils.graph import (
    detect_cycles,
    detect_orphans,
    find_missing_dependencies,
    max_dependency_depth,
)


class CheckStatus(Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


@dataclass
class Check:
    name: str
    status: CheckStatus
    message: str

    @classmethod
    def outcome(cls, name, ok, ok_message, problem_message, problem=CheckStatus.FAIL):
        if ok:
            return cls(name, CheckStatus.PASS, ok_message)
        return cls(name, problem, problem_message)


@dataclass
class HealthReport:
    checks: List[Check] = field(default_factory=list)

    def _count(self, status):
        return sum(1 for check in self.checks if check.status == status)

    @property
    def pass_count(self) -> int:
        return self._count(CheckStatus.PASS)

    @property
    def warning_count(self) -> int:
        return self._count(CheckStatus.WARNING)

    @property
    def fail_count(self) -> int:
        return self._count(CheckStatus.FAIL)

    @property
    def is_healthy(self) -> bool:
        return self.fail_count == 0 and self.warning_count == 0


def check_file_structure(paths):
    checks = []
    required_files = [
        (paths.config_file, True),
        (paths.progress_file, False),
    ]
    for path, critical in required_files:
        exists = path.exists()
        if exists:
            checks.append(Check(f"File: {path.name}", CheckStatus.PASS, "Exists"))
        elif critical:
            checks.append(
                Check(f"File: {path.name}", CheckStatus.FAIL, "Missing critical file")
            )
        else:
            checks.append(
                Check(
                    f"File: {path.name}",
                    CheckStatus.WARNING,
                    "Will be created on first run",
                )
            )

    checks.append(
        Check.outcome(
            "Directory: data/",
            paths.data_dir.exists(),
            "Exists",
            "Will be created on first run",
            CheckStatus.WARNING,
        )
    )
    checks.append(
        Check.outcome(
            "Directory: scripts/",
            paths.scripts_dir.exists(),
            "Exists",
            "Optional - create for organization",
            CheckStatus.WARNING,
        )
    )
    return checks


def _is_positive_int(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_valid_task_record(record):
    if not isinstance(record, dict):
        return False
    return bool(
        record.get("name")
        and _is_positive_int(record.get("stage"))
        and "week" in record
        and record.get("week") is not None
        and record.get("duration")
    )


def check_config_format(paths):
    """Validate the raw definitions document field by field."""
    if not paths.config_file.exists():
        return []
    try:
        config = read_json(paths.config_file)
    except MalformedJSONError as e:
        return [Check("Config: JSON validity", CheckStatus.FAIL, f"Invalid JSON: {e.reason}")]
    if not isinstance(config, dict):
        return [
            Check("Config: JSON validity", CheckStatus.FAIL, "Top level must be an object")
        ]

    checks = []
    name = config.get("name")
    checks.append(
        Check.outcome(
            "Config: name field",
            bool(name),
            f'Found: "{name}"',
            "Missing - add a name for your plan",
            CheckStatus.WARNING,
        )
    )
    duration = config.get("duration")
    checks.append(
        Check.outcome(
            "Config: duration field",
            bool(duration),
            f"Found: {duration}",
            "Missing - add estimated duration",
            CheckStatus.WARNING,
        )
    )

    tasks = config.get("tasks")
    has_tasks = isinstance(tasks, dict) and len(tasks) > 0
    checks.append(
        Check.outcome(
            "Config: tasks field",
            has_tasks,
            f"Found: {len(tasks) if has_tasks else 0} tasks",
            "No tasks defined - add learning tasks",
        )
    )

    if isinstance(tasks, dict):
        invalid = [key for key, record in tasks.items() if not _is_valid_task_record(record)]
        checks.append(
            Check.outcome(
                "Tasks: format validation",
                not invalid,
                f"All {len(tasks)} tasks properly formatted",
                f"Invalid format in tasks: {', '.join(invalid)}",
            )
        )
    return checks


def check_dependencies(definitions):
    checks = []

    missing = find_missing_dependencies(definitions)
    checks.append(
        Check.outcome(
            "Dependencies: existence",
            not missing,
            "All dependencies reference existing tasks",
            f"{len(missing)} missing: "
            + ", ".join(f"{task}→{dep}" for task, dep in missing),
        )
    )

    cycles = detect_cycles(definitions)
    checks.append(
        Check.outcome(
            "Dependencies: circular check",
            not cycles,
            "No circular dependencies found",
            "Circular: " + "; ".join("→".join(cycle) for cycle in cycles),
        )
    )

    orphans = detect_orphans(definitions)
    checks.append(
        Check.outcome(
            "Dependencies: orphaned tasks",
            not orphans,
            "All tasks properly connected",
            f"Stage>1 without deps: {', '.join(orphans)}",
            CheckStatus.WARNING,
        )
    )
    return checks


def check_progress_integrity(definitions, paths):
    if not paths.progress_file.exists():
        return [
            Check(
                "Progress: data file",
                CheckStatus.WARNING,
                "No progress data yet - will be created on first use",
            )
        ]

    try:
        data = read_json(paths.progress_file)
    except MalformedJSONError as e:
        return [Check("Progress: JSON validity", CheckStatus.FAIL, f"Corrupted: {e.reason}")]
    if not isinstance(data, dict):
        return [Check("Progress: JSON validity", CheckStatus.FAIL, "Corrupted: not an object")]

    checks = []
    raw_tasks = data.get("tasks") if isinstance(data.get("tasks"), dict) else {}
    orphaned = [key for key in raw_tasks if key not in definitions]
    checks.append(
        Check.outcome(
            "Progress: orphaned entries",
            not orphaned,
            "All progress entries valid",
            f"{len(orphaned)} orphaned: {', '.join(orphaned)}",
            CheckStatus.WARNING,
        )
    )

    total = data.get("totalStudyTime")
    has_required = bool(data.get("startDate")) and (
        isinstance(total, (int, float)) and not isinstance(total, bool)
    )
    checks.append(
        Check.outcome(
            "Progress: data structure",
            has_required,
            "Valid structure",
            "Missing required fields",
        )
    )
    if not has_required:
        return checks

    try:
        document = ProgressDocument.from_dict(data)
    except ProgressError as e:
        checks.append(Check("Progress: record format", CheckStatus.FAIL, str(e)))
        return checks

    completed_minutes = document.completed_minutes()
    logged_minutes = document.logged_minutes()
    consistent = document.total_study_time == completed_minutes == logged_minutes
    checks.append(
        Check.outcome(
            "Progress: study time totals",
            consistent,
            f"Total study time matches completed tasks ({completed_minutes} min)",
            f"Total {document.total_study_time} min, completed tasks "
            f"{completed_minutes} min, daily log {logged_minutes} min",
            CheckStatus.WARNING,
        )
    )
    return checks


def health_check(plan, paths) -> HealthReport:
    """Run every check against a plan directory."""
    return HealthReport(
        check_file_structure(paths)
        + check_config_format(paths)
        + check_dependencies(plan.tasks)
        + check_progress_integrity(plan.tasks, paths)
    )


def verify_config(paths) -> HealthReport:
    """File layout and definitions format only."""
    return HealthReport(check_file_structure(paths) + check_config_format(paths))


def verify_dependencies(plan) -> HealthReport:
    return HealthReport(check_dependencies(plan.tasks))


@dataclass
class DependencyState:
    key: str
    name: Optional[str]
    state: str  # missing, completed, in_progress or pending


def verify_task(plan, task_key, document):
    """
    Status of every dependency of one task.

    Raises:
        TaskNotFoundError: If the plan does not define the task
    """
    task = plan.get_task(task_key)
    states = []
    for dep_key in task.deps:
        dep = plan.tasks.get(dep_key)
        if dep is None:
            states.append(DependencyState(dep_key, None, "missing"))
            continue
        status = document.status_of(dep_key)
        if status == TaskStatus.COMPLETED:
            state = "completed"
        elif status == TaskStatus.IN_PROGRESS:
            state = "in_progress"
        else:
            state = "pending"
        states.append(DependencyState(dep_key, dep.name, state))
    return states


@dataclass
class Issue:
    kind: str  # warning or error
    message: str
    tasks: List[str] = field(default_factory=list)


@dataclass
class Diagnosis:
    stage_distribution: List[Tuple[object, int]]
    cycles: List[List[str]]
    max_depth: Optional[int]
    total_estimated_hours: float
    average_task_hours: float
    progress: Optional[Dict[str, float]] = None
    issues: List[Issue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def find_stuck_tasks(document, now, days=STUCK_TASK_DAYS):
    """
    In-progress tasks started more than ``days`` ago.

    Returns:
        tuple: (stuck task keys, keys whose start timestamp could not be read)
    """
    stuck, unreadable = [], []
    for task_key, record in document.tasks.items():
        if not record.is_in_progress or not record.started_at:
            continue
        try:
            started = record.started_datetime()
        except ProgressError:
            unreadable.append(task_key)
            continue
        if (now - started).total_seconds() / 86400 > days:
            stuck.append(task_key)
    return stuck, unreadable


def diagnose(plan, document, now) -> Diagnosis:
    """
    Deep analysis of a plan and, when available, its progress document.

    Args:
        plan: The LearningPlan
        document: ProgressDocument, or None when no progress file exists
        now: Current aware datetime
    """
    definitions = plan.tasks
    distribution = [(stage, len(plan.tasks_in_stage(stage))) for stage in plan.stages()]

    cycles = detect_cycles(definitions)
    max_depth = None if cycles else max_dependency_depth(definitions)

    durations = [task.duration_hours for task in definitions.values()]
    total_hours = sum(durations)
    average_hours = total_hours / len(durations) if durations else 0.0

    diagnosis = Diagnosis(
        stage_distribution=distribution,
        cycles=cycles,
        max_depth=max_depth,
        total_estimated_hours=round(total_hours, 1),
        average_task_hours=round(average_hours, 1),
    )

    if cycles:
        diagnosis.issues.append(
            Issue(
                "error",
                f"{len(cycles)} circular dependency chain(s); depth not computed",
                sorted({key for cycle in cycles for key in cycle}),
            )
        )

    if document is not None:
        diagnosis.progress = {
            "total_hours": round(document.total_study_time / 60, 1),
            "study_days": len(document.daily_log),
            "completed": document.completed_count(),
            "in_progress": document.in_progress_count(),
        }
        stuck, unreadable = find_stuck_tasks(document, now)
        if stuck:
            diagnosis.issues.append(
                Issue(
                    "warning",
                    f"{len(stuck)} task(s) in progress for over {STUCK_TASK_DAYS} days",
                    stuck,
                )
            )
        if unreadable:
            diagnosis.issues.append(
                Issue("error", "Unreadable start timestamps", unreadable)
            )

    if average_hours > HIGH_AVERAGE_HOURS:
        diagnosis.recommendations.append(
            "Consider breaking down tasks - average duration is high"
        )
    if max_depth is not None and max_depth > DEEP_CHAIN_DEPTH:
        diagnosis.recommendations.append("Long dependency chains may slow progress")

    return diagnosis
