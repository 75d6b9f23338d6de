import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from learnplan.config import DEFAULT_TASK_MINUTES


def to_hours(minutes) -> float:
    """Minutes as hours rounded to one decimal."""
    return round(minutes / 60, 1)


@dataclass
class StageProgress:
    stage: object
    completed: int
    total: int

    @property
    def percentage(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 0


@dataclass
class ProgressSummary:
    total: int
    completed: int
    in_progress: int
    stages: List[StageProgress] = field(default_factory=list)
    total_hours: float = 0.0
    start_date: Optional[str] = None
    days_since_study: Optional[int] = None

    @property
    def remaining(self) -> int:
        return self.total - self.completed - self.in_progress

    @property
    def percentage(self) -> int:
        return round(self.completed / self.total * 100) if self.total else 0


def days_since(day_text, today: date) -> Optional[int]:
    if not day_text:
        return None
    try:
        last = date.fromisoformat(str(day_text)[:10])
    except ValueError:
        return None
    return (today - last).days


def progress_summary(plan, document, today: date) -> ProgressSummary:
    """
    Overall and per-stage completion figures for the dashboard.

    Completed and in-progress counts come from the progress document, so
    entries for tasks no longer in the plan still count until ``fix`` removes
    them.
    """
    stages = []
    for stage in plan.stages():
        stage_tasks = plan.tasks_in_stage(stage)
        done = sum(1 for task in stage_tasks if document.is_completed(task.key))
        stages.append(StageProgress(stage, done, len(stage_tasks)))

    return ProgressSummary(
        total=len(plan),
        completed=document.completed_count(),
        in_progress=document.in_progress_count(),
        stages=stages,
        total_hours=to_hours(document.total_study_time),
        start_date=document.start_date,
        days_since_study=days_since(document.last_study_date, today),
    )


@dataclass
class DayActivity:
    day: date
    minutes: float

    @property
    def hours(self) -> float:
        return to_hours(self.minutes)


@dataclass
class StudyStats:
    study_days: int
    average_daily_hours: float
    last_days: List[DayActivity]
    remaining_tasks: int
    remaining_hours: int
    days_at_current_pace: Optional[int]
    streak: int


def recent_activity(document, today: date, days: int = 7) -> List[DayActivity]:
    """Minutes logged per day for the last ``days`` days, oldest first."""
    activity = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        entry = document.daily_log.get(day.isoformat())
        activity.append(DayActivity(day, entry.minutes if entry else 0))
    return activity


def current_streak(document, today: date) -> int:
    """
    Consecutive logged study days ending at the latest logged day.

    The streak is only alive when today or yesterday has a log entry.
    Days after today are ignored.
    """
    logged = set()
    for day_text in document.daily_log:
        try:
            day = date.fromisoformat(day_text)
        except ValueError:
            continue
        if day <= today:
            logged.add(day)
    yesterday = today - timedelta(days=1)
    if today not in logged and yesterday not in logged:
        return 0

    ordered = sorted(logged)
    streak = 1
    for newer, older in zip(reversed(ordered), reversed(ordered[:-1])):
        if (newer - older).days == 1:
            streak += 1
        else:
            break
    return streak


def study_stats(plan, document, today: date) -> StudyStats:
    study_days = len(document.daily_log)
    average_daily = (
        round(document.total_study_time / study_days / 60, 1) if study_days else 0
    )

    remaining_tasks = len(plan) - document.completed_count()
    remaining_minutes = remaining_tasks * DEFAULT_TASK_MINUTES
    days_at_pace = (
        math.ceil((remaining_minutes / 60) / average_daily) if average_daily > 0 else None
    )

    return StudyStats(
        study_days=study_days,
        average_daily_hours=average_daily,
        last_days=recent_activity(document, today),
        remaining_tasks=remaining_tasks,
        remaining_hours=round(remaining_minutes / 60),
        days_at_current_pace=days_at_pace,
        streak=current_streak(document, today),
    )
