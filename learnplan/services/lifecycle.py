import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from learnplan.config import MILESTONE_INTERVAL
from learnplan.domain.errors import PrerequisitesNotMetError, TaskAlreadyCompletedError
from learnplan.domain.progress import TaskProgress, TaskStatus, format_timestamp
from learnplan.utils.graph import unmet_dependencies

logger = logging.getLogger("learnplan.lifecycle")


@dataclass
class StartResult:
    task_key: str
    task_name: str
    # Task that was recorded as current before this start, if it was another one
    paused_task: Optional[str] = None


@dataclass
class CompleteResult:
    task_key: str
    task_name: str
    duration_minutes: int
    total_study_time: float
    completed_count: int
    milestone: Optional[int] = None


def elapsed_minutes(started: datetime, finished: datetime) -> int:
    """Whole minutes between two moments, rounding halves up. Negative spans stay negative."""
    return math.floor((finished - started).total_seconds() / 60 + 0.5)


def is_milestone(completed_count: int) -> bool:
    return completed_count == 1 or (
        completed_count > 0 and completed_count % MILESTONE_INTERVAL == 0
    )


class TaskLifecycle:
    """
    Applies start/complete transitions to the progress document.

    Each call is one read-modify-write against the injected store: the
    document is loaded, changed in memory and saved once. Any error raised
    before the save leaves the stored document untouched.
    """

    def __init__(self, plan, store, clock=None):
        """
        Args:
            plan: The LearningPlan holding the task definitions
            store: A ProgressStore used to load and save progress
            clock: Callable returning the current aware datetime (local time)
        """
        self.plan = plan
        self.store = store
        self.clock = clock or (lambda: datetime.now().astimezone())

    def start(self, task_key: str) -> StartResult:
        """
        Mark a task as in progress.

        Raises:
            TaskNotFoundError: If the plan does not define the task
            TaskAlreadyCompletedError: If the task is already completed
            PrerequisitesNotMetError: If a dependency is not completed yet
        """
        task = self.plan.get_task(task_key)
        document = self.store.load()

        if document.is_completed(task_key):
            raise TaskAlreadyCompletedError(task_key)

        blocking = unmet_dependencies(task_key, self.plan.tasks, document.tasks)
        if blocking:
            raise PrerequisitesNotMetError(
                task_key, [(dep, self.plan.task_name(dep)) for dep in blocking]
            )

        paused_task = None
        if document.current_task and document.current_task != task_key:
            paused_task = document.current_task
            logger.info("Previous task %s was in progress", paused_task)

        now = self.clock()
        record = document.tasks.get(task_key) or TaskProgress()
        record.status = TaskStatus.IN_PROGRESS
        record.started_at = format_timestamp(now)
        document.tasks[task_key] = record
        document.current_task = task_key
        document.day_entry(now.date()).tasks_started.append(task_key)

        self.store.save(document)
        logger.info("Started task %s", task_key)
        return StartResult(task_key, task.name or task_key, paused_task)

    def complete(self, task_key: str) -> CompleteResult:
        """
        Mark a task as completed and log the time spent on it.

        Dependencies are not checked. The duration is the time since the task
        was started, or 0 when it never was.

        Raises:
            TaskNotFoundError: If the plan does not define the task
            ProgressError: If the stored start timestamp cannot be parsed
        """
        task = self.plan.get_task(task_key)
        document = self.store.load()

        now = self.clock()
        record = document.tasks.get(task_key) or TaskProgress()
        started = record.started_datetime()
        duration = elapsed_minutes(started, now) if started else 0

        record.status = TaskStatus.COMPLETED
        record.completed_at = format_timestamp(now)
        record.duration_minutes = duration
        document.tasks[task_key] = record

        if document.current_task == task_key:
            document.current_task = None

        document.total_study_time += duration

        today = now.date()
        entry = document.day_entry(today)
        entry.tasks_completed.append(task_key)
        entry.minutes += duration
        document.last_study_date = today.isoformat()

        self.store.save(document)

        completed_count = document.completed_count()
        logger.info("Completed task %s in %d minutes", task_key, duration)
        return CompleteResult(
            task_key=task_key,
            task_name=task.name or task_key,
            duration_minutes=duration,
            total_study_time=document.total_study_time,
            completed_count=completed_count,
            milestone=completed_count if is_milestone(completed_count) else None,
        )
