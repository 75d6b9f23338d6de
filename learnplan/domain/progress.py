from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from learnplan.domain.errors import ProgressError


class TaskStatus(Enum):
    """
    Enum representing the possible status values of a task.

    NOT_STARTED is implicit: a task without a progress record is not started.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp written by this tool or by hand.

    A trailing "Z" is accepted. Naive values are taken as local time and the
    result is always timezone aware.

    Raises:
        ProgressError: If the value is not a valid timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ProgressError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ProgressError(f"Invalid timestamp: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def format_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds")


@dataclass
class TaskProgress:
    """
    Mutable progress record of one task.

    Timestamps are kept as the strings found in the document so that a load
    and save without changes leaves them untouched. Keys this tool does not
    know are carried in ``extra`` and written back.
    """

    status: TaskStatus = TaskStatus.NOT_STARTED
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_minutes: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    loaded_keys: FrozenSet[str] = field(default=frozenset(), repr=False, compare=False)

    KNOWN_KEYS = ("status", "startedAt", "completedAt", "durationMinutes")

    @classmethod
    def from_dict(cls, task_key: str, data: Dict[str, Any]) -> "TaskProgress":
        if not isinstance(data, dict):
            raise ProgressError(f"Progress record of task {task_key} must be an object")
        raw_status = data.get("status", TaskStatus.NOT_STARTED.value)
        try:
            status = TaskStatus(raw_status)
        except ValueError:
            valid_statuses = [s.value for s in TaskStatus]
            raise ProgressError(
                f"Invalid status for task {task_key}: {raw_status}. "
                f"Must be one of {valid_statuses}"
            ) from None
        return cls(
            status=status,
            started_at=data.get("startedAt"),
            completed_at=data.get("completedAt"),
            duration_minutes=data.get("durationMinutes"),
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
            loaded_keys=frozenset(k for k in data if k in cls.KNOWN_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Known keys are written when set or when they were present on load."""
        record = dict(self.extra)
        if self.status != TaskStatus.NOT_STARTED or "status" in self.loaded_keys:
            record["status"] = self.status.value
        for name, value in (
            ("startedAt", self.started_at),
            ("completedAt", self.completed_at),
            ("durationMinutes", self.duration_minutes),
        ):
            if value is not None or name in self.loaded_keys:
                record[name] = value
        return record

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_in_progress(self) -> bool:
        return self.status == TaskStatus.IN_PROGRESS

    def started_datetime(self) -> Optional[datetime]:
        if not self.started_at:
            return None
        return parse_timestamp(self.started_at)


@dataclass
class DailyLogEntry:
    """Tasks started and completed on one calendar day, plus minutes studied."""

    tasks_started: List[str] = field(default_factory=list)
    tasks_completed: List[str] = field(default_factory=list)
    minutes: float = 0

    @classmethod
    def from_dict(cls, day: str, data: Dict[str, Any]) -> "DailyLogEntry":
        if not isinstance(data, dict):
            raise ProgressError(f"Daily log entry for {day} must be an object")
        return cls(
            tasks_started=list(data.get("tasksStarted") or []),
            tasks_completed=list(data.get("tasksCompleted") or []),
            minutes=data.get("minutes") or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasksStarted": list(self.tasks_started),
            "tasksCompleted": list(self.tasks_completed),
            "minutes": self.minutes,
        }


@dataclass
class ProgressDocument:
    """
    Aggregate root of the progress data file.

    Invariant (checked by the health checks, not enforced here): total_study_time
    equals the summed duration of completed tasks and the daily log minutes.
    """

    start_date: Optional[str] = None
    tasks: Dict[str, TaskProgress] = field(default_factory=dict)
    daily_log: Dict[str, DailyLogEntry] = field(default_factory=dict)
    total_study_time: float = 0
    current_task: Optional[str] = None
    last_study_date: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    missing_keys: FrozenSet[str] = field(default=frozenset(), repr=False, compare=False)

    KNOWN_KEYS = (
        "startDate",
        "tasks",
        "dailyLog",
        "totalStudyTime",
        "currentTask",
        "lastStudyDate",
    )

    @classmethod
    def new(cls, now: datetime) -> "ProgressDocument":
        """Create the empty document written on first use."""
        return cls(start_date=format_timestamp(now))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressDocument":
        """
        Build a document from parsed JSON.

        Raises:
            ProgressError: If a section has the wrong shape or a status is unknown
        """
        if not isinstance(data, dict):
            raise ProgressError("Progress document must be a JSON object")
        raw_tasks = data.get("tasks") or {}
        raw_log = data.get("dailyLog") or {}
        if not isinstance(raw_tasks, dict):
            raise ProgressError("Progress 'tasks' must be an object keyed by task id")
        if not isinstance(raw_log, dict):
            raise ProgressError("Progress 'dailyLog' must be an object keyed by date")
        total = data.get("totalStudyTime", 0)
        if not isinstance(total, (int, float)) or isinstance(total, bool):
            raise ProgressError("Progress 'totalStudyTime' must be a number")
        return cls(
            start_date=data.get("startDate"),
            tasks={
                str(k): TaskProgress.from_dict(k, v) for k, v in raw_tasks.items()
            },
            daily_log={
                str(k): DailyLogEntry.from_dict(k, v) for k, v in raw_log.items()
            },
            total_study_time=total,
            current_task=data.get("currentTask"),
            last_study_date=data.get("lastStudyDate"),
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
            missing_keys=frozenset(k for k in cls.KNOWN_KEYS if k not in data),
        )

    def to_dict(self) -> Dict[str, Any]:
        document = {
            "startDate": self.start_date,
            "tasks": {key: record.to_dict() for key, record in self.tasks.items()},
            "dailyLog": {day: entry.to_dict() for day, entry in self.daily_log.items()},
            "totalStudyTime": self.total_study_time,
            "currentTask": self.current_task,
            "lastStudyDate": self.last_study_date,
        }
        # Sections absent on load stay absent until they hold data.
        for key in self.missing_keys:
            if document[key] in (None, {}, 0):
                del document[key]
        document.update(self.extra)
        return document

    def status_of(self, task_key: str) -> TaskStatus:
        record = self.tasks.get(task_key)
        return record.status if record else TaskStatus.NOT_STARTED

    def is_completed(self, task_key: str) -> bool:
        return self.status_of(task_key) == TaskStatus.COMPLETED

    def completed_keys(self) -> List[str]:
        return [k for k, record in self.tasks.items() if record.is_completed]

    def in_progress_keys(self) -> List[str]:
        return [k for k, record in self.tasks.items() if record.is_in_progress]

    def completed_count(self) -> int:
        return len(self.completed_keys())

    def in_progress_count(self) -> int:
        return len(self.in_progress_keys())

    def completed_minutes(self) -> float:
        return sum(
            record.duration_minutes or 0
            for record in self.tasks.values()
            if record.is_completed
        )

    def logged_minutes(self) -> float:
        return sum(entry.minutes for entry in self.daily_log.values())

    def day_entry(self, day: date) -> DailyLogEntry:
        """Return the daily log entry for a calendar day, creating it if absent."""
        key = day.isoformat()
        if key not in self.daily_log:
            self.daily_log[key] = DailyLogEntry()
        return self.daily_log[key]

    def orphaned_keys(self, defined_keys) -> List[str]:
        """Progress keys that have no task definition."""
        defined = set(defined_keys)
        return [key for key in self.tasks if key not in defined]
