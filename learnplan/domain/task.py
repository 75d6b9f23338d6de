import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from learnplan.domain.errors import TaskError, TaskNotFoundError


DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(h|m)?", re.IGNORECASE)


def parse_duration_hours(duration: Optional[str]) -> float:
    """
    Parse a task duration string such as "2h", "90m" or "1.5" into hours.

    The first number found is used; the unit defaults to hours. Strings with
    no number parse as 0.

    Args:
        duration: Duration string from the plan definitions

    Returns:
        float: Duration in hours
    """
    if not duration:
        return 0.0
    match = DURATION_PATTERN.search(str(duration))
    if not match:
        return 0.0
    value = float(match.group(1))
    unit = (match.group(2) or "h").lower()
    return value / 60 if unit == "m" else value


@dataclass(frozen=True)
class TaskDefinition:
    """
    Static metadata of one learning task, as declared in the plan definitions.

    Definitions are immutable once loaded. Missing attributes are kept as None
    so that the health checks can report them instead of failing the load.
    """

    key: str
    name: Optional[str] = None
    stage: Optional[int] = None
    week: Optional[Any] = None
    day: Optional[Any] = None
    duration: Optional[str] = None
    deps: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.key is None or str(self.key).strip() == "":
            raise TaskError("Task key cannot be None or empty")
        if not isinstance(self.deps, tuple):
            raise TaskError(f"Dependencies of task {self.key} must be a tuple")

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "TaskDefinition":
        """
        Build a definition from its JSON record.

        Raises:
            TaskError: If the record is not an object or deps is not a list
        """
        if not isinstance(data, dict):
            raise TaskError(f"Task {key} must be a JSON object")
        deps = data.get("deps") or []
        if not isinstance(deps, list):
            raise TaskError(f"Dependencies of task {key} must be a list")
        return cls(
            key=str(key),
            name=data.get("name"),
            stage=data.get("stage"),
            week=data.get("week"),
            day=data.get("day"),
            duration=data.get("duration"),
            deps=tuple(str(dep) for dep in deps),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "stage": self.stage,
            "week": self.week,
            "day": self.day,
            "duration": self.duration,
            "deps": list(self.deps),
        }

    @property
    def duration_hours(self) -> float:
        return parse_duration_hours(self.duration)

    def has_dependencies(self) -> bool:
        return len(self.deps) > 0


def _stage_sort_key(stage):
    if isinstance(stage, (int, float)) and not isinstance(stage, bool):
        return (0, stage, "")
    return (1, 0, str(stage))


@dataclass
class LearningPlan:
    """
    The plan definitions document: descriptive header plus the task mapping.

    Tasks keep the insertion order of the source document, which is the
    order used for listings and recommendations.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[str] = None
    created: Optional[str] = None
    tasks: Dict[str, TaskDefinition] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearningPlan":
        if not isinstance(data, dict):
            raise TaskError("Plan definitions must be a JSON object")
        raw_tasks = data.get("tasks") or {}
        if not isinstance(raw_tasks, dict):
            raise TaskError("Plan tasks must be a JSON object keyed by task id")
        tasks = {
            str(key): TaskDefinition.from_dict(key, record)
            for key, record in raw_tasks.items()
        }
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            duration=data.get("duration"),
            level=data.get("level"),
            created=data.get("created"),
            tasks=tasks,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "level": self.level,
            "created": self.created,
            "tasks": {key: task.to_dict() for key, task in self.tasks.items()},
        }

    def __contains__(self, task_key) -> bool:
        return task_key in self.tasks

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[str]:
        return iter(self.tasks)

    def get_task(self, task_key: str) -> TaskDefinition:
        """
        Look up a task definition.

        Raises:
            TaskNotFoundError: If the plan does not define the key
        """
        try:
            return self.tasks[task_key]
        except KeyError:
            raise TaskNotFoundError(task_key) from None

    def task_name(self, task_key: str, default: str = "Unknown") -> str:
        task = self.tasks.get(task_key)
        if task is None or not task.name:
            return default
        return task.name

    def stages(self) -> List[Any]:
        """
        Distinct stage labels; tasks without a stage are skipped.

        Numeric stages come first in ascending order, followed by any other
        labels ordered by their text.
        """
        stages = []
        for task in self.tasks.values():
            if task.stage is not None and task.stage not in stages:
                stages.append(task.stage)
        return sorted(stages, key=_stage_sort_key)

    def tasks_in_stage(self, stage) -> List[TaskDefinition]:
        return [task for task in self.tasks.values() if task.stage == stage]
