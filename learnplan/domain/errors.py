from typing import List, Optional, Tuple


class LearnPlanError(Exception):
    """Base class for all learning plan errors."""

    pass


class ConfigNotFoundError(LearnPlanError):
    """Exception raised when the plan definitions document does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"No learning plan found at {path}")


class MalformedJSONError(LearnPlanError):
    """Exception raised when a plan or progress document cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid JSON in {path}: {reason}")


class TaskError(LearnPlanError):
    """Exception raised for invalid task definition values."""

    pass


class TaskNotFoundError(TaskError):
    """Exception raised when a task key has no definition in the plan."""

    def __init__(self, task_key: str):
        self.task_key = task_key
        super().__init__(f"Task {task_key} not found")


class TaskAlreadyCompletedError(TaskError):
    """Exception raised when starting a task that is already completed."""

    def __init__(self, task_key: str):
        self.task_key = task_key
        super().__init__(f"Cannot start task {task_key} as it is already completed")


class PrerequisitesNotMetError(LearnPlanError):
    """
    Exception raised when a task is started before its dependencies are completed.

    Attributes:
        task_key: The task that could not be started
        blocking: Ordered (dependency key, dependency name) pairs still open
    """

    def __init__(self, task_key: str, blocking: List[Tuple[str, str]]):
        self.task_key = task_key
        self.blocking = list(blocking)
        keys = ", ".join(key for key, _ in self.blocking)
        super().__init__(f"Prerequisites not met for task {task_key}: {keys}")


class ProgressError(LearnPlanError):
    """Exception raised for invalid values in the progress document."""

    pass


class StructuralDependencyError(LearnPlanError):
    """Exception raised for missing dependency references or dependency cycles."""

    def __init__(self, message: str, path: Optional[List[str]] = None):
        self.path = list(path) if path else []
        super().__init__(message)
