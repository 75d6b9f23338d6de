"""
Learning Plan Tracker
=====================

Tracks progress through a learning plan: a set of tasks with prerequisite
dependencies, started and completed one at a time from the command line.

Available modules:
- domain: task definitions, progress records and errors
- services: storage, task lifecycle, health checks, statistics, repair and scaffolding
- utils.graph: dependency graph analysis
- visualization: console rendering, network diagram and activity chart
"""

from learnplan.domain.errors import (
    LearnPlanError,
    ConfigNotFoundError,
    MalformedJSONError,
    TaskError,
    TaskNotFoundError,
    TaskAlreadyCompletedError,
    PrerequisitesNotMetError,
    ProgressError,
    StructuralDependencyError,
)
from learnplan.domain.task import TaskDefinition, LearningPlan
from learnplan.domain.progress import TaskStatus, TaskProgress, ProgressDocument
from learnplan.services.lifecycle import TaskLifecycle
from learnplan.services.store import JsonProgressStore, MemoryProgressStore, PlanStore

__version__ = "0.1.0"

__all__ = [
    "LearnPlanError",
    "ConfigNotFoundError",
    "MalformedJSONError",
    "TaskError",
    "TaskNotFoundError",
    "TaskAlreadyCompletedError",
    "PrerequisitesNotMetError",
    "ProgressError",
    "StructuralDependencyError",
    "TaskDefinition",
    "LearningPlan",
    "TaskStatus",
    "TaskProgress",
    "ProgressDocument",
    "TaskLifecycle",
    "JsonProgressStore",
    "MemoryProgressStore",
    "PlanStore",
]
