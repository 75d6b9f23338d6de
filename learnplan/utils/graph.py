import networkx as nx

from learnplan.domain.errors import StructuralDependencyError
from learnplan.domain.progress import TaskStatus


def _deps(definitions, task_key):
    task = definitions.get(task_key)
    if task is None:
        return ()
    return task.deps


def _is_completed(progress, task_key):
    record = progress.get(task_key)
    return record is not None and record.status == TaskStatus.COMPLETED


def build_dependency_graph(definitions, include_missing=False):
    """
    Build a directed graph with an edge dep -> task for every dependency.

    Dependencies that have no definition are skipped unless include_missing
    is set, in which case they become nodes flagged missing=True. Cycles are
    kept; use detect_cycles to report them.
    """
    G = nx.DiGraph()

    # Add task nodes
    for task_key, task in definitions.items():
        G.add_node(task_key, node_type="task", task=task, missing=False)

    # Add dependency edges
    for task_key, task in definitions.items():
        for dep_key in task.deps:
            if dep_key in definitions:
                G.add_edge(dep_key, task_key)
            elif include_missing:
                G.add_node(dep_key, node_type="task", task=None, missing=True)
                G.add_edge(dep_key, task_key)

    return G


def unmet_dependencies(task_key, definitions, progress):
    """Dependency keys of a task that are not completed, in declaration order."""
    return [dep for dep in _deps(definitions, task_key) if not _is_completed(progress, dep)]


def is_satisfied(task_key, definitions, progress):
    """
    Check whether every dependency of a task is completed.

    A task without dependencies (or without a definition) is always satisfied.
    Dependencies without a definition can never be completed.
    """
    return not unmet_dependencies(task_key, definitions, progress)


def available_tasks(definitions, progress):
    """Tasks that are not completed and whose dependencies are met, in plan order."""
    return [
        task_key
        for task_key in definitions
        if not _is_completed(progress, task_key)
        and is_satisfied(task_key, definitions, progress)
    ]


def find_missing_dependencies(definitions):
    """Every (task, missing_dep) pair; repeated references are all reported."""
    missing = []
    for task_key, task in definitions.items():
        for dep_key in task.deps:
            if dep_key not in definitions:
                missing.append((task_key, dep_key))
    return missing


_DONE = object()


def _find_cycle(definitions, start, visited):
    # Explicit stack of dependency iterators; no recursion.
    path = [start]
    on_path = {start: 0}
    stack = [iter(_deps(definitions, start))]
    visited.add(start)

    while stack:
        dep_key = next(stack[-1], _DONE)
        if dep_key is _DONE:
            stack.pop()
            del on_path[path.pop()]
            continue
        if dep_key in on_path:
            return path[on_path[dep_key]:] + [dep_key]
        if dep_key in visited:
            continue
        visited.add(dep_key)
        on_path[dep_key] = len(path)
        path.append(dep_key)
        stack.append(iter(_deps(definitions, dep_key)))
    return None


def detect_cycles(definitions):
    """
    Find circular dependencies with a depth-first walk from every task.

    Each walk keeps its own visited set and reports the first cycle it closes,
    as the path from the repeated key back to itself (["A", "B", "A"]).
    Results are de-duplicated by exact path, so the same cycle found from a
    different starting key is reported once per rotation.
    """
    cycles = []
    for task_key in definitions:
        cycle = _find_cycle(definitions, task_key, set())
        if cycle and cycle not in cycles:
            cycles.append(cycle)
    return cycles


def dependency_depth(task_key, definitions, memo=None):
    """
    Length of the longest dependency chain below a task.

    A task with no dependencies (or no definition) has depth 0. Pass the same
    memo dict to share results within one batch of calls. The walk is
    iterative, so chain length is not bounded by the recursion limit.

    Raises:
        StructuralDependencyError: If the walk re-enters a task on a cycle
    """
    if memo is None:
        memo = {}
    if task_key in memo:
        return memo[task_key]

    active = [task_key]
    on_active = {task_key: 0}
    stack = [iter(_deps(definitions, task_key))]

    while stack:
        dep_key = next(stack[-1], _DONE)
        if dep_key is _DONE:
            stack.pop()
            key = active.pop()
            del on_active[key]
            deps = _deps(definitions, key)
            memo[key] = 1 + max(memo[dep] for dep in deps) if deps else 0
            continue
        if dep_key in memo:
            continue
        if dep_key in on_active:
            cycle = active[on_active[dep_key]:] + [dep_key]
            raise StructuralDependencyError(
                f"Circular dependency: {' -> '.join(cycle)}", path=cycle
            )
        on_active[dep_key] = len(active)
        active.append(dep_key)
        stack.append(iter(_deps(definitions, dep_key)))

    return memo[task_key]


def max_dependency_depth(definitions):
    """Deepest dependency chain in the plan; 0 for an empty plan."""
    memo = {}
    return max(
        (dependency_depth(task_key, definitions, memo) for task_key in definitions),
        default=0,
    )


def detect_orphans(definitions):
    """Tasks past the first stage that declare no dependencies (a plan design smell)."""
    orphans = []
    for task_key, task in definitions.items():
        stage = task.stage
        if isinstance(stage, (int, float)) and not isinstance(stage, bool):
            if stage > 1 and not task.deps:
                orphans.append(task_key)
    return orphans
