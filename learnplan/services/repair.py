import logging
from dataclasses import dataclass
from typing import List

from learnplan.domain.errors import MalformedJSONError, ProgressError
from learnplan.services.store import JsonProgressStore

logger = logging.getLogger("learnplan.repair")


@dataclass
class Fix:
    issue: str
    action: str
    # Problems the pass can only report, such as a corrupted progress file
    manual: bool = False


def fix_issues(plan, paths, dry_run=False, clock=None) -> List[Fix]:
    """
    Reconcile the progress file with the plan.

    Creates a missing data directory and progress file and drops progress
    entries for tasks the plan no longer defines. Missing dependencies and
    cycles are left alone: they have to be fixed in the definitions. Running
    it twice makes no further change.

    Args:
        plan: The LearningPlan
        paths: PlanPaths of the plan directory
        dry_run: Report the fixes without writing anything
        clock: Optional callable returning the current datetime

    Returns:
        list: The fixes found (and applied unless dry_run)
    """
    fixes = []
    store = JsonProgressStore(paths.progress_file, clock=clock)

    if not paths.data_dir.exists():
        fixes.append(Fix("Missing data directory", f"mkdir -p {paths.data_dir}"))
        if not dry_run:
            paths.data_dir.mkdir(parents=True, exist_ok=True)

    if not store.exists():
        fixes.append(Fix("Missing progress.json", "Create initial progress file"))
        if not dry_run:
            store.ensure()

    if store.exists():
        try:
            document = store.load()
        except (MalformedJSONError, ProgressError) as e:
            fixes.append(
                Fix("Unreadable progress.json", f"Repair by hand: {e}", manual=True)
            )
            document = None
    else:
        document = None

    if document is not None:
        orphaned = document.orphaned_keys(plan.tasks)
        if orphaned:
            fixes.append(
                Fix(
                    f"{len(orphaned)} orphaned progress entries",
                    f"Remove entries for: {', '.join(orphaned)}",
                )
            )
            if not dry_run:
                for task_key in orphaned:
                    del document.tasks[task_key]
                store.save(document)

    for fix in fixes:
        logger.info("%s%s: %s", "[dry run] " if dry_run else "", fix.issue, fix.action)
    return fixes
