import tempfile
import unittest
from datetime import datetime, timedelta, timezone

from learnplan.config import resolve_paths
from learnplan.domain.progress import ProgressDocument, TaskProgress, TaskStatus
from learnplan.domain.task import LearningPlan
from learnplan.services.health import (
    CheckStatus,
    check_config_format,
    check_dependencies,
    check_progress_integrity,
    diagnose,
    find_stuck_tasks,
    health_check,
    verify_task,
)
from learnplan.services.store import write_json

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

CONFIG = {
    "name": "Health plan",
    "duration": "2 weeks",
    "tasks": {
        "1.1": {"name": "One", "stage": 1, "week": 1, "day": 1, "duration": "2h", "deps": []},
        "1.2": {"name": "Two", "stage": 1, "week": 1, "day": 2, "duration": "90m", "deps": ["1.1"]},
        "2.1": {"name": "Three", "stage": 2, "week": 2, "day": 1, "duration": "1h", "deps": ["1.2"]},
    },
}


def by_name(checks):
    return {check.name: check for check in checks}


class HealthCheckTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.paths = resolve_paths(self.tmp.name)
        write_json(self.paths.config_file, CONFIG)
        self.plan = LearningPlan.from_dict(CONFIG)

    def tearDown(self):
        self.tmp.cleanup()

    def write_progress(self, document):
        write_json(self.paths.progress_file, document)

    def test_fresh_plan_without_progress(self):
        report = health_check(self.plan, self.paths)
        checks = by_name(report.checks)

        self.assertEqual(checks["File: config.json"].status, CheckStatus.PASS)
        self.assertEqual(checks["File: progress.json"].status, CheckStatus.WARNING)
        self.assertEqual(checks["Progress: data file"].status, CheckStatus.WARNING)
        self.assertEqual(report.fail_count, 0)
        self.assertFalse(report.is_healthy)

    def test_healthy_plan(self):
        self.paths.scripts_dir.mkdir()
        self.write_progress(
            {
                "startDate": "2026-03-01T08:00:00.000Z",
                "tasks": {"1.1": {"status": "completed", "durationMinutes": 30}},
                "dailyLog": {"2026-03-01": {"tasksStarted": [], "tasksCompleted": ["1.1"], "minutes": 30}},
                "totalStudyTime": 30,
                "currentTask": None,
                "lastStudyDate": "2026-03-01",
            }
        )
        report = health_check(self.plan, self.paths)
        self.assertTrue(report.is_healthy, [c for c in report.checks if c.status != CheckStatus.PASS])

    def test_corrupted_progress_is_a_failed_check(self):
        self.paths.progress_file.write_text("{oops", encoding="utf-8")
        checks = by_name(check_progress_integrity(self.plan.tasks, self.paths))
        self.assertEqual(checks["Progress: JSON validity"].status, CheckStatus.FAIL)

    def test_orphaned_progress_entries_warn(self):
        self.write_progress(
            {
                "startDate": "2026-03-01T08:00:00.000Z",
                "tasks": {"9.9": {"status": "in_progress"}},
                "totalStudyTime": 0,
            }
        )
        checks = by_name(check_progress_integrity(self.plan.tasks, self.paths))
        orphaned = checks["Progress: orphaned entries"]
        self.assertEqual(orphaned.status, CheckStatus.WARNING)
        self.assertIn("9.9", orphaned.message)

    def test_missing_required_fields_fail(self):
        self.write_progress({"tasks": {}})
        checks = by_name(check_progress_integrity(self.plan.tasks, self.paths))
        self.assertEqual(checks["Progress: data structure"].status, CheckStatus.FAIL)

    def test_inconsistent_totals_warn(self):
        self.write_progress(
            {
                "startDate": "2026-03-01T08:00:00.000Z",
                "tasks": {"1.1": {"status": "completed", "durationMinutes": 30}},
                "totalStudyTime": 45,
            }
        )
        checks = by_name(check_progress_integrity(self.plan.tasks, self.paths))
        self.assertEqual(checks["Progress: study time totals"].status, CheckStatus.WARNING)

    def test_unknown_status_fails_record_format(self):
        self.write_progress(
            {
                "startDate": "2026-03-01T08:00:00.000Z",
                "tasks": {"1.1": {"status": "paused"}},
                "totalStudyTime": 0,
            }
        )
        checks = by_name(check_progress_integrity(self.plan.tasks, self.paths))
        self.assertEqual(checks["Progress: record format"].status, CheckStatus.FAIL)


class ConfigFormatTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.paths = resolve_paths(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_missing_config_has_no_format_checks(self):
        self.assertEqual(check_config_format(self.paths), [])

    def test_invalid_json(self):
        self.paths.data_dir.mkdir()
        self.paths.config_file.write_text("{", encoding="utf-8")
        checks = check_config_format(self.paths)
        self.assertEqual([c.name for c in checks], ["Config: JSON validity"])
        self.assertEqual(checks[0].status, CheckStatus.FAIL)

    def test_field_checks(self):
        write_json(
            self.paths.config_file,
            {"tasks": {"1.1": {"name": "No stage", "week": 1, "duration": "1h"}}},
        )
        checks = by_name(check_config_format(self.paths))
        self.assertEqual(checks["Config: name field"].status, CheckStatus.WARNING)
        self.assertEqual(checks["Config: duration field"].status, CheckStatus.WARNING)
        self.assertEqual(checks["Config: tasks field"].status, CheckStatus.PASS)
        self.assertEqual(checks["Tasks: format validation"].status, CheckStatus.FAIL)
        self.assertIn("1.1", checks["Tasks: format validation"].message)

    def test_stage_must_be_a_positive_integer(self):
        write_json(
            self.paths.config_file,
            {
                "name": "Stages",
                "duration": "1w",
                "tasks": {
                    "1.1": {"name": "Good", "stage": 1, "week": 1, "duration": "1h"},
                    "1.2": {"name": "Text", "stage": "2", "week": 1, "duration": "1h"},
                    "1.3": {"name": "Zero", "stage": 0, "week": 1, "duration": "1h"},
                    "1.4": {"name": "Flag", "stage": True, "week": 1, "duration": "1h"},
                },
            },
        )
        check = by_name(check_config_format(self.paths))["Tasks: format validation"]
        self.assertEqual(check.status, CheckStatus.FAIL)
        for key in ("1.2", "1.3", "1.4"):
            self.assertIn(key, check.message)
        self.assertNotIn("1.1", check.message)

    def test_no_tasks_fails(self):
        write_json(self.paths.config_file, {"name": "Empty", "duration": "1w", "tasks": {}})
        checks = by_name(check_config_format(self.paths))
        self.assertEqual(checks["Config: tasks field"].status, CheckStatus.FAIL)


class DependencyChecksTestCase(unittest.TestCase):
    def test_broken_dependencies(self):
        plan = LearningPlan.from_dict(
            {
                "tasks": {
                    "A": {"stage": 1, "deps": ["B"]},
                    "B": {"stage": 1, "deps": ["A"]},
                    "C": {"stage": 1, "deps": ["ghost"]},
                    "D": {"stage": 3, "deps": []},
                }
            }
        )
        checks = by_name(check_dependencies(plan.tasks))

        self.assertEqual(checks["Dependencies: existence"].status, CheckStatus.FAIL)
        self.assertIn("C→ghost", checks["Dependencies: existence"].message)
        self.assertEqual(checks["Dependencies: circular check"].status, CheckStatus.FAIL)
        self.assertIn("A→B→A", checks["Dependencies: circular check"].message)
        self.assertEqual(checks["Dependencies: orphaned tasks"].status, CheckStatus.WARNING)
        self.assertIn("D", checks["Dependencies: orphaned tasks"].message)


class VerifyTaskTestCase(unittest.TestCase):
    def test_dependency_states(self):
        plan = LearningPlan.from_dict(
            {
                "tasks": {
                    "A": {"name": "Alpha", "deps": []},
                    "B": {"name": "Beta", "deps": []},
                    "C": {"name": "Gamma", "deps": []},
                    "D": {"name": "Delta", "deps": ["A", "B", "C", "ghost"]},
                }
            }
        )
        document = ProgressDocument(
            tasks={
                "A": TaskProgress(status=TaskStatus.COMPLETED),
                "B": TaskProgress(status=TaskStatus.IN_PROGRESS),
            }
        )
        states = verify_task(plan, "D", document)
        self.assertEqual(
            [(s.key, s.state) for s in states],
            [("A", "completed"), ("B", "in_progress"), ("C", "pending"), ("ghost", "missing")],
        )


class DiagnoseTestCase(unittest.TestCase):
    def setUp(self):
        self.plan = LearningPlan.from_dict(CONFIG)

    def test_distribution_depth_and_durations(self):
        diagnosis = diagnose(self.plan, None, NOW)
        self.assertEqual(diagnosis.stage_distribution, [(1, 2), (2, 1)])
        self.assertEqual(diagnosis.max_depth, 2)
        self.assertEqual(diagnosis.total_estimated_hours, 4.5)
        self.assertEqual(diagnosis.average_task_hours, 1.5)
        self.assertIsNone(diagnosis.progress)
        self.assertEqual(diagnosis.issues, [])

    def test_cycles_skip_depth(self):
        plan = LearningPlan.from_dict(
            {"tasks": {"A": {"stage": 1, "deps": ["B"]}, "B": {"stage": 1, "deps": ["A"]}}}
        )
        diagnosis = diagnose(plan, None, NOW)
        self.assertIsNone(diagnosis.max_depth)
        self.assertEqual(diagnosis.issues[0].kind, "error")
        self.assertEqual(diagnosis.issues[0].tasks, ["A", "B"])

    def test_stuck_tasks(self):
        document = ProgressDocument(
            tasks={
                "1.1": TaskProgress(
                    status=TaskStatus.IN_PROGRESS,
                    started_at=(NOW - timedelta(days=8)).isoformat(),
                ),
                "1.2": TaskProgress(
                    status=TaskStatus.IN_PROGRESS,
                    started_at=(NOW - timedelta(days=2)).isoformat(),
                ),
                "2.1": TaskProgress(status=TaskStatus.IN_PROGRESS, started_at="garbage"),
            }
        )
        self.assertEqual(find_stuck_tasks(document, NOW), (["1.1"], ["2.1"]))

        diagnosis = diagnose(self.plan, document, NOW)
        self.assertEqual(diagnosis.progress["in_progress"], 3)
        kinds = {issue.kind: issue.tasks for issue in diagnosis.issues}
        self.assertEqual(kinds["warning"], ["1.1"])
        self.assertEqual(kinds["error"], ["2.1"])

    def test_mixed_stage_labels(self):
        plan = LearningPlan.from_dict(
            {
                "tasks": {
                    "A": {"stage": 1, "deps": []},
                    "B": {"stage": "2", "deps": ["A"]},
                }
            }
        )
        diagnosis = diagnose(plan, None, NOW)
        self.assertEqual(diagnosis.stage_distribution, [(1, 1), ("2", 1)])
        self.assertEqual(diagnosis.max_depth, 1)

    def test_recommendations(self):
        plan = LearningPlan.from_dict(
            {"tasks": {"A": {"stage": 1, "duration": "5h", "deps": []}}}
        )
        diagnosis = diagnose(plan, None, NOW)
        self.assertEqual(
            diagnosis.recommendations,
            ["Consider breaking down tasks - average duration is high"],
        )


if __name__ == "__main__":
    unittest.main()
