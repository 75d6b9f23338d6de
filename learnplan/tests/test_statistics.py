import unittest
from datetime import date

from learnplan.domain.progress import DailyLogEntry, ProgressDocument, TaskProgress, TaskStatus
from learnplan.domain.task import LearningPlan
from learnplan.services.statistics import (
    current_streak,
    days_since,
    progress_summary,
    recent_activity,
    study_stats,
)

TODAY = date(2026, 3, 10)


def make_plan():
    return LearningPlan.from_dict(
        {
            "tasks": {
                "1.1": {"name": "One", "stage": 1, "deps": []},
                "1.2": {"name": "Two", "stage": 1, "deps": ["1.1"]},
                "2.1": {"name": "Three", "stage": 2, "deps": ["1.2"]},
                "2.2": {"name": "Four", "stage": 2, "deps": ["1.2"]},
            }
        }
    )


def log(*days, minutes=60):
    return {day: DailyLogEntry(minutes=minutes) for day in days}


class ProgressSummaryTestCase(unittest.TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.document = ProgressDocument(
            start_date="2026-03-01T08:00:00.000Z",
            tasks={
                "1.1": TaskProgress(status=TaskStatus.COMPLETED, duration_minutes=90),
                "1.2": TaskProgress(status=TaskStatus.IN_PROGRESS),
            },
            total_study_time=90,
            last_study_date="2026-03-08",
        )

    def test_counts_and_percentages(self):
        summary = progress_summary(self.plan, self.document, TODAY)
        self.assertEqual(summary.total, 4)
        self.assertEqual(summary.completed, 1)
        self.assertEqual(summary.in_progress, 1)
        self.assertEqual(summary.remaining, 2)
        self.assertEqual(summary.percentage, 25)
        self.assertEqual(summary.total_hours, 1.5)
        self.assertEqual(summary.days_since_study, 2)

    def test_stage_breakdown(self):
        summary = progress_summary(self.plan, self.document, TODAY)
        self.assertEqual(
            [(s.stage, s.completed, s.total, s.percentage) for s in summary.stages],
            [(1, 1, 2, 50), (2, 0, 2, 0)],
        )

    def test_empty_plan(self):
        summary = progress_summary(LearningPlan(), ProgressDocument(), TODAY)
        self.assertEqual(summary.percentage, 0)
        self.assertIsNone(summary.days_since_study)

    def test_days_since(self):
        self.assertEqual(days_since("2026-03-10", TODAY), 0)
        self.assertIsNone(days_since("not a date", TODAY))
        self.assertIsNone(days_since(None, TODAY))


class StreakTestCase(unittest.TestCase):
    def test_no_log(self):
        self.assertEqual(current_streak(ProgressDocument(), TODAY), 0)

    def test_streak_ending_today(self):
        document = ProgressDocument(daily_log=log("2026-03-08", "2026-03-09", "2026-03-10"))
        self.assertEqual(current_streak(document, TODAY), 3)

    def test_streak_still_alive_from_yesterday(self):
        document = ProgressDocument(daily_log=log("2026-03-08", "2026-03-09"))
        self.assertEqual(current_streak(document, TODAY), 2)

    def test_streak_broken(self):
        document = ProgressDocument(daily_log=log("2026-03-07", "2026-03-08"))
        self.assertEqual(current_streak(document, TODAY), 0)

    def test_gap_stops_the_count(self):
        document = ProgressDocument(daily_log=log("2026-03-05", "2026-03-09", "2026-03-10"))
        self.assertEqual(current_streak(document, TODAY), 2)

    def test_future_days_ignored(self):
        document = ProgressDocument(daily_log=log("2026-03-09", "2026-03-10", "2026-03-20"))
        self.assertEqual(current_streak(document, TODAY), 2)

    def test_only_future_days(self):
        document = ProgressDocument(daily_log=log("2026-03-11", "2026-03-12"))
        self.assertEqual(current_streak(document, TODAY), 0)


class StudyStatsTestCase(unittest.TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.document = ProgressDocument(
            tasks={"1.1": TaskProgress(status=TaskStatus.COMPLETED, duration_minutes=120)},
            daily_log={
                "2026-03-09": DailyLogEntry(minutes=60),
                "2026-03-10": DailyLogEntry(minutes=60),
            },
            total_study_time=120,
        )

    def test_recent_activity_oldest_first(self):
        activity = recent_activity(self.document, TODAY)
        self.assertEqual(len(activity), 7)
        self.assertEqual(activity[0].day, date(2026, 3, 4))
        self.assertEqual(activity[-1].day, TODAY)
        self.assertEqual([a.hours for a in activity[-2:]], [1.0, 1.0])
        self.assertEqual(activity[0].minutes, 0)

    def test_projection(self):
        stats = study_stats(self.plan, self.document, TODAY)
        self.assertEqual(stats.study_days, 2)
        self.assertEqual(stats.average_daily_hours, 1.0)
        self.assertEqual(stats.remaining_tasks, 3)
        self.assertEqual(stats.remaining_hours, 6)
        self.assertEqual(stats.days_at_current_pace, 6)
        self.assertEqual(stats.streak, 2)

    def test_no_study_yet_has_no_projection(self):
        stats = study_stats(self.plan, ProgressDocument(), TODAY)
        self.assertEqual(stats.average_daily_hours, 0)
        self.assertIsNone(stats.days_at_current_pace)
        self.assertEqual(stats.streak, 0)


if __name__ == "__main__":
    unittest.main()
