"""
Tests of the console renderers and the matplotlib charts.
"""

import io
import tempfile
import unittest
from datetime import date
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from rich.console import Console

from learnplan.domain.progress import DailyLogEntry, ProgressDocument, TaskProgress, TaskStatus
from learnplan.domain.task import LearningPlan
from learnplan.services.health import Check, CheckStatus, HealthReport
from learnplan.services.statistics import study_stats
from learnplan.utils.graph import build_dependency_graph
from learnplan.visualization import console as view
from learnplan.visualization.activity import create_activity_chart
from learnplan.visualization.network import create_network_diagram, node_state


def make_plan():
    return LearningPlan.from_dict(
        {
            "name": "Charts",
            "tasks": {
                "A": {"name": "Alpha [intro]", "stage": 1, "week": 1, "day": 1, "duration": "1h", "deps": []},
                "B": {"name": "Beta", "stage": 1, "week": 1, "day": 2, "duration": "1h", "deps": ["A"]},
                "C": {"name": "Gamma", "stage": 2, "week": 2, "day": 1, "duration": "1h", "deps": ["B", "ghost"]},
                "D": {"name": "Delta", "stage": 2, "week": 2, "day": 2, "duration": "1h", "deps": []},
            },
        }
    )


def make_document():
    return ProgressDocument(
        tasks={
            "A": TaskProgress(
                status=TaskStatus.COMPLETED,
                completed_at="2026-03-09T10:00:00.000+00:00",
                duration_minutes=90,
            ),
            "B": TaskProgress(status=TaskStatus.IN_PROGRESS),
        },
        daily_log={"2026-03-09": DailyLogEntry(tasks_completed=["A"], minutes=90)},
        total_study_time=90,
    )


class ConsoleRenderingTestCase(unittest.TestCase):
    def setUp(self):
        self.buffer = io.StringIO()
        self.console = Console(file=self.buffer, force_terminal=False, width=120)
        self.plan = make_plan()
        self.document = make_document()

    @property
    def output(self):
        return self.buffer.getvalue()

    def test_task_list_shows_status_and_literal_brackets(self):
        view.render_task_list(self.console, self.plan, self.document)
        self.assertIn("[A] Alpha [intro]", self.output)
        self.assertIn("Completed: 2026-03-09", self.output)
        self.assertIn("Stage 2", self.output)

    def test_progress_bar_width(self):
        bar = view.progress_bar(50, 10)
        self.assertEqual(bar.count("█"), 5)
        self.assertEqual(bar.count("░"), 5)
        self.assertEqual(view.progress_bar(150, 10).count("█"), 10)

    def test_health_summary(self):
        report = HealthReport(
            [
                Check("File: config.json", CheckStatus.PASS, "Exists"),
                Check("Dependencies: existence", CheckStatus.FAIL, "1 missing: C→ghost"),
            ]
        )
        view.render_health(self.console, report)
        self.assertIn("Fail: 1", self.output)
        self.assertIn("C→ghost", self.output)
        self.assertNotIn("Exists", self.output)

    def test_health_verbose_shows_passing_details(self):
        report = HealthReport([Check("File: config.json", CheckStatus.PASS, "Exists")])
        view.render_health(self.console, report, verbose=True)
        self.assertIn("Exists", self.output)
        self.assertIn("All checks passed", self.output)

    def test_stats(self):
        stats = study_stats(self.plan, self.document, date(2026, 3, 10))
        view.render_stats(self.console, stats)
        self.assertIn("Current Streak: 1 day!", self.output)
        self.assertIn("Mon, Mar 09: ", self.output)


class NetworkDiagramTestCase(unittest.TestCase):
    def setUp(self):
        self.plan = make_plan()
        self.document = make_document()

    def tearDown(self):
        plt.close("all")

    def test_node_states(self):
        G = build_dependency_graph(self.plan.tasks, include_missing=True)
        states = {node: node_state(G, node, self.plan, self.document) for node in G.nodes()}
        self.assertEqual(
            states,
            {
                "A": "completed",
                "B": "in_progress",
                "C": "locked",
                "D": "available",
                "ghost": "missing",
            },
        )

    def test_saves_diagram(self):
        with tempfile.TemporaryDirectory() as tmp:
            filename = Path(tmp) / "network.png"
            fig = create_network_diagram(self.plan, self.document, filename=filename)
            self.assertTrue(filename.exists())
            self.assertIsNotNone(fig)

    def test_layouts(self):
        for layout in ("spring", "circular", "shell", "spectral"):
            fig = create_network_diagram(self.plan, self.document, layout=layout)
            self.assertIsNotNone(fig)
            plt.close(fig)


class ActivityChartTestCase(unittest.TestCase):
    def tearDown(self):
        plt.close("all")

    def test_saves_chart(self):
        stats = study_stats(make_plan(), make_document(), date(2026, 3, 10))
        with tempfile.TemporaryDirectory() as tmp:
            filename = Path(tmp) / "activity.png"
            fig = create_activity_chart(stats, filename=filename, title="Charts")
            self.assertTrue(filename.exists())
            ax = fig.axes[0]
            self.assertEqual(len(ax.patches), 7)

    def test_empty_history(self):
        stats = study_stats(make_plan(), ProgressDocument(), date(2026, 3, 10))
        fig = create_activity_chart(stats)
        self.assertEqual(len(fig.axes[0].patches), 7)


if __name__ == "__main__":
    unittest.main()
