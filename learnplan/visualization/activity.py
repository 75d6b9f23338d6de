import logging

import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger("learnplan.visualization")


def create_activity_chart(stats, filename=None, show=False, title=None):
    """
    Bar chart of hours studied per day with the running average.

    Args:
        stats: StudyStats from services.statistics.study_stats
        filename: Optional filename to save the chart
        show: Whether to display the chart
        title: Optional chart title

    Returns:
        The matplotlib figure
    """
    days = [activity.day for activity in stats.last_days]
    hours = np.array([activity.hours for activity in stats.last_days], dtype=float)
    x = np.arange(len(days))

    fig, ax = plt.subplots(figsize=(10, 5))

    colors = ["green" if h > 0 else "lightgray" for h in hours]
    bars = ax.bar(x, hours, color=colors, edgecolor="black", alpha=0.8)

    for bar, value in zip(bars, hours):
        if value > 0:
            ax.text(
                bar.get_x() + bar.get_width() / 2,
                bar.get_height(),
                f"{value:.1f}h",
                ha="center",
                va="bottom",
                fontsize=9,
            )

    if stats.average_daily_hours > 0:
        ax.axhline(
            stats.average_daily_hours,
            color="blue",
            linestyle="--",
            alpha=0.6,
            label=f"Average ({stats.average_daily_hours}h/day)",
        )
        ax.legend(loc="upper left")

    ax.set_xticks(x)
    ax.set_xticklabels([day.strftime("%a\n%b %d") for day in days])
    ax.set_ylabel("Hours")
    ax.set_ylim(0, max(float(hours.max()) if hours.size else 0, stats.average_daily_hours, 1) * 1.2)
    ax.grid(axis="y", linestyle="--", alpha=0.4)

    subtitle = f"Streak: {stats.streak} day(s) | Remaining: {stats.remaining_tasks} task(s)"
    ax.set_title(f"{title or 'Study Activity'}\n{subtitle}", fontsize=12)

    fig.tight_layout()

    if filename:
        fig.savefig(filename, dpi=150, bbox_inches="tight")
        logger.info("Activity chart saved to %s", filename)

    if show:
        plt.show()

    return fig
