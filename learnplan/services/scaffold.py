"""
Scaffolding of a new plan directory (the ``init`` command).

Files are only created when absent; an existing plan is never overwritten.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from learnplan.services.store import JsonProgressStore, write_json

logger = logging.getLogger("learnplan.scaffold")

COMMAND = "python -m learnplan"


@dataclass
class ScaffoldStep:
    path: Path
    created: bool


def template_config(today):
    return {
        "name": "My Learning Plan",
        "description": "Description of what you want to learn",
        "duration": "4 weeks",
        "level": "beginner",
        "created": today.isoformat(),
        "tasks": {
            "1.1": {
                "name": "First task - define your goal",
                "stage": 1,
                "week": 1,
                "day": 1,
                "duration": "2h",
                "deps": [],
            }
        },
    }


def learning_plan_md(today):
    return f"""# My Learning Plan

> 🎯 **Goal**: Description of what you want to learn
> 📅 **Duration**: 4 weeks
> 👤 **Level**: beginner
> 📍 **Created**: {today.isoformat()}

---

## 📊 Learning Overview

Track your progress through this learning plan using the task manager commands.

---

## 🎯 Learning Objectives

By the end of this plan, you will be able to:
- [ ] Objective 1
- [ ] Objective 2
- [ ] Objective 3

---

## 📝 Daily Checklist

Each study session:
- [ ] Today's goal is clear
- [ ] Started task with: `{COMMAND} start <id>`
- [ ] Completed task with: `{COMMAND} complete <id>`
- [ ] Updated progress.md with learnings
- [ ] Noted questions in questions.md

---

## 🛠️ Quick Commands

| Command | Description |
|---------|-------------|
| `{COMMAND} list` | List all tasks |
| `{COMMAND} start <id>` | Start a task |
| `{COMMAND} complete <id>` | Complete a task |
| `{COMMAND} progress` | View progress |
| `{COMMAND} check` | Health check |
| `./scripts/launch.sh` | List tasks |

---

**Happy Learning!** 🎓✨
"""


def progress_md(today):
    return f"""# Learning Progress Log

> Track your daily learning progress, insights, and reflections here.

---

## 📅 Session Log

### {today.isoformat()} - Session #1

**Tasks Completed:**
- [ ] Task 1.1: First task

**Time Spent:**

**What I Learned:**
-

**Challenges:**
-

**Next Steps:**
-

---

**Last Updated:** {today.isoformat()}
"""


def notes_md(today):
    return f"""# Learning Notes

> Central place for all your study notes, summaries, and reference materials.

---

## 📝 Quick Reference

### Commands Cheat Sheet

```bash
{COMMAND} list
{COMMAND} start <task-id>
{COMMAND} complete <task-id>
{COMMAND} progress
{COMMAND} check
```

---

## 📚 Topic Notes

### Topic 1

**Key Concepts:**
-

---

**Created:** {today.isoformat()}
"""


def questions_md(today):
    return f"""# Questions & Answers

> Track questions that arise during learning and their answers.

---

## ❓ Unanswered Questions

1. **Question:**
   - **Related Task:**
   - **Priority:**

---

## ✅ Answered Questions

### Question:

**Answer:**

**Date Answered:** {today.isoformat()}

---

**Created:** {today.isoformat()}
"""


def launch_sh():
    return f"""#!/bin/bash
# Learning plan launcher
cd "$(dirname "$0")/.."
{COMMAND} list
"""


def _write_if_absent(path, content, mode=None):
    if path.exists():
        return ScaffoldStep(path, False)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
    logger.info("Created %s", path)
    return ScaffoldStep(path, True)


def _mkdir_if_absent(path):
    if path.exists():
        return ScaffoldStep(path, False)
    path.mkdir(parents=True, exist_ok=True)
    logger.info("Created directory %s", path)
    return ScaffoldStep(path, True)


def init_plan(paths, clock=None):
    """
    Create the plan directory layout, documents and launcher script.

    Args:
        paths: PlanPaths of the directory to initialise
        clock: Optional callable returning the current aware datetime

    Returns:
        list: One ScaffoldStep per directory or file, in creation order
    """
    clock = clock or (lambda: datetime.now().astimezone())
    today = clock().date()

    steps = [
        _mkdir_if_absent(paths.data_dir),
        _mkdir_if_absent(paths.scripts_dir),
    ]

    store = JsonProgressStore(paths.progress_file, clock=clock)
    steps.append(ScaffoldStep(paths.progress_file, store.ensure()))

    if paths.config_file.exists():
        steps.append(ScaffoldStep(paths.config_file, False))
    else:
        write_json(paths.config_file, template_config(today))
        logger.info("Created %s", paths.config_file)
        steps.append(ScaffoldStep(paths.config_file, True))

    documents = [
        ("learning-plan.md", learning_plan_md(today)),
        ("progress.md", progress_md(today)),
        ("notes.md", notes_md(today)),
        ("questions.md", questions_md(today)),
    ]
    for filename, content in documents:
        steps.append(_write_if_absent(paths.root / filename, content))

    steps.append(_write_if_absent(paths.scripts_dir / "launch.sh", launch_sh(), 0o755))
    return steps
