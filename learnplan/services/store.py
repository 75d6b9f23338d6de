"""
JSON persistence of plan definitions and progress.

Documents are read in full and rewritten in full. Writes go straight to the
target file: there is no lock and no temp-file-and-rename, so two commands
running at once against the same directory race and the later writer wins.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from learnplan.domain.errors import ConfigNotFoundError, MalformedJSONError
from learnplan.domain.progress import ProgressDocument
from learnplan.domain.task import LearningPlan

logger = logging.getLogger("learnplan.store")


def read_json(path):
    """
    Parse a JSON file.

    Raises:
        MalformedJSONError: If the file is not valid UTF-8 encoded JSON
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedJSONError(path, str(e)) from e


def write_json(path, data):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class PlanStore:
    """Read-only access to the plan definitions document."""

    def __init__(self, path):
        self.path = Path(path)

    def exists(self):
        return self.path.exists()

    def load_raw(self):
        """
        Return the parsed document without interpreting it.

        Raises:
            ConfigNotFoundError: If the document does not exist
            MalformedJSONError: If the document is not valid JSON
        """
        if not self.path.exists():
            raise ConfigNotFoundError(self.path)
        return read_json(self.path)

    def load(self) -> LearningPlan:
        plan = LearningPlan.from_dict(self.load_raw())
        logger.debug("Loaded %d task definitions from %s", len(plan), self.path)
        return plan


class ProgressStore(ABC):
    """Load/save boundary for the progress document."""

    @abstractmethod
    def exists(self) -> bool:
        pass

    @abstractmethod
    def load(self) -> ProgressDocument:
        """Return the stored document, or a fresh one when nothing is stored yet."""
        pass

    @abstractmethod
    def save(self, document: ProgressDocument) -> None:
        pass


class JsonProgressStore(ProgressStore):
    """Progress document kept as a flat JSON file."""

    def __init__(self, path, clock=None):
        self.path = Path(path)
        self.clock = clock or (lambda: datetime.now().astimezone())

    def exists(self):
        return self.path.exists()

    def load_raw(self):
        return read_json(self.path)

    def load(self):
        if not self.path.exists():
            logger.debug("No progress file at %s, starting a new document", self.path)
            return ProgressDocument.new(self.clock())
        return ProgressDocument.from_dict(self.load_raw())

    def save(self, document):
        write_json(self.path, document.to_dict())
        logger.debug("Saved progress to %s", self.path)

    def ensure(self):
        """Write a fresh document if none exists; return True when one was created."""
        if self.path.exists():
            return False
        self.save(ProgressDocument.new(self.clock()))
        logger.info("Created progress file %s", self.path)
        return True


class MemoryProgressStore(ProgressStore):
    """Progress store held in memory, for embedding and tests."""

    def __init__(self, document=None, clock=None):
        self.clock = clock or (lambda: datetime.now().astimezone())
        self._document = copy.deepcopy(document) if document is not None else None
        self.save_count = 0

    def exists(self):
        return self._document is not None

    def load(self):
        if self._document is None:
            return ProgressDocument.new(self.clock())
        return copy.deepcopy(self._document)

    def save(self, document):
        self._document = copy.deepcopy(document)
        self.save_count += 1
