from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

OTHER_REASON = "Lainnya..."
REASONS = ("Macet", "Telat Bangun", "Hujan", "Tidur Larut Malam", OTHER_REASON)
DEFAULT_REASON = REASONS[0]
MAX_SUGGESTIONS = 5


@dataclass(frozen=True)
class StudentInfo:
    name: str
    class_name: str


class Roster:
    def __init__(self, students: Sequence[StudentInfo] = ()):
        self.students = list(students)
        self.class_names = sorted({student.class_name for student in self.students})

    @classmethod
    def load(cls, path: Path) -> "Roster":
        """Read ``[{"name": ..., "className": ...}, ...]``; problems give an empty roster."""
        if not path.exists():
            logger.info("No roster file at %s, suggestions disabled", path)
            return cls()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read roster %s: %s", path, exc)
            return cls()
        if not isinstance(payload, list):
            logger.warning("Roster %s is not a list", path)
            return cls()

        students: list[StudentInfo] = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            name = str(entry.get("name", "")).strip()
            class_name = str(entry.get("className", "")).strip()
            if name and class_name:
                students.append(StudentInfo(name=name, class_name=class_name))
        logger.info("Loaded %d students from %s", len(students), path)
        return cls(students)

    def suggest_students(self, query: str, limit: int = MAX_SUGGESTIONS) -> list[StudentInfo]:
        needle = query.strip().lower()
        if len(needle) <= 1:
            return []
        return [student for student in self.students if needle in student.name.lower()][:limit]

    def suggest_classes(self, query: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
        needle = query.strip().lower()
        if not needle:
            return []
        return [name for name in self.class_names if needle in name.lower()][:limit]


def resolve_reason(selected: str, custom: str) -> str:
    if selected == OTHER_REASON:
        return custom.strip()
    return selected
