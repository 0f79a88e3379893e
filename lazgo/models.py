from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any


class TardinessCategory(str, Enum):
    RINGAN = "Ringan"
    SEDANG = "Sedang"
    BERAT = "Berat"


@dataclass(frozen=True)
class StudentData:
    name: str
    class_name: str
    arrival_time: str
    reason: str = ""


@dataclass(frozen=True)
class TardinessRecord:
    id: str
    name: str
    class_name: str
    arrival_time: str
    school_start_time: str
    duration_minutes: int
    category: TardinessCategory
    reason: str = ""

    @property
    def created_at(self) -> datetime:
        """Creation time in the system-local zone, derived from the id."""
        return parse_record_id(self.id)

    @property
    def local_date(self) -> date:
        return self.created_at.date()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "className": self.class_name,
            "arrivalTime": self.arrival_time,
            "reason": self.reason,
            "schoolStartTime": self.school_start_time,
            "durationMinutes": self.duration_minutes,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "TardinessRecord":
        record_id = str(raw["id"])
        parse_record_id(record_id)
        duration = int(raw["durationMinutes"])
        if duration < 0:
            raise ValueError(f"Negative duration in record {record_id}")
        return cls(
            id=record_id,
            name=str(raw["name"]),
            class_name=str(raw["className"]),
            arrival_time=str(raw["arrivalTime"]),
            school_start_time=str(raw["schoolStartTime"]),
            duration_minutes=duration,
            category=TardinessCategory(str(raw["category"])),
            reason=str(raw.get("reason") or ""),
        )


@dataclass(frozen=True)
class GeneratedOutput:
    summary: str
    whatsapp: str
    daily_recap: str

    def to_dict(self) -> dict[str, str]:
        return {"summary": self.summary, "whatsapp": self.whatsapp, "dailyRecap": self.daily_recap}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "GeneratedOutput":
        return cls(
            summary=str(raw["summary"]),
            whatsapp=str(raw["whatsapp"]),
            daily_recap=str(raw["dailyRecap"]),
        )


@dataclass(frozen=True)
class TopOffender:
    name: str
    class_name: str
    count: int


@dataclass(frozen=True)
class MonthlyReportResult:
    report: str
    parent_message: str | None = None
    top_offender: TopOffender | None = None


@dataclass(frozen=True)
class DailyPatternStats:
    most_common_reason: str
    top_class: str
    average_duration: int
    category_counts: dict[TardinessCategory, int]


def parse_record_id(record_id: str) -> datetime:
    """Parse an ISO-8601 record id into an aware datetime in the local zone.

    UTC ids ending in ``Z`` are accepted; naive ids are
    taken as local time.
    """
    text = record_id.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed.astimezone()
