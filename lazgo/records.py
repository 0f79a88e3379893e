from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta
from typing import Sequence

from .models import GeneratedOutput, TardinessRecord, parse_record_id
from .storage import DAILY_OUTPUT_KEY, RECORDS_BACKUP_KEY, RECORDS_KEY, THEME_KEY, LazGoStore

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
DEFAULT_THEME = "light"


def append(records: Sequence[TardinessRecord], record: TardinessRecord) -> list[TardinessRecord]:
    return [*records, record]


def filter_by_day(records: Sequence[TardinessRecord], reference: date | datetime) -> list[TardinessRecord]:
    """Records created on the reference's calendar day, in the system-local zone."""
    if isinstance(reference, datetime):
        reference = reference.astimezone().date()
    return [record for record in records if record.local_date == reference]


def filter_by_month(records: Sequence[TardinessRecord], year: int, month: int) -> list[TardinessRecord]:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    return [
        record
        for record in records
        if record.local_date.year == year and record.local_date.month == month
    ]


def most_recent_first(records: Sequence[TardinessRecord]) -> list[TardinessRecord]:
    return list(reversed(records))


def next_record_id(now: datetime, last_id: str | None = None) -> str:
    """Timestamp id for a new record, kept strictly after ``last_id``."""
    stamp = now.astimezone().replace(microsecond=(now.microsecond // 1000) * 1000)
    if last_id:
        try:
            previous = parse_record_id(last_id)
        except ValueError:
            previous = None
        if previous is not None and stamp <= previous:
            stamp = previous.astimezone(stamp.tzinfo) + timedelta(milliseconds=1)
    return stamp.isoformat(timespec="milliseconds")


class RecordRepository:
    """Mirror of the application state in the local store.

    Reads never raise on bad data: a corrupt or missing value is logged and
    treated as empty or default.
    """

    def __init__(self, store: LazGoStore):
        self._store = store

    def load_records(self) -> list[TardinessRecord]:
        """Stored records; elements that fail validation are skipped.

        Whenever something is dropped, the raw stored value is copied to
        ``RECORDS_BACKUP_KEY`` so the next save cannot destroy it.
        """
        raw = self._store.get(RECORDS_KEY)
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError("stored records are not a list")
        except ValueError as exc:
            logger.warning("Could not parse stored records, starting empty: %s", exc)
            self._store.set(RECORDS_BACKUP_KEY, raw)
            return []

        records: list[TardinessRecord] = []
        for index, item in enumerate(payload):
            try:
                records.append(TardinessRecord.from_dict(item))
            except (ValueError, TypeError, KeyError, AttributeError) as exc:
                logger.warning("Skipping stored record #%d: %s", index, exc)
        if len(records) != len(payload):
            self._store.set(RECORDS_BACKUP_KEY, raw)
        return records

    def save_records(self, records: Sequence[TardinessRecord]) -> None:
        payload = [record.to_dict() for record in records]
        self._store.set(RECORDS_KEY, json.dumps(payload, ensure_ascii=False))
        logger.debug("Saved %d records", len(payload))

    def save_daily_output(self, output: GeneratedOutput, day: date) -> None:
        payload = {"date": day.isoformat(), "data": output.to_dict()}
        self._store.set(DAILY_OUTPUT_KEY, json.dumps(payload, ensure_ascii=False))

    def load_daily_output(self, today: date) -> GeneratedOutput | None:
        raw = self._store.get(DAILY_OUTPUT_KEY)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if payload["date"] != today.isoformat():
                return None
            return GeneratedOutput.from_dict(payload["data"])
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Could not parse cached daily report: %s", exc)
            return None

    def load_theme(self) -> str:
        raw = self._store.get(THEME_KEY)
        if raw is None:
            # No OS colour-scheme lookup; a fresh install always starts light.
            return DEFAULT_THEME
        try:
            theme = json.loads(raw)
        except ValueError:
            logger.warning("Could not parse stored theme: %r", raw)
            return DEFAULT_THEME
        return theme if theme in THEMES else DEFAULT_THEME

    def save_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self._store.set(THEME_KEY, json.dumps(theme))
