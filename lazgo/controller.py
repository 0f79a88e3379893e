"""
Application state.

One controller owns the record list and both report slots. Every mutation
of the record list is followed by a synchronous save to the local store.
Network calls are split from slot bookkeeping so the UI can run them on a
worker thread and apply the outcome on the Tk thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Callable

from . import export
from .ai import TardinessReporter
from .analytics import available_periods, daily_pattern_stats, default_period
from .errors import AIServiceError, ValidationError
from .formatting import long_date, period_label
from .models import (
    DailyPatternStats,
    GeneratedOutput,
    MonthlyReportResult,
    StudentData,
    TardinessRecord,
)
from .records import RecordRepository, append, filter_by_day, filter_by_month, next_record_id
from .slots import ReportSlot
from .tardiness import assess, parse_clock

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Nama, Kelas, dan Jam Kedatangan wajib diisi."
ON_TIME_MESSAGE = "Siswa datang tepat waktu ({arrival}); tidak dicatat sebagai terlambat."

EXPORT_FORMATS = ("csv", "xlsx", "pdf")


@dataclass(frozen=True)
class Submission:
    record: TardinessRecord
    history: list[TardinessRecord]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TardinessController:
    def __init__(
        self,
        repository: RecordRepository,
        reporter: TardinessReporter,
        school_start_time: str = "07:30",
        on_time_policy: str = "exclude",
        clock: Callable[[], datetime] = _local_now,
    ):
        self._repository = repository
        self._reporter = reporter
        self._clock = clock
        self.school_start_time = school_start_time
        self.on_time_policy = on_time_policy

        self._records: list[TardinessRecord] = repository.load_records()
        self.theme = repository.load_theme()

        self.daily_slot: ReportSlot[GeneratedOutput] = ReportSlot("daily")
        self.monthly_slot: ReportSlot[MonthlyReportResult] = ReportSlot("monthly")
        cached = repository.load_daily_output(self.today())
        if cached is not None:
            self.daily_slot.begin()
            self.daily_slot.resolve(cached)

        self.selected_year, self.selected_month = default_period(self._records, self.today())
        logger.info("Loaded %d records", len(self._records))

    @property
    def records(self) -> list[TardinessRecord]:
        return list(self._records)

    def today(self) -> date:
        return self._clock().astimezone().date()

    def daily_records(self, day: date | None = None) -> list[TardinessRecord]:
        return filter_by_day(self._records, day or self.today())

    def monthly_records(self, year: int | None = None, month: int | None = None) -> list[TardinessRecord]:
        return filter_by_month(
            self._records,
            self.selected_year if year is None else year,
            self.selected_month if month is None else month,
        )

    def daily_stats(self) -> DailyPatternStats | None:
        return daily_pattern_stats(self.daily_records())

    def periods(self) -> dict[int, list[int]]:
        return available_periods(self._records)

    # -- record lifecycle --------------------------------------------------

    def submit(self, data: StudentData) -> Submission:
        """Create, append and persist one record.

        Raises:
            ValidationError: a required field is blank, the time is malformed,
                or the arrival is on time under the ``exclude`` policy.
        """
        name = data.name.strip()
        class_name = data.class_name.strip()
        arrival = data.arrival_time.strip()
        if not name or not class_name or not arrival:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        parse_clock(arrival)

        duration, category = assess(self.school_start_time, arrival, self.on_time_policy)
        if category is None:
            raise ValidationError(ON_TIME_MESSAGE.format(arrival=arrival))

        now = self._clock()
        history = self.daily_records(now.astimezone().date())
        last_id = self._records[-1].id if self._records else None
        record = TardinessRecord(
            id=next_record_id(now, last_id),
            name=name,
            class_name=class_name,
            arrival_time=arrival,
            school_start_time=self.school_start_time,
            duration_minutes=duration,
            category=category,
            reason=data.reason.strip(),
        )
        self._records = append(self._records, record)
        self._repository.save_records(self._records)
        logger.info(
            "Recorded %s (%s): %d min, %s", record.name, record.class_name, duration, category.value
        )
        return Submission(record=record, history=history)

    # -- daily report ------------------------------------------------------

    def begin_daily_report(self) -> None:
        self.daily_slot.begin()

    def fetch_daily_report(self, submission: Submission) -> GeneratedOutput:
        return self._reporter.generate_daily_report(
            submission.record, submission.history, today=submission.record.local_date
        )

    def complete_daily_report(self, output: GeneratedOutput) -> None:
        self.daily_slot.resolve(output)
        self._repository.save_daily_output(output, self.today())

    def fail_daily_report(self, message: str) -> None:
        self.daily_slot.fail(message)

    def generate_daily_report(self, submission: Submission) -> GeneratedOutput | None:
        """Run the whole daily request on the calling thread.

        A failure leaves the slot errored; the submitted record stays saved.
        """
        self.begin_daily_report()
        try:
            output = self.fetch_daily_report(submission)
        except AIServiceError as exc:
            self.fail_daily_report(str(exc))
            return None
        self.complete_daily_report(output)
        return output

    # -- monthly report ----------------------------------------------------

    def select_period(self, year: int, month: int) -> None:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be 1-12, got {month}")
        self.selected_year, self.selected_month = year, month
        self.monthly_slot.reset()

    def begin_monthly_report(self) -> list[TardinessRecord]:
        records = self.monthly_records()
        if not records:
            raise ValidationError("Tidak ada data untuk bulan yang dipilih.")
        self.monthly_slot.begin()
        return records

    def fetch_monthly_report(self, records: list[TardinessRecord]) -> MonthlyReportResult:
        return self._reporter.generate_monthly_report(records)

    def complete_monthly_report(self, result: MonthlyReportResult) -> None:
        self.monthly_slot.resolve(result)

    def fail_monthly_report(self, message: str) -> None:
        self.monthly_slot.fail(message)

    def generate_monthly_report(self) -> MonthlyReportResult | None:
        records = self.begin_monthly_report()
        try:
            result = self.fetch_monthly_report(records)
        except AIServiceError as exc:
            self.fail_monthly_report(str(exc))
            return None
        self.complete_monthly_report(result)
        return result

    # -- exports -----------------------------------------------------------

    def export_daily(self, fmt: str, directory: Path) -> Path:
        records = self.daily_records()
        day = self.today()
        target = Path(directory) / f"{export.daily_basename(day)}.{fmt}"
        if fmt == "csv":
            return export.export_csv(records, target)
        if fmt == "xlsx":
            return export.export_xlsx(records, target, sheet_name=export.DAILY_SHEET)
        if fmt == "pdf":
            output = self.daily_slot.value
            return export.export_pdf(
                records,
                target,
                variant=export.DAILY,
                subtitle=f"Tanggal: {long_date(day)}",
                analysis=output.daily_recap if output else None,
            )
        raise ValueError(f"Unsupported export format: {fmt}")

    def export_monthly(self, fmt: str, directory: Path) -> Path:
        records = self.monthly_records()
        year, month = self.selected_year, self.selected_month
        target = Path(directory) / f"{export.monthly_basename(year, month)}.{fmt}"
        if fmt == "csv":
            return export.export_csv(records, target)
        if fmt == "xlsx":
            return export.export_xlsx(records, target, sheet_name=export.MONTHLY_SHEET)
        if fmt == "pdf":
            result = self.monthly_slot.value
            return export.export_pdf(
                records,
                target,
                variant=export.MONTHLY,
                subtitle=f"Periode: {period_label(year, month)}",
                analysis=result.report if result else None,
            )
        raise ValueError(f"Unsupported export format: {fmt}")

    # -- preferences -------------------------------------------------------

    def toggle_theme(self) -> str:
        self.theme = "dark" if self.theme == "light" else "light"
        self._repository.save_theme(self.theme)
        return self.theme
