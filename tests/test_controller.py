from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from lazgo.ai import TardinessReporter
from lazgo.controller import TardinessController
from lazgo.errors import ExportError, ValidationError
from lazgo.models import StudentData, TardinessCategory
from lazgo.records import RecordRepository
from lazgo.slots import SlotState
from lazgo.storage import RECORDS_BACKUP_KEY, RECORDS_KEY, LazGoStore

from support import DAILY_REPLY, FakeTextClient


class ControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.now = datetime(2026, 1, 5, 7, 45).astimezone()
        self.client = FakeTextClient(DAILY_REPLY)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _controller(self, **kwargs) -> TardinessController:
        repo = RecordRepository(LazGoStore(self.tmp_dir / "lazgo.sqlite3"))
        return TardinessController(repo, TardinessReporter(self.client), clock=lambda: self.now, **kwargs)

    def test_submit_persists_record(self) -> None:
        controller = self._controller()
        submission = controller.submit(StudentData("  Budi ", "X-1", "07:42", "Macet"))
        self.assertEqual(submission.record.name, "Budi")
        self.assertEqual(submission.record.duration_minutes, 12)
        self.assertEqual(submission.record.category, TardinessCategory.SEDANG)
        self.assertEqual(submission.history, [])

        reloaded = self._controller()
        self.assertEqual(reloaded.records, [submission.record])

    def test_history_holds_earlier_records_of_the_day(self) -> None:
        controller = self._controller()
        first = controller.submit(StudentData("Budi", "X-1", "07:42"))
        second = controller.submit(StudentData("Sari", "X-2", "07:50"))
        self.assertEqual(second.history, [first.record])
        self.assertLess(first.record.created_at, second.record.created_at)

    def test_required_fields(self) -> None:
        controller = self._controller()
        with self.assertRaises(ValidationError):
            controller.submit(StudentData("", "X-1", "07:42"))
        with self.assertRaises(ValidationError):
            controller.submit(StudentData("Budi", "X-1", "7.42"))
        self.assertEqual(controller.records, [])

    def test_on_time_arrival_policy(self) -> None:
        with self.assertRaises(ValidationError):
            self._controller().submit(StudentData("Budi", "X-1", "07:30"))
        record = self._controller(on_time_policy="ringan").submit(StudentData("Budi", "X-1", "07:20")).record
        self.assertEqual((record.duration_minutes, record.category), (0, TardinessCategory.RINGAN))

    def test_daily_report_is_cached_for_today(self) -> None:
        controller = self._controller()
        submission = controller.submit(StudentData("Budi", "X-1", "07:42"))
        output = controller.generate_daily_report(submission)
        self.assertIs(controller.daily_slot.state, SlotState.READY)

        restored = self._controller()
        self.assertIs(restored.daily_slot.state, SlotState.READY)
        self.assertEqual(restored.daily_slot.value, output)

        self.now = datetime(2026, 1, 6, 7, 45).astimezone()
        self.assertIs(self._controller().daily_slot.state, SlotState.EMPTY)

    def test_ai_failure_keeps_record(self) -> None:
        self.client.error = TimeoutError("slow")
        controller = self._controller()
        submission = controller.submit(StudentData("Budi", "X-1", "07:42"))
        self.assertIsNone(controller.generate_daily_report(submission))
        self.assertIs(controller.daily_slot.state, SlotState.ERRORED)
        self.assertEqual(len(self._controller().records), 1)

    def test_failed_refresh_keeps_previous_daily_output(self) -> None:
        controller = self._controller()
        output = controller.generate_daily_report(controller.submit(StudentData("Budi", "X-1", "07:42")))

        self.client.error = ConnectionError("offline")
        self.assertIsNone(controller.generate_daily_report(controller.submit(StudentData("Sari", "X-2", "07:50"))))
        self.assertIs(controller.daily_slot.state, SlotState.ERRORED)
        self.assertEqual(controller.daily_slot.value, output)
        self.assertTrue(controller.export_daily("pdf", self.tmp_dir).exists())
        self.assertEqual(self._controller().daily_slot.value, output)

    def test_bad_stored_record_does_not_wipe_the_rest(self) -> None:
        store = LazGoStore(self.tmp_dir / "lazgo.sqlite3")
        controller = self._controller()
        for arrival in ("07:40", "07:41", "07:50"):
            controller.submit(StudentData("Budi", "X-1", arrival))
        payload = json.loads(store.get(RECORDS_KEY))
        payload.append({**payload[0], "id": "2026-01-05T07:45:00.500+00:00", "category": "Tepat Waktu"})
        store.set(RECORDS_KEY, json.dumps(payload))

        reloaded = self._controller()
        self.assertEqual(len(reloaded.records), 3)
        reloaded.submit(StudentData("Sari", "X-2", "07:55"))
        self.assertEqual(len(json.loads(store.get(RECORDS_KEY))), 4)
        self.assertEqual(len(json.loads(store.get(RECORDS_BACKUP_KEY))), 4)

    def test_monthly_report(self) -> None:
        controller = self._controller()
        for arrival in ("07:40", "07:41", "07:50"):
            controller.submit(StudentData("Budi", "X-1", arrival))
        self.client.reply = "{\"report\": \"**Laporan**\", \"parentMessage\": \"Pesan\"}"
        result = controller.generate_monthly_report()
        self.assertEqual(result.parent_message, "Pesan")
        self.assertIs(controller.monthly_slot.state, SlotState.READY)

        controller.select_period(2025, 12)
        self.assertIs(controller.monthly_slot.state, SlotState.EMPTY)
        with self.assertRaises(ValidationError):
            controller.generate_monthly_report()

    def test_exports(self) -> None:
        controller = self._controller()
        with self.assertRaises(ExportError):
            controller.export_daily("csv", self.tmp_dir)

        submission = controller.submit(StudentData("Budi", "X-1", "07:42"))
        path = controller.export_daily("csv", self.tmp_dir)
        self.assertEqual(path.name, "laporan_keterlambatan_harian_05-01-2026.csv")
        with self.assertRaises(ExportError):
            controller.export_daily("pdf", self.tmp_dir)

        controller.generate_daily_report(submission)
        self.assertTrue(controller.export_daily("pdf", self.tmp_dir).exists())
        self.assertEqual(
            controller.export_monthly("xlsx", self.tmp_dir).name,
            "laporan_keterlambatan_Januari_2026.xlsx",
        )

    def test_toggle_theme_persists(self) -> None:
        controller = self._controller()
        self.assertEqual(controller.toggle_theme(), "dark")
        self.assertEqual(self._controller().theme, "dark")


if __name__ == "__main__":
    unittest.main()
