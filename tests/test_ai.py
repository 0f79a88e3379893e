from __future__ import annotations

import unittest
from datetime import date

from lazgo.ai import (
    DAILY_ERROR_MESSAGE,
    MONTHLY_ERROR_MESSAGE,
    WHATSAPP_FALLBACK,
    SectionParseError,
    SectionsParsed,
    TardinessReporter,
    _parse_ai_json,
    parse_daily_sections,
    parse_monthly_json,
)
from lazgo.errors import AIServiceError, ValidationError
from lazgo.prompts import EMPTY_HISTORY_LINE, build_daily_prompt

from support import DAILY_REPLY, FakeTextClient, make_record


class SectionParserTests(unittest.TestCase):
    def test_all_sections(self) -> None:
        result = parse_daily_sections(DAILY_REPLY)
        self.assertIsInstance(result, SectionsParsed)
        self.assertEqual(result.missing, ())
        self.assertEqual(result.output.summary, "Budi (X-1) terlambat 10 menit, kategori Sedang.")
        self.assertEqual(result.output.daily_recap, "Total Keterlambatan Hari Ini: 1 siswa.")

    def test_keycaps_without_variation_selector(self) -> None:
        reply = DAILY_REPLY.replace("\ufe0f", "")
        result = parse_daily_sections(reply)
        self.assertIsInstance(result, SectionsParsed)
        self.assertEqual(result.missing, ())

    def test_missing_section_uses_fallback(self) -> None:
        reply = (
            "1\ufe0f\u20e3 **Ringkasan Keterlambatan**\nRingkas.\n\n"
            "3\ufe0f\u20e3 **Rekap Harian**\nTotal: 1 siswa."
        )
        result = parse_daily_sections(reply)
        self.assertIsInstance(result, SectionsParsed)
        self.assertEqual(result.missing, ("whatsapp",))
        self.assertEqual(result.output.whatsapp, WHATSAPP_FALLBACK)

    def test_unlabelled_text_is_an_error(self) -> None:
        self.assertIsInstance(parse_daily_sections("Maaf, saya tidak bisa."), SectionParseError)
        self.assertIsInstance(parse_daily_sections("   "), SectionParseError)


class MonthlyJsonTests(unittest.TestCase):
    def test_fenced_json(self) -> None:
        raw = "```json\n{\"report\": \"Laporan\", \"parentMessage\": null}\n```"
        self.assertEqual(parse_monthly_json(raw), {"report": "Laporan", "parentMessage": None})

    def test_wrapped_json(self) -> None:
        parsed = _parse_ai_json("Berikut hasilnya:\n{\"report\": \"ok\"}\nSelesai.")
        self.assertEqual(parsed["report"], "ok")

    def test_missing_report_rejected(self) -> None:
        with self.assertRaises(RuntimeError):
            parse_monthly_json("{\"parentMessage\": \"x\"}")


class DailyReportTests(unittest.TestCase):
    def test_prompt_mentions_empty_history(self) -> None:
        prompt = build_daily_prompt(make_record(), [], today=date(2026, 1, 5))
        self.assertIn(EMPTY_HISTORY_LINE, prompt)
        self.assertIn("Senin, 5 Januari 2026", prompt)

    def test_generate_daily_report(self) -> None:
        client = FakeTextClient(DAILY_REPLY)
        output = TardinessReporter(client).generate_daily_report(make_record(), [make_record("Sari")])
        self.assertEqual(output.daily_recap, "Total Keterlambatan Hari Ini: 1 siswa.")
        prompt, json_mode = client.prompts[0]
        self.assertFalse(json_mode)
        self.assertIn("- Sari (X-1): Terlambat 10 menit (Sedang)", prompt)

    def test_client_failure_becomes_service_error(self) -> None:
        reporter = TardinessReporter(FakeTextClient(error=ConnectionError("offline")))
        with self.assertRaises(AIServiceError) as ctx:
            reporter.generate_daily_report(make_record(), [])
        self.assertEqual(str(ctx.exception), DAILY_ERROR_MESSAGE)

    def test_unparseable_reply_becomes_service_error(self) -> None:
        reporter = TardinessReporter(FakeTextClient("tidak ada format"))
        with self.assertRaises(AIServiceError):
            reporter.generate_daily_report(make_record(), [])


class MonthlyReportTests(unittest.TestCase):
    def _records(self, repeats: int) -> list:
        records = [make_record("Budi", minute=40 + i, ms=i) for i in range(repeats)]
        records.append(make_record("Sari", "X-2", minute=55))
        return records

    def test_parent_message_requires_three_lates(self) -> None:
        client = FakeTextClient("{\"report\": \"Laporan\", \"parentMessage\": \"Pesan\"}")
        result = TardinessReporter(client).generate_monthly_report(self._records(2))
        self.assertEqual(result.report, "Laporan")
        self.assertIsNone(result.parent_message)
        self.assertEqual(result.top_offender.count, 2)
        self.assertTrue(client.prompts[0][1])

    def test_parent_message_kept_at_threshold(self) -> None:
        client = FakeTextClient("{\"report\": \"Laporan\", \"parentMessage\": \"Pesan\"}")
        result = TardinessReporter(client).generate_monthly_report(self._records(3))
        self.assertEqual(result.parent_message, "Pesan")
        self.assertEqual(result.top_offender.name, "Budi")

    def test_fallback_parent_message(self) -> None:
        client = FakeTextClient("{\"report\": \"Laporan\", \"parentMessage\": null}")
        result = TardinessReporter(client).generate_monthly_report(self._records(3))
        self.assertIn("Budi", result.parent_message)
        self.assertIn("3 kali", result.parent_message)

    def test_empty_month_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            TardinessReporter(FakeTextClient()).generate_monthly_report([])

    def test_bad_json_becomes_service_error(self) -> None:
        reporter = TardinessReporter(FakeTextClient("not json at all"))
        with self.assertRaises(AIServiceError) as ctx:
            reporter.generate_monthly_report(self._records(1))
        self.assertEqual(str(ctx.exception), MONTHLY_ERROR_MESSAGE)


if __name__ == "__main__":
    unittest.main()
