from __future__ import annotations

import csv
import io
import tempfile
import unittest
from datetime import date
from pathlib import Path

from openpyxl import load_workbook

from lazgo import export
from lazgo.errors import ExportError

from support import make_record


class CsvExportTests(unittest.TestCase):
    def test_empty_selection_rejected(self) -> None:
        with self.assertRaises(ExportError):
            export.records_to_csv([])

    def test_bom_header_and_rows(self) -> None:
        records = [make_record("Budi", reason='Ban "bocor", jalan'), make_record("Sari", minute=45)]
        text = export.records_to_csv(records)
        self.assertTrue(text.startswith("\ufeff"))
        lines = text[1:].split("\n")
        self.assertEqual(lines[0], ",".join(export.CSV_HEADERS))
        self.assertEqual(len(lines), 3)

        rows = list(csv.reader(io.StringIO(text[1:])))
        self.assertEqual(rows[1][2], "Budi")
        self.assertEqual(rows[1][5], "10")
        self.assertEqual(rows[1][7], 'Ban "bocor", jalan')
        self.assertIn('"Ban ""bocor"", jalan"', lines[1])

    def test_export_csv_writes_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = export.export_csv([make_record()], Path(tmp_dir) / "out.csv")
            raw = path.read_bytes()
            self.assertTrue(raw.startswith(b"\xef\xbb\xbf"))


class XlsxExportTests(unittest.TestCase):
    def test_workbook_contents(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = export.export_xlsx(
                [make_record("Budi"), make_record("Sari", minute=45)],
                Path(tmp_dir) / "out.xlsx",
                sheet_name=export.DAILY_SHEET,
            )
            wb = load_workbook(path)
            ws = wb[export.DAILY_SHEET]
            self.assertEqual([c.value for c in ws[1]], list(export.XLSX_HEADERS))
            self.assertEqual(ws.max_row, 3)
            self.assertEqual(ws["B2"].value, "Budi")
            self.assertEqual(ws["E2"].value, 10)
            self.assertTrue(ws["A1"].font.bold)
            self.assertEqual(ws.freeze_panes, "A2")

    def test_empty_selection_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            target = Path(tmp_dir) / "out.xlsx"
            with self.assertRaises(ExportError):
                export.export_xlsx([], target)
            self.assertFalse(target.exists())


class PdfExportTests(unittest.TestCase):
    def test_daily_requires_ai_recap(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            target = Path(tmp_dir) / "out.pdf"
            with self.assertRaises(ExportError) as ctx:
                export.export_pdf([make_record()], target, variant=export.DAILY, subtitle="Tanggal")
            self.assertEqual(str(ctx.exception), export.MISSING_DAILY_AI_MESSAGE)
            self.assertFalse(target.exists())

    def test_daily_with_recap(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = export.export_pdf(
                [make_record(reason="<b>Macet</b> & hujan")],
                Path(tmp_dir) / "out.pdf",
                variant=export.DAILY,
                subtitle="Tanggal: Senin, 5 Januari 2026",
                analysis="**Total** Keterlambatan Hari Ini: 1 siswa.",
            )
            self.assertTrue(path.read_bytes().startswith(b"%PDF"))

    def test_monthly_without_analysis(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = export.export_pdf(
                [make_record(), make_record("Sari", minute=45)],
                Path(tmp_dir) / "out.pdf",
                variant=export.MONTHLY,
                subtitle="Periode: Januari 2026",
            )
            self.assertGreater(path.stat().st_size, 0)


class FilenameTests(unittest.TestCase):
    def test_basenames(self) -> None:
        self.assertEqual(export.daily_basename(date(2026, 1, 5)), "laporan_keterlambatan_harian_05-01-2026")
        self.assertEqual(export.monthly_basename(2026, 3), "laporan_keterlambatan_Maret_2026")


if __name__ == "__main__":
    unittest.main()
