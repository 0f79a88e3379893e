from __future__ import annotations

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import Sequence
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .errors import ExportError
from .formatting import MONTH_NAMES, padded_date, short_date, strip_bold
from .models import TardinessRecord

logger = logging.getLogger(__name__)

CSV_HEADERS = (
    "ID",
    "Tanggal",
    "Nama",
    "Kelas",
    "Jam Datang",
    "Durasi Terlambat (mnt)",
    "Kategori",
    "Alasan",
)
XLSX_HEADERS = (
    "Tanggal",
    "Nama Siswa",
    "Kelas",
    "Jam Datang",
    "Durasi Terlambat (menit)",
    "Kategori",
    "Alasan",
)
XLSX_WIDTHS = (12, 28, 12, 12, 24, 12, 30)

DAILY = "daily"
MONTHLY = "monthly"
DAILY_SHEET = "Keterlambatan Harian"
MONTHLY_SHEET = "Keterlambatan"

EMPTY_SELECTION_MESSAGE = "Tidak ada data untuk diekspor."
MISSING_DAILY_AI_MESSAGE = "Laporan AI belum dibuat. Mohon proses data terlebih dahulu."


def daily_basename(day: date) -> str:
    return f"laporan_keterlambatan_harian_{padded_date(day)}"


def monthly_basename(year: int, month: int) -> str:
    return f"laporan_keterlambatan_{MONTH_NAMES[month - 1]}_{year}"


def records_to_csv(records: Sequence[TardinessRecord]) -> str:
    """CSV text with a byte-order mark, one row per record."""
    _require_records(records)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for r in records:
        writer.writerow(
            [
                r.id,
                short_date(r.local_date),
                r.name,
                r.class_name,
                r.arrival_time,
                r.duration_minutes,
                r.category.value,
                r.reason,
            ]
        )
    return "\ufeff" + buffer.getvalue().rstrip("\n")


def export_csv(records: Sequence[TardinessRecord], path: Path) -> Path:
    content = records_to_csv(records)
    target = Path(path)
    target.write_text(content, encoding="utf-8", newline="")
    logger.info("Exported %d records to %s", len(records), target)
    return target


def export_xlsx(records: Sequence[TardinessRecord], path: Path, sheet_name: str = MONTHLY_SHEET) -> Path:
    _require_records(records)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(list(XLSX_HEADERS))
    for r in records:
        ws.append(
            [
                short_date(r.local_date),
                r.name,
                r.class_name,
                r.arrival_time,
                r.duration_minutes,
                r.category.value,
                r.reason,
            ]
        )

    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_fill = PatternFill("solid", start_color="D3D3D3")
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = border
    for row in ws.iter_rows(min_row=2, max_row=ws.max_row, max_col=len(XLSX_HEADERS)):
        for cell in row:
            cell.border = border

    for idx, width in enumerate(XLSX_WIDTHS):
        ws.column_dimensions[chr(ord("A") + idx)].width = width
    ws.freeze_panes = "A2"

    target = Path(path)
    wb.save(target)
    logger.info("Exported %d records to %s", len(records), target)
    return target


def export_pdf(
    records: Sequence[TardinessRecord],
    path: Path,
    variant: str,
    subtitle: str,
    analysis: str | None = None,
) -> Path:
    """Render the title block, the optional analysis text and the record table.

    The daily variant needs the AI recap as ``analysis``; the monthly one
    renders without it.
    """
    _require_records(records)
    if variant not in (DAILY, MONTHLY):
        raise ValueError(f"Unknown PDF variant: {variant}")
    if variant == DAILY and not (analysis or "").strip():
        raise ExportError(MISSING_DAILY_AI_MESSAGE)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("Title", parent=styles["Heading1"], fontSize=18, spaceAfter=4)
    subtitle_style = ParagraphStyle("Subtitle", parent=styles["BodyText"], fontSize=11, textColor=colors.grey)
    heading_style = ParagraphStyle("H", parent=styles["Heading2"], fontSize=12, spaceBefore=10, spaceAfter=4)
    body_style = ParagraphStyle("Body", parent=styles["BodyText"], fontSize=10, leading=13)

    target = Path(path)
    if variant == DAILY:
        title = "Laporan Keterlambatan Harian"
        analysis_heading = "Rekap Harian (AI)"
        head = ["Nama Siswa", "Kelas", "Jam Datang", "Durasi (mnt)", "Kategori"]
        rows = [[r.name, r.class_name, r.arrival_time, str(r.duration_minutes), r.category.value] for r in records]
        col_fracs = [0.34, 0.14, 0.16, 0.16, 0.2]
    else:
        title = "Laporan Keterlambatan Bulanan"
        analysis_heading = "Ringkasan Analisis AI"
        head = ["Tanggal", "Nama Siswa", "Kelas", "Durasi (mnt)", "Kategori", "Alasan"]
        rows = [
            [short_date(r.local_date), r.name, r.class_name, str(r.duration_minutes), r.category.value, r.reason]
            for r in records
        ]
        col_fracs = [0.13, 0.27, 0.11, 0.13, 0.12, 0.24]

    doc = SimpleDocTemplate(
        str(target),
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=title,
    )
    story = [Paragraph(title, title_style), Paragraph(escape(subtitle), subtitle_style), Spacer(1, 6 * mm)]

    if (analysis or "").strip():
        story.append(Paragraph(analysis_heading, heading_style))
        for block in strip_bold(analysis).strip().split("\n\n"):
            story.append(Paragraph(escape(block).replace("\n", "<br/>"), body_style))
            story.append(Spacer(1, 2 * mm))
        story.append(Spacer(1, 4 * mm))

    cell_style = ParagraphStyle("Cell", parent=body_style, fontSize=9, leading=11)
    body = [[Paragraph(escape(value), cell_style) for value in row] for row in rows]
    table = Table(
        [head, *body],
        colWidths=[doc.width * frac for frac in col_fracs],
        repeatRows=1,
        hAlign="LEFT",
    )
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0284c7")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
            ]
        )
    )
    story.append(table)
    doc.build(story)
    logger.info("Exported %d records to %s", len(records), target)
    return target


def _require_records(records: Sequence[TardinessRecord]) -> None:
    if not records:
        raise ExportError(EMPTY_SELECTION_MESSAGE)
