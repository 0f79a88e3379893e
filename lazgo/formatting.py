from __future__ import annotations

import re
from datetime import date

MONTH_NAMES = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)
WEEKDAY_NAMES = ("Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu")

_BOLD_MARKER = re.compile(r"\*\*")


def short_date(day: date) -> str:
    """Indonesian short date, e.g. ``5/1/2026``."""
    return f"{day.day}/{day.month}/{day.year}"


def padded_date(day: date) -> str:
    return day.strftime("%d-%m-%Y")


def long_date(day: date) -> str:
    """Indonesian long date, e.g. ``Senin, 5 Januari 2026``."""
    return f"{WEEKDAY_NAMES[day.weekday()]}, {day.day} {MONTH_NAMES[day.month - 1]} {day.year}"


def period_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def strip_bold(text: str) -> str:
    return _BOLD_MARKER.sub("", text)
