from __future__ import annotations

from datetime import datetime

from lazgo.models import TardinessCategory, TardinessRecord


def local_id(year: int, month: int, day: int, hour: int = 7, minute: int = 40, ms: int = 0) -> str:
    stamp = datetime(year, month, day, hour, minute, 0, ms * 1000).astimezone()
    return stamp.isoformat(timespec="milliseconds")


def make_record(
    name: str = "Budi",
    class_name: str = "X-1",
    when: tuple[int, int, int] = (2026, 1, 5),
    minute: int = 40,
    duration: int = 10,
    category: TardinessCategory = TardinessCategory.SEDANG,
    reason: str = "Macet",
    ms: int = 0,
) -> TardinessRecord:
    return TardinessRecord(
        id=local_id(*when, minute=minute, ms=ms),
        name=name,
        class_name=class_name,
        arrival_time=f"07:{minute:02d}",
        school_start_time="07:30",
        duration_minutes=duration,
        category=category,
        reason=reason,
    )


class FakeTextClient:
    """Returns canned replies, or raises ``error`` when set."""

    def __init__(self, reply: str = "", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[tuple[str, bool]] = []

    def generate(self, prompt: str, json_mode: bool = False) -> str:
        self.prompts.append((prompt, json_mode))
        if self.error is not None:
            raise self.error
        return self.reply


DAILY_REPLY = (
    "1\ufe0f\u20e3 **Ringkasan Keterlambatan**\n"
    "Budi (X-1) terlambat 10 menit, kategori Sedang.\n\n"
    "2\ufe0f\u20e3 **Pesan WhatsApp untuk Orang Tua**\n"
    "Yth. Bapak/Ibu Orang Tua/Wali dari ananda Budi.\n\n"
    "3\ufe0f\u20e3 **Rekap Harian**\n"
    "Total Keterlambatan Hari Ini: 1 siswa."
)
