from __future__ import annotations

from datetime import date
from typing import Sequence

from .formatting import long_date, short_date
from .models import TardinessRecord, TopOffender

SUMMARY_HEADER = "1️⃣ **Ringkasan Keterlambatan**"
WHATSAPP_HEADER = "2️⃣ **Pesan WhatsApp untuk Orang Tua**"
RECAP_HEADER = "3️⃣ **Rekap Harian**"

EMPTY_HISTORY_LINE = "Belum ada siswa yang terlambat hari ini selain siswa saat ini."
NO_REASON = "Tidak ada"


def format_history(history: Sequence[TardinessRecord]) -> str:
    if not history:
        return EMPTY_HISTORY_LINE
    return "\n".join(
        f"- {r.name} ({r.class_name}): Terlambat {r.duration_minutes} menit ({r.category.value})"
        for r in history
    )


def build_daily_prompt(
    record: TardinessRecord,
    history: Sequence[TardinessRecord],
    today: date | None = None,
) -> str:
    day = today or record.local_date
    category = record.category.value
    return (
        "Kamu adalah LazGo, asisten sekolah yang efisien dan profesional untuk mencatat "
        "keterlambatan siswa.\n"
        "Proses data keterlambatan berikut dan hasilkan output dengan format yang ditentukan. "
        "Selalu gunakan Bahasa Indonesia yang baik dan formal.\n\n"
        f"Tanggal hari ini: {long_date(day)}\n\n"
        "Data Siswa Saat Ini:\n"
        f"- Nama: {record.name}\n"
        f"- Kelas: {record.class_name}\n"
        f"- Jam Masuk Seharusnya: {record.school_start_time}\n"
        f"- Jam Kedatangan: {record.arrival_time}\n"
        f"- Durasi Keterlambatan: {record.duration_minutes} menit\n"
        f"- Kategori Keterlambatan: {category}\n"
        f"- Alasan: {record.reason.strip() or NO_REASON}\n\n"
        "Riwayat Keterlambatan Hari Ini (siswa yang sudah tercatat sebelumnya):\n"
        f"{format_history(history)}\n\n"
        "---\n\n"
        "Instruksi:\n"
        "Hasilkan output dengan format TEPAT seperti di bawah ini. JANGAN tambahkan teks pembuka "
        "atau penutup. Gunakan emoji dan judul tebal (**...**) persis seperti contoh.\n\n"
        f"{SUMMARY_HEADER}\n"
        "[Ringkasan singkat keterlambatan siswa SAAT INI: nama, kelas, durasi, dan kategori.]\n\n"
        f"{WHATSAPP_HEADER}\n"
        "[Pesan WhatsApp yang formal, sopan, dan informatif untuk orang tua siswa SAAT INI, "
        "dengan tanggal hari ini. Boleh memakai *tebal* dan _miring_ untuk penekanan. "
        "Sapa dengan \"Yth. Bapak/Ibu Orang Tua/Wali dari ananda [Nama Siswa]\".]\n\n"
        f"{RECAP_HEADER}\n"
        "[Ringkasan SEMUA siswa yang terlambat hari ini (siswa saat ini dan riwayat). Jika hanya "
        "satu siswa, tulis \"Total Keterlambatan Hari Ini: 1 siswa.\". Jika lebih, berikan daftar "
        "ringkas dan totalnya.]"
    )


def format_monthly_rows(records: Sequence[TardinessRecord]) -> str:
    return "\n".join(
        f"- Tanggal: {short_date(r.local_date)}, Nama: {r.name}, Kelas: {r.class_name}, "
        f"Terlambat: {r.duration_minutes} menit, Kategori: {r.category.value}, "
        f"Alasan: {r.reason.strip() or '-'}"
        for r in records
    )


def build_monthly_prompt(
    records: Sequence[TardinessRecord],
    top_offender: TopOffender | None,
    include_parent_message: bool,
) -> str:
    if include_parent_message and top_offender is not None:
        parent_rule = (
            "\"parentMessage\": pesan WhatsApp formal dan sopan untuk orang tua/wali dari ananda "
            f"{top_offender.name} ({top_offender.class_name}) yang terlambat {top_offender.count} kali "
            "bulan ini. Ajak orang tua berdiskusi dengan wali kelas."
        )
    else:
        parent_rule = "\"parentMessage\": null."

    return (
        "Kamu adalah LazGo, analis data sekolah yang membuat laporan bulanan keterlambatan siswa.\n\n"
        "Data mentah keterlambatan siswa bulan ini:\n"
        f"{format_monthly_rows(records)}\n\n"
        "---\n\n"
        "Kembalikan HANYA JSON dengan bentuk berikut:\n"
        "{\"report\": \"...\", \"parentMessage\": \"...\" atau null}\n"
        "Aturan:\n"
        "- \"report\": laporan analisis dalam Bahasa Indonesia berformat markdown (gunakan **...** "
        "untuk tebal) dengan judul **Laporan Analisis Keterlambatan Bulanan** dan bagian:\n"
        "  **1. Ringkasan Umum** (total keterlambatan, rata-rata durasi dalam menit, jumlah per "
        "kategori Ringan/Sedang/Berat),\n"
        "  **2. Tren dan Pola Utama** (hari atau minggu yang menonjol, pola lain),\n"
        "  **3. Siswa dengan Keterlambatan Terbanyak** (3-5 siswa beserta jumlahnya),\n"
        "  **4. Rekomendasi** (1-2 saran yang dapat ditindaklanjuti sekolah).\n"
        f"- {parent_rule}\n"
        "- Gunakan bahasa yang profesional dan mudah dipahami. Jangan mengarang data."
    )
