from __future__ import annotations

import argparse
import logging
import queue
import sys
import threading
import tkinter as tk
from datetime import datetime
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from tkinter.scrolledtext import ScrolledText

from PIL import Image, ImageDraw, ImageTk

from . import __version__
from .ai import GeminiTextClient, TardinessReporter
from .config import load_settings
from .controller import EXPORT_FORMATS, Submission, TardinessController
from .errors import AIServiceError, ConfigurationError, ExportError, ValidationError
from .formatting import MONTH_NAMES, long_date
from .logging_setup import setup_logging
from .models import StudentData, TardinessCategory
from .paths import database_path, ensure_directories, exports_directory, log_path
from .records import RecordRepository, most_recent_first
from .roster import DEFAULT_REASON, OTHER_REASON, REASONS, Roster, StudentInfo, resolve_reason
from .slots import SlotState
from .storage import LazGoStore

logger = logging.getLogger(__name__)

PALETTES = {
    "light": {
        "bg": "#f3f4f6",
        "panel": "#ffffff",
        "fg": "#1f2937",
        "muted": "#6b7280",
        "accent": "#0284c7",
        "accent_fg": "#ffffff",
        "field": "#ffffff",
        "error": "#b91c1c",
    },
    "dark": {
        "bg": "#111827",
        "panel": "#1f2937",
        "fg": "#e5e7eb",
        "muted": "#9ca3af",
        "accent": "#38bdf8",
        "accent_fg": "#0f172a",
        "field": "#374151",
        "error": "#fca5a5",
    },
}
CATEGORY_COLORS = {
    TardinessCategory.RINGAN: "#16a34a",
    TardinessCategory.SEDANG: "#ca8a04",
    TardinessCategory.BERAT: "#dc2626",
}
EXPORT_LABELS = {"csv": "CSV", "xlsx": "Excel", "pdf": "PDF"}


def _logo_image(size: int = 40) -> Image.Image:
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.ellipse([2, 2, size - 2, size - 2], fill=(2, 132, 199, 255))
    draw.ellipse([6, 6, size - 6, size - 6], fill=(255, 255, 255, 255))
    center = size // 2
    draw.line([center, center, center, 9], fill=(2, 132, 199, 255), width=3)
    draw.line([center, center, size - 11, center + 4], fill=(220, 38, 38, 255), width=3)
    return image


class LazGoApp(tk.Tk):
    def __init__(self, controller: TardinessController, roster: Roster, export_dir: Path):
        super().__init__()
        self.title("LazGo - Pencatatan Keterlambatan Siswa")
        self.geometry("1280x860")
        self.minsize(1040, 700)

        self.controller = controller
        self.roster = roster
        self.export_dir = export_dir
        self.events: queue.Queue[tuple[str, object]] = queue.Queue()
        self._themed_text: list[tk.Text | tk.Listbox] = []

        self._logo = ImageTk.PhotoImage(_logo_image())
        self._icon = ImageTk.PhotoImage(_logo_image(64))
        self.iconphoto(True, self._icon)

        self.style = ttk.Style(self)
        self.style.theme_use("clam")

        self.active_tab = tk.StringVar(value="daily")
        self.name_var = tk.StringVar()
        self.class_var = tk.StringVar()
        self.arrival_var = tk.StringVar(value=datetime.now().strftime("%H:%M"))
        self.reason_var = tk.StringVar(value=DEFAULT_REASON)
        self.custom_reason_var = tk.StringVar()
        self.daily_status_var = tk.StringVar(value="")
        self.monthly_status_var = tk.StringVar(value="")
        self.month_var = tk.StringVar()
        self.year_var = tk.StringVar()
        self.stats_vars = {key: tk.StringVar(value="-") for key in ("reason", "class", "average", "categories")}

        self._build_shell()
        self._apply_theme()
        self._refresh_daily()
        self._refresh_period_choices()
        self._show_tab("daily")

        self.after(250, self._drain_events)

    # -- layout ------------------------------------------------------------

    def _build_shell(self) -> None:
        header = ttk.Frame(self, style="Header.TFrame", padding=(16, 10))
        header.pack(fill="x")
        ttk.Label(header, image=self._logo, style="Header.TLabel").pack(side="left")
        title_box = ttk.Frame(header, style="Header.TFrame")
        title_box.pack(side="left", padx=10)
        ttk.Label(title_box, text="LazGo", style="HeaderTitle.TLabel").pack(anchor="w")
        ttk.Label(title_box, text=long_date(self.controller.today()), style="Header.TLabel").pack(anchor="w")

        self.theme_button = ttk.Button(header, command=self._toggle_theme, style="Accent.TButton")
        self.theme_button.pack(side="right")
        self.tab_buttons: dict[str, ttk.Button] = {}
        for key, label in (("monthly", "Laporan Bulanan"), ("daily", "Harian")):
            button = ttk.Button(header, text=label, command=lambda k=key: self._show_tab(k))
            button.pack(side="right", padx=4)
            self.tab_buttons[key] = button

        body = ttk.Frame(self, padding=12)
        body.pack(fill="both", expand=True)
        self.views = {"daily": self._build_daily_view(body), "monthly": self._build_monthly_view(body)}

        log_frame = ttk.Frame(self, padding=(12, 0, 12, 12))
        log_frame.pack(fill="x")
        ttk.Label(log_frame, text="Aktivitas", style="Muted.TLabel").pack(anchor="w")
        self.log_output = ScrolledText(log_frame, height=4, state="disabled", relief="flat")
        self.log_output.pack(fill="x")
        self._themed_text.append(self.log_output)

    def _build_daily_view(self, parent: ttk.Frame) -> ttk.Frame:
        view = ttk.Frame(parent)
        view.columnconfigure(0, weight=2, uniform="daily")
        view.columnconfigure(1, weight=3, uniform="daily")
        view.rowconfigure(0, weight=1)

        left = ttk.Frame(view)
        left.grid(row=0, column=0, sticky="nsew", padx=(0, 10))
        self._build_form(left)
        self._build_insight(left)

        right = ttk.Frame(view, style="Panel.TFrame", padding=12)
        right.grid(row=0, column=1, sticky="nsew")
        right.columnconfigure(0, weight=1)
        right.rowconfigure(7, weight=1)

        ttk.Label(right, text="Ringkasan Keterlambatan", style="PanelTitle.TLabel").grid(row=0, column=0, sticky="w")
        self.summary_text = self._text(right, height=4)
        self.summary_text.grid(row=1, column=0, sticky="ew", pady=(2, 8))

        wa_head = ttk.Frame(right, style="Panel.TFrame")
        wa_head.grid(row=2, column=0, sticky="ew")
        ttk.Label(wa_head, text="Pesan WhatsApp untuk Orang Tua", style="PanelTitle.TLabel").pack(side="left")
        ttk.Button(wa_head, text="Salin", command=self._copy_whatsapp).pack(side="right")
        self.whatsapp_text = self._text(right, height=6)
        self.whatsapp_text.grid(row=3, column=0, sticky="ew", pady=(2, 8))

        ttk.Label(right, text="Rekap Harian", style="PanelTitle.TLabel").grid(row=4, column=0, sticky="w")
        self.recap_text = self._text(right, height=5)
        self.recap_text.grid(row=5, column=0, sticky="ew", pady=(2, 4))
        self.daily_status = ttk.Label(right, textvariable=self.daily_status_var, style="Status.TLabel")
        self.daily_status.grid(row=6, column=0, sticky="w")

        list_frame = ttk.Frame(right, style="Panel.TFrame")
        list_frame.grid(row=7, column=0, sticky="nsew", pady=(8, 0))
        list_frame.columnconfigure(0, weight=1)
        list_frame.rowconfigure(1, weight=1)
        bar = ttk.Frame(list_frame, style="Panel.TFrame")
        bar.grid(row=0, column=0, sticky="ew")
        ttk.Label(bar, text="Siswa Terlambat Hari Ini", style="PanelTitle.TLabel").pack(side="left")
        for fmt in reversed(EXPORT_FORMATS):
            ttk.Button(bar, text=EXPORT_LABELS[fmt], command=lambda f=fmt: self._export("daily", f)).pack(
                side="right", padx=2
            )
        self.daily_tree = self._tree(list_frame, ("time", "name", "class", "duration", "category", "reason"))
        self.daily_tree.grid(row=1, column=0, sticky="nsew")
        return view

    def _build_form(self, parent: ttk.Frame) -> None:
        form = ttk.Frame(parent, style="Panel.TFrame", padding=12)
        form.pack(fill="x")
        form.columnconfigure(0, weight=1)
        form.columnconfigure(1, weight=1)
        ttk.Label(form, text="Formulir Keterlambatan", style="PanelTitle.TLabel").grid(
            row=0, column=0, columnspan=2, sticky="w", pady=(0, 6)
        )

        ttk.Label(form, text="Nama Siswa", style="Panel.TLabel").grid(row=1, column=0, columnspan=2, sticky="w")
        name_entry = ttk.Entry(form, textvariable=self.name_var)
        name_entry.grid(row=2, column=0, columnspan=2, sticky="ew")
        self.name_suggestions = self._listbox(form)
        self.name_suggestions.grid(row=3, column=0, columnspan=2, sticky="ew")
        self.name_suggestions.grid_remove()
        self._name_matches: list[StudentInfo] = []
        self.name_var.trace_add("write", lambda *_: self._update_name_suggestions())
        self.name_suggestions.bind("<<ListboxSelect>>", self._pick_name_suggestion)
        name_entry.bind("<FocusOut>", lambda _e: self.after(200, self.name_suggestions.grid_remove))

        ttk.Label(form, text="Kelas", style="Panel.TLabel").grid(row=4, column=0, columnspan=2, sticky="w", pady=(6, 0))
        class_entry = ttk.Entry(form, textvariable=self.class_var)
        class_entry.grid(row=5, column=0, columnspan=2, sticky="ew")
        self.class_suggestions = self._listbox(form)
        self.class_suggestions.grid(row=6, column=0, columnspan=2, sticky="ew")
        self.class_suggestions.grid_remove()
        self.class_var.trace_add("write", lambda *_: self._update_class_suggestions())
        self.class_suggestions.bind("<<ListboxSelect>>", self._pick_class_suggestion)
        class_entry.bind("<FocusOut>", lambda _e: self.after(200, self.class_suggestions.grid_remove))

        ttk.Label(form, text="Jam Masuk", style="Panel.TLabel").grid(row=7, column=0, sticky="w", pady=(6, 0))
        ttk.Label(form, text="Jam Datang (HH:MM)", style="Panel.TLabel").grid(row=7, column=1, sticky="w", pady=(6, 0))
        start = ttk.Entry(form)
        start.insert(0, self.controller.school_start_time)
        start.configure(state="disabled")
        start.grid(row=8, column=0, sticky="ew", padx=(0, 6))
        ttk.Entry(form, textvariable=self.arrival_var).grid(row=8, column=1, sticky="ew")

        ttk.Label(form, text="Alasan Keterlambatan", style="Panel.TLabel").grid(
            row=9, column=0, columnspan=2, sticky="w", pady=(6, 0)
        )
        reason_box = ttk.Combobox(form, textvariable=self.reason_var, values=REASONS, state="readonly")
        reason_box.grid(row=10, column=0, columnspan=2, sticky="ew")
        reason_box.bind("<<ComboboxSelected>>", lambda _e: self._toggle_custom_reason())
        self.custom_reason_label = ttk.Label(form, text="Alasan Lainnya", style="Panel.TLabel")
        self.custom_reason_entry = ttk.Entry(form, textvariable=self.custom_reason_var)
        self.custom_reason_label.grid(row=11, column=0, columnspan=2, sticky="w", pady=(6, 0))
        self.custom_reason_entry.grid(row=12, column=0, columnspan=2, sticky="ew")
        self._toggle_custom_reason()

        ttk.Button(form, text="Proses & Buat Laporan", command=self._submit, style="Accent.TButton").grid(
            row=13, column=0, columnspan=2, sticky="ew", pady=(12, 0)
        )

    def _build_insight(self, parent: ttk.Frame) -> None:
        panel = ttk.Frame(parent, style="Panel.TFrame", padding=12)
        panel.pack(fill="x", pady=(10, 0))
        ttk.Label(panel, text="Analisis Pola Harian", style="PanelTitle.TLabel").grid(
            row=0, column=0, columnspan=2, sticky="w", pady=(0, 6)
        )
        rows = (
            ("Alasan Paling Umum", "reason"),
            ("Kelas Teratas", "class"),
            ("Rata-rata Terlambat", "average"),
            ("Distribusi Kategori", "categories"),
        )
        for idx, (label, key) in enumerate(rows, start=1):
            ttk.Label(panel, text=label, style="Muted.TLabel").grid(row=idx, column=0, sticky="w", padx=(0, 12))
            ttk.Label(panel, textvariable=self.stats_vars[key], style="Panel.TLabel").grid(row=idx, column=1, sticky="w")

    def _build_monthly_view(self, parent: ttk.Frame) -> ttk.Frame:
        view = ttk.Frame(parent, style="Panel.TFrame", padding=12)
        view.columnconfigure(0, weight=1)
        view.rowconfigure(3, weight=1)
        view.rowconfigure(5, weight=1)

        bar = ttk.Frame(view, style="Panel.TFrame")
        bar.grid(row=0, column=0, sticky="ew")
        ttk.Label(bar, text="Bulan", style="Panel.TLabel").pack(side="left")
        self.month_box = ttk.Combobox(bar, textvariable=self.month_var, state="readonly", width=12)
        self.month_box.pack(side="left", padx=(4, 10))
        ttk.Label(bar, text="Tahun", style="Panel.TLabel").pack(side="left")
        self.year_box = ttk.Combobox(bar, textvariable=self.year_var, state="readonly", width=8)
        self.year_box.pack(side="left", padx=(4, 10))
        self.month_box.bind("<<ComboboxSelected>>", lambda _e: self._on_period_changed())
        self.year_box.bind("<<ComboboxSelected>>", lambda _e: self._on_year_changed())
        self.monthly_button = ttk.Button(
            bar, text="Rekap Laporan Bulanan", command=self._generate_monthly, style="Accent.TButton"
        )
        self.monthly_button.pack(side="left")
        for fmt in reversed(EXPORT_FORMATS):
            ttk.Button(bar, text=EXPORT_LABELS[fmt], command=lambda f=fmt: self._export("monthly", f)).pack(
                side="right", padx=2
            )

        self.monthly_status = ttk.Label(view, textvariable=self.monthly_status_var, style="Status.TLabel")
        self.monthly_status.grid(row=1, column=0, sticky="w", pady=(6, 0))
        ttk.Label(view, text="Laporan Analisis AI", style="PanelTitle.TLabel").grid(row=2, column=0, sticky="w")
        self.report_text = self._text(view, height=12)
        self.report_text.grid(row=3, column=0, sticky="nsew", pady=(2, 8))

        self.parent_frame = ttk.Frame(view, style="Panel.TFrame")
        self.parent_frame.grid(row=4, column=0, sticky="ew")
        self.parent_frame.columnconfigure(0, weight=1)
        head = ttk.Frame(self.parent_frame, style="Panel.TFrame")
        head.grid(row=0, column=0, sticky="ew")
        ttk.Label(head, text="Pemberitahuan Orang Tua", style="PanelTitle.TLabel").pack(side="left")
        ttk.Button(head, text="Salin", command=self._copy_parent_message).pack(side="right")
        self.parent_caption = ttk.Label(self.parent_frame, style="Muted.TLabel")
        self.parent_caption.grid(row=1, column=0, sticky="w")
        self.parent_text = self._text(self.parent_frame, height=5)
        self.parent_text.grid(row=2, column=0, sticky="ew", pady=(2, 8))
        self.parent_frame.grid_remove()

        self.monthly_tree = self._tree(view, ("date", "name", "class", "duration", "category", "reason"))
        self.monthly_tree.grid(row=5, column=0, sticky="nsew")
        return view

    def _text(self, parent, height: int) -> ScrolledText:
        widget = ScrolledText(parent, height=height, wrap="word", state="disabled", relief="flat")
        self._themed_text.append(widget)
        return widget

    def _listbox(self, parent) -> tk.Listbox:
        widget = tk.Listbox(parent, height=5, relief="flat", activestyle="none", exportselection=False)
        self._themed_text.append(widget)
        return widget

    @staticmethod
    def _tree(parent, columns: tuple[str, ...]) -> ttk.Treeview:
        headings = {
            "time": ("Jam Datang", 90),
            "date": ("Tanggal", 90),
            "name": ("Nama Siswa", 200),
            "class": ("Kelas", 80),
            "duration": ("Durasi (mnt)", 90),
            "category": ("Kategori", 90),
            "reason": ("Alasan", 180),
        }
        tree = ttk.Treeview(parent, columns=columns, show="headings", height=8)
        for column in columns:
            text, width = headings[column]
            tree.heading(column, text=text)
            tree.column(column, width=width, anchor="w")
        for category, color in CATEGORY_COLORS.items():
            tree.tag_configure(category.value, foreground=color)
        return tree

    # -- theme -------------------------------------------------------------

    def _apply_theme(self) -> None:
        palette = PALETTES[self.controller.theme]
        self.configure(bg=palette["bg"])
        s = self.style
        s.configure(".", background=palette["bg"], foreground=palette["fg"], fieldbackground=palette["field"])
        s.configure("TFrame", background=palette["bg"])
        s.configure("Header.TFrame", background=palette["accent"])
        s.configure("Header.TLabel", background=palette["accent"], foreground=palette["accent_fg"])
        s.configure(
            "HeaderTitle.TLabel",
            background=palette["accent"],
            foreground=palette["accent_fg"],
            font=("Segoe UI", 16, "bold"),
        )
        s.configure("Panel.TFrame", background=palette["panel"])
        s.configure("Panel.TLabel", background=palette["panel"], foreground=palette["fg"])
        s.configure("PanelTitle.TLabel", background=palette["panel"], foreground=palette["accent"], font=("Segoe UI", 11, "bold"))
        s.configure("Muted.TLabel", background=palette["panel"], foreground=palette["muted"])
        s.configure("Status.TLabel", background=palette["panel"], foreground=palette["muted"])
        s.configure("Error.TLabel", background=palette["panel"], foreground=palette["error"])
        s.configure("Accent.TButton", background=palette["accent"], foreground=palette["accent_fg"])
        s.configure("TEntry", fieldbackground=palette["field"], foreground=palette["fg"])
        s.configure("TCombobox", fieldbackground=palette["field"], foreground=palette["fg"])
        s.configure("Treeview", background=palette["field"], fieldbackground=palette["field"], foreground=palette["fg"])
        s.configure("Treeview.Heading", background=palette["panel"], foreground=palette["fg"])

        for widget in self._themed_text:
            widget.configure(
                bg=palette["field"],
                fg=palette["fg"],
                insertbackground=palette["fg"],
                selectbackground=palette["accent"],
            )
        self.theme_button.configure(text="Mode Terang" if self.controller.theme == "dark" else "Mode Gelap")

    def _toggle_theme(self) -> None:
        theme = self.controller.toggle_theme()
        self._apply_theme()
        self._append_log(f"Tema diganti ke {theme}.")

    def _show_tab(self, key: str) -> None:
        self.active_tab.set(key)
        for name, frame in self.views.items():
            if name == key:
                frame.pack(fill="both", expand=True)
            else:
                frame.pack_forget()
        for name, button in self.tab_buttons.items():
            button.configure(style="Accent.TButton" if name == key else "TButton")
        if key == "monthly":
            self._refresh_period_choices()

    # -- suggestions -------------------------------------------------------

    def _update_name_suggestions(self) -> None:
        self._name_matches = self.roster.suggest_students(self.name_var.get())
        self._fill_listbox(self.name_suggestions, [f"{s.name} ({s.class_name})" for s in self._name_matches])

    def _pick_name_suggestion(self, _event=None) -> None:
        selection = self.name_suggestions.curselection()
        if not selection:
            return
        student = self._name_matches[selection[0]]
        self.name_var.set(student.name)
        self.class_var.set(student.class_name)
        self.name_suggestions.grid_remove()
        self.class_suggestions.grid_remove()

    def _update_class_suggestions(self) -> None:
        self._fill_listbox(self.class_suggestions, self.roster.suggest_classes(self.class_var.get()))

    def _pick_class_suggestion(self, _event=None) -> None:
        selection = self.class_suggestions.curselection()
        if not selection:
            return
        self.class_var.set(self.class_suggestions.get(selection[0]))
        self.class_suggestions.grid_remove()

    @staticmethod
    def _fill_listbox(widget: tk.Listbox, items: list[str]) -> None:
        widget.delete(0, "end")
        for item in items:
            widget.insert("end", item)
        if items:
            widget.configure(height=len(items))
            widget.grid()
        else:
            widget.grid_remove()

    def _toggle_custom_reason(self) -> None:
        if self.reason_var.get() == OTHER_REASON:
            self.custom_reason_label.grid()
            self.custom_reason_entry.grid()
        else:
            self.custom_reason_label.grid_remove()
            self.custom_reason_entry.grid_remove()

    # -- daily flow --------------------------------------------------------

    def _submit(self) -> None:
        data = StudentData(
            name=self.name_var.get(),
            class_name=self.class_var.get(),
            arrival_time=self.arrival_var.get(),
            reason=resolve_reason(self.reason_var.get(), self.custom_reason_var.get()),
        )
        try:
            submission = self.controller.submit(data)
        except ValidationError as exc:
            messagebox.showwarning("Data belum lengkap", str(exc))
            return

        self._reset_form()
        self._refresh_daily()
        self._refresh_period_choices()
        self._append_log(
            f"Tercatat: {submission.record.name} ({submission.record.class_name}), "
            f"{submission.record.duration_minutes} menit, {submission.record.category.value}."
        )
        self._request_daily_report(submission)

    def _request_daily_report(self, submission: Submission) -> None:
        self.controller.begin_daily_report()
        self._render_daily_slot()

        def _worker() -> None:
            try:
                output = self.controller.fetch_daily_report(submission)
                self.events.put(("daily_done", output))
            except AIServiceError as exc:
                self.events.put(("daily_error", exc))

        threading.Thread(target=_worker, name="lazgo-daily-report", daemon=True).start()

    def _reset_form(self) -> None:
        self.name_var.set("")
        self.class_var.set("")
        self.arrival_var.set(datetime.now().strftime("%H:%M"))
        self.reason_var.set(DEFAULT_REASON)
        self.custom_reason_var.set("")
        self._toggle_custom_reason()

    def _refresh_daily(self) -> None:
        self.daily_tree.delete(*self.daily_tree.get_children())
        for record in most_recent_first(self.controller.daily_records()):
            self.daily_tree.insert(
                "",
                "end",
                values=(
                    record.arrival_time,
                    record.name,
                    record.class_name,
                    record.duration_minutes,
                    record.category.value,
                    record.reason,
                ),
                tags=(record.category.value,),
            )

        stats = self.controller.daily_stats()
        if stats is None:
            for var in self.stats_vars.values():
                var.set("Belum ada data hari ini.")
        else:
            self.stats_vars["reason"].set(stats.most_common_reason)
            self.stats_vars["class"].set(stats.top_class)
            self.stats_vars["average"].set(f"{stats.average_duration} menit")
            self.stats_vars["categories"].set(
                "  ".join(f"{category.value}: {count}" for category, count in stats.category_counts.items())
            )
        self._render_daily_slot()

    def _render_daily_slot(self) -> None:
        slot = self.controller.daily_slot
        output = slot.value
        if output is not None:
            self._set_text(self.summary_text, output.summary)
            self._set_text(self.whatsapp_text, output.whatsapp)
            self._set_text(self.recap_text, output.daily_recap)
        elif slot.state is SlotState.EMPTY:
            self._set_text(self.summary_text, "Menunggu data keterlambatan. Silakan isi formulir untuk membuat laporan.")
            self._set_text(self.whatsapp_text, "")
            self._set_text(self.recap_text, "")

        if slot.state is SlotState.LOADING:
            self.daily_status.configure(style="Status.TLabel")
            self.daily_status_var.set("Membuat laporan AI...")
        elif slot.state is SlotState.ERRORED:
            self.daily_status.configure(style="Error.TLabel")
            self.daily_status_var.set(f"{slot.error} Data siswa tetap tersimpan.")
        else:
            self.daily_status.configure(style="Status.TLabel")
            self.daily_status_var.set("")

    def _copy_whatsapp(self) -> None:
        output = self.controller.daily_slot.value
        if output is not None:
            self._copy_to_clipboard(output.whatsapp)

    # -- monthly flow ------------------------------------------------------

    def _refresh_period_choices(self) -> None:
        periods = self.controller.periods()
        years = [str(year) for year in periods]
        self.year_box.configure(values=years)
        year = self.controller.selected_year
        months = periods.get(year, [])
        self.month_box.configure(values=[MONTH_NAMES[m - 1] for m in months])
        self.year_var.set(str(year))
        self.month_var.set(MONTH_NAMES[self.controller.selected_month - 1])
        self._refresh_monthly()

    def _on_year_changed(self) -> None:
        year = int(self.year_var.get())
        months = self.controller.periods().get(year, [])
        month = self.controller.selected_month if self.controller.selected_month in months else months[-1]
        self.controller.select_period(year, month)
        self._refresh_period_choices()

    def _on_period_changed(self) -> None:
        month = MONTH_NAMES.index(self.month_var.get()) + 1
        self.controller.select_period(int(self.year_var.get()), month)
        self._refresh_monthly()

    def _refresh_monthly(self) -> None:
        self.monthly_tree.delete(*self.monthly_tree.get_children())
        for record in self.controller.monthly_records():
            self.monthly_tree.insert(
                "",
                "end",
                values=(
                    f"{record.local_date.day}/{record.local_date.month}/{record.local_date.year}",
                    record.name,
                    record.class_name,
                    record.duration_minutes,
                    record.category.value,
                    record.reason,
                ),
                tags=(record.category.value,),
            )
        self._render_monthly_slot()

    def _generate_monthly(self) -> None:
        try:
            records = self.controller.begin_monthly_report()
        except ValidationError as exc:
            messagebox.showinfo("Laporan bulanan", str(exc))
            return
        self._render_monthly_slot()
        self._append_log(f"Membuat laporan bulanan untuk {len(records)} catatan.")

        def _worker() -> None:
            try:
                result = self.controller.fetch_monthly_report(records)
                self.events.put(("monthly_done", result))
            except AIServiceError as exc:
                self.events.put(("monthly_error", exc))

        threading.Thread(target=_worker, name="lazgo-monthly-report", daemon=True).start()

    def _render_monthly_slot(self) -> None:
        slot = self.controller.monthly_slot
        self.parent_frame.grid_remove()
        if slot.state is SlotState.LOADING:
            self.monthly_button.configure(state="disabled", text="Membuat Laporan...")
            self.monthly_status.configure(style="Status.TLabel")
            self.monthly_status_var.set("Menunggu analisis AI...")
            self._set_text(self.report_text, "")
            return

        self.monthly_button.configure(state="normal", text="Rekap Laporan Bulanan")
        if slot.state is SlotState.ERRORED:
            self.monthly_status.configure(style="Error.TLabel")
            self.monthly_status_var.set(slot.error or "Gagal membuat laporan bulanan.")
            self._set_text(self.report_text, slot.value.report if slot.value else "")
        elif slot.state is SlotState.READY and slot.value is not None:
            result = slot.value
            self.monthly_status.configure(style="Status.TLabel")
            self.monthly_status_var.set("")
            self._set_text(self.report_text, result.report)
            if result.parent_message and result.top_offender:
                offender = result.top_offender
                self.parent_caption.configure(
                    text=(
                        f"Saran pesan untuk orang tua dari ananda {offender.name} ({offender.class_name}) "
                        f"yang terlambat sebanyak {offender.count} kali bulan ini."
                    )
                )
                self._set_text(self.parent_text, result.parent_message)
                self.parent_frame.grid()
        else:
            self.monthly_status.configure(style="Status.TLabel")
            self.monthly_status_var.set(
                'Pilih bulan dan tahun, lalu klik "Rekap Laporan Bulanan" untuk melihat analisis AI.'
            )
            self._set_text(self.report_text, "")

    def _copy_parent_message(self) -> None:
        result = self.controller.monthly_slot.value
        if result is not None and result.parent_message:
            self._copy_to_clipboard(result.parent_message)

    # -- export ------------------------------------------------------------

    def _export(self, scope: str, fmt: str) -> None:
        target_dir = filedialog.askdirectory(
            title=f"Simpan ekspor {EXPORT_LABELS[fmt]}",
            initialdir=str(self.export_dir),
            mustexist=True,
        )
        if not target_dir:
            return
        try:
            if scope == "daily":
                path = self.controller.export_daily(fmt, Path(target_dir))
            else:
                path = self.controller.export_monthly(fmt, Path(target_dir))
        except ExportError as exc:
            messagebox.showwarning("Ekspor", str(exc))
            return
        except OSError as exc:
            logger.error("Export failed: %s", exc)
            messagebox.showerror("Ekspor", f"Gagal menyimpan file:\n{exc}")
            return
        self._append_log(f"Diekspor: {path}")

    # -- events ------------------------------------------------------------

    def _drain_events(self) -> None:
        while True:
            try:
                kind, payload = self.events.get_nowait()
            except queue.Empty:
                break

            if kind == "daily_done":
                self.controller.complete_daily_report(payload)
                self._append_log("Laporan AI harian dibuat.")
                self._render_daily_slot()
            elif kind == "daily_error":
                self.controller.fail_daily_report(str(payload))
                self._append_log(f"Laporan AI harian gagal: {payload}")
                self._render_daily_slot()
            elif kind == "monthly_done":
                self.controller.complete_monthly_report(payload)
                self._append_log("Laporan bulanan dibuat.")
                self._render_monthly_slot()
            elif kind == "monthly_error":
                self.controller.fail_monthly_report(str(payload))
                self._append_log(f"Laporan bulanan gagal: {payload}")
                self._render_monthly_slot()

        self.after(250, self._drain_events)

    # -- helpers -----------------------------------------------------------

    def _copy_to_clipboard(self, text: str) -> None:
        self.clipboard_clear()
        self.clipboard_append(text)
        self._append_log("Pesan disalin ke clipboard.")

    def _append_log(self, message: str) -> None:
        self.log_output.configure(state="normal")
        self.log_output.insert("end", f"[{datetime.now().strftime('%H:%M:%S')}] {message}\n")
        self.log_output.see("end")
        self.log_output.configure(state="disabled")

    @staticmethod
    def _set_text(widget: ScrolledText, value: str) -> None:
        original_state = str(widget.cget("state"))
        widget.configure(state="normal")
        widget.delete("1.0", "end")
        widget.insert("end", value or "")
        if original_state in {"disabled", "normal"}:
            widget.configure(state=original_state)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lazgo")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    parser.add_argument("--data-dir", type=Path, help="Directory for the local store, logs and roster")
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    try:
        settings = load_settings(data_dir=args.data_dir)
    except ConfigurationError as exc:
        print(f"lazgo: {exc}", file=sys.stderr)
        return 2

    ensure_directories(settings.data_dir)
    setup_logging(settings.log_level, log_path(settings.data_dir))
    logger.info("Starting LazGo %s (data dir %s, model %s)", __version__, settings.data_dir, settings.model)

    repository = RecordRepository(LazGoStore(database_path(settings.data_dir)))
    reporter = TardinessReporter(GeminiTextClient(settings.api_key.get_value(), settings.model))
    controller = TardinessController(
        repository,
        reporter,
        school_start_time=settings.school_start_time,
        on_time_policy=settings.on_time_policy,
    )
    roster = Roster.load(settings.roster_file)

    app = LazGoApp(controller, roster, exports_directory(settings.data_dir))
    app.mainloop()
    return 0
