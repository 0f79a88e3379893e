from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "LazGo"


def data_directory() -> Path:
    override = os.environ.get("LAZGO_DATA_DIR")
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        local_appdata = os.environ.get("LOCALAPPDATA")
        base = Path(local_appdata) if local_appdata else Path.home() / "AppData" / "Local"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.environ.get("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def database_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "lazgo.sqlite3"


def log_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "logs" / "lazgo.log"


def roster_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / "students.json"


def exports_directory(base: Path | None = None) -> Path:
    return (base or data_directory()) / "exports"


def ensure_directories(base: Path | None = None) -> None:
    root = base or data_directory()
    (root / "logs").mkdir(parents=True, exist_ok=True)
    exports_directory(root).mkdir(parents=True, exist_ok=True)
