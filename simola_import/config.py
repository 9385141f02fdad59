from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Set

from .models import RecordKind
from .utils import ensure_directory


BASE_DIR = Path(__file__).resolve().parent.parent
ARTIFACTS_DIR = BASE_DIR / "artifacts"
DEFAULT_LOG_DIR = ARTIFACTS_DIR / "logs"
DEFAULT_TEMPLATE_DIR = ARTIFACTS_DIR / "templates"

DEFAULT_TABLES: Dict[str, str] = {
    "laporan": "reports",
    "feedback": "feedback",
}

DEFAULT_KEEP_RUNS = 10
DEFAULT_REQUEST_TIMEOUT = 30.0

ENV_SUPABASE_URL = "SIMOLA_SUPABASE_URL"
ENV_SUPABASE_KEY = "SIMOLA_SUPABASE_KEY"


@dataclass(slots=True)
class RuntimeConfig:
    supabase_url: str = field(default_factory=lambda: os.getenv(ENV_SUPABASE_URL, ""))
    supabase_key: str = field(default_factory=lambda: os.getenv(ENV_SUPABASE_KEY, ""))
    tables: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TABLES))
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    log_dir: Path = DEFAULT_LOG_DIR
    run_id: str = ""
    run_started_at: str = ""
    keep_runs: int = DEFAULT_KEEP_RUNS
    profile_path: Optional[str] = None


@dataclass(slots=True)
class ExcelSelection:
    path: Path
    sheet_index: int = 0


@dataclass(slots=True)
class ImportOptions:
    kind: RecordKind
    excel: ExcelSelection
    dry_run: bool = False


def _read_json_object(path: str, label: str) -> Dict[str, Any]:
    file_path = Path(path).expanduser()
    if not file_path.is_absolute():
        file_path = (Path.cwd() / file_path).resolve()

    if not file_path.is_file():
        raise FileNotFoundError(f"File {label} tidak ditemukan: {file_path}")

    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"File {label} tidak valid (JSON error): {exc}") from exc

    if not isinstance(raw, dict):
        raise RuntimeError(f"File {label} harus berupa objek/dictionary JSON.")
    return raw


def load_profile_defaults(path: str | None, allowed_keys: set[str]) -> Dict[str, Any]:
    if not path:
        return {}

    raw = _read_json_object(path, "profil")
    unknown = [key for key in raw if key not in allowed_keys]
    if unknown:
        allowed_str = ", ".join(sorted(allowed_keys))
        raise RuntimeError(f"Kunci profil tidak dikenali: {', '.join(unknown)}. Pilihan yang valid: {allowed_str}")

    return dict(raw)


def load_table_map(path: str | None) -> Dict[str, str]:
    """Gabungkan pemetaan jenis data -> nama tabel dari JSON dengan default."""
    if not path:
        return dict(DEFAULT_TABLES)

    raw = _read_json_object(path, "pemetaan tabel")
    merged = dict(DEFAULT_TABLES)
    for key, value in raw.items():
        if key not in DEFAULT_TABLES:
            raise RuntimeError(f"Jenis data tidak dikenali pada pemetaan tabel: {key}")
        if not isinstance(value, str) or not value:
            raise RuntimeError("Pemetaan tabel wajib memetakan jenis data ke nama tabel (string).")
        merged[key] = value
    return merged


def _sanitize_run_id(candidate: str | None, fallback: str) -> str:
    if not candidate:
        return fallback
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", candidate).strip("_")
    return slug or fallback


def _prune_old_runs(base_dir: Path, keep: int, reserved: Set[str]) -> None:
    if keep <= 0 or not base_dir.exists():
        return
    dirs = [p for p in base_dir.iterdir() if p.is_dir()]
    if len(dirs) <= keep:
        return
    dirs.sort(key=lambda p: p.stat().st_mtime)
    remaining = len(dirs)
    for path in dirs:
        if remaining <= keep:
            break
        if path.name in reserved:
            continue
        shutil.rmtree(path, ignore_errors=True)
        remaining -= 1


def create_run_directories(
    run_id: str | None = None,
    keep_runs: int | None = None,
    *,
    base_dir: Path = DEFAULT_LOG_DIR,
) -> tuple[str, Path, str]:
    now = datetime.now()
    day_folder = now.strftime("%Y-%m-%d")
    base_log_dir = ensure_directory(base_dir / day_folder)

    sanitized = _sanitize_run_id(run_id, now.strftime("%H-%M-%S"))

    def _exists_for_label(label: str) -> bool:
        return any(base_log_dir.glob(f"log_simola_import_*_{label}.csv"))

    candidate = sanitized
    counter = 2
    while _exists_for_label(candidate):
        candidate = f"{sanitized}-{counter:02d}"
        counter += 1

    limit = DEFAULT_KEEP_RUNS if keep_runs is None else keep_runs
    _prune_old_runs(base_dir, limit, {day_folder})

    started_at = now.isoformat(timespec="seconds")
    return candidate, base_log_dir, started_at
