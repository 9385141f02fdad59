from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable

import pandas as pd


TIMESTAMP_FMT = "%Y%m%d_%H%M%S"


def timestamp() -> str:
    """Generate a filesystem-friendly timestamp."""
    return datetime.now().strftime(TIMESTAMP_FMT)


def is_blank(value: object) -> bool:
    """Return True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_candidates(files: Iterable[Path]) -> str:
    return ", ".join(sorted(str(p) for p in files))


def describe_exception(exc: Exception) -> str:
    return f"{exc.__class__.__name__}: {exc}"
