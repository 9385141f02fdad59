from __future__ import annotations

import math
import re
from typing import Iterable, Mapping

JENIS_CHOICES = ("pengaduan", "informasi", "prank", "permintaan")
PRIORITAS_CHOICES = ("rendah", "sedang", "tinggi", "darurat")
FEEDBACK_TYPE_CHOICES = ("saran", "keluhan", "pujian", "bug_report", "fitur_request")

RATING_MIN = 1
RATING_MAX = 5

_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class RowValidationError(ValueError):
    """Kesalahan yang hanya berlaku untuk satu baris Excel."""

    def __init__(self, display_row: int, message: str) -> None:
        super().__init__(message)
        self.display_row = display_row
        self.message = message


def display_row(index: int) -> int:
    """Nomor baris di spreadsheet: index 0-based + baris header."""
    return index + 2


def require_fields(values: Mapping[str, object], required: Iterable[str], row: int, message: str) -> None:
    missing = [name for name in required if not values.get(name)]
    if missing:
        raise RowValidationError(row, f"Baris {row}: {message}")


def require_choice(
    raw: object,
    normalized: str,
    allowed: tuple[str, ...],
    row: int,
    label: str,
    *,
    list_allowed: bool = False,
) -> str:
    if normalized in allowed:
        return normalized
    message = f"Baris {row}: {label} tidak valid ({raw})"
    if list_allowed:
        message += f". Harus salah satu dari: {', '.join(allowed)}"
    raise RowValidationError(row, message)


def parse_rating(raw: object, row: int) -> int:
    """Parse rating 1-5 dari angka atau teks angka, lalu bulatkan."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        # ambil angka di awal teks: "4 bintang" -> 4, "3,5" -> 3
        match = _LEADING_NUMBER.match(str(raw))
        value = float(match.group(0)) if match else math.nan

    if math.isnan(value) or value < RATING_MIN or value > RATING_MAX:
        raise RowValidationError(row, f"Baris {row}: Rating harus berupa angka {RATING_MIN}-{RATING_MAX} (nilai: {raw})")
    # setengah dibulatkan ke atas, bukan banker's rounding
    return int(math.floor(value + 0.5))
