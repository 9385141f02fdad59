from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from .config import ExcelSelection
from .utils import format_candidates, is_blank

EXCEL_EXTENSIONS = (".xlsx", ".xls")


class WorkbookReadError(RuntimeError):
    """File Excel tidak dapat dibaca sama sekali; tidak ada baris yang diproses."""


def _check_extension(path: Path) -> None:
    if path.suffix.lower() not in EXCEL_EXTENSIONS:
        raise RuntimeError(f"Format file salah: {path.name}. Mohon upload file Excel (.xlsx atau .xls)")


def resolve_excel(path_arg: str | None, search_dir: Path, sheet_index: int = 0) -> ExcelSelection:
    if path_arg:
        path = Path(path_arg).expanduser().resolve()
        if not path.is_file():
            raise FileNotFoundError(f"File Excel tidak ditemukan: {path}")
        _check_extension(path)
        return ExcelSelection(path=path, sheet_index=sheet_index)

    search_locations = [search_dir, search_dir / "data"]
    seen: set[Path] = set()
    candidates: list[Path] = []
    for location in search_locations:
        if not location.exists():
            continue
        for pattern in ("*.xlsx", "*.xls"):
            for candidate in sorted(location.glob(pattern)):
                resolved = candidate.resolve()
                # file kunci sementara milik Excel
                if resolved.name.startswith("~$") or resolved in seen:
                    continue
                seen.add(resolved)
                candidates.append(resolved)

    if not candidates:
        raise FileNotFoundError(
            "Tidak ditemukan file .xlsx/.xls di folder kerja maupun folder 'data'. "
            "Gunakan argumen --excel untuk memilih file secara eksplisit."
        )
    if len(candidates) > 1:
        raise RuntimeError(
            "Ditemukan lebih dari satu file Excel. Pilih salah satu dengan --excel. Kandidat: "
            f"{format_candidates(candidates)}"
        )
    return ExcelSelection(path=candidates[0], sheet_index=sheet_index)


def _clean_column_name(raw: object) -> str:
    if is_blank(raw):
        return ""
    return str(raw).strip()


def _clean_cell(value: object) -> object:
    if is_blank(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def dataframe_to_rows(df: pd.DataFrame) -> list[dict[str, object]]:
    """Ubah DataFrame menjadi list mapping kolom -> nilai sel, urut dari atas."""
    columns = [_clean_column_name(col) for col in df.columns]
    rows: list[dict[str, object]] = []
    for values in df.itertuples(index=False, name=None):
        rows.append({col: _clean_cell(val) for col, val in zip(columns, values) if col})
    return rows


def load_dataframe(selection: ExcelSelection) -> pd.DataFrame:
    """Baca satu sheet Excel; baris pertama dianggap header."""
    try:
        return pd.read_excel(selection.path, sheet_name=selection.sheet_index, dtype=object)
    except Exception as exc:  # noqa: BLE001
        raise WorkbookReadError(f"Gagal memproses file Excel: {exc}") from exc


def load_rows(selection: ExcelSelection) -> list[dict[str, object]]:
    df = load_dataframe(selection)
    # baris yang seluruh selnya kosong tidak ikut sebagai data
    df = df.dropna(how="all")
    return dataframe_to_rows(df)
