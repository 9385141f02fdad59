from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from simola_import.config import ExcelSelection
from simola_import.excel_loader import (
    WorkbookReadError,
    dataframe_to_rows,
    load_rows,
    resolve_excel,
)


def test_dataframe_to_rows_cleans_cells_and_headers():
    df = pd.DataFrame(
        {
            " jenis ": ["pengaduan", None],
            "rating": [4, float("nan")],
        },
        dtype=object,
    )
    rows = dataframe_to_rows(df)
    assert rows == [
        {"jenis": "pengaduan", "rating": 4},
        {"jenis": None, "rating": None},
    ]


def test_load_rows_reads_only_first_sheet(tmp_path: Path):
    path = tmp_path / "feedback.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(
            [
                {"Feedback Type": "Saran", "rating": 4, "nama": "A"},
                {"Feedback Type": None, "rating": None, "nama": None},
                {"Feedback Type": "pujian", "rating": "5", "nama": "B"},
            ]
        ).to_excel(writer, sheet_name="Pertama", index=False)
        pd.DataFrame([{"Feedback Type": "keluhan"}]).to_excel(writer, sheet_name="Kedua", index=False)

    rows = load_rows(ExcelSelection(path=path))

    assert [row["Feedback Type"] for row in rows] == ["Saran", "pujian"]
    assert rows[0]["rating"] == 4
    assert rows[1]["rating"] == "5"


def test_load_rows_raises_batch_fatal_error_for_corrupt_file(tmp_path: Path):
    path = tmp_path / "rusak.xlsx"
    path.write_text("bukan excel", encoding="utf-8")
    with pytest.raises(WorkbookReadError, match="Gagal memproses file Excel"):
        load_rows(ExcelSelection(path=path))


def test_resolve_excel_rejects_wrong_extension(tmp_path: Path):
    path = tmp_path / "data.csv"
    path.write_text("a,b", encoding="utf-8")
    with pytest.raises(RuntimeError, match=r"\.xlsx atau \.xls"):
        resolve_excel(str(path), tmp_path)


def test_resolve_excel_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        resolve_excel(str(tmp_path / "tidak_ada.xlsx"), tmp_path)


def test_resolve_excel_autoscan(tmp_path: Path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    only = data_dir / "laporan.xls"
    only.write_bytes(b"")
    (tmp_path / "~$laporan.xlsx").write_bytes(b"")

    selection = resolve_excel(None, tmp_path)
    assert selection.path == only.resolve()
    assert selection.sheet_index == 0

    (tmp_path / "lain.xlsx").write_bytes(b"")
    with pytest.raises(RuntimeError, match="lebih dari satu"):
        resolve_excel(None, tmp_path)


def test_resolve_excel_nothing_found(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        resolve_excel(None, tmp_path)
