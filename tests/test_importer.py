from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from simola_import.backend import BackendError
from simola_import.config import ExcelSelection, ImportOptions, RuntimeConfig
from simola_import.excel_loader import WorkbookReadError
from simola_import.importer import import_rows, process_import
from simola_import.logbook import LogBook


def _report(n: int, **overrides):
    row = {
        "jenis": "pengaduan",
        "kategori": "kecelakaan",
        "lokasi": f"Lokasi {n}",
        "pelapor": f"Pelapor {n}",
    }
    row.update(overrides)
    return row


class FakeCreate:
    """Collaborator palsu: mencatat urutan panggilan, bisa menolak baris tertentu."""

    def __init__(self, reject: dict[str, Exception] | None = None):
        self.reject = reject or {}
        self.calls: list[object] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, record):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append(record)
            key = getattr(record, "lokasi", None) or getattr(record, "subject", None)
            if key in self.reject:
                raise self.reject[key]
            return {"id": str(len(self.calls)), "nomor_laporan": f"LP{len(self.calls):03d}"}
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_malformed_rows_are_counted_and_batch_continues():
    rows = [_report(i) for i in range(12)]
    rows[3]["lokasi"] = None
    rows[7]["lokasi"] = ""
    create = FakeCreate()

    result = await import_rows(rows, "laporan", create)

    assert result.success == 10
    assert result.failed == 2
    assert result.errors == [
        "Baris 5: Field wajib tidak lengkap",
        "Baris 9: Field wajib tidak lengkap",
    ]
    assert len(create.calls) == 10
    assert create.max_in_flight == 1


@pytest.mark.asyncio
async def test_errors_are_capped_but_counts_are_exact():
    rows = [_report(i, jenis="salah") for i in range(15)] + [_report(99)]
    result = await import_rows(rows, "laporan", FakeCreate())

    assert result.failed == 15
    assert result.success == 1
    assert len(result.errors) == 10
    assert result.errors[0] == "Baris 2: Jenis tidak valid (salah)"
    assert result.has_more_errors
    assert result.total == len(rows)


@pytest.mark.asyncio
async def test_create_rejection_is_row_scoped():
    rows = [_report(i) for i in range(5)]
    create = FakeCreate(reject={"Lokasi 2": BackendError("duplicate key value", code="23505")})

    result = await import_rows(rows, "laporan", create)

    assert result.success == 4
    assert result.failed == 1
    assert result.errors == ["duplicate key value"]
    assert [r.lokasi for r in create.calls] == [f"Lokasi {i}" for i in range(5)]


@pytest.mark.asyncio
async def test_rejection_without_message_uses_row_fallback():
    rows = [_report(i) for i in range(5)]
    create = FakeCreate(reject={"Lokasi 4": RuntimeError()})

    result = await import_rows(rows, "laporan", create)

    assert result.success == 4
    assert result.errors == ["Baris 6: Error tidak diketahui"]


@pytest.mark.asyncio
async def test_empty_sheet_gives_empty_tally():
    result = await import_rows([], "feedback", FakeCreate())
    assert (result.success, result.failed, result.errors) == (0, 0, [])


@pytest.mark.asyncio
async def test_dry_run_validates_without_create(tmp_path: Path):
    rows = [
        {"feedback_type": "pujian", "subject": "a", "message": "b", "rating": "5", "nama": "c"},
        {"feedback_type": "pujian", "subject": "a", "message": "b", "rating": "9", "nama": "c"},
    ]
    create = FakeCreate()
    logbook = LogBook(tmp_path / "log.csv")

    result = await import_rows(rows, "feedback", create, logbook=logbook, dry_run=True)

    assert result.success == 1
    assert result.failed == 1
    assert create.calls == []
    assert [(e.row_index, e.level, e.stage) for e in logbook.events] == [
        (2, "OK", "DRY_RUN"),
        (3, "ERROR", "VALIDATE"),
    ]


@pytest.mark.asyncio
async def test_logbook_records_every_row(tmp_path: Path):
    rows = [_report(0), _report(1, pelapor=None), _report(2)]
    create = FakeCreate(reject={"Lokasi 2": BackendError("permission denied")})
    logbook = LogBook(tmp_path / "log.csv")

    await import_rows(rows, "laporan", create, logbook=logbook)

    events = logbook.events
    assert [(e.row_index, e.level, e.stage) for e in events] == [
        (2, "OK", "ROW_DONE"),
        (3, "ERROR", "VALIDATE"),
        (4, "ERROR", "CREATE"),
    ]
    assert events[0].record_id == "LP001"
    assert events[2].note == "permission denied"


@pytest.mark.asyncio
async def test_process_import_reads_first_sheet_and_writes_logs(tmp_path: Path):
    workbook = tmp_path / "laporan.xlsx"
    with pd.ExcelWriter(workbook, engine="openpyxl") as writer:
        pd.DataFrame([_report(0), _report(1, jenis="prank"), _report(2, lokasi=None)]).to_excel(
            writer, sheet_name="Data", index=False
        )
        pd.DataFrame([_report(9)]).to_excel(writer, sheet_name="Lainnya", index=False)

    log_dir = tmp_path / "logs" / "2025-01-01"
    config = RuntimeConfig(log_dir=log_dir, run_id="uji")
    options = ImportOptions(kind="laporan", excel=ExcelSelection(path=workbook))
    create = FakeCreate()

    result = await process_import(options, config, create=create)

    assert (result.success, result.failed) == (2, 1)
    assert result.errors == ["Baris 4: Field wajib tidak lengkap"]
    assert [r.jenis for r in create.calls] == ["pengaduan", "prank"]
    assert (log_dir / "log_simola_import_laporan_uji.csv").is_file()
    assert (log_dir / "log_simola_import_laporan_uji.html").is_file()
    index = pd.read_csv(tmp_path / "logs" / "index.csv", dtype=str)
    assert index.loc[0, "run_id"] == "uji"
    assert index.loc[0, "success_rows"] == "2"


@pytest.mark.asyncio
async def test_process_import_unreadable_workbook_is_fatal(tmp_path: Path):
    broken = tmp_path / "rusak.xlsx"
    broken.write_bytes(b"bukan file excel")
    create = FakeCreate()
    options = ImportOptions(kind="feedback", excel=ExcelSelection(path=broken))

    with pytest.raises(WorkbookReadError):
        await process_import(options, RuntimeConfig(log_dir=tmp_path), create=create)
    assert create.calls == []
