from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from .backend import CreateRecord, SupabaseClient, creator_for
from .config import ImportOptions, RuntimeConfig
from .excel_loader import WorkbookReadError, load_rows
from .logbook import LogBook, LogEvent, update_run_index
from .models import CanonicalRecord, ImportBatchResult, RecordKind
from .normalizer import NORMALIZERS, Row
from .utils import describe_exception, timestamp
from .validator import RowValidationError, display_row

logger = logging.getLogger(__name__)

_ROW_DIVIDER = "=" * 72
_ROW_SUBDIVIDER = "-" * 72


def _row_label(record: CanonicalRecord) -> str:
    # laporan: pelapor, feedback: nama pengirim
    return getattr(record, "pelapor", "") or getattr(record, "nama", "")


def _failure_message(exc: Exception, line: int) -> str:
    message = getattr(exc, "message", None) or str(exc)
    if not message:
        return f"Baris {line}: Error tidak diketahui"
    return message


def _record_id(created: Any) -> str:
    if isinstance(created, dict):
        return str(created.get("nomor_laporan") or created.get("id") or "")
    return ""


async def import_rows(
    rows: Sequence[Row],
    kind: RecordKind,
    create: CreateRecord,
    *,
    logbook: Optional[LogBook] = None,
    dry_run: bool = False,
) -> ImportBatchResult:
    """
    Proses baris satu per satu secara berurutan.

    Setiap kegagalan baris (validasi maupun create) dicatat lalu dilanjutkan ke
    baris berikutnya; tidak ada baris yang membatalkan seluruh batch.
    """
    normalize = NORMALIZERS[kind]
    result = ImportBatchResult()

    def _log(index: int, level: str, stage: str, label: str = "", record_id: str = "", note: str = "") -> None:
        if logbook is None:
            return
        logbook.append(
            LogEvent(
                ts=timestamp(),
                row_index=display_row(index),
                level=level,  # type: ignore[arg-type]
                stage=stage,
                label=label,
                record_id=record_id,
                note=note,
            )
        )

    for index, row in enumerate(rows):
        line = display_row(index)
        stage = "VALIDATE"
        label = ""
        try:
            record = normalize(row, index)
            label = _row_label(record)
            if dry_run:
                _log(index, "OK", "DRY_RUN", label, note="Valid (dry-run, tidak dikirim).")
                result.record_success()
                continue
            stage = "CREATE"
            created = await create(record)
        except Exception as exc:  # noqa: BLE001
            message = _failure_message(exc, line)
            if not isinstance(exc, RowValidationError):
                logger.debug("Baris %s gagal: %s", line, describe_exception(exc))
            print(f"Baris {line}: GAGAL [{stage}] {message}")
            result.record_failure(message)
            _log(index, "ERROR", stage, label, note=message)
            continue

        result.record_success()
        print(f"Baris {line}: OK {label}".rstrip())
        _log(index, "OK", "ROW_DONE", label, record_id=_record_id(created), note="Baris berhasil diimport")

    result.truncate_errors()
    return result


def _print_run_summary(result: ImportBatchResult, kind: RecordKind, logbook: LogBook, config: RuntimeConfig, *, dry_run: bool) -> None:
    heading = "Dry-run selesai." if dry_run else "Selesai."
    print(f"\n{_ROW_DIVIDER}")
    print(heading)
    print(f"  - Berhasil        : {result.success} {kind}")
    print(f"  - Gagal           : {result.failed} {kind}")
    print(f"  - Log CSV         : {logbook.path}")
    if logbook.report_path:
        print(f"  - Laporan HTML    : {logbook.report_path}")
    if config.run_id:
        print(f"  - Run ID          : {config.run_id}")
    print(_ROW_SUBDIVIDER)

    if result.errors:
        print("Error yang ditemukan:")
        for message in result.errors:
            print(f" - {message}")
        if result.has_more_errors:
            print(" - ... dan error lainnya")


async def process_import(
    options: ImportOptions,
    config: RuntimeConfig,
    *,
    create: Optional[CreateRecord] = None,
) -> ImportBatchResult:
    """Baca workbook, import seluruh baris, simpan log dan ringkasan run."""
    try:
        rows = load_rows(options.excel)
    except WorkbookReadError as exc:
        print(f"Error: {exc}")
        raise

    print(f"Memproses {len(rows)} baris {options.kind} dari {options.excel.path.name}...")
    if options.dry_run:
        print("Mode dry-run aktif: baris hanya divalidasi, tidak dikirim ke backend.")

    suffix = f"{options.kind}_{config.run_id}" if config.run_id else options.kind
    log_path = config.log_dir / f"log_simola_import_{suffix}.csv"
    logbook = LogBook(log_path, report_path=log_path.with_suffix(".html"))

    client: Optional[SupabaseClient] = None
    if create is None and not options.dry_run:
        client = SupabaseClient.from_config(config)
        create = creator_for(options.kind, client, config)

    try:
        result = await import_rows(
            rows,
            options.kind,
            create or _reject_create,
            logbook=logbook,
            dry_run=options.dry_run,
        )
    finally:
        if client is not None:
            client.close()

    logbook.save()
    update_run_index(
        logbook.path.parent.parent / "index.csv",
        {
            "run_id": config.run_id,
            "started_at": config.run_started_at,
            "kind": options.kind,
            "excel": str(options.excel.path),
            "dry_run": str(options.dry_run),
            "success_rows": str(result.success),
            "failed_rows": str(result.failed),
            "log_csv": str(logbook.path),
            "log_html": str(logbook.report_path or ""),
            "profile": config.profile_path or "",
        },
    )
    _print_run_summary(result, options.kind, logbook, config, dry_run=options.dry_run)
    return result


async def _reject_create(record: CanonicalRecord) -> Any:
    raise RuntimeError("Create tidak tersedia pada mode dry-run")
