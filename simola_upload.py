from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from simola_import.config import (
    DEFAULT_KEEP_RUNS,
    DEFAULT_REQUEST_TIMEOUT,
    ExcelSelection,
    ImportOptions,
    RuntimeConfig,
    create_run_directories,
    load_profile_defaults,
    load_table_map,
)
from simola_import.excel_loader import WorkbookReadError, resolve_excel
from simola_import.importer import process_import
from simola_import.models import RECORD_KINDS


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    base = argparse.ArgumentParser(add_help=False)
    base.add_argument("--profile", help="Path file profil JSON berisi default argumen CLI")
    initial, remaining = base.parse_known_args(argv)

    allowed_profile_keys = {
        "kind",
        "excel",
        "dry_run",
        "supabase_url",
        "supabase_key",
        "tables",
        "timeout",
        "run_id",
        "keep_runs",
        "verbose",
    }
    profile_defaults = load_profile_defaults(initial.profile, allowed_profile_keys)

    parser = argparse.ArgumentParser(description="SIMOLA 110 - Import laporan/feedback dari Excel", parents=[base])
    parser.add_argument("--kind", choices=RECORD_KINDS, default="laporan", help="Jenis data yang diimport")
    parser.add_argument("--excel", help="Path ke file Excel (jika tidak diisi akan auto-scan folder kerja)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Hanya validasi baris tanpa mengirim data ke backend",
    )
    parser.add_argument("--supabase-url", help="URL project backend (default: env SIMOLA_SUPABASE_URL)")
    parser.add_argument("--supabase-key", help="API key backend (default: env SIMOLA_SUPABASE_KEY)")
    parser.add_argument("--tables", help="Path JSON berisi pemetaan jenis data -> nama tabel")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help=f"Timeout request per baris dalam detik (default: {DEFAULT_REQUEST_TIMEOUT:g})",
    )
    parser.add_argument("--run-id", help="Gunakan run ID khusus (huruf/angka/-/_) untuk folder artefak")
    parser.add_argument("--keep-runs", type=int, help="Batasi jumlah folder run yang dipertahankan (default 10)")
    parser.add_argument("--verbose", action="store_true", help="Tampilkan log detail request backend")
    # profil menimpa default= milik add_argument, argumen CLI tetap menang
    if profile_defaults:
        parser.set_defaults(**profile_defaults)
    parser.set_defaults(profile=initial.profile)
    return parser.parse_args(remaining)


def build_options(args: argparse.Namespace, working_dir: Path) -> tuple[ImportOptions, RuntimeConfig]:
    excel_selection: ExcelSelection = resolve_excel(args.excel, working_dir)
    keep_runs = args.keep_runs if args.keep_runs is not None else DEFAULT_KEEP_RUNS
    run_id, log_dir, started_at = create_run_directories(args.run_id, keep_runs)
    options = ImportOptions(
        kind=args.kind,
        excel=excel_selection,
        dry_run=args.dry_run,
    )

    config = RuntimeConfig(
        tables=load_table_map(args.tables),
        request_timeout=args.timeout,
        log_dir=log_dir,
        run_id=run_id,
        run_started_at=started_at,
        keep_runs=keep_runs,
        profile_path=args.profile,
    )
    if args.supabase_url:
        config.supabase_url = args.supabase_url
    if args.supabase_key:
        config.supabase_key = args.supabase_key
    return options, config


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    options, config = build_options(args, Path.cwd())
    try:
        asyncio.run(process_import(options, config))
    except WorkbookReadError:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
