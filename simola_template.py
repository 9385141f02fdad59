from __future__ import annotations

import argparse
from pathlib import Path

from simola_import.config import DEFAULT_TEMPLATE_DIR
from simola_import.models import RECORD_KINDS
from simola_import.template import write_template


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SIMOLA 110 - Buat template Excel untuk import")
    parser.add_argument("--kind", choices=RECORD_KINDS, default="laporan", help="Jenis template")
    parser.add_argument(
        "--out-dir",
        default=str(DEFAULT_TEMPLATE_DIR),
        help="Folder tujuan file template (default: artifacts/templates)",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()
    target = write_template(args.kind, Path(args.out_dir).expanduser())
    print(f"Template Excel telah dibuat: {target}")


if __name__ == "__main__":
    main()
