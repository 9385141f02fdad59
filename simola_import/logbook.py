from __future__ import annotations

import csv
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Literal, Optional

import pandas as pd

Level = Literal["OK", "ERROR"]


@dataclass(slots=True)
class LogEvent:
    ts: str
    row_index: int
    level: Level
    stage: str
    label: str = ""
    record_id: str = ""
    note: str = ""


@dataclass
class LogBook:
    path: Path
    report_path: Optional[Path] = None
    title: str = "Laporan Import Excel SIMOLA 110"
    _events: list[LogEvent] = field(default_factory=list)

    def append(self, event: LogEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[LogEvent]:
        return list(self._events)

    def _build_report(self, df: pd.DataFrame) -> str:
        timestamp_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level_counts = df["level"].value_counts().to_dict()
        summary_items = "".join(
            f"<li><strong>{escape(level)}</strong>: {count}</li>" for level, count in level_counts.items()
        )
        table_html = df.to_html(index=False, escape=True)
        log_dir = self.path.parent.resolve()
        csv_source = escape(os.path.relpath(self.path, log_dir).replace("\\", "/"))

        return f"""<!DOCTYPE html>
<html lang="id">
<head>
    <meta charset="utf-8">
    <title>{escape(self.title)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 2rem; background: #f8f9fa; color: #212529; }}
        h1, h2 {{ color: #1c3d8c; }}
        .summary {{ background: #e7f0ff; padding: 1rem; border-radius: 8px; margin-bottom: 1.5rem; }}
        table {{ border-collapse: collapse; width: 100%; background: #fff; }}
        th, td {{ border: 1px solid #dee2e6; padding: 0.5rem; text-align: left; font-size: 0.95rem; }}
        th {{ background: #1c3d8c; color: #fff; position: sticky; top: 0; }}
        tr:nth-child(even) {{ background: #f1f3f5; }}
    </style>
</head>
<body>
    <h1>{escape(self.title)}</h1>
    <p>Dibuat pada: {escape(timestamp_str)}</p>
    <div class="summary">
        <h2>Ringkasan Level</h2>
        <ul>
            {summary_items or "<li>Belum ada data</li>"}
        </ul>
        <p>CSV sumber: <code>{csv_source}</code></p>
    </div>
    <h2>Detail Baris</h2>
    {table_html}
</body>
</html>
"""

    def save(self) -> None:
        if not self._events:
            return
        df = pd.DataFrame([asdict(e) for e in self._events])
        self.path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(self.path, index=False)
        if self.report_path:
            report_html = self._build_report(df)
            self.report_path.parent.mkdir(parents=True, exist_ok=True)
            self.report_path.write_text(report_html, encoding="utf-8")


RUN_INDEX_FIELDS = [
    "run_id",
    "started_at",
    "kind",
    "excel",
    "dry_run",
    "success_rows",
    "failed_rows",
    "log_csv",
    "log_html",
    "profile",
]


def update_run_index(index_path: Path, entry: dict) -> None:
    index_path.parent.mkdir(parents=True, exist_ok=True)
    rows: list[dict] = []
    if index_path.exists():
        with index_path.open("r", newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            for row in reader:
                if row.get("run_id") != entry.get("run_id"):
                    rows.append(row)

    rows.append({key: entry.get(key, "") for key in RUN_INDEX_FIELDS})

    with index_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=RUN_INDEX_FIELDS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
