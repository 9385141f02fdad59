from __future__ import annotations

from pathlib import Path
from typing import Dict

import pandas as pd

from .models import RecordKind
from .normalizer import PRIMARY_COLUMNS
from .utils import ensure_directory

TEMPLATE_FILENAMES: Dict[RecordKind, str] = {
    "laporan": "template_laporan.xlsx",
    "feedback": "template_feedback.xlsx",
}
TEMPLATE_SHEETS: Dict[RecordKind, str] = {
    "laporan": "Template",
    "feedback": "Template Feedback",
}

TEMPLATE_ROWS: Dict[RecordKind, list[dict[str, object]]] = {
    "laporan": [
        {
            "jenis": "pengaduan",
            "kategori": "kecelakaan",
            "deskripsi": "Deskripsi detail laporan",
            "prioritas": "tinggi",
            "lokasi": "Jl. Malioboro, Yogyakarta",
            "pelapor": "John Doe",
            "telepon": "081234567890",
            "email": "john@email.com",
            "petugasNama": "Bripka Ahmad",
            "petugasPolres": "Polres Kota Yogyakarta",
            "petugasHp": "081234567891",
        }
    ],
    "feedback": [
        {
            "feedback_type": "saran",
            "subject": "Contoh Saran Perbaikan",
            "message": "Saran untuk meningkatkan layanan 110",
            "rating": 4,
            "nama": "John Doe",
            "email": "user@email.com",
        },
        {
            "feedback_type": "keluhan",
            "subject": "Contoh Keluhan Layanan",
            "message": "Keluhan mengenai respon time yang lambat",
            "rating": 2,
            "nama": "Jane Smith",
            "email": "user2@email.com",
        },
        {
            "feedback_type": "pujian",
            "subject": "Pelayanan Sangat Baik",
            "message": "Terima kasih atas pelayanan yang memuaskan",
            "rating": 5,
            "nama": "Alice Johnson",
            "email": "user3@email.com",
        },
    ],
}


def build_template_frame(kind: RecordKind) -> pd.DataFrame:
    """Header memakai nama kolom utama, diikuti contoh baris yang valid."""
    return pd.DataFrame(TEMPLATE_ROWS[kind], columns=list(PRIMARY_COLUMNS[kind]), dtype=object)


def write_template(kind: RecordKind, dest_dir: Path) -> Path:
    target = ensure_directory(dest_dir) / TEMPLATE_FILENAMES[kind]
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        build_template_frame(kind).to_excel(writer, sheet_name=TEMPLATE_SHEETS[kind], index=False)
    return target
