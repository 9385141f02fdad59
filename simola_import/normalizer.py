from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional

from .models import CanonicalRecord, ImportedFeedback, ImportedReport, RecordKind
from .utils import is_blank
from .validator import (
    FEEDBACK_TYPE_CHOICES,
    JENIS_CHOICES,
    PRIORITAS_CHOICES,
    display_row,
    parse_rating,
    require_choice,
    require_fields,
)

Row = Mapping[str, object]

# Kandidat nama kolom per field, berurutan. Kandidat pertama adalah nama
# kolom utama yang dipakai template.
REPORT_FIELD_SYNONYMS: Dict[str, tuple[str, ...]] = {
    "jenis": ("jenis", "Jenis", "jenis_laporan", "Jenis Laporan"),
    "kategori": ("kategori", "Kategori", "sub_kategori", "Sub Kategori"),
    "deskripsi": ("deskripsi", "Deskripsi", "keterangan"),
    "prioritas": ("prioritas", "Prioritas"),
    "lokasi": ("lokasi", "Lokasi", "lokasi_kejadian", "Lokasi Kejadian"),
    "pelapor": ("pelapor", "Pelapor", "pelapor_nama", "Nama Pelapor"),
    "telepon": ("telepon", "Telepon", "pelapor_telepon", "No Telepon"),
    "email": ("email", "Email", "E-mail", "pelapor_email"),
    "petugasNama": ("petugasNama", "petugas_nama", "Nama Petugas"),
    "petugasPolres": ("petugasPolres", "petugas_polres", "Polres"),
    "petugasHp": ("petugasHp", "petugas_hp", "HP Petugas"),
}
REPORT_REQUIRED_FIELDS = ("jenis", "kategori", "lokasi", "pelapor")

FEEDBACK_FIELD_SYNONYMS: Dict[str, tuple[str, ...]] = {
    "feedback_type": ("feedback_type", "Feedback Type", "feedback type", "jenis_feedback"),
    "subject": ("subject", "Subject", "subjek", "judul"),
    "message": ("message", "Message", "pesan", "isi"),
    "rating": ("rating", "Rating", "nilai", "penilaian"),
    "nama": ("nama", "Nama", "name", "Name"),
    "email": ("email", "Email", "E-mail"),
}
FEEDBACK_REQUIRED_FIELDS = ("feedback_type", "subject", "message", "rating", "nama")

DEFAULT_PRIORITAS = "sedang"


def resolve_field(row: Row, candidates: tuple[str, ...]) -> object:
    """Kembalikan nilai kolom kandidat pertama yang tidak kosong."""
    for column in candidates:
        value = row.get(column)
        if not is_blank(value):
            return value
    return None


def resolve_fields(row: Row, synonyms: Mapping[str, tuple[str, ...]]) -> Dict[str, object]:
    return {name: resolve_field(row, candidates) for name, candidates in synonyms.items()}


def _text(value: object) -> str:
    if is_blank(value):
        return ""
    return str(value).strip()


def _choice_key(value: object) -> str:
    return _text(value).lower()


def normalize_report_row(row: Row, index: int) -> ImportedReport:
    line = display_row(index)
    values = resolve_fields(row, REPORT_FIELD_SYNONYMS)
    require_fields(values, REPORT_REQUIRED_FIELDS, line, "Field wajib tidak lengkap")

    jenis = require_choice(values["jenis"], _choice_key(values["jenis"]), JENIS_CHOICES, line, "Jenis")
    # kosong -> default, terisi tapi salah -> error
    prioritas_raw = values["prioritas"]
    prioritas = _choice_key(prioritas_raw) or DEFAULT_PRIORITAS
    require_choice(prioritas_raw, prioritas, PRIORITAS_CHOICES, line, "Prioritas")

    return ImportedReport(
        jenis=jenis,
        kategori=_text(values["kategori"]),
        deskripsi=_text(values["deskripsi"]),
        prioritas=prioritas,
        lokasi=_text(values["lokasi"]),
        pelapor=_text(values["pelapor"]),
        telepon=_text(values["telepon"]),
        email=_text(values["email"]),
        petugasNama=_text(values["petugasNama"]),
        petugasPolres=_text(values["petugasPolres"]),
        petugasHp=_text(values["petugasHp"]),
    )


def normalize_feedback_row(row: Row, index: int) -> ImportedFeedback:
    line = display_row(index)
    values = resolve_fields(row, FEEDBACK_FIELD_SYNONYMS)
    require_fields(
        values,
        FEEDBACK_REQUIRED_FIELDS,
        line,
        "Field wajib tidak lengkap. Diperlukan: " + ", ".join(FEEDBACK_REQUIRED_FIELDS),
    )

    raw_type = values["feedback_type"]
    feedback_type = require_choice(
        raw_type,
        _choice_key(raw_type),
        FEEDBACK_TYPE_CHOICES,
        line,
        "Jenis feedback",
        list_allowed=True,
    )
    rating = parse_rating(values["rating"], line)
    email: Optional[str] = _text(values["email"]) or None

    return ImportedFeedback(
        feedback_type=feedback_type,
        subject=_text(values["subject"]),
        message=_text(values["message"]),
        rating=rating,
        email=email,
        nama=_text(values["nama"]),
    )


NORMALIZERS: Dict[RecordKind, Callable[[Row, int], CanonicalRecord]] = {
    "laporan": normalize_report_row,
    "feedback": normalize_feedback_row,
}

PRIMARY_COLUMNS: Dict[RecordKind, tuple[str, ...]] = {
    "laporan": tuple(REPORT_FIELD_SYNONYMS),
    "feedback": tuple(FEEDBACK_FIELD_SYNONYMS),
}
