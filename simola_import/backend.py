"""
Client REST untuk database hosted SIMOLA 110.

Hanya operasi create satu record yang dipakai oleh proses import: tidak ada
endpoint batch, setiap baris dikirim sebagai satu request insert.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import requests

from .config import RuntimeConfig
from .models import CanonicalRecord, ImportedFeedback, ImportedReport, RecordKind

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Insert ditolak oleh backend (duplikat, izin, koneksi, dst)."""

    def __init__(self, message: str, *, code: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class SupabaseClient:
    """Client tipis untuk REST API tabel (PostgREST)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise RuntimeError("URL backend belum diatur. Gunakan --supabase-url atau env SIMOLA_SUPABASE_URL.")
        if not api_key:
            logger.warning("API key backend kosong. Request kemungkinan ditolak.")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> "SupabaseClient":
        return cls(config.supabase_url, config.supabase_key, timeout=config.request_timeout)

    def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert satu baris dan kembalikan baris yang tersimpan."""
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={"Prefer": "return=representation"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendError(f"Gagal menghubungi backend: {exc}") from exc

        if response.status_code >= 400:
            raise _error_from_response(response)

        data = response.json()
        if isinstance(data, list):
            if not data:
                raise BackendError("Backend tidak mengembalikan data yang tersimpan", status=response.status_code)
            data = data[0]
        logger.debug("Insert %s berhasil: %s", table, data.get("id"))
        return data

    def close(self) -> None:
        self.session.close()


def _error_from_response(response: requests.Response) -> BackendError:
    code: Optional[str] = None
    message = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message") or body.get("error") or message
    logger.error("Backend menolak insert (%s): %s", response.status_code, message)
    return BackendError(message, code=code, status=response.status_code)


def _or_none(value: str) -> Optional[str]:
    return value or None


def report_payload(record: ImportedReport, *, now: Optional[datetime] = None) -> dict[str, Any]:
    """Baris insert tabel laporan; nomor_laporan diisi trigger (LP001, LP002, ...)."""
    created = now or datetime.now(timezone.utc)
    return {
        "nomor_laporan": "",
        "judul": f"{record.jenis} - {record.lokasi}",
        "kategori": record.kategori,
        "lokasi": record.lokasi,
        "deskripsi": record.deskripsi,
        "pelapor_nama": record.pelapor,
        "pelapor_telepon": _or_none(record.telepon),
        "pelapor_email": _or_none(record.email),
        "prioritas": record.prioritas,
        "status": "menunggu",
        "tanggal_laporan": created.isoformat(),
        "koordinat_lat": None,
        "koordinat_lng": None,
        "petugas_nama": _or_none(record.petugasNama),
        "petugas_polres": _or_none(record.petugasPolres),
        "petugas_hp": _or_none(record.petugasHp),
    }


def feedback_payload(record: ImportedFeedback) -> dict[str, Any]:
    # tabel feedback tidak punya kolom nama
    return {
        "feedback_type": record.feedback_type,
        "subject": record.subject,
        "message": record.message,
        "rating": record.rating,
        "email": record.email,
        "photo_url": None,
        "status": "menunggu",
        "user_id": None,
    }


CreateRecord = Callable[[CanonicalRecord], Awaitable[dict[str, Any]]]


def creator_for(kind: RecordKind, client: SupabaseClient, config: RuntimeConfig) -> CreateRecord:
    """Bangun coroutine create untuk jenis data; request dijalankan di thread terpisah."""
    table = config.tables[kind]

    async def create_report(record: ImportedReport) -> dict[str, Any]:
        return await asyncio.to_thread(client.insert, table, report_payload(record))

    async def create_feedback(record: ImportedFeedback) -> dict[str, Any]:
        return await asyncio.to_thread(client.insert, table, feedback_payload(record))

    if kind == "laporan":
        return create_report
    return create_feedback
