from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Union

RecordKind = Literal["laporan", "feedback"]
RECORD_KINDS: tuple[RecordKind, ...] = ("laporan", "feedback")

MAX_DISPLAY_ERRORS = 10


@dataclass(frozen=True, slots=True)
class ImportedReport:
    jenis: str
    kategori: str
    lokasi: str
    pelapor: str
    deskripsi: str = ""
    prioritas: str = "sedang"
    telepon: str = ""
    email: str = ""
    petugasNama: str = ""
    petugasPolres: str = ""
    petugasHp: str = ""


@dataclass(frozen=True, slots=True)
class ImportedFeedback:
    feedback_type: str
    subject: str
    message: str
    rating: int
    nama: str
    email: Optional[str] = None


CanonicalRecord = Union[ImportedReport, ImportedFeedback]


@dataclass(slots=True)
class ImportBatchResult:
    """Running tally of one import batch."""

    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed

    def record_success(self) -> None:
        self.success += 1

    def record_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)

    def truncate_errors(self, limit: int = MAX_DISPLAY_ERRORS) -> None:
        """Keep only the first messages for display; counts stay exact."""
        del self.errors[limit:]

    @property
    def has_more_errors(self) -> bool:
        return self.failed > len(self.errors)
