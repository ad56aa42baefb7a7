"""Referral audit trail.

Submitting a referral leaves two artifacts behind:

* one line in an append-only CSV log (earlier lines are never rewritten);
* a human-readable notice ``referral_<id>.txt`` (plus an optional PDF copy)
  that is overwritten when the same referral is processed again.

A single :class:`ReferralAuditGenerator` should own a given notice directory.
The :class:`services.record_store.RecordStore` creates one and hands it to
every collaborator that records referrals.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from modules.records.codec import format_line, header_line
from modules.records.exceptions import RecordIOError, RecordValidationError
from modules.records.models import Referral

from .notice import notice_filename, print_notice_pdf, write_notice

logger = logging.getLogger(__name__)

AUDIT_LOG_COLUMNS: Sequence[str] = (
    "referral_id",
    "patient_id",
    "referring_clinician_id",
    "referred_to_clinician_id",
    "referring_facility_id",
    "referred_to_facility_id",
    "referral_date",
    "urgency_level",
    "clinical_summary",
    "status",
    "created_date",
)


def audit_row(referral: Referral) -> List[str]:
    return [getattr(referral, column) for column in AUDIT_LOG_COLUMNS]


class ReferralAuditGenerator:
    """Append referrals to the audit log and write their notices."""

    def __init__(
        self,
        notice_dir: Union[str, Path],
        log_path: Union[str, Path],
        *,
        render_pdf: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        self.notice_dir = Path(notice_dir)
        self.log_path = Path(log_path)
        self.render_pdf = render_pdf
        self.encoding = encoding

    @classmethod
    def from_settings(cls, settings) -> "ReferralAuditGenerator":
        return cls(
            settings.notice_dir,
            settings.audit_log_path,
            render_pdf=settings.render_pdf,
            encoding=settings.encoding,
        )

    # ----- Public API --------------------------------------------------
    def process_referral(self, referral: Optional[Referral]) -> Path:
        """Record ``referral`` and return the path of its text notice."""

        if referral is None:
            raise RecordValidationError("Referral cannot be None", entity="referrals")
        if not (referral.referral_id or "").strip():
            raise RecordValidationError("referral_id is required", entity="referrals")

        self._append_log(referral)
        self._ensure_notice_dir()
        out_path = self.notice_dir / notice_filename(referral.referral_id)
        try:
            write_notice(referral, out_path, self.encoding)
            if self.render_pdf:
                print_notice_pdf(
                    referral, self.notice_dir / notice_filename(referral.referral_id, ".pdf")
                )
        except OSError as exc:
            raise RecordIOError(f"Unable to write referral notice {out_path}: {exc}", str(out_path)) from exc
        logger.info("Referral %s recorded in %s", referral.referral_id, out_path)
        return out_path

    def notice_path(self, referral_id: str) -> Path:
        return self.notice_dir / notice_filename(referral_id)

    # ----- Internal utilities -----------------------------------------
    def _append_log(self, referral: Referral) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            is_new = not self.log_path.exists() or self.log_path.stat().st_size == 0
            with self.log_path.open("a", encoding=self.encoding, newline="") as fh:
                if is_new:
                    fh.write(header_line(AUDIT_LOG_COLUMNS) + "\n")
                fh.write(format_line(audit_row(referral)) + "\n")
        except OSError as exc:
            raise RecordIOError(
                f"Unable to append to referral log {self.log_path}: {exc}", str(self.log_path)
            ) from exc

    def _ensure_notice_dir(self) -> None:
        try:
            self.notice_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RecordIOError(
                f"Unable to create referral notice directory {self.notice_dir}: {exc}",
                str(self.notice_dir),
            ) from exc


__all__ = ["ReferralAuditGenerator", "AUDIT_LOG_COLUMNS", "audit_row"]
