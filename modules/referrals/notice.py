"""Referral notice layout.

The text layout is consumed by other departments' tooling, so the labels,
their order and the line endings must not change.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from modules.records.models import Referral

NOTICE_TITLE = "REFERRAL NOTICE"
NOTICE_RULE = "-" * 32

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")


def notice_filename(referral_id: str, suffix: str = ".txt") -> str:
    """Return ``referral_<id><suffix>`` with a filesystem-safe identifier."""

    safe_id = _UNSAFE_NAME.sub("_", (referral_id or "").strip()) or "unknown"
    return f"referral_{safe_id}{suffix}"


def _heading_lines(referral: Referral) -> List[str]:
    return [
        NOTICE_TITLE,
        NOTICE_RULE,
        f"Referral ID: {referral.referral_id}",
        f"Patient ID: {referral.patient_id}",
        f"Referring Clinician ID: {referral.referring_clinician_id}",
        f"From Facility: {referral.referring_facility_id}",
        f"To Facility: {referral.referred_to_facility_id}",
        f"Urgency Level: {referral.urgency_level}",
        f"Referral Date: {referral.referral_date}",
        f"Created Date: {referral.created_date}",
        "",
        "Clinical Summary:",
    ]


def notice_lines(referral: Referral) -> List[str]:
    return _heading_lines(referral) + ((referral.clinical_summary or "").splitlines() or [""])


def render_notice(referral: Referral) -> str:
    # The summary is appended verbatim, commas and line breaks included.
    return "\n".join(_heading_lines(referral)) + "\n" + (referral.clinical_summary or "")


def write_notice(referral: Referral, out_path: Path, encoding: str = "utf-8") -> Path:
    """Write the text notice to ``out_path`` and return the path."""

    with out_path.open("w", encoding=encoding, newline="") as fh:
        fh.write(render_notice(referral))
    return out_path


def print_notice_pdf(referral: Referral, out_path: Path) -> Path:
    """Render the same notice as a one-page PDF for printing."""

    c = canvas.Canvas(str(out_path), pagesize=A4)
    c.setTitle(f"Referral {referral.referral_id}")
    c.setFont("Helvetica-Bold", 14)
    c.drawString(72, 780, NOTICE_TITLE)
    c.setFont("Helvetica", 11)
    text = c.beginText(72, 756)
    for line in notice_lines(referral)[2:]:
        text.textLine(line)
    c.drawText(text)
    c.save()
    return out_path


__all__ = [
    "NOTICE_TITLE",
    "notice_filename",
    "notice_lines",
    "render_notice",
    "write_notice",
    "print_notice_pdf",
]
