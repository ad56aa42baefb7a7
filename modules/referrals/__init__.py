"""Referral audit trail and submission workflow."""
from __future__ import annotations

from .audit import AUDIT_LOG_COLUMNS, ReferralAuditGenerator
from .notice import render_notice
from .services import ReferralService

__all__ = [
    "AUDIT_LOG_COLUMNS",
    "ReferralAuditGenerator",
    "ReferralService",
    "render_notice",
]
