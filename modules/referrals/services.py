"""Service layer for referral submission."""
from __future__ import annotations

import dataclasses
import logging
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from modules.records.exceptions import RecordNotFoundError, RecordValidationError
from modules.records.models import Referral
from modules.records.repository import EntityRepository
from utils.state import SessionContext

from .audit import ReferralAuditGenerator

logger = logging.getLogger(__name__)

STATUS_NEW = "New"
STATUS_SUBMITTED = "Submitted"
STATUS_COMPLETED = "Completed"

_CLOSED_STATUSES = {STATUS_SUBMITTED.casefold(), STATUS_COMPLETED.casefold()}


def _today() -> str:
    return date.today().isoformat()


class ReferralService:
    """Creates referrals and records them in the audit trail on submission."""

    def __init__(
        self,
        repository: EntityRepository[Referral],
        audit: ReferralAuditGenerator,
        *,
        today: Callable[[], str] = _today,
    ) -> None:
        self.repository = repository
        self.audit = audit
        self._today = today

    def create(self, referral: Referral) -> Referral:
        if referral is None:
            raise RecordValidationError("Referral cannot be None", entity="referrals")
        stamp = self._today()
        prepared = dataclasses.replace(
            referral,
            status=referral.status or STATUS_NEW,
            created_date=referral.created_date or stamp,
            last_updated=referral.last_updated or stamp,
        )
        return self.repository.add(prepared)

    def submit(self, referral_id: str, *, session: Optional[SessionContext] = None) -> Path:
        """Mark the referral as submitted, save it and write its notice."""

        existing = self.repository.find_by_key(referral_id)
        if existing is None:
            raise RecordNotFoundError(
                f"referrals not found: {referral_id}", entity="referrals", key=referral_id
            )
        submitted = self.repository.update(
            dataclasses.replace(existing, status=STATUS_SUBMITTED, last_updated=self._today())
        )
        actor = session.user_id if session is not None and session.is_authenticated else "unknown"
        logger.info("Referral %s submitted by %s", submitted.referral_id, actor)
        return self.audit.process_referral(submitted)

    def pending(self) -> List[Referral]:
        return [
            r for r in self.repository.get_all()
            if (r.status or "").strip().casefold() not in _CLOSED_STATUSES
        ]


__all__ = ["ReferralService", "STATUS_NEW", "STATUS_SUBMITTED", "STATUS_COMPLETED"]
