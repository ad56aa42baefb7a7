"""Record store owning one repository per entity file.

The UI layer creates a single :class:`RecordStore`, calls :meth:`load_all`
once at start-up and then works through the repositories and the referral
service exposed as attributes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from modules.records.exceptions import RecordIOError
from modules.records.models import (
    Appointment,
    Clinician,
    Facility,
    Patient,
    Prescription,
    Referral,
    Staff,
)
from modules.records.repository import EntityRepository
from modules.records.schema import SCHEMAS, EntitySchema
from modules.referrals.audit import ReferralAuditGenerator
from modules.referrals.services import ReferralService
from utils.app_settings import RecordsSettings, load_settings

logger = logging.getLogger(__name__)


class RecordStore:
    """Repositories, referral audit generator and referral service for one data directory."""

    def __init__(self, settings: Optional[RecordsSettings] = None) -> None:
        self.settings = settings or load_settings()
        self._repositories: Dict[str, EntityRepository[Any]] = {
            name: EntityRepository(
                schema,
                strict=self.settings.strict_load,
                encoding=self.settings.encoding,
            )
            for name, schema in SCHEMAS.items()
        }
        # The store is the only owner of the audit generator for its output directory.
        self.referral_audit = ReferralAuditGenerator.from_settings(self.settings)
        self.referral_service = ReferralService(self.referrals, self.referral_audit)

    # ----- Repositories ------------------------------------------------
    def repository(self, name: str) -> EntityRepository[Any]:
        try:
            return self._repositories[name]
        except KeyError:
            raise KeyError(f"Unknown entity repository: {name}") from None

    @property
    def patients(self) -> EntityRepository[Patient]:
        return self._repositories["patients"]

    @property
    def clinicians(self) -> EntityRepository[Clinician]:
        return self._repositories["clinicians"]

    @property
    def facilities(self) -> EntityRepository[Facility]:
        return self._repositories["facilities"]

    @property
    def staff(self) -> EntityRepository[Staff]:
        return self._repositories["staff"]

    @property
    def appointments(self) -> EntityRepository[Appointment]:
        return self._repositories["appointments"]

    @property
    def prescriptions(self) -> EntityRepository[Prescription]:
        return self._repositories["prescriptions"]

    @property
    def referrals(self) -> EntityRepository[Referral]:
        return self._repositories["referrals"]

    # ----- Loading -----------------------------------------------------
    def path_for(self, name: str) -> Path:
        return self.settings.data_dir / self.repository(name).schema.filename

    def load_all(self, *, create_missing: bool = True) -> Dict[str, int]:
        """Load every entity file; returns the row count per entity."""

        counts: Dict[str, int] = {}
        for name, repo in self._repositories.items():
            path = self.path_for(name)
            if create_missing and not path.exists():
                self._create_empty(repo.schema, path)
            counts[name] = repo.load(path)
        logger.info(
            "Loaded records from %s: %s",
            self.settings.data_dir,
            ", ".join(f"{n}={c}" for n, c in counts.items()),
        )
        return counts

    def _create_empty(self, schema: EntitySchema[Any], path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding=self.settings.encoding, newline="") as fh:
                fh.write(schema.header + "\n")
        except OSError as exc:
            raise RecordIOError(f"Unable to create {schema.name} file {path}: {exc}", str(path)) from exc
        logger.info("Created empty %s file %s", schema.name, path)


__all__ = ["RecordStore"]
