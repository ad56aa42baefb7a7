"""Flat-file record repositories for the desk-clerk tool."""
from __future__ import annotations

from .exceptions import (
    DuplicateKeyError,
    MalformedRowError,
    RecordIOError,
    RecordNotFoundError,
    RecordValidationError,
    RecordsError,
    SourceNotBoundError,
)
from .models import (
    Appointment,
    Clinician,
    Facility,
    Patient,
    Prescription,
    Referral,
    Staff,
)
from .repository import EntityRepository
from .schema import EntitySchema, SCHEMAS, get_schema

__all__ = [
    "EntityRepository",
    "EntitySchema",
    "SCHEMAS",
    "get_schema",
    "Appointment",
    "Clinician",
    "Facility",
    "Patient",
    "Prescription",
    "Referral",
    "Staff",
    "RecordsError",
    "RecordIOError",
    "RecordValidationError",
    "DuplicateKeyError",
    "MalformedRowError",
    "RecordNotFoundError",
    "SourceNotBoundError",
]
