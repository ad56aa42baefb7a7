"""Domain models for the desk-clerk record files.

Each dataclass maps to one row of its CSV file and the field order matches
the column order on disk.  Values are kept as text apart from facility
``capacity``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Patient:
    """A registered patient, keyed by NHS number."""

    nhs_number: str
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    phone_number: str = ""
    registered_gp_surgery: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True)
class Clinician:
    """A doctor, nurse or specialist."""

    clinician_id: str
    name: str = ""
    role: str = ""
    specialty: str = ""
    workplace: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"


@dataclass(slots=True)
class Facility:
    """A GP surgery, hospital or clinic."""

    facility_id: str
    facility_name: str = ""
    facility_type: str = ""
    address: str = ""
    postcode: str = ""
    phone_number: str = ""
    email: str = ""
    opening_hours: str = ""
    manager_name: str = ""
    capacity: int = 0
    # Pipe-separated list, e.g. "Cardiology|Radiology"
    specialities_offered: str = ""

    @property
    def specialities(self) -> list[str]:
        return [s.strip() for s in self.specialities_offered.split("|") if s.strip()]

    def __str__(self) -> str:
        return f"{self.facility_id} | {self.facility_name} | {self.facility_type}"


@dataclass(slots=True)
class Staff:
    """A non-clinical staff member."""

    staff_id: str
    first_name: str = ""
    last_name: str = ""
    role: str = ""
    department: str = ""
    facility_id: str = ""
    phone_number: str = ""
    email: str = ""
    employment_status: str = ""
    start_date: str = ""
    line_manager: str = ""
    access_level: str = ""

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True)
class Appointment:
    appointment_id: str
    patient_id: str = ""
    clinician_id: str = ""
    facility_id: str = ""
    appointment_date: str = ""  # YYYY-MM-DD
    appointment_time: str = ""  # HH:MM
    status: str = ""
    notes: str = ""


@dataclass(slots=True)
class Prescription:
    prescription_id: str
    patient_nhs_number: str = ""
    clinician_id: str = ""
    medication: str = ""
    dosage: str = ""
    pharmacy: str = ""
    collection_status: str = ""

    def __str__(self) -> str:
        return f"{self.prescription_id} | {self.medication} | {self.dosage}"


@dataclass(slots=True)
class Referral:
    """A referral from primary to secondary care."""

    referral_id: str
    patient_id: str = ""
    referring_clinician_id: str = ""
    referred_to_clinician_id: str = ""
    referring_facility_id: str = ""
    referred_to_facility_id: str = ""
    referral_date: str = ""
    urgency_level: str = ""
    referral_reason: str = ""
    clinical_summary: str = ""
    requested_investigations: str = ""
    status: str = ""
    appointment_id: str = ""
    notes: str = ""
    created_date: str = ""
    last_updated: str = ""


__all__ = [
    "Patient",
    "Clinician",
    "Facility",
    "Staff",
    "Appointment",
    "Prescription",
    "Referral",
]
