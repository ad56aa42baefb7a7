"""Field mappings between entity dataclasses and their CSV rows.

An :class:`EntitySchema` tells the generic repository everything that differs
between record files: the column header, which attribute is the primary key,
how many columns a row needs before it is trusted, and how to turn a row into
an entity and back.  :func:`dataclass_schema` derives the mapping from the
dataclass field order so most entities only declare their columns.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from .codec import field, header_line, to_int
from .models import (
    Appointment,
    Clinician,
    Facility,
    Patient,
    Prescription,
    Referral,
    Staff,
)

E = TypeVar("E")

RowAdapter = Callable[[Sequence[str]], Sequence[str]]


@dataclass(frozen=True)
class EntitySchema(Generic[E]):
    """Describes how one entity type is stored on disk."""

    name: str
    entity_type: Type[E]
    filename: str
    columns: Tuple[str, ...]
    key_attr: str
    from_fields: Callable[[Sequence[str]], E]
    to_fields: Callable[[E], Sequence[Any]]
    min_columns: int = 1
    case_insensitive: bool = True
    key_column: int = 0

    @property
    def header(self) -> str:
        return header_line(self.columns)

    @property
    def attributes(self) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(self.entity_type))

    def key_of(self, entity: E) -> str:
        return str(getattr(entity, self.key_attr, "") or "").strip()

    def normalize_key(self, key: Any) -> str:
        text = "" if key is None else str(key).strip()
        return text.casefold() if self.case_insensitive else text

    def row_key(self, row: Sequence[str]) -> str:
        return field(row, self.key_column)

    def coerce(self, entity: E) -> E:
        """Rebuild ``entity`` the way a saved and reloaded row would read."""

        return self.from_fields(list(self.to_fields(entity)))



def dataclass_schema(
    entity_type: Type[E],
    *,
    name: str,
    filename: str,
    columns: Sequence[str],
    key_attr: Optional[str] = None,
    min_columns: int = 1,
    case_insensitive: bool = True,
    converters: Optional[Mapping[str, Callable[[str], Any]]] = None,
    row_adapter: Optional[RowAdapter] = None,
) -> EntitySchema[E]:
    """Build a schema whose columns follow the dataclass field order.

    ``converters`` map attribute names to text parsers (e.g. ``to_int``).
    ``row_adapter`` rewrites legacy row layouts into the current one before
    mapping.
    """

    if not is_dataclass(entity_type):
        raise TypeError(f"{entity_type!r} is not a dataclass")
    attrs: List[str] = [f.name for f in fields(entity_type)]
    if len(attrs) != len(columns):
        raise ValueError(
            f"{name}: {len(columns)} columns declared for {len(attrs)} attributes"
        )
    key_attr = key_attr or attrs[0]
    if key_attr not in attrs:
        raise ValueError(f"{name}: unknown key attribute {key_attr!r}")
    convert: Dict[str, Callable[[str], Any]] = dict(converters or {})

    def _from_fields(row: Sequence[str]) -> E:
        if row_adapter is not None:
            row = row_adapter(row)
        values: Dict[str, Any] = {}
        for index, attr in enumerate(attrs):
            raw = field(row, index)
            parser = convert.get(attr)
            values[attr] = parser(raw) if parser else raw
        return entity_type(**values)

    def _to_fields(entity: E) -> List[Any]:
        return [getattr(entity, attr) for attr in attrs]

    return EntitySchema(
        name=name,
        entity_type=entity_type,
        filename=filename,
        columns=tuple(columns),
        key_attr=key_attr,
        from_fields=_from_fields,
        to_fields=_to_fields,
        min_columns=min_columns,
        case_insensitive=case_insensitive,
        key_column=attrs.index(key_attr),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

SCHEMAS: Dict[str, EntitySchema[Any]] = {}


def register_schema(schema: EntitySchema[E]) -> EntitySchema[E]:
    if schema.name in SCHEMAS:
        raise ValueError(f"Schema already registered: {schema.name}")
    SCHEMAS[schema.name] = schema
    return schema


def get_schema(name: str) -> EntitySchema[Any]:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise KeyError(f"Unknown entity schema: {name}") from None


# ---------------------------------------------------------------------------
# Legacy row layouts
# ---------------------------------------------------------------------------

def _clinician_legacy_row(row: Sequence[str]) -> Sequence[str]:
    # clinicianId,firstName,lastName,role,specialty,workplace
    if len(row) == 6:
        full_name = f"{field(row, 1)} {field(row, 2)}".strip()
        return [row[0], full_name, row[3], row[4], row[5]]
    return row


# ---------------------------------------------------------------------------
# Entity schemas
# ---------------------------------------------------------------------------

PATIENTS = register_schema(
    dataclass_schema(
        Patient,
        name="patients",
        filename="patients.csv",
        columns=(
            "nhsNumber",
            "firstName",
            "lastName",
            "dateOfBirth",
            "phoneNumber",
            "registeredGpSurgery",
        ),
        case_insensitive=False,
    )
)

CLINICIANS = register_schema(
    dataclass_schema(
        Clinician,
        name="clinicians",
        filename="clinicians.csv",
        columns=("clinicianId", "name", "role", "specialty", "workplace"),
        min_columns=5,
        row_adapter=_clinician_legacy_row,
    )
)

FACILITIES = register_schema(
    dataclass_schema(
        Facility,
        name="facilities",
        filename="facilities.csv",
        columns=(
            "facility_id",
            "facility_name",
            "facility_type",
            "address",
            "postcode",
            "phone_number",
            "email",
            "opening_hours",
            "manager_name",
            "capacity",
            "specialities_offered",
        ),
        # Older files only carry facilityId,facilityName,facilityType,location
        min_columns=4,
        converters={"capacity": to_int},
    )
)

STAFF = register_schema(
    dataclass_schema(
        Staff,
        name="staff",
        filename="staff.csv",
        columns=(
            "staffId",
            "firstName",
            "lastName",
            "role",
            "department",
            "facilityId",
            "phoneNumber",
            "email",
            "employmentStatus",
            "startDate",
            "lineManager",
            "accessLevel",
        ),
        min_columns=5,
    )
)

APPOINTMENTS = register_schema(
    dataclass_schema(
        Appointment,
        name="appointments",
        filename="appointments.csv",
        columns=(
            "appointment_id",
            "patient_id",
            "clinician_id",
            "facility_id",
            "appointment_date",
            "appointment_time",
            "status",
            "notes",
        ),
    )
)

PRESCRIPTIONS = register_schema(
    dataclass_schema(
        Prescription,
        name="prescriptions",
        filename="prescriptions.csv",
        columns=(
            "prescriptionId",
            "patientNhsNumber",
            "clinicianId",
            "medication",
            "dosage",
            "pharmacy",
            "collectionStatus",
        ),
        min_columns=7,
    )
)

REFERRAL_COLUMNS: Tuple[str, ...] = (
    "referral_id",
    "patient_id",
    "referring_clinician_id",
    "referred_to_clinician_id",
    "referring_facility_id",
    "referred_to_facility_id",
    "referral_date",
    "urgency_level",
    "referral_reason",
    "clinical_summary",
    "requested_investigations",
    "status",
    "appointment_id",
    "notes",
    "created_date",
    "last_updated",
)

REFERRALS = register_schema(
    dataclass_schema(
        Referral,
        name="referrals",
        filename="referrals.csv",
        columns=REFERRAL_COLUMNS,
        min_columns=16,
    )
)


__all__ = [
    "EntitySchema",
    "dataclass_schema",
    "register_schema",
    "get_schema",
    "SCHEMAS",
    "PATIENTS",
    "CLINICIANS",
    "FACILITIES",
    "STAFF",
    "APPOINTMENTS",
    "PRESCRIPTIONS",
    "REFERRALS",
    "REFERRAL_COLUMNS",
]
