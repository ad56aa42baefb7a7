from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from modules.records.schema import SCHEMAS

PATIENT_ROWS = [
    "9434765919,Anna,Smith,1985-03-14,07700900123,Riverside Surgery",
    "9434765870,Ben,Jones,1972-11-02,07700900456,Hill Street Practice",
]

CLINICIAN_ROWS = [
    "C001,Dr Sarah Patel,GP,General Practice,Riverside Surgery",
    "C002,Dr Tom Reid,Consultant,Cardiology,City Hospital",
]

REFERRAL_ROW = (
    "R001,9434765919,C001,C002,S001,H001,2025-01-10,Urgent,Chest pain,"
    "\"Chest pain, 2 weeks\",ECG,New,,,2025-01-10,2025-01-10"
)


def write_records(path: Path, header: str, rows) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    """A data directory seeded with patients, clinicians and one referral."""

    root = tmp_path / "data"
    write_records(root / "patients.csv", SCHEMAS["patients"].header, PATIENT_ROWS)
    write_records(root / "clinicians.csv", SCHEMAS["clinicians"].header, CLINICIAN_ROWS)
    write_records(root / "referrals.csv", SCHEMAS["referrals"].header, [REFERRAL_ROW])
    return root
