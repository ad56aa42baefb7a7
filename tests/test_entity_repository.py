import logging
import shutil
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from modules.records import (
    Clinician,
    DuplicateKeyError,
    EntityRepository,
    MalformedRowError,
    Patient,
    RecordIOError,
    RecordNotFoundError,
    RecordValidationError,
    SourceNotBoundError,
    get_schema,
)
from tests.conftest import CLINICIAN_ROWS, PATIENT_ROWS, write_records


@pytest.fixture()
def patients(data_dir):
    repo = EntityRepository(get_schema("patients"))
    repo.load(data_dir / "patients.csv")
    return repo


@pytest.fixture()
def clinicians(data_dir):
    repo = EntityRepository(get_schema("clinicians"))
    repo.load(data_dir / "clinicians.csv")
    return repo


def _assert_index_agrees(repo):
    keys = [repo.schema.key_of(e) for e in repo.get_all()]
    assert len(keys) == len({repo.schema.normalize_key(k) for k in keys})
    for entity in repo.get_all():
        assert repo.find_by_key(repo.schema.key_of(entity)) is entity


def test_load_preserves_file_order(patients):
    assert len(patients) == 2
    assert [p.nhs_number for p in patients.get_all()] == ["9434765919", "9434765870"]
    assert patients.source_path.name == "patients.csv"
    _assert_index_agrees(patients)


def test_load_missing_file_raises_io_error(tmp_path):
    repo = EntityRepository(get_schema("patients"))
    with pytest.raises(RecordIOError) as excinfo:
        repo.load(tmp_path / "nope.csv")
    assert isinstance(excinfo.value.__cause__, OSError)
    assert repo.get_all() == []
    assert repo.source_path is None


def test_load_header_only_file(tmp_path):
    path = write_records(tmp_path / "patients.csv", get_schema("patients").header, [])
    repo = EntityRepository(get_schema("patients"))
    assert repo.load(path) == 0
    assert repo.get_all() == []


def test_load_skips_blank_short_and_keyless_rows(tmp_path, caplog):
    path = write_records(
        tmp_path / "clinicians.csv",
        get_schema("clinicians").header,
        [
            CLINICIAN_ROWS[0],
            "",
            "C009,Too Short",
            ",Dr Nobody,GP,General Practice,Nowhere",
            CLINICIAN_ROWS[1],
        ],
    )
    repo = EntityRepository(get_schema("clinicians"))
    with caplog.at_level(logging.WARNING):
        assert repo.load(path) == 2
    assert "expected at least 5 columns" in caplog.text
    assert "blank primary key" in caplog.text
    assert [c.clinician_id for c in repo.get_all()] == ["C001", "C002"]


def test_load_keeps_first_of_duplicate_keys(tmp_path, caplog):
    path = write_records(
        tmp_path / "clinicians.csv",
        get_schema("clinicians").header,
        [CLINICIAN_ROWS[0], "c001,Dr Imposter,GP,General Practice,Elsewhere"],
    )
    repo = EntityRepository(get_schema("clinicians"))
    with caplog.at_level(logging.WARNING):
        assert repo.load(path) == 1
    assert repo.find_by_key("C001").name == "Dr Sarah Patel"
    assert "duplicate key" in caplog.text
    _assert_index_agrees(repo)


def test_strict_load_rejects_malformed_row(tmp_path):
    path = write_records(
        tmp_path / "clinicians.csv",
        get_schema("clinicians").header,
        [CLINICIAN_ROWS[0], "C009,Too Short"],
    )
    repo = EntityRepository(get_schema("clinicians"), strict=True)
    with pytest.raises(MalformedRowError) as excinfo:
        repo.load(path)
    assert excinfo.value.line_number == 3
    assert repo.get_all() == []
    assert repo.source_path is None


def test_reload_replaces_previous_state(patients, tmp_path):
    path = write_records(tmp_path / "other.csv", get_schema("patients").header, [PATIENT_ROWS[1]])
    assert patients.load(path) == 1
    assert patients.find_by_key("9434765919") is None
    assert patients.source_path == path


def test_find_by_key_case_rules(patients, clinicians):
    assert clinicians.find_by_key("c001") is clinicians.find_by_key("C001")
    assert clinicians.find_by_key("  C002 ").name == "Dr Tom Reid"
    assert "c002" in clinicians
    assert patients.find_by_key(" 9434765919 ").first_name == "Anna"
    assert patients.find_by_key("") is None
    assert patients.find_by_key(None) is None
    assert not patients.exists_by_key("0000000000")


def test_get_all_returns_a_copy(patients):
    snapshot = patients.get_all()
    snapshot.clear()
    assert len(patients) == 2


def test_add_persists_and_round_trips(patients, data_dir):
    patients.add(Patient("9434765828", "Cara", "O'Neil", "1990-07-01", "0770", "Riverside, Surgery"))

    reloaded = EntityRepository(get_schema("patients"))
    assert reloaded.load(data_dir / "patients.csv") == 3
    assert [p.nhs_number for p in reloaded.get_all()] == [p.nhs_number for p in patients.get_all()]
    added = reloaded.find_by_key("9434765828")
    assert added.last_name == "O'Neil"
    assert added.registered_gp_surgery == "Riverside  Surgery"


def test_add_rejects_duplicate_key(clinicians, data_dir):
    before = (data_dir / "clinicians.csv").read_text(encoding="utf-8")
    with pytest.raises(DuplicateKeyError):
        clinicians.add(Clinician("c001", "Dr Copy"))
    assert len(clinicians) == 2
    assert (data_dir / "clinicians.csv").read_text(encoding="utf-8") == before


def test_add_rejects_blank_key_and_wrong_type(patients):
    with pytest.raises(RecordValidationError):
        patients.add(Patient("  "))
    with pytest.raises(RecordValidationError):
        patients.add(None)
    with pytest.raises(RecordValidationError):
        patients.add(Clinician("C005"))
    assert len(patients) == 2


def test_update_replaces_in_place(clinicians, data_dir):
    clinicians.update(Clinician("c001", "Dr Sarah Patel", "Partner", "General Practice", "Riverside Surgery"))
    assert [c.clinician_id for c in clinicians.get_all()] == ["c001", "C002"]
    assert clinicians.find_by_key("C001").role == "Partner"
    _assert_index_agrees(clinicians)

    reloaded = EntityRepository(get_schema("clinicians"))
    reloaded.load(data_dir / "clinicians.csv")
    assert reloaded.get_all()[0].role == "Partner"


def test_update_missing_raises_not_found(clinicians):
    with pytest.raises(RecordNotFoundError) as excinfo:
        clinicians.update(Clinician("C404", "Dr Ghost"))
    assert excinfo.value.key == "C404"
    assert isinstance(excinfo.value, LookupError)


def test_modify_changes_attributes(patients):
    updated = patients.modify("9434765919", phone_number="07700900999")
    assert updated.phone_number == "07700900999"
    assert patients.find_by_key("9434765919").phone_number == "07700900999"


def test_modify_rejects_key_change_and_unknown_attribute(patients):
    with pytest.raises(RecordValidationError):
        patients.modify("9434765919", nhs_number="1111111111")
    with pytest.raises(RecordValidationError):
        patients.modify("9434765919", shoe_size="9")
    with pytest.raises(RecordNotFoundError):
        patients.modify("1111111111", phone_number="0")
    assert patients.find_by_key("9434765919").phone_number == "07700900123"


def test_delete_removes_and_second_delete_fails(clinicians, data_dir):
    removed = clinicians.delete("c002")
    assert removed.clinician_id == "C002"
    assert not clinicians.exists_by_key("C002")
    assert "C002" not in (data_dir / "clinicians.csv").read_text(encoding="utf-8")
    with pytest.raises(RecordNotFoundError):
        clinicians.delete("C002")
    _assert_index_agrees(clinicians)


def test_save_without_load_raises():
    repo = EntityRepository(get_schema("patients"))
    with pytest.raises(SourceNotBoundError):
        repo.save()
    with pytest.raises(SourceNotBoundError):
        repo.add(Patient("9434765919"))
    assert repo.get_all() == []


def test_failed_save_rolls_back_every_mutation(clinicians, data_dir):
    shutil.rmtree(data_dir)

    with pytest.raises(RecordIOError):
        clinicians.add(Clinician("C003", "Dr New"))
    assert not clinicians.exists_by_key("C003")

    with pytest.raises(RecordIOError):
        clinicians.modify("C001", role="Partner")
    assert clinicians.find_by_key("C001").role == "GP"

    with pytest.raises(RecordIOError):
        clinicians.delete("C002")
    assert [c.clinician_id for c in clinicians.get_all()] == ["C001", "C002"]
    _assert_index_agrees(clinicians)


def test_save_leaves_no_temporary_file(patients, data_dir):
    patients.save()
    assert sorted(p.name for p in data_dir.iterdir()) == ["clinicians.csv", "patients.csv", "referrals.csv"]
    lines = (data_dir / "patients.csv").read_text(encoding="utf-8").split("\n")
    assert lines[0] == get_schema("patients").header
    assert lines[-1] == ""


def test_blank_nhs_number_row_is_skipped(tmp_path):
    path = write_records(
        tmp_path / "patients.csv",
        get_schema("patients").header,
        ["123,Ann,Lee,1990-01-01,0770,Surgery", ",No,Number,1990-01-01,0770,Surgery"],
    )
    repo = EntityRepository(get_schema("patients"))
    assert repo.load(path) == 1
    assert repo.exists_by_key("123")


def test_header_with_byte_order_mark_is_discarded(tmp_path):
    path = tmp_path / "patients.csv"
    path.write_text("\ufeff" + get_schema("patients").header + "\n" + PATIENT_ROWS[0] + "\n", encoding="utf-8")
    repo = EntityRepository(get_schema("patients"))
    assert repo.load(path) == 1
    assert repo.get_all()[0].first_name == "Anna"


def test_added_values_are_trimmed_like_a_reload(patients, data_dir):
    added = patients.add(Patient(" 9434765828 ", "Cara ", " Lane", "1990-07-01", "0770 ", "Riverside"))
    assert added.nhs_number == "9434765828"
    assert added.first_name == "Cara"
    assert added.last_name == "Lane"

    reloaded = EntityRepository(get_schema("patients"))
    reloaded.load(data_dir / "patients.csv")
    assert reloaded.get_all() == patients.get_all()


def test_updated_values_are_trimmed(clinicians):
    clinicians.update(Clinician("C001 ", " Dr Sarah Patel", "Partner  ", "General Practice", "Riverside Surgery"))
    stored = clinicians.find_by_key("C001")
    assert stored.clinician_id == "C001"
    assert stored.name == "Dr Sarah Patel"
    assert stored.role == "Partner"
