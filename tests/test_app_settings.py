import logging
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.append(str(Path(__file__).resolve().parents[1]))
from utils.app_settings import RecordsSettings, load_settings


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.ini", environ={})
    assert settings.data_dir == Path("data")
    assert settings.notice_dir == Path("output") / "referrals"
    assert settings.audit_log_path == Path("output") / "referral_log.csv"
    assert settings.strict_load is False
    assert settings.encoding == "utf-8"


def test_ini_values_then_environment_overrides(tmp_path):
    ini = tmp_path / "app.ini"
    ini.write_text(
        "[records]\noutput_dir = /srv/out\nstrict_load = yes\nrender_pdf = off\n",
        encoding="utf-8",
    )
    settings = load_settings(ini, environ={"HEALTHDESK_STRICT_LOAD": "0"})
    assert settings.output_dir == Path("/srv/out")
    assert settings.strict_load is False
    assert settings.render_pdf is False


def test_default_ini_lives_in_data_dir(tmp_path):
    (tmp_path / "app.ini").write_text("[records]\nrender_pdf = true\n", encoding="utf-8")
    settings = load_settings(environ={"HEALTHDESK_DATA_DIR": str(tmp_path)})
    assert settings.data_dir == tmp_path
    assert settings.render_pdf is True


def test_unreadable_ini_is_ignored(tmp_path, caplog):
    ini = tmp_path / "app.ini"
    ini.write_text("no section header here\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        settings = load_settings(ini, environ={})
    assert settings.strict_load is False
    assert "Ignoring unreadable settings file" in caplog.text


@pytest.mark.parametrize("field, value", [("strict_load", "maybe"), ("encoding", "no-such-codec")])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        RecordsSettings(**{field: value})


def test_percent_sign_in_ini_value_is_literal(tmp_path):
    ini = tmp_path / "app.ini"
    ini.write_text("[records]\noutput_dir = /srv/out%20dir\n", encoding="utf-8")
    settings = load_settings(ini, environ={})
    assert settings.output_dir == Path("/srv/out%20dir")
