"""Settings for the record files and the referral output.

Values are resolved in increasing priority from the built-in defaults, the
``[records]`` section of ``<data_dir>/app.ini`` and ``HEALTHDESK_*``
environment variables, e.g.::

    [records]
    data_dir = /srv/healthdesk/data
    strict_load = true
"""

from __future__ import annotations

import codecs
import configparser
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "HEALTHDESK_"
INI_SECTION = "records"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class RecordsSettings(BaseModel):
    data_dir: Path = Path("data")
    output_dir: Path = Path("output")
    strict_load: bool = False
    render_pdf: bool = False
    encoding: str = "utf-8"

    @field_validator("strict_load", "render_pdf", mode="before")
    @classmethod
    def parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            raw = value.strip().lower()
            if raw in _TRUE:
                return True
            if raw in _FALSE:
                return False
            raise ValueError(f"Expected a true/false flag, got {value!r}")
        return value

    @field_validator("encoding")
    @classmethod
    def known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {value}") from exc
        return value

    @property
    def notice_dir(self) -> Path:
        return self.output_dir / "referrals"

    @property
    def audit_log_path(self) -> Path:
        return self.output_dir / "referral_log.csv"


def _read_ini(ini_path: Path) -> Dict[str, str]:
    if not ini_path.exists():
        return {}
    cp = configparser.ConfigParser(interpolation=None)
    try:
        cp.read(ini_path, encoding="utf-8")
    except configparser.Error as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", ini_path, exc)
        return {}
    if not cp.has_section(INI_SECTION):
        return {}
    return {
        name: cp.get(INI_SECTION, name).strip()
        for name in RecordsSettings.model_fields
        if cp.has_option(INI_SECTION, name)
    }


def load_settings(
    ini_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RecordsSettings:
    """Resolve :class:`RecordsSettings` from defaults, INI file and environment."""

    environ = os.environ if environ is None else environ
    if ini_path is None:
        data_dir = environ.get(f"{ENV_PREFIX}DATA_DIR", "data")
        ini_path = Path(data_dir) / "app.ini"
    values: Dict[str, Any] = _read_ini(Path(ini_path))
    for name in RecordsSettings.model_fields:
        env_name = f"{ENV_PREFIX}{name.upper()}"
        if env_name in environ:
            values[name] = environ[env_name]
    return RecordsSettings(**values)


__all__ = ["RecordsSettings", "load_settings", "ENV_PREFIX"]
