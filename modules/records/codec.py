"""Delimited record codec shared by every flat-file repository.

Rows are parsed one line at a time with the standard :mod:`csv` reader so a
quoted span (``"Smith, John"``) is kept as one field and its quotes are
dropped.  Quote-free lines split exactly like ``line.split(",")`` including
empty trailing fields.

The writer side is deliberately lossy: :func:`sanitize` swaps the delimiter
(and any line break) for a space so a written line can never carry more
fields than the header declares.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List, Optional, Sequence

DELIMITER = ","

_LINE_BREAKS = ("\r\n", "\r", "\n")


def parse_line(line: str, delimiter: str = DELIMITER) -> List[str]:
    """Split one record line into its fields."""

    text = (line or "").rstrip("\r\n")
    if not text:
        return [""]
    return next(csv.reader([text], delimiter=delimiter), [""])


def field(fields: Optional[Sequence[str]], index: int) -> str:
    """Return the stripped value at ``index`` or ``""`` when it is missing."""

    if fields is None or index < 0 or index >= len(fields):
        return ""
    value = fields[index]
    return "" if value is None else str(value).strip()


def to_int(value: Any, default: int = 0) -> int:
    """Best-effort integer conversion; ``default`` on anything non-numeric."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def sanitize(value: Any, delimiter: str = DELIMITER) -> str:
    """Make ``value`` safe to write as a single field."""

    if value is None:
        return ""
    text = str(value)
    for brk in _LINE_BREAKS:
        text = text.replace(brk, " ")
    return text.replace(delimiter, " ")


def format_line(values: Iterable[Any], delimiter: str = DELIMITER) -> str:
    """Render sanitized ``values`` as one line without a terminator."""

    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="")
    writer.writerow([sanitize(v, delimiter) for v in values])
    return buf.getvalue()


def header_line(columns: Sequence[str], delimiter: str = DELIMITER) -> str:
    return delimiter.join(columns)


__all__ = [
    "DELIMITER",
    "parse_line",
    "field",
    "to_int",
    "sanitize",
    "format_line",
    "header_line",
]
