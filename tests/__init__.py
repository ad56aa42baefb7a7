"""Tests for the records, referrals, services and utils packages.

The packages live at the repository root and are not installed for a test
run, so the root is appended to ``sys.path`` before any test module imports
them.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))
