"""Pytest bootstrap for local source imports.

Running ``pytest`` from a checkout without installing the project must still
import the local ``browsey`` package, so the repository root goes on sys.path.
"""

from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
