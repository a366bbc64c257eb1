from __future__ import annotations

import os
from pathlib import Path

# Resolved project root (parent directory of this infra package).
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Saved scenarios and logs; TACTICS_STORAGE_DIR moves them out of the source tree.
STORAGE_DIR = Path(os.getenv("TACTICS_STORAGE_DIR", PROJECT_ROOT / "storage"))
SCENARIO_STORAGE_DIR = STORAGE_DIR / "scenarios"
LOG_DIR = STORAGE_DIR / "logs"
