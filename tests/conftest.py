from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))


import pytest

from tests.generated_helpers import GeneratedModules


@pytest.fixture
def run_generated():
    modules = GeneratedModules()
    try:
        yield modules.run
    finally:
        modules.cleanup()
