import sys
from pathlib import Path

import pytest

# Make 'src' importable without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))


@pytest.fixture
def tuning():
    from wuxing_combat.config import CombatTuning

    return CombatTuning.default()
