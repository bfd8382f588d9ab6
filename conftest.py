# Ensure project root is on sys.path so 'authsession' and 'tests.fixtures' are
# importable when running pytest from environments that don't include it.
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def concise_log_format(monkeypatch):
    """Keep log messages in concise format unless a test opts into DEBUG."""
    monkeypatch.delenv("DEBUG", raising=False)
    yield
