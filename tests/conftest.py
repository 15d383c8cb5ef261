import sys
from pathlib import Path

import pytest

# Ensure the `taxigeo` package and the shared fakes are importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
HERE = Path(__file__).resolve().parent
for path in (ROOT, HERE):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from taxigeo.core.models import BoundingBox  # noqa: E402

NAYARIT_BOUNDS = BoundingBox(20.6, -105.8, 23.1, -103.7)


@pytest.fixture
def bounds():
    return NAYARIT_BOUNDS
