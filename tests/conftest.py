from __future__ import annotations

from collections import Counter
from typing import List

import pytest

from sassa.utils import DEBUG_ENV


@pytest.fixture(autouse=True)
def _quiet_pipeline(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every test starts with tracing off, whatever the outer shell exports."""
    monkeypatch.delenv(DEBUG_ENV, raising=False)


def pytest_collection_modifyitems(items: List[pytest.Item]) -> None:
    """Parametrized ids are hand-written; refuse to run when two collide."""
    counts = Counter(item.nodeid for item in items)
    duplicates = sorted(nodeid for nodeid, count in counts.items() if count > 1)
    if duplicates:
        lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
        raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
