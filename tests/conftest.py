from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import List

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (ROOT_DIR / "src").resolve()

for entry in (ROOT_DIR, SRC_DIR):
    if str(entry) not in sys.path:
        sys.path.append(str(entry))


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Reject a collection in which two parametrized cases share a node id."""
    del session, config

    counts = Counter(item.nodeid for item in items)
    clashes = sorted(nodeid for nodeid, n in counts.items() if n > 1)
    if clashes:
        listing = "\n".join(f"- {nodeid}" for nodeid in clashes)
        raise pytest.UsageError(f"Duplicate pytest node ids:\n{listing}")


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run a test from an empty temporary directory so relative file paths stay inside it."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
