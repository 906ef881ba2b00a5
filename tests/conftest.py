# tests/conftest.py
from __future__ import annotations

import pytest

from bigfib import runtime


@pytest.fixture(autouse=True)
def fresh_runtime():
    """Each test starts from a default Runtime (no profile applied)."""
    token = runtime._current_runtime.set(runtime.Runtime())
    yield runtime.current()
    runtime._current_runtime.reset(token)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Point BIGFIB_HOME at an empty temporary workspace."""
    home = tmp_path / "bigfib_home"
    monkeypatch.setenv("BIGFIB_HOME", str(home))
    return home
