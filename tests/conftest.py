from __future__ import annotations

from pathlib import Path

import pytest

from serialgate.events import MemoryEventSink
from serialgate.policy.store import PolicyStore


def render_policy(blacklist: list[str], whitelist: list[str], profiling: bool = False) -> str:
    def _items(patterns: list[str]) -> str:
        if not patterns:
            return " []"
        # Single-quoted YAML scalars keep backslashes literal.
        return "".join("\n  - '" + p.replace("'", "''") + "'" for p in patterns)

    return (
        f"mode:\n  profiling: {'true' if profiling else 'false'}\n"
        f"blacklist:{_items(blacklist)}\n"
        f"whitelist:{_items(whitelist)}\n"
    )


@pytest.fixture
def write_policy(tmp_path: Path):
    def _write(blacklist=(), whitelist=(), profiling=False, name="policy.yaml") -> Path:
        path = tmp_path / name
        path.write_text(render_policy(list(blacklist), list(whitelist), profiling), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store():
    store = PolicyStore(reload_interval=0)
    yield store
    store.shutdown()


@pytest.fixture
def sink():
    return MemoryEventSink()
