from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class DecisionLedger:
    def __init__(self, audit_dir: str | Path = "audit"):
        self.audit_dir = Path(audit_dir)
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        self.ledger_path = self.audit_dir / "decisions.jsonl"
        self._lock = threading.Lock()

    def write_event(self, event: dict[str, Any]) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **event,
        }
        line = json.dumps(payload, sort_keys=True) + "\n"
        with self._lock, self.ledger_path.open("a", encoding="utf-8") as fh:
            fh.write(line)

    def tail(self, n: int = 20) -> list[dict[str, Any]]:
        if n <= 0 or not self.ledger_path.exists():
            return []
        lines = self.ledger_path.read_text(encoding="utf-8").splitlines()
        out: list[dict[str, Any]] = []
        for line in lines[-n:]:
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return out
