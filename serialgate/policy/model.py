from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .patterns import PatternSet


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class Policy:
    origin_id: str
    deny: PatternSet = field(default_factory=PatternSet)
    allow: PatternSet = field(default_factory=PatternSet)
    profiling: bool = False
    version: int = 1
    loaded_at: str = field(default_factory=_utcnow, compare=False)

    def summary(self) -> dict[str, object]:
        return {
            "origin_id": self.origin_id,
            "version": self.version,
            "profiling": self.profiling,
            "blacklist": list(self.deny.sources),
            "whitelist": list(self.allow.sources),
            "loaded_at": self.loaded_at,
        }
