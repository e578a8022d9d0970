"""Look-ahead gate deciding which types may be rebuilt from a stream.

Evaluation order is fixed: blacklist first, then whitelist. In enforcing
mode the first blacklist hit blocks immediately and a type needs at least one
whitelist hit to pass. Profiling mode runs the same evaluation but never
blocks; it only reports what enforcing mode would have done.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any

from serialgate.errors import DeserializationRejected
from serialgate.events import EventSink, LoggingEventSink
from serialgate.policy.model import Policy
from serialgate.policy.store import PolicyHandle, PolicyStore, default_store
from serialgate.reconstruct import Reconstructor

REASON_BLACKLIST = "denied by blacklist"
REASON_WHITELIST = "not in whitelist"


class Verdict(str, Enum):
    ALLOW = "ALLOW"
    BLOCK = "BLOCK"
    ALLOW_WITH_WARNING = "ALLOW_WITH_WARNING"


@dataclass(frozen=True, slots=True)
class Decision:
    verdict: Verdict
    reason: str
    rule_id: str
    type_name: str = ""
    pattern: str | None = None
    policy_version: int = 0

    @property
    def allowed(self) -> bool:
        return self.verdict is not Verdict.BLOCK

    @property
    def blocked(self) -> bool:
        return self.verdict is Verdict.BLOCK


class Gate:
    def __init__(
        self,
        reconstructor: Reconstructor,
        origin_id: str | Path,
        store: PolicyStore | None = None,
        sink: EventSink | None = None,
    ):
        self.reconstructor = reconstructor
        self.store = store if store is not None else default_store()
        self.sink = sink if sink is not None else LoggingEventSink()
        # Raises ConfigurationError before the gate is usable.
        self.handle: PolicyHandle = self.store.get(origin_id)

    @property
    def origin_id(self) -> str:
        return self.handle.origin_id

    @property
    def policy(self) -> Policy:
        return self.handle.policy

    def _event(self, kind: str, policy: Policy, type_name: str, check_id: str, pattern: str | None = None) -> dict[str, Any]:
        event: dict[str, Any] = {
            "event": kind,
            "check_id": check_id,
            "type_name": type_name,
            "origin_id": policy.origin_id,
            "policy_version": policy.version,
            "profiling": policy.profiling,
        }
        if pattern is not None:
            event["pattern"] = pattern
        return event

    def check(self, type_name: str) -> Decision:
        # One snapshot per call; a concurrent reload never mixes lists.
        policy = self.handle.policy
        profiling = policy.profiling
        # Groups the events of one check in the ledger.
        check_id = uuid.uuid4().hex

        denied_by: str | None = None
        for pattern in policy.deny:
            if not pattern.search(type_name):
                continue
            if profiling:
                self.sink.info(self._event("blacklist_match", policy, type_name, check_id, pattern.source))
                if denied_by is None:
                    denied_by = pattern.source
                continue
            self.sink.error(self._event("blocked_by_blacklist", policy, type_name, check_id, pattern.source))
            return Decision(
                Verdict.BLOCK,
                REASON_BLACKLIST,
                "blacklist_match",
                type_name=type_name,
                pattern=pattern.source,
                policy_version=policy.version,
            )

        allowed_by: str | None = None
        for pattern in policy.allow:
            if pattern.search(type_name):
                allowed_by = pattern.source
                if profiling:
                    self.sink.info(self._event("whitelist_match", policy, type_name, check_id, pattern.source))
                break

        if profiling:
            if allowed_by is None:
                self.sink.info(self._event("whitelist_miss", policy, type_name, check_id))
            if denied_by is not None:
                return Decision(
                    Verdict.ALLOW_WITH_WARNING,
                    REASON_BLACKLIST,
                    "profiling_blacklist_match",
                    type_name=type_name,
                    pattern=denied_by,
                    policy_version=policy.version,
                )
            if allowed_by is None:
                return Decision(
                    Verdict.ALLOW_WITH_WARNING,
                    REASON_WHITELIST,
                    "profiling_whitelist_miss",
                    type_name=type_name,
                    policy_version=policy.version,
                )
            return Decision(
                Verdict.ALLOW,
                "matched whitelist",
                "whitelist_match",
                type_name=type_name,
                pattern=allowed_by,
                policy_version=policy.version,
            )

        if allowed_by is None:
            self.sink.error(self._event("blocked_by_whitelist", policy, type_name, check_id))
            return Decision(
                Verdict.BLOCK,
                REASON_WHITELIST,
                "whitelist_miss",
                type_name=type_name,
                policy_version=policy.version,
            )

        return Decision(
            Verdict.ALLOW,
            "matched whitelist",
            "whitelist_match",
            type_name=type_name,
            pattern=allowed_by,
            policy_version=policy.version,
        )

    def before_instantiate(self, type_name: str) -> Decision:
        decision = self.check(type_name)
        if decision.blocked:
            raise DeserializationRejected(type_name, decision)
        return decision

    def load(self, stream: IO[bytes]) -> Any:
        return self.reconstructor.reconstruct(stream, self.before_instantiate)

    def loads(self, data: bytes) -> Any:
        return self.reconstructor.reconstruct_bytes(data, self.before_instantiate)
