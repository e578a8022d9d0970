"""Registry of loaded policies, one entry per configuration source.

A PolicyHandle owns the currently published Policy for its source plus the
ReloadScheduler polling that source. Publishing is a single reference swap of
an immutable Policy, so concurrent readers always see one whole snapshot.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from pathlib import Path

from serialgate.config import load_settings
from serialgate.errors import ConfigurationError

from .load import FileSource, parse_policy
from .model import Policy
from .reload import DEFAULT_RELOAD_INTERVAL, ReloadScheduler

logger = logging.getLogger(__name__)


class PolicyHandle:
    def __init__(self, source: FileSource, policy: Policy, fingerprint: str):
        self.source = source
        self._policy = policy
        self.fingerprint = fingerprint
        self.reload_lock = threading.Lock()
        self.reload_failures = 0
        self.last_error: str | None = None
        self.scheduler: ReloadScheduler | None = None

    @property
    def origin_id(self) -> str:
        return self.source.origin_id

    @property
    def policy(self) -> Policy:
        return self._policy

    def publish(self, policy: Policy, fingerprint: str) -> None:
        self.fingerprint = fingerprint
        self._policy = policy

    def __repr__(self) -> str:
        return f"PolicyHandle(origin_id={self.origin_id!r}, version={self._policy.version})"


class PolicyStore:
    def __init__(self, reload_interval: float | None = DEFAULT_RELOAD_INTERVAL):
        self.reload_interval = reload_interval
        self._handles: dict[str, PolicyHandle] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(origin_id: str | Path) -> str:
        if origin_id is None:
            raise ConfigurationError("config path is None")
        return str(origin_id)

    def get(self, origin_id: str | Path) -> PolicyHandle:
        key = self._key(origin_id)
        handle = self._handles.get(key)
        if handle is not None:
            return handle
        with self._lock:
            handle = self._handles.get(key)
            if handle is None:
                handle = self._create(key)
                self._handles[key] = handle
        return handle

    def _create(self, origin_id: str) -> PolicyHandle:
        # Any ConfigurationError here propagates: a first load must succeed.
        source = FileSource(origin_id)
        raw = source.read_bytes()
        policy = parse_policy(raw, origin_id, version=1)
        handle = PolicyHandle(source, policy, _digest(raw))
        handle.scheduler = ReloadScheduler(
            lambda: self.reload_if_needed(handle),
            interval=self.reload_interval,
            name=f"serialgate-reload[{origin_id}]",
        )
        handle.scheduler.start()
        logger.info(
            "policy loaded origin=%s blacklist=%d whitelist=%d profiling=%s",
            origin_id,
            len(policy.deny),
            len(policy.allow),
            policy.profiling,
        )
        return handle

    def reload_if_needed(self, handle: PolicyHandle) -> bool:
        """Republish the handle's policy if its source changed.

        Returns True when a new policy was published. Failures keep the
        current policy in force.
        """
        with handle.reload_lock:
            try:
                raw = handle.source.read_bytes()
                fingerprint = _digest(raw)
                if fingerprint == handle.fingerprint:
                    return False
                current = handle.policy
                policy = parse_policy(raw, handle.origin_id, version=current.version + 1)
            except (ConfigurationError, OSError) as exc:
                handle.reload_failures += 1
                handle.last_error = str(exc)
                logger.warning(
                    "policy reload failed origin=%s, keeping version %d: %s",
                    handle.origin_id,
                    handle.policy.version,
                    exc,
                )
                return False

            handle.publish(policy, fingerprint)
            handle.last_error = None
            logger.info("policy reloaded origin=%s version=%d", handle.origin_id, policy.version)
            return True

    def __contains__(self, origin_id: object) -> bool:
        return str(origin_id) in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def shutdown(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            if handle.scheduler is not None:
                handle.scheduler.stop()


def _digest(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


_default_store: PolicyStore | None = None
_default_lock = threading.Lock()


def default_store() -> PolicyStore:
    global _default_store
    with _default_lock:
        if _default_store is None:
            _default_store = PolicyStore(reload_interval=load_settings().reload_interval)
        return _default_store


def reset_default_store() -> None:
    global _default_store
    with _default_lock:
        store, _default_store = _default_store, None
    if store is not None:
        store.shutdown()
