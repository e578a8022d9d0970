from __future__ import annotations

import pickle
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from serialgate.gate import Decision


class SerialGateError(Exception):
    pass


class ConfigurationError(SerialGateError, ValueError):
    """Policy source is missing, unreadable, empty, or malformed.

    Fatal when raised on first load; during reload it is logged and the
    last good policy stays published.
    """

    def __init__(self, message: str, origin_id: str | None = None):
        super().__init__(message)
        self.origin_id = origin_id


class DeserializationRejected(SerialGateError, pickle.UnpicklingError):
    def __init__(self, type_name: str, decision: Decision):
        super().__init__(f"{type_name} blocked from deserialization ({decision.reason})")
        self.type_name = type_name
        self.decision = decision
