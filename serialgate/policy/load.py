from __future__ import annotations

import os
from pathlib import Path

import yaml

from serialgate.errors import ConfigurationError

from .model import Policy
from .patterns import PatternSet, PatternSyntaxError


def _ensure_patterns(value: object, field_name: str, origin_id: str) -> list[str]:
    if value is None:
        return []
    # Accept the nested form `blacklist: {regexps: [...]}` as well as a bare list.
    if isinstance(value, dict):
        if set(value) != {"regexps"}:
            raise ConfigurationError(f"{field_name} mapping must hold only 'regexps'", origin_id)
        value = value["regexps"]
        if value is None:
            return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationError(f"{field_name} must be a list of patterns", origin_id)
    return value


class FileSource:
    """A policy file on disk, identified by its path."""

    def __init__(self, origin_id: str | Path):
        if origin_id is None:
            raise ConfigurationError("config path is None")
        self.origin_id = str(origin_id)
        self.path = Path(origin_id)

    def validate(self) -> None:
        if not self.path.is_file():
            raise ConfigurationError(f"config path is invalid: {self.origin_id}", self.origin_id)
        if not os.access(self.path, os.R_OK):
            raise ConfigurationError(f"config path is not readable: {self.origin_id}", self.origin_id)
        if self.path.stat().st_size == 0:
            raise ConfigurationError(f"config file is empty: {self.origin_id}", self.origin_id)

    def read_bytes(self) -> bytes:
        self.validate()
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise ConfigurationError(f"cannot read {self.origin_id}: {exc}", self.origin_id) from exc


def parse_policy(raw: bytes | str, origin_id: str, version: int = 1) -> Policy:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"malformed policy {origin_id}: {exc}", origin_id) from exc

    if data is None:
        raise ConfigurationError(f"config file is empty: {origin_id}", origin_id)
    if not isinstance(data, dict):
        raise ConfigurationError("policy must be a mapping", origin_id)

    mode = data.get("mode")
    if mode is None:
        mode = {}
    if not isinstance(mode, dict):
        raise ConfigurationError("mode must be a mapping", origin_id)
    profiling = mode.get("profiling", False)
    if not isinstance(profiling, bool):
        raise ConfigurationError("mode.profiling must be true or false", origin_id)

    try:
        deny = PatternSet(_ensure_patterns(data.get("blacklist"), "blacklist", origin_id))
        allow = PatternSet(_ensure_patterns(data.get("whitelist"), "whitelist", origin_id))
    except PatternSyntaxError as exc:
        raise ConfigurationError(f"serialgate not properly configured: {exc}", origin_id) from exc

    return Policy(origin_id=origin_id, deny=deny, allow=allow, profiling=profiling, version=version)


def load_policy(path: str | Path, version: int = 1) -> Policy:
    source = FileSource(path)
    return parse_policy(source.read_bytes(), source.origin_id, version=version)
