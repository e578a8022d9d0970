from __future__ import annotations

import _compat_pickle
import io
import pickle
from abc import ABC, abstractmethod
from typing import IO, Any, Callable

BeforeInstantiate = Callable[[str], object]


class Reconstructor(ABC):
    """Rebuilds objects from a byte stream, consulting a hook per type."""

    @abstractmethod
    def reconstruct(self, stream: IO[bytes], before_instantiate: BeforeInstantiate) -> Any:
        raise NotImplementedError

    def reconstruct_bytes(self, data: bytes, before_instantiate: BeforeInstantiate) -> Any:
        return self.reconstruct(io.BytesIO(data), before_instantiate)


def resolve_global(module: str, name: str) -> tuple[str, str]:
    """Map Python 2 names (`__builtin__.eval`, `copy_reg`) to their Python 3 targets."""
    if (module, name) in _compat_pickle.NAME_MAPPING:
        return _compat_pickle.NAME_MAPPING[(module, name)]
    return _compat_pickle.IMPORT_MAPPING.get(module, module), name


class _HookedUnpickler(pickle.Unpickler):
    def __init__(self, stream: IO[bytes], before_instantiate: BeforeInstantiate, **kwargs):
        # The name remap happens in find_class so the checked name is the resolved one.
        super().__init__(stream, fix_imports=False, **kwargs)
        self._before_instantiate = before_instantiate

    def find_class(self, module: str, name: str) -> Any:
        module, name = resolve_global(module, name)
        # The hook raises to refuse; nothing is imported before it returns.
        self._before_instantiate(f"{module}.{name}")
        return super().find_class(module, name)


class PickleReconstructor(Reconstructor):
    def __init__(self, encoding: str = "ASCII", errors: str = "strict"):
        self.encoding = encoding
        self.errors = errors

    def reconstruct(self, stream: IO[bytes], before_instantiate: BeforeInstantiate) -> Any:
        unpickler = _HookedUnpickler(stream, before_instantiate, encoding=self.encoding, errors=self.errors)
        return unpickler.load()
