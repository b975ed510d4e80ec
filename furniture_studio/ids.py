from __future__ import annotations

"""Identifier generation for references, human models and assets."""

import itertools
import threading
import uuid
from typing import Protocol


class IdGenerator(Protocol):
    def new_id(self) -> str:
        ...


class UuidIdGenerator:
    """Random ids, the default for interactive sessions."""

    def new_id(self) -> str:
        return uuid.uuid4().hex


class SequentialIdGenerator:
    """Deterministic ids of the form ``<prefix>-<n>``, used by tests."""

    def __init__(self, prefix: str = "id", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            n = next(self._counter)
        return f"{self._prefix}-{n}"
