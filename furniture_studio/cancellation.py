from __future__ import annotations

import threading
from typing import List, Optional

from .errors import OperationCancelled


class CancelToken:
    """Cooperative cancellation flag that can also be slept on.

    A token is cancelled whenever any of its parents is, which lets a
    session token and a caller token both abandon the same request.
    """

    def __init__(self, *parents: Optional["CancelToken"]) -> None:
        self._event = threading.Event()
        self._children: List["CancelToken"] = []
        self._lock = threading.Lock()
        self._parents = [p for p in parents if p is not None]
        for parent in self._parents:
            parent._adopt(self)

    def _adopt(self, child: "CancelToken") -> None:
        with self._lock:
            self._children.append(child)
            cancelled = self._event.is_set()
        if cancelled:
            child.cancel()

    def _forget(self, child: "CancelToken") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def child(self, *others: Optional["CancelToken"]) -> "CancelToken":
        return CancelToken(self, *others)

    def detach(self) -> None:
        """Stop following the parents once the guarded request is over."""
        parents, self._parents = self._parents, []
        for parent in parents:
            parent._forget(self)

    def cancel(self) -> None:
        with self._lock:
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Request was cancelled.")
