from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

Listener = Callable[["TransferState"], None]


@dataclass(frozen=True)
class TransferState:
    """Snapshot of one transfer; listeners receive a fresh copy on every change."""

    label: Optional[str] = None
    total_bytes: int = 0
    done_bytes: int = 0
    started_at: float = 0.0

    @property
    def percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return min(100.0, self.done_bytes * 100.0 / self.total_bytes)

    @property
    def elapsed(self) -> float:
        return max(0.0, time.monotonic() - self.started_at) if self.started_at else 0.0


class ProgressEngine:
    """
    Byte counter for a single download.

    The downloader calls :meth:`begin`, :meth:`advance` and :meth:`complete`;
    the spinner bridge subscribes and renders each snapshot.
    """

    def __init__(self) -> None:
        self._state = TransferState()
        self._guard = threading.Lock()
        self._subscribers: List[Listener] = []

    @property
    def state(self) -> TransferState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._subscribers.append(listener)

        def unsubscribe() -> None:
            if listener in self._subscribers:
                self._subscribers.remove(listener)

        return unsubscribe

    def begin(self, label: Optional[str], total_bytes: int) -> None:
        self._update(label=label, total_bytes=max(0, int(total_bytes)), done_bytes=0, started_at=time.monotonic())

    def advance(self, nbytes: int) -> None:
        self._update(done_bytes=self._state.done_bytes + int(nbytes))

    def complete(self) -> None:
        # without a Content-Length the total is only known at the end
        final = max(self._state.total_bytes, self._state.done_bytes)
        self._update(total_bytes=final, done_bytes=final)

    def _update(self, **changes: object) -> None:
        with self._guard:
            self._state = replace(self._state, **changes)  # type: ignore[arg-type]
            snapshot = self._state
        for listener in list(self._subscribers):
            listener(snapshot)
