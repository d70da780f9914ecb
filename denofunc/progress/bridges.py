"""Attach a :class:`ProgressEngine` to the transfer spinner for one ``with`` block."""
from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Iterator

from .engine import ProgressEngine, TransferState
from .progress_ux import Spinner, transfer_spinner


@contextmanager
def live_percent(engine: ProgressEngine, *, prefix: str = "DOWNLOAD") -> Iterator[Spinner]:
    # the real stderr, so a captured sys.stderr does not hide the spinner
    spinner = transfer_spinner(prefix, stream=sys.__stderr__ or sys.stderr)

    def show(state: TransferState) -> None:
        spinner.update(item=state.label, done=state.done_bytes, total=state.total_bytes)

    with spinner:
        unsubscribe = engine.subscribe(show)
        try:
            yield spinner
        finally:
            unsubscribe()
