"""
denofunc progress (Halo only)

One progress look: the Halo spinner from ``progress_ux.py``. Where it cannot
render (non-TTY, CI, nested spinner) callers get a no-op spinner.

Exports
-------
- ProgressEngine / TransferState  → byte counter fed by downloads
- live_percent(engine)            → bind an engine to the transfer spinner
- simple_status(label)            → spinner with a fixed label
- transfer_spinner(prefix)        → ``[File: …] [a/b MiB] [pct%]`` spinner

Environment knobs:
  DENOFUNC_SPINNER          Halo spinner glyph (default "dots")
  DENOFUNC_NO_SPINNER       1 → never render spinners
  DENOFUNC_PROGRESS_FORCE   1 → allow nested spinners anyway
  DENOFUNC_PROGRESS_ACTIVE  internal: "1" while a spinner is alive
"""

from __future__ import annotations

from .bridges import live_percent
from .engine import ProgressEngine, TransferState
from .progress_ux import NullSpinner, Spinner, should_enable_spinners, simple_status, transfer_spinner

__all__ = [
    "NullSpinner",
    "ProgressEngine",
    "Spinner",
    "TransferState",
    "live_percent",
    "should_enable_spinners",
    "simple_status",
    "transfer_spinner",
]
