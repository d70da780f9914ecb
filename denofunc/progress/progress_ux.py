# progress_ux.py: Halo spinners with colorama colours
from __future__ import annotations

import itertools
import os
import sys
import threading
from types import TracebackType
from typing import Any, Callable, Dict, Optional, Protocol, Type

from colorama import Fore, Style
from colorama import init as colorama_init
from halo import Halo

colorama_init()

Render = Callable[[Dict[str, Any], str], str]

_PALETTE = (Fore.CYAN, Fore.BLUE, Fore.MAGENTA, Fore.GREEN)
_ON = ("1", "true", "yes", "on")
_ACTIVE_ENV = "DENOFUNC_PROGRESS_ACTIVE"


class Spinner(Protocol):
    def __enter__(self) -> "Spinner": ...
    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None: ...
    def update(self, **fields: Any) -> None: ...


def _flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _ON


def should_enable_spinners(stream: Optional[Any] = None) -> bool:
    """True only on an interactive terminal, outside CI, with no spinner already running."""
    if os.environ.get(_ACTIVE_ENV) == "1" and not _flag("DENOFUNC_PROGRESS_FORCE"):
        return False
    if _flag("DENOFUNC_NO_SPINNER") or os.environ.get("CI") or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(stream or sys.stderr, "isatty", None)
    return bool(isatty and isatty())


class NullSpinner:
    """Stands in wherever a real spinner must not draw."""

    def __enter__(self) -> "NullSpinner":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def update(self, **fields: Any) -> None:
        return None


class DynamicSpinner:
    """
    One Halo line whose text is recomputed from ``fields`` by a repaint thread.

    ``update`` only records new field values; the thread picks them up on its
    next tick, cycling the label colour each time.
    """

    def __init__(self, render: Render, fields: Optional[Dict[str, Any]] = None, *,
                 tick: float = 0.1, glyphs: str = "dots", stream: Optional[Any] = None) -> None:
        self._render = render
        self._fields: Dict[str, Any] = dict(fields or {})
        self._tick = tick
        self._colours = itertools.cycle(_PALETTE)
        self._halo = Halo(text="", spinner=glyphs, stream=stream or sys.stderr)
        self._halt = threading.Event()
        self._painter = threading.Thread(target=self._repaint, daemon=True)

    def _text(self) -> str:
        return self._render(self._fields, next(self._colours))

    def _repaint(self) -> None:
        while not self._halt.wait(self._tick):
            self._halo.text = self._text()

    def __enter__(self) -> "DynamicSpinner":
        os.environ[_ACTIVE_ENV] = "1"
        self._halo.text = self._text()
        self._halo.start()
        self._painter.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._halt.set()
        self._painter.join(timeout=1.0)
        try:
            self._halo.stop()
        finally:
            os.environ.pop(_ACTIVE_ENV, None)

    def update(self, **fields: Any) -> None:
        self._fields.update(fields)


def _make(render: Render, fields: Optional[Dict[str, Any]] = None, *,
          stream: Optional[Any] = None, tick: float = 0.1) -> Spinner:
    target = stream or sys.stderr
    if not should_enable_spinners(target):
        return NullSpinner()
    glyphs = os.environ.get("DENOFUNC_SPINNER", "dots")
    return DynamicSpinner(render, fields, tick=tick, glyphs=glyphs, stream=target)


def simple_status(label: str, *, stream: Optional[Any] = None) -> Spinner:
    return _make(lambda _fields, colour: f"{colour}{Style.BRIGHT}{label}{Style.RESET_ALL}", stream=stream)


def _mib(nbytes: int) -> str:
    return f"{nbytes / 1048576:.1f}"


def _transfer_line(prefix: str, fields: Dict[str, Any], colour: str) -> str:
    name = fields.get("item") or ""
    done = max(0, int(fields.get("done") or 0))
    total = max(0, int(fields.get("total") or 0))

    parts = [f"{colour}{Style.BRIGHT}{prefix}{Style.RESET_ALL}"]
    if name:
        parts.append(f"{Fore.GREEN}[File:{Fore.RED}{name}{Fore.GREEN}]{Style.RESET_ALL}")
    if total:
        pct = min(100.0, done * 100.0 / total)
        parts.append(f"{Fore.MAGENTA}[{_mib(done)}/{_mib(total)} MiB] [{pct:6.2f}%]{Style.RESET_ALL}")
    else:
        parts.append(f"{Fore.MAGENTA}[{_mib(done)} MiB]{Style.RESET_ALL}")
    return " ".join(parts)


def transfer_spinner(prefix: str = "DOWNLOAD", *, stream: Optional[Any] = None) -> Spinner:
    """
    ``DOWNLOAD [File:deno.zip] [12.0/34.5 MiB] [ 34.78%]``

    Fields: ``item`` (file name), ``done`` and ``total`` (bytes). Without a
    known total only the byte count is shown.
    """
    return _make(
        lambda fields, colour: _transfer_line(prefix, fields, colour),
        {"item": None, "done": 0, "total": 0},
        stream=stream,
        tick=0.05,
    )
