# denofunc/runtime/process.py
"""
Launch external tools (deno, az, func) with a single Windows PATH fallback.

``launch`` never raises for a failed start; it returns either
:class:`Started` (holding the ``Popen`` handle) or :class:`LaunchFailed`
(holding the reason and the original ``OSError``). ``run_with_retry`` turns
that into the one recovery behaviour the tool has:

1. start the command as given;
2. on Windows only, if that failed, ask ``where.exe`` for the backup command
   (``az.cmd``, ``func.cmd``, ...) and start again with the discovered path as
   ``argv[0]``;
3. anything else is fatal and propagates to the caller.
"""
from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

import typer

__all__ = [
    "LaunchFailed",
    "LaunchResult",
    "Started",
    "format_command",
    "launch",
    "locate_on_path",
    "run_and_wait",
    "run_captured",
    "run_with_retry",
]

LOGGER = logging.getLogger(__name__)

_IS_WINDOWS = os.name == "nt"
_WHERE = "where.exe"


@dataclass(frozen=True)
class Started:
    process: "subprocess.Popen[Any]"


@dataclass(frozen=True)
class LaunchFailed:
    reason: str
    error: OSError


LaunchResult = Union[Started, LaunchFailed]


def format_command(cmd: Sequence[object]) -> str:
    return " ".join(str(part) for part in cmd)


def launch(cmd: Sequence[str], **popen_kwargs: Any) -> LaunchResult:
    """Try to start *cmd*; report failure as a value instead of raising."""
    try:
        return Started(subprocess.Popen(list(cmd), **popen_kwargs))
    except OSError as exc:
        LOGGER.info("process.launch.failed cmd=%s reason=%s", cmd[0] if cmd else "", exc)
        return LaunchFailed(reason=str(exc), error=exc)


def _path_listing(command: str) -> str:
    """Raw ``where.exe <command>`` output; empty when the lookup itself fails."""
    try:
        proc = subprocess.run(
            [_WHERE, command],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except OSError as exc:
        LOGGER.debug("process.where.failed command=%s reason=%s", command, exc)
        return ""
    return proc.stdout or ""


def locate_on_path(command: str) -> Optional[str]:
    """Return the first PATH entry listed for *command*, or ``None``."""
    for line in re.split(r"\r?\n", _path_listing(command)):
        candidate = line.strip()
        if candidate and candidate.endswith(command):
            return candidate
    return None


def run_with_retry(
    cmd: Sequence[str],
    backup_command: str,
    *,
    windows: Optional[bool] = None,
    echo: bool = True,
    **popen_kwargs: Any,
) -> "subprocess.Popen[Any]":
    """
    Start *cmd* and return its process handle.

    *backup_command* is the executable name searched on the Windows PATH when
    the direct start fails (``az`` is really ``az.cmd`` there). *windows*
    overrides host detection.
    """
    args = [str(part) for part in cmd]
    if echo:
        typer.echo(f"Running command: {format_command(args)}")

    first = launch(args, **popen_kwargs)
    if isinstance(first, Started):
        return first.process

    on_windows = _IS_WINDOWS if windows is None else windows
    if not on_windows:
        raise first.error

    typer.echo(f"Could not start {args[0]} from path, searching for executable...")
    found = locate_on_path(backup_command)
    if not found:
        raise FileNotFoundError(
            f"Could not locate {backup_command}. Please ensure it is installed and in the path."
        )

    retry_args = [found, *args[1:]]
    if echo:
        typer.echo(f"Running command: {format_command(retry_args)}")
    second = launch(retry_args, **popen_kwargs)
    if isinstance(second, Started):
        return second.process
    raise second.error


def run_and_wait(cmd: Sequence[str], backup_command: str, **kwargs: Any) -> int:
    """Run with inherited stdio and return the exit code."""
    proc = run_with_retry(cmd, backup_command, **kwargs)
    return int(proc.wait())


def run_captured(cmd: Sequence[str], backup_command: str, **kwargs: Any) -> Tuple[int, str]:
    """Run with stdout captured as text; stderr stays on the console."""
    kwargs.setdefault("stdout", subprocess.PIPE)
    kwargs.setdefault("text", True)
    proc = run_with_retry(cmd, backup_command, **kwargs)
    out, _ = proc.communicate()
    return int(proc.returncode or 0), out or ""
