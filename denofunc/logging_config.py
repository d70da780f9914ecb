"""
File logging for denofunc.

What the user should see goes through ``typer.echo``; the log file records
the launched command lines, discarded cleanup errors and tracebacks.
``--verbose`` mirrors the same records to stderr.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

__all__ = ["enable_console", "get_log_path", "setup_logging"]

_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_state: dict = {"path": None, "console": None}


def _user_data_dir() -> Path:
    home = Path.home()
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA")
        return (Path(root) if root else home / "AppData" / "Local") / "denofunc"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "denofunc"
    return Path(os.getenv("XDG_DATA_HOME") or home / ".local" / "share") / "denofunc"


def _open_handler(file_env: str) -> logging.FileHandler:
    override = os.getenv(file_env)
    path = Path(override).expanduser() if override else _user_data_dir() / "logs" / "denofunc.log"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return logging.FileHandler(Path(tempfile.gettempdir()) / "denofunc.log", encoding="utf-8")


def _level_from(env_name: str) -> int:
    level = logging.getLevelName(os.getenv(env_name, "WARNING").strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def get_log_path() -> Optional[Path]:
    return _state["path"]


def setup_logging(*, level_env: str = "DENOFUNC_LOG_LEVEL", file_env: str = "DENOFUNC_LOG_FILE") -> Path:
    """
    Route the root logger to a single log file and return its path.

    Level: ``DENOFUNC_LOG_LEVEL`` (default WARNING). Location:
    ``DENOFUNC_LOG_FILE``, else ``<user data dir>/denofunc/logs/denofunc.log``,
    else the temp dir. Only the first call has an effect.
    """
    if _state["path"] is not None:
        return _state["path"]

    level = _level_from(level_env)
    handler = _open_handler(file_env)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    _state["path"] = Path(handler.baseFilename)
    return _state["path"]


def enable_console(level: int = logging.INFO) -> logging.Handler:
    root = logging.getLogger()
    console = _state["console"]
    if console is None:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        root.addHandler(console)
        _state["console"] = console
    console.setLevel(level)
    root.setLevel(min(root.level or logging.WARNING, level))
    return console
