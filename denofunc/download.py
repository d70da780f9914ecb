# denofunc/download.py
"""
Stream release/template archives to disk and unpack them.

Downloads report byte progress to a :class:`ProgressEngine` (and through it to
the transfer spinner). Writes are atomic: data lands in ``<dest>.part`` and
is renamed once complete, so an interrupted download never leaves a file
that looks finished.
"""
from __future__ import annotations

import logging
import os
import urllib.request
import zipfile
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .progress import ProgressEngine, live_percent

LOGGER = logging.getLogger(__name__)

_CHUNK = 1024 * 1024
_USER_AGENT = "denofunc/1.0"


def _content_length(hdrs: Optional[Mapping[str, Any]]) -> int:
    try:
        if not hdrs:
            return 0
        raw = hdrs.get("Content-Length", None)
        return int(str(raw)) if raw is not None else 0
    except (TypeError, ValueError):
        return 0


def download_url(url: str, dest: Path, engine: Optional[ProgressEngine] = None, *, timeout: float = 60.0) -> Path:
    """
    Download *url* to *dest*, feeding byte counts to *engine* when given.

    Parent directories are created. HTTP errors propagate (``urllib.error``);
    the ``.part`` file is removed on failure.
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")

    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310 - fixed https URLs
            total = _content_length(getattr(resp, "headers", None))
            if engine is not None:
                engine.begin(dest.name, total)
            with tmp.open("wb") as fh:
                for chunk in iter(lambda: resp.read(_CHUNK), b""):
                    fh.write(chunk)
                    if engine is not None:
                        engine.advance(len(chunk))
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    os.replace(tmp, dest)
    if engine is not None:
        engine.complete()
    LOGGER.info("download.complete url=%s dest=%s bytes=%s", url, dest, dest.stat().st_size)
    return dest


def fetch_archive(url: str, dest: Path) -> Path:
    """Download with the transfer spinner attached."""
    engine = ProgressEngine()
    with live_percent(engine):
        return download_url(url, dest, engine)


def extract_zip(archive: Path, target_dir: Path) -> List[str]:
    """Unpack *archive* into *target_dir*; returns the member names."""
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
        zf.extractall(target_dir)
    LOGGER.info("download.extracted archive=%s members=%d", archive, len(names))
    return names
