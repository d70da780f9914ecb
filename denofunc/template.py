# denofunc/template.py
"""
``denofunc init``: scaffold a project from the template repository.

The GitHub archive of ``<repo>@<branch>`` unpacks into a single
``<repo-name>-<branch>/`` folder; its contents are moved up into the
project directory and the folder is removed.
"""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import typer

from . import download
from .config import DenoFuncConfig

LOGGER = logging.getLogger(__name__)


def directory_is_empty(path: Path) -> bool:
    with os.scandir(path) as entries:
        return next(entries, None) is None


def _hoist(subdir: Path, dest_root: Path) -> None:
    """Move everything under *subdir* to the same relative place in *dest_root*."""
    for dirpath, _dirnames, filenames in os.walk(subdir):
        rel_dir = Path(dirpath).relative_to(subdir)
        target_dir = dest_root / rel_dir
        if rel_dir != Path("."):
            typer.echo(f"./{rel_dir.as_posix()}")
            target_dir.mkdir(parents=True, exist_ok=True)
        for name in filenames:
            rel = rel_dir / name
            typer.echo(f"./{rel.as_posix()}")
            shutil.move(str(Path(dirpath) / name), str(dest_root / rel))


def initialize_from_template(
    cfg: DenoFuncConfig,
    branch: Optional[str] = None,
    *,
    root: Optional[Path] = None,
) -> bool:
    """
    Populate *root* (default: cwd) from the template archive.

    Returns ``False`` without touching the disk when *root* is not empty.
    Download or extraction errors propagate and leave partial state behind.
    """
    base = Path.cwd() if root is None else Path(root)
    branch = branch or cfg.template_branch

    if not directory_is_empty(base):
        typer.secho("Cannot initialize. Folder is not empty.", err=True, fg=typer.colors.RED)
        return False

    url = cfg.template_url(branch)
    typer.echo("Initializing project...")
    typer.echo(f"Downloading from {url}...")

    archive = base / cfg.template_zip_name
    download.fetch_archive(url, archive)
    download.extract_zip(archive, base)
    archive.unlink()

    subdir = base / cfg.template_folder(branch)
    _hoist(subdir, base)
    shutil.rmtree(subdir)

    LOGGER.info("template.initialized branch=%s root=%s", branch, base)
    return True
