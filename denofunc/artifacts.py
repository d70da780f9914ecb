# denofunc/artifacts.py
"""
Build what the Functions host will launch.

* ``generate_functions`` runs the worker once in generate mode so it writes the
  per-function ``function.json`` folders.
* ``generate_executable`` compiles ``worker.ts`` into ``bin/<platform>/worker``.
* ``create_js_bundle`` writes ``worker.bundle.js``.
* ``download_binary`` provisions ``bin/<platform>/deno`` for the jsbundle and
  none styles.

Stale artifacts of another style are removed before new ones are written.
Those removals are best effort: a missing target is the normal case.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

import typer

from . import download
from .config import DenoFuncConfig
from .host_config import executable_suffix
from .runtime.deno import satisfies
from .runtime.process import run_and_wait

LOGGER = logging.getLogger(__name__)

_IS_WINDOWS = os.name == "nt"
GENERATE_ENV = "DENOFUNC_GENERATE"


def _base(root: Optional[Path]) -> Path:
    return Path.cwd() if root is None else Path(root)


def _remove_quietly(path: Path) -> bool:
    """Delete a file or tree; report and discard failures at DEBUG."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        return True
    except OSError as exc:
        LOGGER.debug("artifacts.cleanup.skipped path=%s reason=%s", path, exc)
        return False


def _run_deno(cfg: DenoFuncConfig, args: List[str], base: Path, **kwargs: object) -> int:
    rc = run_and_wait([cfg.deno_binary, *args], "deno.exe", cwd=str(base), **kwargs)
    if rc != 0:
        LOGGER.warning("artifacts.deno.failed args=%s rc=%s", " ".join(args[:2]), rc)
    return rc


def generate_functions(cfg: DenoFuncConfig, *, root: Optional[Path] = None) -> None:
    """
    Run the worker with ``DENOFUNC_GENERATE=1`` so it writes the function folders.

    Raises ``subprocess.CalledProcessError`` carrying the worker's exit code
    when generation fails; nothing after it should run.
    """
    base = _base(root)
    typer.echo("Generating functions...")
    args = [
        "run",
        *cfg.common_options,
        "--allow-write",
        "--unstable",
        "--no-check",
        cfg.entry_script,
    ]
    env = dict(os.environ)
    env[GENERATE_ENV] = "1"
    rc = _run_deno(cfg, args, base, env=env)
    if rc != 0:
        raise subprocess.CalledProcessError(rc, [cfg.deno_binary, *args])


def compile_command(cfg: DenoFuncConfig, platform: str, deno_version: str, *, quiet: bool = False) -> List[str]:
    args = ["compile", "--unstable"]
    # --lite only exists between v1.7.1 and v1.9.x
    if satisfies(deno_version, cfg.lite_flag_versions):
        args.append("--lite")
    args.extend(cfg.deno_options())
    if quiet:
        args.append("-q")
    args.extend(["--output", f"./{cfg.bin_dir}/{platform}/{cfg.base_executable_name}"])
    target = cfg.compile_targets.get(platform)
    if target:
        args.extend(["--target", target])
    args.append(cfg.entry_script)
    return args


def generate_executable(
    cfg: DenoFuncConfig,
    platform: str,
    deno_version: str,
    *,
    quiet: bool = False,
    root: Optional[Path] = None,
) -> int:
    base = _base(root)
    _remove_quietly(base / cfg.bin_dir)
    _remove_quietly(base / cfg.bundle_file_name)

    (base / cfg.bin_dir / platform).mkdir(parents=True, exist_ok=True)
    return _run_deno(cfg, compile_command(cfg, platform, deno_version, quiet=quiet), base)


def create_js_bundle(cfg: DenoFuncConfig, *, root: Optional[Path] = None) -> int:
    base = _base(root)
    return _run_deno(cfg, ["bundle", "--unstable", cfg.entry_script, cfg.bundle_file_name], base)


def _prune_bin(bin_root: Path, keep: Path) -> None:
    """Remove everything under *bin_root* except *keep* and its parent folders."""
    keep = keep.resolve()
    protected = {keep, *keep.parents}
    entries = [p for p in bin_root.rglob("*") if p.resolve() not in protected]
    for entry in sorted(entries, key=lambda p: len(p.parts), reverse=True):
        if entry.is_dir() and not entry.is_symlink():
            entry.rmdir()
        else:
            entry.unlink()


def download_binary(
    cfg: DenoFuncConfig,
    platform: str,
    deno_version: str,
    *,
    root: Optional[Path] = None,
    host_windows: Optional[bool] = None,
) -> Path:
    """
    Ensure ``bin/<platform>/deno[.exe]`` exists and nothing else is under ``bin``.

    The release archive is only fetched when the binary is missing.
    """
    base = _base(root)
    bin_root = base / cfg.bin_dir
    bin_dir = bin_root / platform
    bin_path = bin_dir / f"deno{executable_suffix(platform)}"

    if bin_root.is_dir():
        _prune_bin(bin_root, bin_path)
    _remove_quietly(base / cfg.bundle_file_name)

    if bin_path.is_file():
        LOGGER.info("artifacts.deno_binary.present path=%s", bin_path)
        return bin_path

    url = cfg.release_download_url(deno_version, platform)
    typer.echo(f"Downloading deno binary from: {url} ...")
    archive = bin_dir / "deno.zip"
    download.fetch_archive(url, archive)
    download.extract_zip(archive, bin_dir)

    on_windows = _IS_WINDOWS if host_windows is None else host_windows
    if not on_windows:
        os.chmod(bin_path, 0o755)
    archive.unlink()

    typer.echo(f"Downloaded deno binary at: {bin_path.resolve()}")
    return bin_path


__all__ = [
    "GENERATE_ENV",
    "compile_command",
    "create_js_bundle",
    "download_binary",
    "generate_executable",
    "generate_functions",
]

