"""
Probe the installed Deno runtime and compare its version against ranges.

Ranges are PEP 440 specifier sets, so the semver range ``>=1.7.1 <1.10.0``
is written ``">=1.7.1,<1.10.0"``.
"""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Optional

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from ..config import DenoFuncConfig
from .process import run_captured

LOGGER = logging.getLogger(__name__)

# "deno 1.7.2 (release, x86_64-unknown-linux-gnu)"
_VERSION_RE = re.compile(r"^deno\s+v?(\d+\.\d+\.\d+)", re.MULTILINE)


def parse_deno_version(text: str) -> Optional[str]:
    match = _VERSION_RE.search(text or "")
    return match.group(1) if match else None


def deno_version(cfg: DenoFuncConfig) -> str:
    """Version of the Deno runtime that will compile/bundle/run the worker."""
    rc, out = run_captured([cfg.deno_binary, "--version"], "deno.exe", echo=False, stderr=subprocess.DEVNULL)
    version = parse_deno_version(out)
    if version is None:
        raise RuntimeError(
            f"Could not determine the Deno version from `{cfg.deno_binary} --version` (exit code {rc})."
        )
    LOGGER.info("deno.version version=%s", version)
    return version


def satisfies(version: str, spec: str) -> bool:
    try:
        parsed = Version(version)
    except InvalidVersion:
        LOGGER.warning("deno.version.invalid version=%s", version)
        return False
    return SpecifierSet(spec).contains(parsed, prereleases=True)
