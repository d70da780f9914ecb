"""
Runtime utilities: launching external tools and probing the Deno runtime.

Modules in this package avoid import-time side effects; nothing is launched
until a command handler asks for it.
"""

from __future__ import annotations

from .process import LaunchFailed, Started, launch, locate_on_path, run_with_retry

__all__ = ["LaunchFailed", "Started", "launch", "locate_on_path", "run_with_retry"]
