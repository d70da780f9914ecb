# denofunc/__init__.py
"""
Deno for Azure Functions: scaffold, build and publish Deno custom handlers.

Importing the package is cheap; the CLI lives in :mod:`denofunc.cli`.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("denofunc")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0+unknown"
