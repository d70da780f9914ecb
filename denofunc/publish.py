# denofunc/publish.py
"""
``denofunc publish`` and the pieces shared with ``start``.

Order matters and every step can abort the rest:

    bundle style → app platform (+ runtime setting) → host.json
    → functions → artifact → ``func azure functionapp publish``

Validation of user input (bundle style, Deno version, platform) happens
before anything is written locally.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from . import artifacts, azure
from .config import (
    BUNDLE_STYLES,
    STYLE_EXECUTABLE,
    STYLE_JSBUNDLE,
    SUPPORTED_PLATFORMS,
    DenoFuncConfig,
)
from .host_config import update_host_json
from .runtime.deno import deno_version, satisfies
from .runtime.process import run_and_wait

LOGGER = logging.getLogger(__name__)

FUNC_BACKUP = "func.cmd"
FUNC_ENV = {
    "logging__logLevel__Microsoft": "warning",
    "logging__logLevel__Worker": "warning",
}


def resolve_bundle_style(cfg: DenoFuncConfig, requested: Optional[str], version: str) -> str:
    """
    Explicit ``--bundle-style`` wins; otherwise ``executable`` when the Deno
    version supports it and ``jsbundle`` when it does not.

    Raises ``ValueError`` for an unknown style or an ``executable`` request on
    a Deno too old to compile.
    """
    supports_executable = satisfies(version, cfg.executable_min_version)
    style = requested or (STYLE_EXECUTABLE if supports_executable else STYLE_JSBUNDLE)
    if style not in BUNDLE_STYLES:
        raise ValueError(f"The value `{requested}` of `--bundle-style` option is not acceptable.")
    if style == STYLE_EXECUTABLE and not supports_executable:
        raise ValueError(f"Deno version v{version} doesn't support `{STYLE_EXECUTABLE}` for bundle style.")
    return style


def allow_options(tokens: Iterable[str]) -> List[str]:
    """``--allow-*`` flags from raw CLI tokens; values after ``=`` are dropped."""
    found: List[str] = []
    for token in tokens:
        if not token.startswith("--allow-"):
            continue
        name = token.split("=", 1)[0]
        if name not in found:
            found.append(name)
    return found


def run_func(cfg: DenoFuncConfig, *args: str, root: Optional[Path] = None) -> int:
    """Run Azure Functions Core Tools with the worker's log noise turned down."""
    env = dict(os.environ)
    env.update(FUNC_ENV)
    cwd = None if root is None else str(root)
    rc = run_and_wait([cfg.func_binary, *args], FUNC_BACKUP, env=env, cwd=cwd)
    if rc != 0:
        LOGGER.warning("publish.func.exit args=%s rc=%s", " ".join(args), rc)
    return rc


def publish_app(cfg: DenoFuncConfig, app_name: str, slot_name: Optional[str] = None, *, root: Optional[Path] = None) -> int:
    args = ["azure", "functionapp", "publish", app_name]
    if slot_name:
        args.extend(["--slot", slot_name])
    return run_func(cfg, *args, root=root)


def publish(
    cfg: DenoFuncConfig,
    app_name: str,
    *,
    slot_name: Optional[str] = None,
    bundle_style: Optional[str] = None,
    passthrough: Iterable[str] = (),
    version: Optional[str] = None,
    root: Optional[Path] = None,
) -> int:
    """
    Build and publish *app_name*; returns the exit code of ``func``.

    ``passthrough`` holds the raw CLI tokens; the ``--allow-*`` ones that are
    not already common options are forwarded to Deno.
    """
    version = version or deno_version(cfg)
    style = resolve_bundle_style(cfg, bundle_style, version)
    cfg = cfg.with_additional_options(allow_options(passthrough))

    platform = azure.get_app_platform(cfg, app_name, slot_name)
    if platform not in SUPPORTED_PLATFORMS:
        raise ValueError(
            f"The value `{platform}` for the function app `{azure.resource_name(app_name, slot_name)}` is not valid."
        )

    update_host_json(cfg, platform, style, root=root)
    artifacts.generate_functions(cfg, root=root)

    if style == STYLE_EXECUTABLE:
        artifacts.generate_executable(cfg, platform, version, root=root)
    else:
        artifacts.download_binary(cfg, platform, version, root=root)
        if style == STYLE_JSBUNDLE:
            artifacts.create_js_bundle(cfg, root=root)

    LOGGER.info("publish.start app=%s slot=%s style=%s platform=%s", app_name, slot_name, style, platform)
    return publish_app(cfg, app_name, slot_name, root=root)
