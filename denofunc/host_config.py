"""
Point ``host.json`` at the artifact of the selected bundle style.

Only ``customHandler.description`` is owned here; every other key in the file
is read and written back untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import STYLE_EXECUTABLE, STYLE_JSBUNDLE, DenoFuncConfig

LOGGER = logging.getLogger(__name__)


def executable_suffix(platform: str) -> str:
    return ".exe" if platform == "windows" else ""


def custom_handler_description(cfg: DenoFuncConfig, platform: str, bundle_style: str) -> Dict[str, Any]:
    """The ``{defaultExecutablePath, arguments}`` pair for *bundle_style*."""
    if bundle_style == STYLE_EXECUTABLE:
        return {
            "defaultExecutablePath": f"{cfg.bin_dir}/{platform}/{cfg.base_executable_name}{executable_suffix(platform)}",
            "arguments": [],
        }
    script = cfg.bundle_file_name if bundle_style == STYLE_JSBUNDLE else cfg.entry_script
    arguments: List[str] = ["run", *cfg.deno_options(), script]
    return {
        "defaultExecutablePath": f"{cfg.bin_dir}/{platform}/deno{executable_suffix(platform)}",
        "arguments": arguments,
    }


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def update_host_json(cfg: DenoFuncConfig, platform: str, bundle_style: str, *, root: Optional[Path] = None) -> Path:
    base = Path.cwd() if root is None else Path(root)
    host_json = base / cfg.host_json
    if not host_json.is_file():
        raise FileNotFoundError(f"`./{cfg.host_json}` not found")

    data = read_json(host_json)
    handler = data.get("customHandler")
    if not isinstance(handler, dict):
        handler = {}
        data["customHandler"] = handler
    handler["description"] = custom_handler_description(cfg, platform, bundle_style)

    write_json(host_json, data)
    LOGGER.info(
        "host_json.updated platform=%s style=%s executable=%s",
        platform,
        bundle_style,
        handler["description"]["defaultExecutablePath"],
    )
    return host_json
