# denofunc/azure.py
"""
Azure side of ``publish``: find the function app, switch it to the custom
handler runtime and report whether it runs on Linux or Windows.

Both ``az`` calls go through :func:`run_with_retry` with ``az.cmd`` as the
Windows fallback, because the Azure CLI ships as a batch script there.
"""
from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

import typer

from .config import DenoFuncConfig
from .progress import simple_status
from .runtime.process import format_command, run_and_wait, run_captured

LOGGER = logging.getLogger(__name__)

AZ_BACKUP = "az.cmd"
CUSTOM_RUNTIME_SETTING = "FUNCTIONS_WORKER_RUNTIME=custom"


def resource_name(app_name: str, slot_name: Optional[str] = None) -> str:
    """Slots are listed by Azure as ``<app>/<slot>``."""
    return f"{app_name}/{slot_name}" if slot_name else app_name


def list_resources(cfg: DenoFuncConfig, *, slots: bool) -> List[Dict[str, Any]]:
    resource_type = "Microsoft.web/sites/slots" if slots else "Microsoft.web/sites"
    cmd = [cfg.az_binary, "resource", "list", "--resource-type", resource_type, "-o", "json"]
    typer.echo(f"Running command: {format_command(cmd)}")
    with simple_status("Querying Azure resources"):
        rc, out = run_captured(cmd, AZ_BACKUP, echo=False)
    try:
        resources = json.loads(out)
    except ValueError as exc:
        raise RuntimeError(f"`az resource list` returned no usable JSON (exit code {rc}).") from exc
    if not isinstance(resources, list):
        raise RuntimeError("`az resource list` did not return a list of resources.")
    return resources


def find_resource(resources: List[Dict[str, Any]], app_name: str, slot_name: Optional[str] = None) -> Dict[str, Any]:
    wanted = resource_name(app_name, slot_name)
    for resource in resources:
        if isinstance(resource, dict) and resource.get("name") == wanted:
            return resource
    raise RuntimeError(f"Not found: {wanted}")


def set_custom_handler_runtime(cfg: DenoFuncConfig, resource_id: str, slot_name: Optional[str] = None) -> int:
    cmd = [cfg.az_binary, "functionapp", "config", "appsettings", "set", "--ids", resource_id]
    if slot_name:
        cmd.extend(["--slot", slot_name])
    cmd.extend(["--settings", CUSTOM_RUNTIME_SETTING, "-o", "json"])
    rc = run_and_wait(cmd, AZ_BACKUP, stdout=subprocess.DEVNULL)
    if rc != 0:
        LOGGER.warning("azure.appsettings.failed id=%s rc=%s", resource_id, rc)
    return rc


def platform_of(resource: Dict[str, Any]) -> str:
    return "linux" if "linux" in str(resource.get("kind") or "") else "windows"


def get_app_platform(cfg: DenoFuncConfig, app_name: str, slot_name: Optional[str] = None) -> str:
    """
    Resolve the OS family of the function app (``"linux"`` / ``"windows"``).

    Side effect: the app's ``FUNCTIONS_WORKER_RUNTIME`` is set to ``custom``.
    Raises ``RuntimeError("Not found: …")`` when no resource matches.
    """
    typer.echo(f"Checking platform type of : {resource_name(app_name, slot_name)} ...")
    resource = find_resource(list_resources(cfg, slots=bool(slot_name)), app_name, slot_name)
    resource_id = resource.get("id")
    if not resource_id:
        raise RuntimeError(f"Not found: {resource_name(app_name, slot_name)}")
    set_custom_handler_runtime(cfg, str(resource_id), slot_name)
    platform = platform_of(resource)
    LOGGER.info("azure.platform app=%s platform=%s", resource_name(app_name, slot_name), platform)
    return platform
