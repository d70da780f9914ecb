from __future__ import annotations

import json

import pytest

from denofunc import azure
from denofunc.config import DenoFuncConfig

_SITES = [
    {"name": "other-app", "id": "/subscriptions/s/sites/other-app", "kind": "functionapp"},
    {"name": "my-app", "id": "/subscriptions/s/sites/my-app", "kind": "functionapp,linux"},
]
_SLOTS = [
    {"name": "my-app/staging", "id": "/subscriptions/s/sites/my-app/slots/staging", "kind": "functionapp"},
]


def test_linux_app_is_detected_and_switched_to_custom_runtime(cfg: DenoFuncConfig, processes) -> None:  # type: ignore[no-untyped-def]
    processes.respond("az", "resource", "list", stdout=json.dumps(_SITES))

    assert azure.get_app_platform(cfg, "my-app") == "linux"

    listing, settings = processes.commands
    assert listing == ["az", "resource", "list", "--resource-type", "Microsoft.web/sites", "-o", "json"]
    assert settings == [
        "az", "functionapp", "config", "appsettings", "set",
        "--ids", "/subscriptions/s/sites/my-app",
        "--settings", "FUNCTIONS_WORKER_RUNTIME=custom", "-o", "json",
    ]


def test_slot_lookup_uses_slot_resource_type(cfg: DenoFuncConfig, processes) -> None:  # type: ignore[no-untyped-def]
    processes.respond("az", "resource", "list", stdout=json.dumps(_SLOTS))

    assert azure.get_app_platform(cfg, "my-app", "staging") == "windows"

    listing, settings = processes.commands
    assert "Microsoft.web/sites/slots" in listing
    assert settings[settings.index("--slot") + 1] == "staging"


def test_missing_app_is_not_found(cfg: DenoFuncConfig, processes) -> None:  # type: ignore[no-untyped-def]
    processes.respond("az", "resource", "list", stdout=json.dumps(_SITES))

    with pytest.raises(RuntimeError, match="Not found: ghost-app"):
        azure.get_app_platform(cfg, "ghost-app")
    assert len(processes.calls) == 1


def test_unparseable_listing_is_an_error(cfg: DenoFuncConfig, processes) -> None:  # type: ignore[no-untyped-def]
    processes.respond("az", "resource", "list", returncode=1, stdout="ERROR: Please run 'az login'")

    with pytest.raises(RuntimeError, match="no usable JSON"):
        azure.list_resources(cfg, slots=False)


def test_failed_runtime_setting_does_not_abort(cfg: DenoFuncConfig, processes) -> None:  # type: ignore[no-untyped-def]
    processes.respond("az", "resource", "list", stdout=json.dumps(_SITES))
    processes.respond("az", "functionapp", returncode=2)

    assert azure.get_app_platform(cfg, "other-app") == "windows"


@pytest.mark.parametrize(
    "kind, expected",
    [("functionapp,linux", "linux"), ("functionapp,linux,container", "linux"), ("functionapp", "windows"), (None, "windows")],
)
def test_platform_of(kind, expected) -> None:  # type: ignore[no-untyped-def]
    assert azure.platform_of({"kind": kind}) == expected
