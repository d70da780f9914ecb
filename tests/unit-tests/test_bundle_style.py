from __future__ import annotations

import pytest

from denofunc.config import DenoFuncConfig
from denofunc.publish import allow_options, resolve_bundle_style
from denofunc.runtime.deno import parse_deno_version, satisfies


@pytest.mark.parametrize(
    "version, expected",
    [("1.6.0", "executable"), ("1.12.2", "executable"), ("1.5.4", "jsbundle"), ("1.0.0", "jsbundle")],
)
def test_default_style_follows_deno_version(cfg: DenoFuncConfig, version: str, expected: str) -> None:
    assert resolve_bundle_style(cfg, None, version) == expected


def test_explicit_style_wins(cfg: DenoFuncConfig) -> None:
    assert resolve_bundle_style(cfg, "none", "1.8.0") == "none"
    assert resolve_bundle_style(cfg, "jsbundle", "1.8.0") == "jsbundle"
    assert resolve_bundle_style(cfg, "none", "1.5.0") == "none"


def test_unknown_style_is_rejected(cfg: DenoFuncConfig) -> None:
    with pytest.raises(ValueError, match="The value `zip` of `--bundle-style` option is not acceptable."):
        resolve_bundle_style(cfg, "zip", "1.8.0")


def test_executable_needs_deno_1_6(cfg: DenoFuncConfig) -> None:
    with pytest.raises(ValueError, match="Deno version v1.5.4 doesn't support `executable`"):
        resolve_bundle_style(cfg, "executable", "1.5.4")


@pytest.mark.parametrize(
    "version, expected",
    [("1.7.0", False), ("1.7.1", True), ("1.9.2", True), ("1.10.0", False), ("2.0.0", False)],
)
def test_lite_flag_range(cfg: DenoFuncConfig, version: str, expected: bool) -> None:
    assert satisfies(version, cfg.lite_flag_versions) is expected


def test_parse_deno_version() -> None:
    out = "deno 1.7.2 (release, x86_64-unknown-linux-gnu)\nv8 8.9.255.3\ntypescript 4.1.3\n"
    assert parse_deno_version(out) == "1.7.2"
    assert parse_deno_version("command not found") is None


def test_allow_options_filters_and_dedupes() -> None:
    tokens = ["--slot=x", "--allow-write", "--allow-run=deno", "--verbose", "--allow-write"]
    assert allow_options(tokens) == ["--allow-write", "--allow-run"]


def test_common_options_are_not_repeated(cfg: DenoFuncConfig) -> None:
    extended = cfg.with_additional_options(["--allow-net", "--allow-write"])
    assert extended.deno_options() == ["--allow-env", "--allow-net", "--allow-read", "--allow-write"]
    assert cfg.additional_options == ()
