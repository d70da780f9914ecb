"""
Immutable settings shared by every denofunc command.

File names, permission flags, URL patterns and version thresholds live on
:class:`DenoFuncConfig`.
Handlers receive the config explicitly; the publish flow derives a copy that
carries the user's extra ``--allow-*`` flags via :meth:`with_additional_options`.

Executables and the template source can be redirected through the environment:

    DENOFUNC_DENO_BINARY     deno executable (default ``deno``)
    DENOFUNC_FUNC_BINARY     Azure Functions Core Tools (default ``func``)
    DENOFUNC_AZ_BINARY       Azure CLI (default ``az``)
    DENOFUNC_TEMPLATE_REPO   ``owner/name`` of the template repository
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Mapping, Optional, Tuple

__all__ = [
    "BUNDLE_STYLES",
    "STYLE_EXECUTABLE",
    "STYLE_JSBUNDLE",
    "STYLE_NONE",
    "SUPPORTED_PLATFORMS",
    "DenoFuncConfig",
    "load_config",
]

STYLE_EXECUTABLE = "executable"
STYLE_JSBUNDLE = "jsbundle"
STYLE_NONE = "none"
BUNDLE_STYLES: Tuple[str, ...] = (STYLE_EXECUTABLE, STYLE_JSBUNDLE, STYLE_NONE)

SUPPORTED_PLATFORMS: Tuple[str, ...] = ("windows", "linux")


def _default_archive_suffixes() -> Dict[str, str]:
    return {
        "windows": "pc-windows-msvc",
        "linux": "unknown-linux-gnu",
    }


def _default_compile_targets() -> Dict[str, str]:
    return {
        "windows": "x86_64-pc-windows-msvc",
        "linux": "x86_64-unknown-linux-gnu",
    }


@dataclass(frozen=True)
class DenoFuncConfig:
    base_executable_name: str = "worker"
    bundle_file_name: str = "worker.bundle.js"
    entry_script: str = "worker.ts"
    host_json: str = "host.json"
    bin_dir: str = "bin"

    common_options: Tuple[str, ...] = ("--allow-env", "--allow-net", "--allow-read")
    additional_options: Tuple[str, ...] = ()

    deno_binary: str = "deno"
    func_binary: str = "func"
    az_binary: str = "az"

    # PEP 440 specifier sets evaluated against the installed Deno version.
    executable_min_version: str = ">=1.6.0"
    lite_flag_versions: str = ">=1.7.1,<1.10.0"

    template_repo: str = "anthonychu/azure-functions-deno-template"
    template_branch: str = "main"
    template_zip_name: str = "template.zip"
    release_url: str = "https://github.com/denoland/deno/releases/download/v{version}/deno-x86_64-{suffix}.zip"
    archive_suffixes: Mapping[str, str] = field(default_factory=_default_archive_suffixes)
    compile_targets: Mapping[str, str] = field(default_factory=_default_compile_targets)

    def deno_options(self) -> list[str]:
        """Permission flags handed to ``deno compile`` / ``deno run``."""
        return [*self.common_options, *self.additional_options]

    def with_additional_options(self, options: Iterable[str]) -> "DenoFuncConfig":
        extra: list[str] = []
        for opt in options:
            if opt in self.common_options or opt in extra:
                continue
            extra.append(opt)
        return replace(self, additional_options=tuple(extra))

    def template_url(self, branch: Optional[str] = None) -> str:
        return f"https://github.com/{self.template_repo}/archive/{branch or self.template_branch}.zip"

    def template_folder(self, branch: Optional[str] = None) -> str:
        """Top-level folder GitHub puts inside the template archive."""
        name = self.template_repo.rsplit("/", 1)[-1]
        # GitHub flattens "feature/x" to "feature-x" in archive folder names
        return f"{name}-{(branch or self.template_branch).replace('/', '-')}"

    def release_download_url(self, version: str, platform: str) -> str:
        return self.release_url.format(version=version, suffix=self.archive_suffixes[platform])


def load_config(environ: Optional[Mapping[str, str]] = None) -> DenoFuncConfig:
    env = os.environ if environ is None else environ
    overrides: Dict[str, str] = {}
    for key, attr in (
        ("DENOFUNC_DENO_BINARY", "deno_binary"),
        ("DENOFUNC_FUNC_BINARY", "func_binary"),
        ("DENOFUNC_AZ_BINARY", "az_binary"),
        ("DENOFUNC_TEMPLATE_REPO", "template_repo"),
    ):
        value = (env.get(key) or "").strip()
        if value:
            overrides[attr] = value
    return DenoFuncConfig(**overrides)
