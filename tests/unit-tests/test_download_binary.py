from __future__ import annotations

import os
import stat
import zipfile
from pathlib import Path
from typing import List

import pytest
from pytest import MonkeyPatch

from denofunc import artifacts, download
from denofunc.config import DenoFuncConfig


def _release_fetch(member: str, fetched: List[str]):  # type: ignore[no-untyped-def]
    def fetch(url: str, dest: Path) -> Path:
        fetched.append(url)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(dest, "w") as zf:
            zf.writestr(member, b"\x7fELF")
        return dest

    return fetch


def _tree(root: Path) -> List[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*"))


def test_existing_binary_skips_download_and_prunes_the_rest(
    tmp_path: Path, monkeypatch: MonkeyPatch, cfg: DenoFuncConfig
) -> None:
    keep = tmp_path / "bin" / "linux" / "deno"
    keep.parent.mkdir(parents=True)
    keep.write_bytes(b"deno")
    (tmp_path / "bin" / "linux" / "worker").write_bytes(b"old exe")
    (tmp_path / "bin" / "windows" / "nested").mkdir(parents=True)
    (tmp_path / "bin" / "windows" / "nested" / "deno.exe").write_bytes(b"win")
    (tmp_path / "worker.bundle.js").write_text("bundle", encoding="utf-8")

    def no_fetch(url: str, dest: Path) -> Path:
        raise AssertionError("binary is already present")

    monkeypatch.setattr(download, "fetch_archive", no_fetch)

    path = artifacts.download_binary(cfg, "linux", "1.5.4", root=tmp_path)

    assert path == keep
    assert _tree(tmp_path / "bin") == ["linux", "linux/deno"]
    assert not (tmp_path / "worker.bundle.js").exists()


def test_missing_binary_is_fetched_and_made_executable(
    tmp_path: Path, monkeypatch: MonkeyPatch, cfg: DenoFuncConfig
) -> None:
    fetched: List[str] = []
    monkeypatch.setattr(download, "fetch_archive", _release_fetch("deno", fetched))
    (tmp_path / "bin" / "windows").mkdir(parents=True)
    (tmp_path / "bin" / "windows" / "worker.exe").write_bytes(b"stale")

    path = artifacts.download_binary(cfg, "linux", "1.5.4", root=tmp_path, host_windows=False)

    assert fetched == ["https://github.com/denoland/deno/releases/download/v1.5.4/deno-x86_64-unknown-linux-gnu.zip"]
    assert path == tmp_path / "bin" / "linux" / "deno"
    assert _tree(tmp_path / "bin") == ["linux", "linux/deno"]
    if os.name != "nt":
        assert path.stat().st_mode & stat.S_IXUSR


def test_windows_binary_keeps_exe_suffix(tmp_path: Path, monkeypatch: MonkeyPatch, cfg: DenoFuncConfig) -> None:
    fetched: List[str] = []
    monkeypatch.setattr(download, "fetch_archive", _release_fetch("deno.exe", fetched))

    path = artifacts.download_binary(cfg, "windows", "1.8.0", root=tmp_path, host_windows=True)

    assert fetched == ["https://github.com/denoland/deno/releases/download/v1.8.0/deno-x86_64-pc-windows-msvc.zip"]
    assert path.name == "deno.exe"
    assert _tree(tmp_path / "bin") == ["windows", "windows/deno.exe"]


def test_extract_zip_lists_members(tmp_path: Path) -> None:
    archive = tmp_path / "a.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("x/y.txt", "y")
    names = download.extract_zip(archive, tmp_path / "out")
    assert names == ["x/y.txt"]
    assert (tmp_path / "out" / "x" / "y.txt").read_text(encoding="utf-8") == "y"


def test_download_url_failure_leaves_no_partial_file(tmp_path: Path, monkeypatch: MonkeyPatch) -> None:
    def refuse(req, timeout=None):  # type: ignore[no-untyped-def]
        raise OSError("connection refused")

    monkeypatch.setattr(download.urllib.request, "urlopen", refuse)

    with pytest.raises(OSError, match="refused"):
        download.download_url("https://example.invalid/deno.zip", tmp_path / "deno.zip")
    assert list(tmp_path.iterdir()) == []
