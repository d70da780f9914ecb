# tests/unit-tests/conftest.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pytest

# setup_logging() runs when denofunc.cli is imported; keep its file out of $HOME.
os.environ.setdefault("DENOFUNC_LOG_FILE", str(Path(tempfile.gettempdir()) / "denofunc-tests.log"))

from denofunc.config import DenoFuncConfig  # noqa: E402
from denofunc.runtime import process as process_mod  # noqa: E402


@pytest.fixture(autouse=True)
def _quiet_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """No spinners, and no executable overrides leaking in from the shell."""
    monkeypatch.setenv("DENOFUNC_NO_SPINNER", "1")
    for key in ("DENOFUNC_DENO_BINARY", "DENOFUNC_FUNC_BINARY", "DENOFUNC_AZ_BINARY", "DENOFUNC_TEMPLATE_REPO"):
        monkeypatch.delenv(key, raising=False)


class FakePopen:
    def __init__(self, args: Sequence[str], returncode: int = 0, stdout: str = "") -> None:
        self.args = list(args)
        self.returncode = returncode
        self._stdout = stdout

    def wait(self, timeout: Optional[float] = None) -> int:
        return self.returncode

    def communicate(self, input: Any = None, timeout: Optional[float] = None) -> Tuple[str, None]:
        return self._stdout, None


class ProcessRecorder:
    """
    Stand-in for ``denofunc.runtime.process.launch``.

    Every launch is recorded; ``respond(*prefix, ...)`` scripts the exit code
    and stdout for commands starting with *prefix*. Unscripted commands
    succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[List[str], Dict[str, Any]]] = []
        self._responses: List[Tuple[Tuple[str, ...], int, str]] = []

    def respond(self, *prefix: str, returncode: int = 0, stdout: str = "") -> None:
        self._responses.append((tuple(prefix), returncode, stdout))

    def __call__(self, cmd: Sequence[str], **kwargs: Any) -> process_mod.LaunchResult:
        args = [str(a) for a in cmd]
        self.calls.append((args, kwargs))
        for prefix, rc, out in self._responses:
            if tuple(args[: len(prefix)]) == prefix:
                return process_mod.Started(FakePopen(args, rc, out))  # type: ignore[arg-type]
        return process_mod.Started(FakePopen(args))  # type: ignore[arg-type]

    @property
    def commands(self) -> List[List[str]]:
        return [args for args, _ in self.calls]


@pytest.fixture
def processes(monkeypatch: pytest.MonkeyPatch) -> ProcessRecorder:
    recorder = ProcessRecorder()
    monkeypatch.setattr(process_mod, "launch", recorder)
    return recorder


@pytest.fixture
def cfg() -> DenoFuncConfig:
    return DenoFuncConfig()


HOST_JSON: Dict[str, Any] = {
    "version": "2.0",
    "extensionBundle": {"id": "Microsoft.Azure.Functions.ExtensionBundle", "version": "[1.*, 2.0.0)"},
    "customHandler": {"enableForwardingHttpRequest": True},
}


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """A project folder with host.json and worker.ts; cwd points at it."""
    root = tmp_path / "app"
    root.mkdir()
    (root / "host.json").write_text(json.dumps(HOST_JSON, indent=2), encoding="utf-8")
    (root / "worker.ts").write_text("// worker\n", encoding="utf-8")
    monkeypatch.chdir(root)
    yield root
