# denofunc/cli.py
from __future__ import annotations

import logging
import subprocess
import sys
import textwrap
from contextlib import contextmanager
from typing import Iterator, List, NoReturn, Optional, Sequence

import typer

from . import __version__
from .artifacts import create_js_bundle, generate_executable, generate_functions
from .config import BUNDLE_STYLES, STYLE_EXECUTABLE, DenoFuncConfig, load_config
from .host_config import update_host_json
from .logging_config import enable_console, setup_logging
from .publish import publish, run_func
from .runtime.deno import deno_version
from .template import initialize_from_template

setup_logging()
LOGGER = logging.getLogger(__name__)


def _log_event(event: str, **info: object) -> None:
    if info:
        detail = " ".join(f"{k}={info[k]}" for k in sorted(info) if info[k] is not None)
        LOGGER.info("%s %s", event, detail)
    else:
        LOGGER.info("%s", event)


# ────────────────────────────────────────────────────────────────────────────
#  app scaffolding
# ────────────────────────────────────────────────────────────────────────────

# --help is handled by hand so it prints the denofunc manual, and --allow-*
# flags are not declared: they arrive as plain tokens and are filtered later.
app = typer.Typer(
    add_completion=False,
    context_settings={
        "help_option_names": [],
        "allow_extra_args": True,
        "ignore_unknown_options": True,
    },
)

COMMANDS = ("help", "init", "start", "generateexe", "publish")
_DEFAULT_EXE_PLATFORM = "linux"

# ────────────────────────────────────────────────────────────
#  help text
# ────────────────────────────────────────────────────────────
_LOGO = r"""
           @@@@@@@@@@@,
       @@@@@@@@@@@@@@@@@@@                        %%%%%%
     @@@@@@        @@@@@@@@@@                    %%%%%%
   @@@@@ @  @           *@@@@@              @   %%%%%%    @
   @@@                    @@@@@           @@   %%%%%%      @@
  @@@@@                   @@@@@        @@@    %%%%%%%%%%%    @@@
  @@@@@@@@@@@@@@@          @@@@      @@      %%%%%%%%%%        @@
   @@@@@@@@@@@@@@          @@@@        @@         %%%%       @@
    @@@@@@@@@@@@@@         @@@           @@      %%%       @@
     @@@@@@@@@@@@@         @               @@    %%      @@
       @@@@@@@@@@@                              %%
            @@@@@@@                             %
"""


def _help_text() -> str:
    return _LOGO + "\nDeno for Azure Functions - CLI\n" + textwrap.dedent("""
    Commands:

    denofunc --help
        This screen

    denofunc init [branch]
        Initialize project in an empty folder (template branch defaults to main)

    denofunc start
        Generate functions artifacts and start Azure Functions Core Tools

    denofunc generateexe [windows|linux]
        Generate functions artifacts and compile the worker into bin/<platform>

    denofunc publish <function_app_name> [options]
        Publish to Azure
        options:
          --slot         <slot_name>                Specify name of the deployment slot
          --bundle-style executable|jsbundle|none   Select bundle style on deployment

            executable:   Bundle as one executable(default option for Deno v1.6.0 or later).
            jsbundle:     Bundle as one javascript worker & Deno runtime
            none:         No bundle
          --allow-run     Same as Deno's permission option
          --allow-write   Same as Deno's permission option

    Other options:
      --version       Print the denofunc version
      --verbose, -v   Mirror the log file to stderr
    """)


def print_help() -> None:
    typer.echo(_help_text())


# ────────────────────────────────────────────────────────────
#  dispatch
# ────────────────────────────────────────────────────────────
def split_tokens(tokens: Sequence[str]) -> tuple[List[str], List[str]]:
    """Return ``(positional, flags)``; flags keep their original spelling."""
    positional: List[str] = []
    flags: List[str] = []
    for tok in tokens:
        (flags if tok.startswith("-") else positional).append(tok)
    return positional, flags


def select_command(positional: Sequence[str]) -> str:
    """
    Map positional tokens to exactly one command name.

    Anything that does not match a command shape falls back to ``help``.
    """
    words = list(positional)
    if not words:
        return "help"
    head = words[0]
    if head == "init":
        return "init"
    if words == ["start"] or words == ["host", "start"]:
        return "start"
    if head == "generateexe" and len(words) <= 2:
        return "generateexe"
    if head == "publish" and len(words) == 2:
        return "publish"
    return "help"


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code)


@contextmanager
def _reported_errors(command: str) -> Iterator[None]:
    """Turn library exceptions into a red message and a non-zero exit."""
    try:
        yield
    except subprocess.CalledProcessError as exc:
        _log_event("cli.command.generator_failed", command=command, rc=exc.returncode)
        _fail(f"Generating functions failed with exit code {exc.returncode}.", exc.returncode or 1)
    except (ValueError, RuntimeError, OSError) as exc:
        LOGGER.error("cli.command.failed command=%s error=%s", command, exc)
        _fail(str(exc))


# ────────────────────────────────────────────────────────────
#  command handlers
# ────────────────────────────────────────────────────────────
def _handle_init(cfg: DenoFuncConfig, branch: Optional[str]) -> None:
    with _reported_errors("init"):
        initialize_from_template(cfg, branch)


def _handle_start(cfg: DenoFuncConfig) -> None:
    with _reported_errors("start"):
        generate_functions(cfg)
        create_js_bundle(cfg)
        run_func(cfg, "start")


def _handle_generateexe(cfg: DenoFuncConfig, platform: str) -> None:
    with _reported_errors("generateexe"):
        version = deno_version(cfg)
        update_host_json(cfg, platform, STYLE_EXECUTABLE)
        generate_functions(cfg)
        generate_executable(cfg, platform, version, quiet=True)


def _handle_publish(
    cfg: DenoFuncConfig,
    app_name: str,
    *,
    slot: Optional[str],
    bundle_style: Optional[str],
    flags: Sequence[str],
) -> None:
    with _reported_errors("publish"):
        rc = publish(cfg, app_name, slot_name=slot, bundle_style=bundle_style, passthrough=flags)
    if rc != 0:
        typer.secho(f"func exited with code {rc}; check the output above.", err=True, fg=typer.colors.YELLOW)


@app.command()
def target(
    ctx: typer.Context,
    tokens: Optional[List[str]] = typer.Argument(None, metavar="COMMAND [ARGS]..."),
    slot: Optional[str] = typer.Option(None, "--slot", help="[publish] deployment slot name"),
    bundle_style: Optional[str] = typer.Option(
        None, "--bundle-style", help=f"[publish] {' | '.join(BUNDLE_STYLES)}"
    ),
    help_flag: bool = typer.Option(False, "--help", "-h", help="Show the command summary and exit"),
    version_flag: bool = typer.Option(False, "--version", help="Print the denofunc version and exit"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Mirror log records to stderr"),
) -> None:
    """Deno for Azure Functions: init, start, generateexe, publish."""
    if verbose:
        enable_console(logging.INFO)
    if version_flag:
        typer.echo(f"denofunc {__version__}")
        raise typer.Exit(0)

    positional, flags = split_tokens([*(tokens or []), *ctx.args])
    command = "help" if help_flag else select_command(positional)
    _log_event("cli.dispatch", command=command, args=" ".join(positional) or None)

    if command == "help":
        print_help()
        raise typer.Exit(0)

    cfg = load_config()
    if command == "init":
        _handle_init(cfg, positional[1] if len(positional) > 1 else None)
    elif command == "start":
        _handle_start(cfg)
    elif command == "generateexe":
        _handle_generateexe(cfg, positional[1] if len(positional) > 1 else _DEFAULT_EXE_PLATFORM)
    elif command == "publish":
        _handle_publish(cfg, positional[1], slot=slot, bundle_style=bundle_style, flags=flags)


# ────────────────────────────────────────────────────────────
#  entry-point glue
# ────────────────────────────────────────────────────────────
def main() -> None:  # pragma: no cover
    try:
        app()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("cli.run.error", exc_info=True)
        typer.echo(f"Unhandled error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
