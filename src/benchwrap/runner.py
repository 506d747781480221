"""Subprocess execution and repeated benchmark invocations.

All external tools (git, ``go test``, benchstat) go through
:func:`run_command`, which blocks until the child exits and returns its
merged stdout and stderr. There is no timeout: a hung child hangs the run.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from benchwrap.errors import CommandError, CommandNotFoundError, RunError
from benchwrap.logging import get_logger

if TYPE_CHECKING:
    from benchwrap.config import RunConfig
    from benchwrap.git import Revision

log = get_logger("runner")


def run_command(argv: list[str], *, cwd: Path | None = None) -> bytes:
    """Run *argv* and return its merged output minus one trailing newline.

    Raises:
        CommandNotFoundError: If the executable cannot be started.
        CommandError: If the process exits with a non-zero status.
    """
    log.debug("%s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
        )
    except OSError as exc:
        raise CommandNotFoundError(argv, exc.strerror or str(exc)) from exc
    output = proc.stdout or b""
    if proc.returncode != 0:
        raise CommandError(argv, proc.returncode, output)
    return output.removesuffix(b"\n")


def benchmark_command(config: RunConfig) -> list[str]:
    """Build the ``go test`` argv for one benchmark run.

    ``-run=NONE`` keeps the regular tests from executing so only the
    benchmarks selected by ``-bench`` run.
    """
    return [
        config.go_command,
        "test",
        config.packages,
        "-run=NONE",
        f"-bench={config.bench}",
        *config.test_flags,
    ]


def run_once(config: RunConfig, *, cwd: Path | None = None) -> bytes:
    """Invoke the benchmark tool once and return its raw output.

    Raises:
        RunError: If the benchmark tool fails or cannot be started.
    """
    try:
        return run_command(benchmark_command(config), cwd=cwd)
    except CommandError as exc:
        log.debug("%s", exc.output.decode("utf-8", errors="replace"))
        raise RunError.from_command("benchmark run failed", exc) from exc
    except CommandNotFoundError as exc:
        raise RunError.from_command("benchmark run failed", exc) from exc


def run_revision(revision: Revision, config: RunConfig, *, cwd: Path | None = None) -> None:
    """Run the benchmarks ``config.count`` times for the checked-out revision.

    Each result is appended to ``revision.output`` as-is, with no separator
    between runs. The first failing run propagates and aborts the revision.
    """
    for _ in range(config.count):
        result = run_once(config, cwd=cwd)
        log.debug("%s", result.decode("utf-8", errors="replace"))
        revision.output += result
