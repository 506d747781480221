"""Output persistence, benchstat invocation and report formatting.

Each revision's concatenated benchmark output is written to a file named
after its short identifier inside a private temporary directory; benchstat
is run over those files in revision order, and its output is framed by a
header naming the compared revisions.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from types import TracebackType

from benchwrap.errors import CommandError, CommandNotFoundError, StorageError, ToolError
from benchwrap.git import Revision
from benchwrap.logging import get_logger
from benchwrap.runner import run_command

log = get_logger("report")

BENCHSTAT_INSTALL_HINT = "go install golang.org/x/perf/cmd/benchstat@latest"


# ---------------------------------------------------------------------------
# Comparison tool
# ---------------------------------------------------------------------------


def require_tool(name: str) -> str:
    """Return the path of executable *name* on ``PATH``.

    Raises:
        ToolError: If the executable cannot be found.
    """
    path = shutil.which(name)
    if path is None:
        raise ToolError(f"no {name} binary in $PATH\n{BENCHSTAT_INSTALL_HINT}")
    return path


def benchstat_command(
    paths: list[Path],
    *,
    html: bool = False,
    delta_test: str | None = None,
    executable: str = "benchstat",
) -> list[str]:
    """Build the benchstat argv for *paths*, keeping their order."""
    argv = [executable]
    if html:
        argv.append("-html")
    if delta_test:
        argv.extend(["-delta-test", delta_test])
    argv.extend(str(p) for p in paths)
    return argv


def run_benchstat(
    paths: list[Path],
    *,
    html: bool = False,
    delta_test: str | None = None,
    executable: str = "benchstat",
) -> bytes:
    """Run benchstat over *paths* and return its output.

    Raises:
        ToolError: If benchstat cannot be started or exits non-zero.
    """
    argv = benchstat_command(paths, html=html, delta_test=delta_test, executable=executable)
    try:
        return run_command(argv)
    except (CommandError, CommandNotFoundError) as exc:
        raise ToolError.from_command("benchstat failed", exc) from exc


# ---------------------------------------------------------------------------
# Temporary storage
# ---------------------------------------------------------------------------


class TemporaryOutputDir:
    """Private directory holding one output file per revision.

    The directory is created on entry and removed with its contents on
    exit. A failed removal is logged and never raised.
    """

    def __init__(self, prefix: str = "bw") -> None:
        self.prefix = prefix
        self.path: Path | None = None

    def __enter__(self) -> Path:
        try:
            self.path = Path(tempfile.mkdtemp(prefix=self.prefix))
        except OSError as exc:
            raise StorageError(f"cannot create temporary directory: {exc}") from exc
        log.debug("temporary directory: %s", self.path)
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self.path is None:
            return
        path, self.path = self.path, None
        try:
            shutil.rmtree(path)
        except OSError as exc:
            log.warning("could not remove %s: %s", path, exc)


def write_outputs(revisions: list[Revision], directory: Path) -> list[Path]:
    """Write each revision's output verbatim to ``directory / short_id``.

    Returns:
        The written paths, in revision order.

    Raises:
        StorageError: If any file cannot be written.
    """
    paths: list[Path] = []
    for rev in revisions:
        path = directory / rev.short_id
        try:
            path.write_bytes(bytes(rev.output))
        except OSError as exc:
            raise StorageError(f"cannot write output for {rev.name}: {exc}") from exc
        rev.output_path = path
        paths.append(path)
    return paths


# ---------------------------------------------------------------------------
# Report formatting
# ---------------------------------------------------------------------------


def format_header(revisions: list[Revision]) -> str:
    """Format the lines naming the compared revisions.

    One revision prints ``name: id``; two print ``old:``/``new:`` lines;
    more print every name left-justified to the longest one, a tab, and
    the id.  Widths count characters, not encoded bytes.
    """
    if len(revisions) == 1:
        rev = revisions[0]
        return f"{rev.name}: {rev.canonical_id}\n"
    if len(revisions) == 2:
        old, new = revisions
        return f"old:\t{old.canonical_id}\nnew:\t{new.canonical_id}\n"
    width = max((len(rev.name) for rev in revisions), default=0)
    return "".join(f"{rev.name.ljust(width)}\t{rev.canonical_id}\n" for rev in revisions)


def compose_report(revisions: list[Revision], comparison: bytes) -> bytes:
    """Combine the header and benchstat's raw output into the final report."""
    header = os.fsencode(format_header(revisions))
    return header + b"\n" + comparison + b"\n"
