"""Sequential orchestration of a multi-revision benchmark comparison.

1. Check that benchstat is on ``PATH`` before touching the working tree.
2. Record the current position and resolve every requested revision.
3. For each revision: check it out, run the benchmarks ``count`` times.
4. Write the outputs to a private temporary directory and run benchstat.
5. Print the report in a single write.

Any failure propagates immediately. The temporary directory is removed and
the original position restored on every exit path, in that order.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO

from benchwrap.config import RunConfig
from benchwrap.git import Revision, WorkingCopy, resolve_revisions, revision_arguments
from benchwrap.logging import get_logger
from benchwrap.report import (
    TemporaryOutputDir,
    compose_report,
    require_tool,
    run_benchstat,
    write_outputs,
)
from benchwrap.runner import run_revision

log = get_logger("orchestrator")


def collect_outputs(
    working_copy: WorkingCopy,
    revisions: list[Revision],
    config: RunConfig,
) -> None:
    """Check out each revision in turn and accumulate its benchmark output."""
    for rev in revisions:
        working_copy.checkout(rev.canonical_id)
        run_revision(rev, config, cwd=working_copy.repo_dir)


def compare_outputs(revisions: list[Revision], directory: Path, config: RunConfig) -> bytes:
    """Persist the outputs in *directory*, run benchstat, and build the report."""
    paths = write_outputs(revisions, directory)
    comparison = run_benchstat(
        paths,
        html=config.html,
        delta_test=config.delta_test,
        executable=config.benchstat_command,
    )
    return compose_report(revisions, comparison)


def run_comparison(
    tokens: list[str] | tuple[str, ...],
    config: RunConfig,
    *,
    repo_dir: Path | None = None,
    stdout: BinaryIO | None = None,
) -> bytes:
    """Benchmark every revision in *tokens* and print the comparison.

    Args:
        tokens: Revision names as given by the user; ignored when
            ``config.head_vs_parent`` is set.
        config: The run configuration.
        repo_dir: Repository to operate in (default: current directory).
        stdout: Binary stream receiving the report (default: ``sys.stdout``).

    Returns:
        The report that was written.

    Raises:
        BenchwrapError: On the first failure of any step.
    """
    require_tool(config.benchstat_command)

    args = revision_arguments(tokens, head_vs_parent=config.head_vs_parent)
    with WorkingCopy(repo_dir) as working_copy:
        revisions = resolve_revisions(args, repo_dir)
        collect_outputs(working_copy, revisions, config)
        with TemporaryOutputDir() as tmpdir:
            report = compare_outputs(revisions, tmpdir, config)
            out = stdout if stdout is not None else sys.stdout.buffer
            out.write(report)
            out.flush()
    return report
