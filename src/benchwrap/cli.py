"""Command-line interface for benchwrap.

Usage::

    benchwrap [OPTIONS] REV.OLD [REV.NEW] [REV.MORE ...]

Runs ``go test -bench`` ``-n`` times for each git revision and feeds the
collected results to benchstat, printing its analysis to stdout.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any

import click

from benchwrap import __version__
from benchwrap.config import config_from_profile, load_profile, validate_config
from benchwrap.errors import BenchwrapError
from benchwrap.logging import setup_logging
from benchwrap.orchestrator import run_comparison


class RunFailed(click.ClickException):
    """A failure during the run, reported as ``benchwrap: <message>``."""

    exit_code = 2

    def show(self, file: IO[Any] | None = None) -> None:
        click.echo(f"benchwrap: {self.format_message()}", err=True)


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=(
        "Example: run all Foo benchmarks 10 times each for tag v0.42, "
        "commit cdd48c8a and branch master:\n\n"
        "    benchwrap -n 10 --bench=Foo v0.42 cdd48c8a master"
    ),
)
@click.argument("revisions", nargs=-1)
@click.option(
    "--bench",
    "bench",
    metavar="REGEXP",
    default=None,
    help="Regexp denoting benchmarks to run (go test -bench). [default: .]",
)
@click.option(
    "-n",
    "--count",
    "count",
    type=click.IntRange(min=1),
    default=None,
    help="Number of go test invocations per git revision. [default: 10]",
)
@click.option(
    "--pkgs",
    "packages",
    default=None,
    help="Packages to test (go test [packages]). [default: .]",
)
@click.option(
    "--gt-flags",
    "gt_flags",
    metavar="STRING",
    default=None,
    help="Forward quoted string of flags to go test.",
)
@click.option(
    "--delta-test",
    "delta_test",
    metavar="TEST",
    default=None,
    help="Forward TEST to the benchstat -delta-test flag.",
)
@click.option("--html", is_flag=True, help="Invoke benchstat with the -html flag.")
@click.option(
    "--h-vs-h1",
    "head_vs_parent",
    is_flag=True,
    help="Use HEAD~1 as rev.old and HEAD as rev.new.",
)
@click.option(
    "--profile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with default option values.",
)
@click.option(
    "-C",
    "--repo-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run in this git repository instead of the current directory.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Print verbose output to stderr.")
@click.version_option(version=__version__)
def main(
    revisions: tuple[str, ...],
    bench: str | None,
    count: int | None,
    packages: str | None,
    gt_flags: str | None,
    delta_test: str | None,
    html: bool,
    head_vs_parent: bool,
    profile: Path | None,
    repo_dir: Path | None,
    log_file: Path | None,
    verbose: bool,
) -> None:
    """Benchmark git revisions and compare them with benchstat.

    Each REVISION must be a valid git commit or reference, e.g. a hash,
    tag or branch.
    """
    if not revisions and not head_vs_parent:
        raise click.UsageError("at least one revision is required (or use --h-vs-h1)")

    setup_logging(verbose=verbose, log_file=log_file)

    try:
        profile_data = load_profile(profile) if profile is not None else {}
        config = config_from_profile(
            profile_data,
            cli_overrides={
                "bench": bench,
                "count": count,
                "packages": packages,
                "test_flags": gt_flags,
                "delta_test": delta_test,
                "html": html or None,
                "head_vs_parent": head_vs_parent,
                "verbose": verbose,
                "log_file": log_file,
            },
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    errors = validate_config(config)
    if errors:
        raise click.UsageError("; ".join(f"{e.field}: {e.message}" for e in errors))

    try:
        run_comparison(
            revisions,
            config,
            repo_dir=repo_dir,
            stdout=click.get_binary_stream("stdout"),
        )
    except BenchwrapError as exc:
        raise RunFailed(str(exc)) from exc
