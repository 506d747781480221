"""Git revision resolution and working-tree checkout.

The working tree is a single shared resource. :class:`WorkingCopy` records
the position that was active when the run started and restores it, exactly
once, when the run ends, whether it succeeded or not.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from benchwrap.errors import CheckoutError, CommandError, CommandNotFoundError, ResolutionError
from benchwrap.logging import get_logger
from benchwrap.runner import run_command

log = get_logger("git")

HEAD_VS_PARENT = ["HEAD~1", "HEAD"]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class Revision:
    """One user-specified revision and the benchmark output collected for it."""

    name: str
    canonical_id: str
    output: bytearray = field(default_factory=bytearray)
    output_path: Path | None = None

    @property
    def short_id(self) -> str:
        """Truncated identifier used as the output file name."""
        return short_id(self.canonical_id)


def short_id(canonical_id: str) -> str:
    """Return the first 5 characters of *canonical_id* (or all of it)."""
    return canonical_id[:5]


# ---------------------------------------------------------------------------
# Revision resolution
# ---------------------------------------------------------------------------


def _git(args: list[str], repo_dir: Path | None) -> str:
    # Ref names are arbitrary bytes; keep them round-trippable for checkout.
    return os.fsdecode(run_command(["git", *args], cwd=repo_dir))


def current_position(repo_dir: Path | None = None) -> str:
    """Return the symbolic name of HEAD, used to restore it after the run.

    Raises:
        ResolutionError: If git cannot name the current position.
    """
    try:
        name = _git(["name-rev", "--name-only", "HEAD"], repo_dir).strip()
    except (CommandError, CommandNotFoundError) as exc:
        raise ResolutionError.from_command("cannot determine current revision", exc) from exc
    if not name:
        raise ResolutionError("cannot determine current revision: git printed no name")
    return name


def resolve_revision(token: str, repo_dir: Path | None = None) -> str:
    """Resolve *token* to a full commit hash with ``git rev-parse --verify``.

    Raises:
        ResolutionError: If the token is unknown or ambiguous.
    """
    try:
        canonical = _git(["rev-parse", "--verify", token], repo_dir).strip()
    except (CommandError, CommandNotFoundError) as exc:
        raise ResolutionError.from_command(f"cannot resolve revision {token!r}", exc) from exc
    if not canonical:
        raise ResolutionError(f"cannot resolve revision {token!r}: empty output")
    return canonical


def revision_arguments(tokens: list[str] | tuple[str, ...], *, head_vs_parent: bool) -> list[str]:
    """Return the revision tokens to benchmark.

    With *head_vs_parent* the user's tokens are ignored and ``HEAD~1`` is
    compared against ``HEAD``.
    """
    if head_vs_parent:
        return list(HEAD_VS_PARENT)
    return list(tokens)


def resolve_revisions(tokens: list[str], repo_dir: Path | None = None) -> list[Revision]:
    """Resolve every token, in order, into a :class:`Revision`."""
    return [
        Revision(name=token, canonical_id=resolve_revision(token, repo_dir))
        for token in tokens
    ]


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


def checkout(identifier: str, repo_dir: Path | None = None) -> None:
    """Switch the working tree to *identifier*.

    Raises:
        CheckoutError: If git refuses the switch (unknown identifier,
            conflicting local changes) or cannot be started.
    """
    try:
        run_command(["git", "checkout", identifier], cwd=repo_dir)
    except (CommandError, CommandNotFoundError) as exc:
        raise CheckoutError.from_command(f"cannot check out {identifier}", exc) from exc


class WorkingCopy:
    """Handle on the one working tree a run is allowed to mutate.

    Entering records the current position; exiting checks it out again.
    Restoration uses the recorded name, not a hash, so a branch deleted
    while the run is in progress cannot be restored.
    """

    def __init__(self, repo_dir: Path | None = None) -> None:
        self.repo_dir = repo_dir
        self.original: str | None = None
        self._restored = False

    def __enter__(self) -> WorkingCopy:
        self.original = current_position(self.repo_dir)
        log.debug("original revision: %s", self.original)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.restore()

    def checkout(self, identifier: str) -> None:
        checkout(identifier, self.repo_dir)

    def restore(self) -> None:
        """Check out the original position; failures are logged, not raised."""
        if self._restored or self.original is None:
            return
        self._restored = True
        try:
            checkout(self.original, self.repo_dir)
        except CheckoutError as exc:
            log.warning("could not restore %s: %s", self.original, exc)
