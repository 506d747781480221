"""Error types raised while orchestrating a benchmark comparison.

Every error aborts the whole run. The CLI reports ``str(exc)`` prefixed
with the program name and exits with status 2.
"""

from __future__ import annotations


class CommandError(RuntimeError):
    """A subprocess exited with a non-zero status.

    Attributes:
        command: The argv that was executed.
        returncode: The exit status of the process.
        output: Merged stdout and stderr of the process.
    """

    def __init__(self, command: list[str], returncode: int, output: bytes) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"{' '.join(command)}: exit status {returncode}")


class CommandNotFoundError(RuntimeError):
    """A subprocess could not be started at all."""

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"{' '.join(command)}: {reason}")


class BenchwrapError(RuntimeError):
    """Base class for failures that abort a benchwrap run.

    Attributes:
        command: The failing command line, if a subprocess was involved.
        output: Diagnostic output of the failing command, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        output: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.command = command or []
        self.output = output

    def __str__(self) -> str:
        if not self.output:
            return self.message
        text = self.output.decode("utf-8", errors="replace").rstrip("\n")
        return f"{self.message}\n{text}"

    @classmethod
    def from_command(cls, prefix: str, exc: CommandError | CommandNotFoundError) -> BenchwrapError:
        """Wrap a subprocess failure, keeping its command and output."""
        output = exc.output if isinstance(exc, CommandError) else b""
        return cls(f"{prefix}: {exc}", command=exc.command, output=output)


class ResolutionError(BenchwrapError):
    """A revision token (or the current position) could not be resolved."""


class CheckoutError(BenchwrapError):
    """The working tree could not be switched to a revision."""


class RunError(BenchwrapError):
    """A benchmark invocation failed or could not be started."""


class StorageError(BenchwrapError):
    """The temporary directory or an output file could not be written."""


class ToolError(BenchwrapError):
    """The comparison tool is missing or exited with a non-zero status."""
