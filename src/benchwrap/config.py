"""Run configuration and YAML profile loading.

Handles:
- Loading default options from a YAML profile.
- Merging explicitly given CLI options over profile values.
- Splitting the forwarded ``go test`` flag string.
- Validating the final configuration before anything touches the working tree.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from benchwrap.logging import get_logger

log = get_logger("config")

DEFAULT_COUNT = 10

# Profile keys and the RunConfig fields they populate.
_PROFILE_KEYS = (
    "bench",
    "count",
    "packages",
    "test_flags",
    "delta_test",
    "html",
    "go_command",
    "benchstat_command",
)

# Expected YAML types for scalar profile keys; test_flags is checked separately.
_PROFILE_TYPES: dict[str, type] = {
    "bench": str,
    "count": int,
    "packages": str,
    "delta_test": str,
    "html": bool,
    "go_command": str,
    "benchstat_command": str,
}


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    """Resolved configuration for one comparison run."""

    # Benchmark selection
    bench: str = "."  # go test -bench regexp
    count: int = DEFAULT_COUNT  # go test invocations per revision
    packages: str = "."
    test_flags: list[str] = field(default_factory=list)

    # Comparison
    delta_test: str | None = None
    html: bool = False

    # Revision selection
    head_vs_parent: bool = False

    # Tools
    go_command: str = "go"
    benchstat_command: str = "benchstat"

    # Output
    verbose: bool = False
    log_file: Path | None = None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str


def validate_config(config: RunConfig) -> list[ValidationError]:
    """Validate a run configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.count < 1:
        errors.append(
            ValidationError(
                field="count",
                message=f"Need at least 1 run per revision (got {config.count}).",
            )
        )

    if not config.bench.strip():
        errors.append(
            ValidationError(field="bench", message="Benchmark pattern must be non-empty.")
        )

    if not config.packages.strip():
        errors.append(
            ValidationError(field="packages", message="Package scope must be non-empty.")
        )

    if not config.go_command:
        errors.append(ValidationError(field="go_command", message="No benchmark tool given."))

    if not config.benchstat_command:
        errors.append(
            ValidationError(field="benchstat_command", message="No comparison tool given.")
        )

    return errors


# ---------------------------------------------------------------------------
# Flag parsing
# ---------------------------------------------------------------------------


def split_flags(text: str | None) -> list[str]:
    """Split a quoted flag string the way a POSIX shell would.

    Raises:
        ValueError: If the string has unbalanced quotes.
    """
    if not text:
        return []
    return shlex.split(text)


def _check_profile_type(key: str, value: Any) -> None:
    expected = _PROFILE_TYPES.get(key)
    if expected is None:
        return
    # bool is a subclass of int, so "count: true" must be rejected explicitly.
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ValueError(
            f"Profile key '{key}' must be {expected.__name__}, got {type(value).__name__}"
        )


def _coerce_flags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_flags(value)
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ValueError(f"'test_flags' must be a string or a list, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load default options from a YAML file.

    Profile format::

        bench: "BenchmarkParse"
        count: 20
        packages: "./parser/..."
        test_flags: "-benchmem -cpu 1,4"
        delta_test: "utest"
        html: false

    Returns:
        The parsed YAML as a dict.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    text = profile_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    unknown = sorted(str(k) for k in data if k not in _PROFILE_KEYS)
    if unknown:
        raise ValueError(
            f"Unknown profile key(s): {', '.join(unknown)}. "
            f"Valid keys: {', '.join(_PROFILE_KEYS)}"
        )

    return data


def config_from_profile(
    profile_data: dict[str, Any] | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> RunConfig:
    """Build a RunConfig from profile values and CLI options.

    Only CLI options whose value is not None override the profile; the
    profile in turn overrides the RunConfig defaults.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of explicitly given CLI option values.  Keys
            match RunConfig field names; ``test_flags`` is a raw string.

    Returns:
        The merged RunConfig.

    Raises:
        ValueError: If a profile value has the wrong type.
    """
    profile = profile_data or {}
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    values: dict[str, Any] = {}
    for key in _PROFILE_KEYS:
        if key in profile and profile[key] is not None:
            _check_profile_type(key, profile[key])
            values[key] = profile[key]
    values.update(cli)

    values["test_flags"] = _coerce_flags(values.get("test_flags"))
    if "log_file" in values:
        values["log_file"] = Path(values["log_file"])

    log.debug("run configuration: %s", values)
    return RunConfig(**values)
