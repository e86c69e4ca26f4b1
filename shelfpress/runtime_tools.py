"""External tool resolution and bounded invocation helpers.

Responsibilities:
- Resolve external executable paths with deterministic bundled-first precedence.
- Run one external tool to completion with a hard timeout and combined output capture.
- Map non-zero exits, timeouts, and missing binaries to `ToolInvocationError`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
import shutil
import subprocess
import sys

from .errors import ToolInvocationError

DEFAULT_TOOL_TIMEOUT_SECONDS = 600.0


def resolve_executable(command_name: str) -> str:
    """Resolve an executable with bundled-first precedence, then PATH.

    Resolution order:
    1. Bundled app directories (`./bin/<tool>` then `./<tool>` from app root).
    2. System `PATH`.
    3. Raw command name (allowing subprocess to raise a native missing-binary error).
    """

    normalized = command_name.strip()
    if not normalized:
        return command_name

    for candidate in _bundled_candidates(normalized):
        if candidate.is_file():
            return str(candidate)

    resolved_path = shutil.which(normalized)
    if resolved_path is not None:
        return resolved_path

    return normalized


def _bundled_candidates(command_name: str) -> list[Path]:
    """Return deterministic bundled candidate paths for one executable name."""

    app_root = _app_root()
    names = _candidate_names(command_name)
    candidates: list[Path] = []
    for name in names:
        candidates.append(app_root / "bin" / name)
        candidates.append(app_root / name)
    return candidates


def _candidate_names(command_name: str) -> tuple[str, ...]:
    """Return command name variants including Windows `.exe` fallback."""

    lowered = command_name.lower()
    if lowered.endswith(".exe"):
        return (command_name,)
    return (command_name, f"{command_name}.exe")


def _app_root() -> Path:
    """Resolve runtime application root for frozen and non-frozen execution."""

    frozen = bool(getattr(sys, "frozen", False))
    if frozen:
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


def _decode_output(raw: str | bytes | None) -> str:
    """Normalize captured process output to text."""

    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Completed external tool invocation.

    Attributes:
        tool: Configured executable name.
        command: Full argument vector, resolved executable first.
        output: Combined stdout and stderr text.
    """

    tool: str
    command: tuple[str, ...]
    output: str


@dataclass(slots=True)
class ToolRunner:
    """Blocking external tool runner with a per-invocation timeout.

    `process_runner` follows the `subprocess.run` signature; `subprocess.run`
    kills the child process when the timeout expires.
    """

    timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS
    resolver: Callable[[str], str] = resolve_executable
    process_runner: Callable[..., subprocess.CompletedProcess[str]] = subprocess.run

    def run(self, tool: str, args: Sequence[str], *, stage: str) -> ToolResult:
        """Run `tool` with `args` and return its output, raising on any failure."""

        command = (self.resolver(tool), *args)
        try:
            completed = self.process_runner(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolInvocationError(
                stage=stage,
                tool=tool,
                output=str(exc),
                detail=f"Tool `{tool}` is not available on PATH.",
                hint=f"Install `{tool}` or place it under the bundled `bin/` directory.",
            ) from exc
        except subprocess.TimeoutExpired as exc:
            output = _decode_output(exc.output)
            raise ToolInvocationError(
                stage=stage,
                tool=tool,
                output=output,
                detail=(
                    f"`{tool}` did not finish within {self.timeout_seconds:g}s and was "
                    f"terminated, output: {output}"
                ),
                hint="Raise `tool_timeout_seconds` if the input is unusually large.",
            ) from exc

        output = _decode_output(completed.stdout)
        if completed.returncode != 0:
            raise ToolInvocationError(
                stage=stage,
                tool=tool,
                output=output,
                detail=f"`{tool}` exited with status {completed.returncode}, output: {output}",
            )
        return ToolResult(tool=tool, command=command, output=output)
