"""Unit tests for executable resolution and bounded tool invocation."""

from __future__ import annotations

from pathlib import Path
import subprocess

import pytest
from pytest import MonkeyPatch

from shelfpress import runtime_tools
from shelfpress.errors import ToolInvocationError
from shelfpress.runtime_tools import ToolRunner


def test_resolve_executable_prefers_bundled_bin_over_path(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Bundled `bin` executable should take precedence over PATH discovery."""

    bundled_bin = tmp_path / "bin"
    bundled_bin.mkdir(parents=True, exist_ok=True)
    bundled_tool = bundled_bin / "exiftool"
    bundled_tool.write_text("stub", encoding="utf-8")
    monkeypatch.setattr(runtime_tools, "_app_root", lambda: tmp_path)
    monkeypatch.setattr(runtime_tools.shutil, "which", lambda _: "/usr/bin/exiftool")

    resolved = runtime_tools.resolve_executable("exiftool")

    assert resolved == str(bundled_tool)


def test_resolve_executable_falls_back_to_path_when_not_bundled(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
) -> None:
    """PATH lookup should be used when no bundled executable is present."""

    monkeypatch.setattr(runtime_tools, "_app_root", lambda: tmp_path)
    monkeypatch.setattr(runtime_tools.shutil, "which", lambda _: "/usr/bin/ebook-convert")

    resolved = runtime_tools.resolve_executable("ebook-convert")

    assert resolved == "/usr/bin/ebook-convert"


def test_tool_runner_passes_timeout_and_merges_output_streams() -> None:
    """Every invocation should be bounded and capture stderr into stdout."""

    seen: dict[str, object] = {}

    def _process_runner(command: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        seen["command"] = command
        seen.update(kwargs)
        return subprocess.CompletedProcess(command, 0, stdout="1 image files updated\n")

    runner = ToolRunner(
        timeout_seconds=12.5,
        resolver=lambda name: f"/opt/tools/{name}",
        process_runner=_process_runner,
    )

    result = runner.run("exiftool", ["-all:all=", "a.pdf"], stage="document")

    assert result.command == ("/opt/tools/exiftool", "-all:all=", "a.pdf")
    assert result.output == "1 image files updated\n"
    assert seen["timeout"] == 12.5
    assert seen["stderr"] is subprocess.STDOUT


def test_tool_runner_raises_with_verbatim_output_on_non_zero_exit() -> None:
    """Non-zero exits should carry the tool name and its full diagnostic text."""

    def _process_runner(command: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(command, 2, stdout="Error: File not found - a.pdf\n")

    runner = ToolRunner(resolver=lambda name: name, process_runner=_process_runner)

    with pytest.raises(ToolInvocationError) as exc_info:
        runner.run("exiftool", ["a.pdf"], stage="document")

    error = exc_info.value
    assert error.stage == "document"
    assert error.tool == "exiftool"
    assert error.output == "Error: File not found - a.pdf\n"
    assert "exited with status 2" in error.detail
    assert "Error: File not found - a.pdf" in error.detail


def test_tool_runner_reports_timeouts_as_tool_failures() -> None:
    """An expired timeout should surface as `ToolInvocationError` with partial output."""

    def _process_runner(command: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        raise subprocess.TimeoutExpired(command, kwargs["timeout"], output=b"converting page 3")

    runner = ToolRunner(
        timeout_seconds=5.0,
        resolver=lambda name: name,
        process_runner=_process_runner,
    )

    with pytest.raises(ToolInvocationError) as exc_info:
        runner.run("ebook-convert", ["a.pdf", "a.epub"], stage="reflow")

    assert exc_info.value.output == "converting page 3"
    assert "did not finish within 5s" in exc_info.value.detail


def test_tool_runner_reports_missing_executables() -> None:
    """A missing binary should fail with an install hint instead of a raw OSError."""

    def _process_runner(command: list[str], **_: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(2, "No such file or directory", command[0])

    runner = ToolRunner(resolver=lambda name: name, process_runner=_process_runner)

    with pytest.raises(ToolInvocationError) as exc_info:
        runner.run("transmission-create", ["a.pdf"], stage="descriptor")

    assert "not available on PATH" in exc_info.value.detail
    assert exc_info.value.hint is not None
