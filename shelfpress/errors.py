"""Domain exceptions for pipeline and CLI diagnostics."""

from __future__ import annotations


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint


class ValidationError(PipelineStageError):
    """Raised when request inputs are malformed, before any filesystem I/O."""

    def __init__(self, detail: str, hint: str | None = None) -> None:
        super().__init__(stage="validate", detail=detail, hint=hint)


class NotFoundError(PipelineStageError):
    """Raised when a referenced author or publisher does not exist upstream."""

    def __init__(self, detail: str, hint: str | None = None) -> None:
        super().__init__(stage="validate", detail=detail, hint=hint)


class StorageError(PipelineStageError):
    """Raised when directory creation or artifact persistence fails."""


class ToolInvocationError(PipelineStageError):
    """Raised when an external tool exits non-zero, times out, or is missing.

    Attributes:
        tool: Executable name as configured (not the resolved path).
        output: Combined stdout/stderr text of the failed invocation, verbatim.
    """

    def __init__(
        self,
        *,
        stage: str,
        tool: str,
        output: str,
        detail: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            stage=stage,
            detail=detail or f"`{tool}` failed, output: {output}",
            hint=hint,
        )
        self.tool = tool
        self.output = output


def is_client_error(exc: BaseException) -> bool:
    """Return whether a failure should be reported to the caller as a client error."""

    return isinstance(exc, (ValidationError, NotFoundError))
