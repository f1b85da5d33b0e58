from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for pipeline failures.

    `reason` is a short machine-readable tag (e.g. "missing_widget_id"),
    `details` carries whatever context the caller may want to log or return.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason or "pipeline_error"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": str(self), "reason": self.reason, "details": self.details}


class ValidationError(PipelineError):
    """Raw payload does not satisfy the shared envelope. The event is dropped."""


class SourceFetchError(PipelineError):
    """A datastore read for one event type failed. That type degrades to empty."""


class ConfigurationError(PipelineError):
    """No template or weight could be resolved for an event type."""


class QueueBuildError(PipelineError):
    """Unrecoverable queue build failure (datastore unavailable)."""
