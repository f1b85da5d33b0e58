from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from notiproof.pipeline.engine.errors import ValidationError
from notiproof.pipeline.engine.events.models import RawEvent


@dataclass(frozen=True)
class EnvelopeResult:
    ok: bool
    errors: List[str]


def validate_envelope(data: Any) -> EnvelopeResult:
    """
    Minimal shared envelope every integration must satisfy:
      - a mapping
      - widget_id (non-empty str)
      - source (non-empty str)
      - payload, if present, is a mapping
    """
    if not isinstance(data, dict):
        return EnvelopeResult(ok=False, errors=["envelope must be an object"])

    errors: list[str] = []
    widget_id = data.get("widget_id")
    if not isinstance(widget_id, str) or not widget_id.strip():
        errors.append("missing widget_id")
    source = data.get("source")
    if not isinstance(source, str) or not source.strip():
        errors.append("missing source")
    payload = data.get("payload")
    if payload is not None and not isinstance(payload, dict):
        errors.append("payload must be an object")

    return EnvelopeResult(ok=len(errors) == 0, errors=errors)


def parse_raw_event(data: Any) -> RawEvent:
    """Validate the envelope and build a RawEvent, raising ValidationError otherwise."""
    contract = validate_envelope(data)
    if not contract.ok:
        raise ValidationError(
            "Invalid raw event envelope",
            reason="invalid_envelope",
            details={"errors": contract.errors},
        )

    try:
        return RawEvent.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid raw event envelope",
            reason="invalid_envelope",
            details={
                "errors": [
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ]
            },
        ) from e
