"""
Playlist Decisions.

A decision is what a strategy proposes and what the engine applies.
Callers may also build decisions themselves (e.g. a sidebar "skip" button),
either as models or as plain dicts passed through parse_decision().
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter, ValidationError

from src.playlist.errors import InvalidDecisionError
from src.playlist.models import PlaylistEntry, PlaylistModel


class AdvanceDecision(PlaylistModel):
    action: Literal["advance"] = "advance"


class SkipDecision(PlaylistModel):
    action: Literal["skip"] = "skip"
    reason: str | None = None


class InjectDecision(PlaylistModel):
    action: Literal["inject"] = "inject"
    entries: list[PlaylistEntry] = Field(..., min_length=1)


class RetryDecision(PlaylistModel):
    action: Literal["retry"] = "retry"
    lu_id: str


class HoldDecision(PlaylistModel):
    """Navigation is blocked until the learner acts (e.g. takes a gate)."""

    action: Literal["hold"] = "hold"
    message: str = ""


class CompleteDecision(PlaylistModel):
    action: Literal["complete"] = "complete"


Decision = Annotated[
    Union[
        AdvanceDecision,
        SkipDecision,
        InjectDecision,
        RetryDecision,
        HoldDecision,
        CompleteDecision,
    ],
    Field(discriminator="action"),
]

DECISION_TYPES = (
    AdvanceDecision,
    SkipDecision,
    InjectDecision,
    RetryDecision,
    HoldDecision,
    CompleteDecision,
)

_decision_adapter: TypeAdapter[Decision] = TypeAdapter(Decision)


def parse_decision(data: Decision | dict[str, Any]) -> Decision:
    """
    Coerce a decision model or plain dict into a Decision.

    Raises:
        InvalidDecisionError: If the payload is not a valid decision.
    """
    if isinstance(data, DECISION_TYPES):
        return data

    try:
        return _decision_adapter.validate_python(data)
    except ValidationError as e:
        action = data.get("action", "unknown") if isinstance(data, dict) else "unknown"
        raise InvalidDecisionError(str(action), f"malformed payload ({e.error_count()} error(s))") from e
