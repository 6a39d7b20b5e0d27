"""
Adaptive Playlist Data Models.

Plain data exchanged between the playlist engine and its collaborators:
- StaticLearningUnit: authored course content with optional adaptive metadata
- PlaylistEntry: discriminated union of static, injected and retry entries
- LearnerModuleSession: the persisted per-learner state (JSON round-trippable)
- PlaylistDisplayEntry: read-only projection for sidebar rendering

Everything here is JSON-serializable. Non-finite floats are rejected so a
session can always be written with a plain JSON encoder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.playlist.errors import CorruptSessionError


class PlaylistModel(BaseModel):
    """
    Base model for all playlist data.

    Dumps use camelCase keys; input accepts camelCase or snake_case.
    """

    model_config = ConfigDict(allow_inf_nan=False, alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Enums
# =============================================================================


class AdaptiveMode(str, Enum):
    """Course-level adaptive mode."""

    OFF = "off"  # Sequential passthrough
    GUIDED = "guided"  # Gate checkpoints and retries
    FULL = "full"  # Guided plus skipping and remediation injection


class GateFailStrategy(str, Enum):
    """What happens once a gate's retry budget is exhausted."""

    ALLOW_CONTINUE = "allow-continue"
    HOLD = "hold"
    INJECT_PRACTICE = "inject-practice"
    PRESCRIBE_REVIEW = "prescribe-review"


class GateDisplayStatus(str, Enum):
    """Gate status shown in the sidebar."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


# =============================================================================
# Static Learning Units
# =============================================================================


class GateConfig(PlaylistModel):
    """Configuration for a gate checkpoint."""

    mastery_threshold: float = Field(0.8, ge=0.0, le=1.0)
    min_questions: int = Field(3, ge=0)
    max_retries: int = Field(2, ge=-1, description="Total attempts allowed (-1 = unlimited)")
    fail_strategy: GateFailStrategy = GateFailStrategy.HOLD

    def has_retries_left(self, attempts_made: int) -> bool:
        """Whether another attempt is allowed after `attempts_made` attempts."""
        if self.max_retries == -1:
            return True
        return attempts_made < self.max_retries


class LearningUnitAdaptive(PlaylistModel):
    """Adaptive metadata attached to a learning unit."""

    teaches_nodes: list[str] = Field(default_factory=list)
    assesses_nodes: list[str] = Field(default_factory=list)
    is_gate: bool = False
    is_skippable: bool = False
    gate_config: GateConfig | None = None


class StaticLearningUnit(PlaylistModel):
    """A learning unit as authored in the course, read-only to the engine."""

    id: str
    title: str
    type: str
    content_id: str | None = None
    category: str | None = None
    is_required: bool = True
    sequence: int = 0
    estimated_duration: int | None = None
    adaptive: LearningUnitAdaptive | None = None

    @property
    def is_gate(self) -> bool:
        return self.adaptive is not None and self.adaptive.is_gate

    @property
    def teaches_nodes(self) -> list[str]:
        return self.adaptive.teaches_nodes if self.adaptive else []


class CourseAdaptiveSettings(PlaylistModel):
    """Course-level adaptive settings."""

    mode: AdaptiveMode = AdaptiveMode.OFF
    allow_learner_choice: bool = False
    pre_assessment_enabled: bool = False


DEFAULT_ADAPTIVE_SETTINGS = CourseAdaptiveSettings()


# =============================================================================
# Playlist Entries
# =============================================================================


class StaticPlaylistEntry(PlaylistModel):
    """An entry mapped 1:1 from the static LU sequence."""

    kind: Literal["static"] = "static"
    entry_id: str
    title: str
    lu: StaticLearningUnit

    @classmethod
    def from_unit(cls, lu: StaticLearningUnit) -> StaticPlaylistEntry:
        return cls(entry_id=f"static-{lu.id}", title=lu.title, lu=lu)


class InjectedPracticeEntry(PlaylistModel):
    """Practice targeting weak knowledge nodes."""

    kind: Literal["injected-practice"] = "injected-practice"
    entry_id: str
    title: str
    target_node_ids: list[str] = Field(default_factory=list)
    question_count: int = Field(5, ge=1)


class InjectedReviewEntry(PlaylistModel):
    """Review of another LU's content for nodes it teaches."""

    kind: Literal["injected-review"] = "injected-review"
    entry_id: str
    title: str
    reference_lu_id: str
    target_node_ids: list[str] = Field(default_factory=list)


class RetryEntry(PlaylistModel):
    """Another attempt at a gate."""

    kind: Literal["retry"] = "retry"
    entry_id: str
    title: str
    lu: StaticLearningUnit
    attempt_number: int = Field(..., ge=1)

    @staticmethod
    def entry_id_for(lu_id: str, attempt_number: int) -> str:
        return f"retry-{lu_id}-{attempt_number}"

    @classmethod
    def for_gate(cls, lu: StaticLearningUnit, attempt_number: int) -> RetryEntry:
        return cls(
            entry_id=cls.entry_id_for(lu.id, attempt_number),
            title=f"Retry: {lu.title} (#{attempt_number})",
            lu=lu,
            attempt_number=attempt_number,
        )


PlaylistEntry = Annotated[
    Union[StaticPlaylistEntry, InjectedPracticeEntry, InjectedReviewEntry, RetryEntry],
    Field(discriminator="kind"),
]


def gate_unit_of(entry: PlaylistEntry | None) -> StaticLearningUnit | None:
    """Return the gate LU behind an entry, or None if the entry is not a gate."""
    if isinstance(entry, RetryEntry):
        return entry.lu
    if isinstance(entry, StaticPlaylistEntry) and entry.lu.is_gate:
        return entry.lu
    return None


# =============================================================================
# Session State
# =============================================================================


class NodeProgress(PlaylistModel):
    """Aggregated mastery for one knowledge node, supplied by the caller."""

    mastery: float = Field(..., ge=0.0, le=1.0)
    attempts: int = Field(0, ge=0)


class GateResult(PlaylistModel):
    """Result of one gate attempt."""

    lu_id: str
    passed: bool
    score: float = Field(..., ge=0.0, le=1.0)
    attempt_number: int = Field(..., ge=1)
    failed_nodes: list[str] = Field(default_factory=list)


class LearnerModuleSession(PlaylistModel):
    """Persistent playlist state for one learner in one module."""

    enrollment_id: str
    module_id: str
    playlist: list[PlaylistEntry] = Field(default_factory=list)
    current_index: int = 0
    node_progress: dict[str, NodeProgress] = Field(default_factory=dict)
    gate_attempts: dict[str, list[GateResult]] = Field(default_factory=dict)
    is_complete: bool = False
    skipped_entries: list[str] = Field(default_factory=list)

    def validate_invariants(self) -> None:
        """
        Check structural invariants.

        Raises:
            CorruptSessionError: If the cursor, entry ids, gate log or
                skip list are inconsistent with the playlist.
        """
        if not 0 <= self.current_index <= len(self.playlist):
            raise CorruptSessionError(
                f"current_index {self.current_index} outside 0..{len(self.playlist)}"
            )

        entry_ids = [entry.entry_id for entry in self.playlist]
        if len(set(entry_ids)) != len(entry_ids):
            raise CorruptSessionError("Duplicate entry ids in playlist")

        for lu_id, results in self.gate_attempts.items():
            for result in results:
                if result.lu_id != lu_id:
                    raise CorruptSessionError(
                        f"Gate result for {result.lu_id} filed under {lu_id}"
                    )

        unknown = set(self.skipped_entries) - set(entry_ids)
        if unknown:
            raise CorruptSessionError(f"Skipped entries not in playlist: {sorted(unknown)}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain JSON-compatible data."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearnerModuleSession:
        """Create from plain data, raising CorruptSessionError on bad input."""
        try:
            session = cls.model_validate(data)
        except ValidationError as e:
            raise CorruptSessionError(f"Invalid session data: {e.error_count()} error(s)") from e
        session.validate_invariants()
        return session

    @classmethod
    def from_json(cls, payload: str | bytes) -> LearnerModuleSession:
        """Create from a JSON document, raising CorruptSessionError on bad input."""
        try:
            session = cls.model_validate_json(payload)
        except ValidationError as e:
            raise CorruptSessionError(f"Invalid session JSON: {e.error_count()} error(s)") from e
        session.validate_invariants()
        return session


# =============================================================================
# Strategy Context & Display
# =============================================================================


@dataclass(frozen=True)
class PlaylistContext:
    """Read-only snapshot handed to a strategy."""

    static_sequence: list[StaticLearningUnit]
    playlist: list[PlaylistEntry]
    current_index: int
    node_progress: dict[str, NodeProgress]
    gate_results: dict[str, list[GateResult]]
    adaptive_config: CourseAdaptiveSettings
    default_gate_config: GateConfig = field(default_factory=GateConfig)
    skip_mastery_threshold: float = 0.7
    practice_question_count: int = 5

    @property
    def current_entry(self) -> PlaylistEntry | None:
        if 0 <= self.current_index < len(self.playlist):
            return self.playlist[self.current_index]
        return None

    @property
    def is_last_entry(self) -> bool:
        return self.current_index >= len(self.playlist) - 1

    def attempts_for(self, lu_id: str) -> list[GateResult]:
        return self.gate_results.get(lu_id, [])

    def has_entry(self, entry_id: str) -> bool:
        return any(entry.entry_id == entry_id for entry in self.playlist)

    def has_entry_after_cursor(self, entry_id: str) -> bool:
        return any(entry.entry_id == entry_id for entry in self.playlist[self.current_index + 1:])


class PlaylistDisplayEntry(PlaylistModel):
    """Display-ready entry for the sidebar playlist view."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    kind: str
    is_skipped: bool = False
    is_current: bool = False
    is_completed: bool = False
    is_gate: bool = False
    gate_status: GateDisplayStatus | None = None
