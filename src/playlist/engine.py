"""
Playlist Engine.

Runtime engine that manages the adaptive playlist for one learner in one
module. Pure in-memory state: no I/O, no locking, no background work.
Callers that share a session across requests must serialize access.

Usage:
    engine = PlaylistEngine(course_settings, learning_units, enrollment_id, module_id)
    engine.initialize_playlist()
    # ... learner progresses ...
    decision = engine.resolve_next()
    engine.apply_decision(decision)
    store.save(engine.get_session().to_json())
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, NoReturn, TypeVar

from loguru import logger
from pydantic import BaseModel

from src.core.config import PlaylistSettings, get_settings
from src.playlist.decisions import (
    AdvanceDecision,
    CompleteDecision,
    Decision,
    HoldDecision,
    InjectDecision,
    RetryDecision,
    SkipDecision,
    parse_decision,
)
from src.playlist.errors import CorruptSessionError, InvalidDecisionError
from src.playlist.models import (
    DEFAULT_ADAPTIVE_SETTINGS,
    AdaptiveMode,
    CourseAdaptiveSettings,
    GateConfig,
    GateDisplayStatus,
    GateResult,
    LearnerModuleSession,
    NodeProgress,
    PlaylistContext,
    PlaylistDisplayEntry,
    PlaylistEntry,
    RetryEntry,
    StaticLearningUnit,
    StaticPlaylistEntry,
    gate_unit_of,
)
from src.playlist.strategies import PlaylistStrategy, create_strategy

ModelT = TypeVar("ModelT", bound=BaseModel)


def _coerce(model_cls: type[ModelT], value: ModelT | Mapping[str, Any], copy: bool = False) -> ModelT:
    """Accept either a model instance or its plain-dict form."""
    if isinstance(value, model_cls):
        return value.model_copy(deep=True) if copy else value
    return model_cls.model_validate(value)


class PlaylistEngine:
    """
    Adaptive playlist for a single module.

    The strategy is chosen once from the course's adaptive mode; a missing
    settings object behaves exactly like mode "off".
    """

    def __init__(
        self,
        config: CourseAdaptiveSettings | Mapping[str, Any] | None,
        static_sequence: Iterable[StaticLearningUnit | Mapping[str, Any]],
        enrollment_id: str,
        module_id: str,
        initial_node_progress: Mapping[str, NodeProgress | Mapping[str, Any]] | None = None,
        settings: PlaylistSettings | None = None,
    ):
        """
        Create an engine. Call initialize_playlist() or restore_session() next.

        Args:
            config: Course adaptive settings (None = off)
            static_sequence: Learning units in presentation order
            enrollment_id: Enrollment the session belongs to
            module_id: Module the session covers
            initial_node_progress: Mastery carried over from earlier modules
            settings: Engine tunables (defaults to environment settings)
        """
        self._config = _coerce(CourseAdaptiveSettings, config) if config is not None else DEFAULT_ADAPTIVE_SETTINGS
        self._static_sequence = [_coerce(StaticLearningUnit, lu, copy=True) for lu in static_sequence]
        self._settings = settings or get_settings()
        self._strategy = create_strategy(self._config.mode)
        self._enrollment_id = enrollment_id
        self._module_id = module_id
        self._initial_node_progress = {
            node_id: _coerce(NodeProgress, progress)
            for node_id, progress in (initial_node_progress or {}).items()
        }
        self._default_gate_config = GateConfig(
            mastery_threshold=self._settings.default_mastery_threshold,
            min_questions=self._settings.default_min_questions,
            max_retries=self._settings.default_max_retries,
        )

        self._session = LearnerModuleSession(
            enrollment_id=enrollment_id,
            module_id=module_id,
            node_progress=self._fresh_node_progress(),
        )

    @property
    def mode(self) -> AdaptiveMode:
        return self._config.mode

    @property
    def strategy(self) -> PlaylistStrategy:
        return self._strategy

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    def initialize_playlist(self) -> LearnerModuleSession:
        """
        Build a fresh session from the static LU sequence.

        Discards any prior progress on this engine. An empty sequence yields
        a session that is already complete.
        """
        playlist: list[PlaylistEntry] = [StaticPlaylistEntry.from_unit(lu) for lu in self._static_sequence]

        self._session = LearnerModuleSession(
            enrollment_id=self._enrollment_id,
            module_id=self._module_id,
            playlist=playlist,
            current_index=0,
            node_progress=self._fresh_node_progress(),
            gate_attempts={},
            is_complete=len(playlist) == 0,
            skipped_entries=[],
        )

        logger.debug(
            f"Initialized playlist for {self._enrollment_id}/{self._module_id}: "
            f"{len(playlist)} entries, mode={self.mode.value}"
        )
        return self._session

    def restore_session(self, saved: LearnerModuleSession | Mapping[str, Any] | str | bytes) -> None:
        """
        Replace engine state with a previously saved session.

        Args:
            saved: A session model, its dict form, or its JSON document

        Raises:
            CorruptSessionError: If the saved state fails validation. The
                engine keeps its previous state in that case.
        """
        try:
            if isinstance(saved, LearnerModuleSession):
                session = saved.model_copy(deep=True)
                session.validate_invariants()
            elif isinstance(saved, (str, bytes)):
                session = LearnerModuleSession.from_json(saved)
            else:
                session = LearnerModuleSession.from_dict(saved)
        except CorruptSessionError as e:
            logger.warning(f"Rejected saved session for {self._enrollment_id}/{self._module_id}: {e}")
            raise

        self._session = session
        logger.info(
            f"Restored session {session.enrollment_id}/{session.module_id} "
            f"at {session.current_index}/{len(session.playlist)}"
        )

    def get_session(self) -> LearnerModuleSession:
        """Current session state. Use to_dict()/to_json() to persist it."""
        return self._session

    # =========================================================================
    # Navigation
    # =========================================================================

    def get_current_entry(self) -> PlaylistEntry | None:
        """The entry at the cursor, or None when complete or past the end."""
        if self._session.is_complete:
            return None
        index = self._session.current_index
        if 0 <= index < len(self._session.playlist):
            return self._session.playlist[index]
        return None

    def is_complete(self) -> bool:
        return self._session.is_complete

    def resolve_next(self) -> Decision:
        """Ask the strategy what happens next. Does not change state."""
        if self._session.is_complete:
            return CompleteDecision()

        decision = self._strategy.resolve_next(self._build_context())
        logger.debug(
            f"[{self._module_id}] {self.mode.value} resolved '{decision.action}' "
            f"at {self._session.current_index}"
        )
        return decision

    def apply_decision(self, decision: Decision | Mapping[str, Any]) -> LearnerModuleSession:
        """
        Mutate the session according to a decision.

        Args:
            decision: A Decision model or its dict form

        Returns:
            The updated session

        Raises:
            InvalidDecisionError: If the decision does not fit the current
                state. The session is left unchanged.
        """
        decision = parse_decision(decision)
        session = self._session

        if isinstance(decision, HoldDecision):
            logger.debug(f"[{self._module_id}] hold at {session.current_index}: {decision.message}")
            return session

        if isinstance(decision, CompleteDecision):
            if not session.is_complete:
                session.is_complete = True
                logger.info(f"Module {self._module_id} complete for enrollment {self._enrollment_id}")
            return session

        self._require_open(decision.action)

        if isinstance(decision, AdvanceDecision):
            session.current_index += 1
        elif isinstance(decision, SkipDecision):
            entry_id = session.playlist[session.current_index].entry_id
            if entry_id not in session.skipped_entries:
                session.skipped_entries.append(entry_id)
            session.current_index += 1
        elif isinstance(decision, InjectDecision):
            self._splice(decision.entries, decision.action)
        elif isinstance(decision, RetryDecision):
            self._apply_retry(decision)

        logger.debug(f"[{self._module_id}] applied '{decision.action}', cursor at {session.current_index}")
        return session

    def go_to_index(self, index: int) -> LearnerModuleSession:
        """
        Move the cursor for learner-initiated review.

        Out-of-range indexes are ignored. Navigating reopens a completed module.
        """
        if 0 <= index < len(self._session.playlist):
            self._session.current_index = index
            self._session.is_complete = False
        else:
            logger.debug(f"[{self._module_id}] ignored go_to_index({index})")
        return self._session

    # =========================================================================
    # Collaborator Input
    # =========================================================================

    def record_gate_result(self, result: GateResult | Mapping[str, Any]) -> LearnerModuleSession:
        """Append a gate attempt. Never overwrites earlier attempts."""
        result = _coerce(GateResult, result, copy=True)
        self._session.gate_attempts.setdefault(result.lu_id, []).append(result)
        logger.debug(
            f"[{self._module_id}] gate {result.lu_id} attempt {result.attempt_number}: "
            f"{'passed' if result.passed else 'failed'} ({result.score:.2f})"
        )
        return self._session

    def update_node_progress(
        self,
        node_id: str,
        progress: NodeProgress | Mapping[str, Any],
    ) -> LearnerModuleSession:
        """Replace a node's progress record (last write wins)."""
        self._session.node_progress[node_id] = _coerce(NodeProgress, progress, copy=True)
        return self._session

    # =========================================================================
    # Display
    # =========================================================================

    def get_display_entries(self) -> list[PlaylistDisplayEntry]:
        """Sidebar view of the playlist, recomputed from session state."""
        session = self._session
        skipped = set(session.skipped_entries)
        entries = []

        for index, entry in enumerate(session.playlist):
            gate = gate_unit_of(entry)
            is_past = index < session.current_index
            is_skipped = is_past and entry.entry_id in skipped

            entries.append(PlaylistDisplayEntry(
                id=entry.entry_id,
                title=entry.title,
                kind=entry.kind,
                is_skipped=is_skipped,
                is_current=index == session.current_index and not session.is_complete,
                is_completed=is_past and not is_skipped,
                is_gate=gate is not None,
                gate_status=self._gate_status(gate.id) if gate is not None else None,
            ))

        return entries

    # =========================================================================
    # Internals
    # =========================================================================

    def _fresh_node_progress(self) -> dict[str, NodeProgress]:
        return {node_id: progress.model_copy() for node_id, progress in self._initial_node_progress.items()}

    def _gate_status(self, lu_id: str) -> GateDisplayStatus:
        attempts = self._session.gate_attempts.get(lu_id, [])
        if not attempts:
            return GateDisplayStatus.PENDING
        return GateDisplayStatus.PASSED if attempts[-1].passed else GateDisplayStatus.FAILED

    def _reject(self, action: str, reason: str) -> NoReturn:
        logger.warning(f"[{self._module_id}] rejected '{action}': {reason}")
        raise InvalidDecisionError(action, reason)

    def _require_open(self, action: str) -> None:
        """Cursor-moving decisions need an incomplete session with a current entry."""
        if self._session.is_complete:
            self._reject(action, "session is already complete")
        if self._session.current_index >= len(self._session.playlist):
            self._reject(action, "cursor is past the end of the playlist")

    def _splice(self, entries: list[PlaylistEntry], action: str) -> None:
        """Insert entries right after the cursor and move onto the first one."""
        new_ids = [entry.entry_id for entry in entries]
        if len(set(new_ids)) != len(new_ids):
            self._reject(action, "duplicate entry ids in decision")

        clashing = {entry.entry_id for entry in self._session.playlist}.intersection(new_ids)
        if clashing:
            self._reject(action, f"entries already in playlist: {sorted(clashing)}")

        position = self._session.current_index + 1
        self._session.playlist[position:position] = [entry.model_copy(deep=True) for entry in entries]
        self._session.current_index = position

    def _apply_retry(self, decision: RetryDecision) -> None:
        gate = gate_unit_of(self.get_current_entry())
        if gate is None or gate.id != decision.lu_id:
            self._reject(decision.action, f"{decision.lu_id} is not the gate at the cursor")

        attempt_number = len(self._session.gate_attempts.get(gate.id, [])) + 1
        self._splice([RetryEntry.for_gate(gate, attempt_number)], decision.action)

    def _build_context(self) -> PlaylistContext:
        session = self._session
        return PlaylistContext(
            static_sequence=self._static_sequence,
            playlist=session.playlist,
            current_index=session.current_index,
            node_progress=session.node_progress,
            gate_results=session.gate_attempts,
            adaptive_config=self._config,
            default_gate_config=self._default_gate_config,
            skip_mastery_threshold=self._settings.skip_mastery_threshold,
            practice_question_count=self._settings.practice_question_count,
        )
