"""
Unit tests for playlist data models and decision parsing.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from src.playlist.decisions import (
    AdvanceDecision,
    InjectDecision,
    RetryDecision,
    SkipDecision,
    parse_decision,
)
from src.playlist.errors import CorruptSessionError, InvalidDecisionError
from src.playlist.models import (
    GateConfig,
    GateFailStrategy,
    GateResult,
    InjectedPracticeEntry,
    InjectedReviewEntry,
    LearnerModuleSession,
    NodeProgress,
    PlaylistDisplayEntry,
    PlaylistEntry,
    RetryEntry,
    StaticPlaylistEntry,
    gate_unit_of,
)


class TestGateConfig:
    def test_defaults(self):
        config = GateConfig()
        assert config.mastery_threshold == 0.8
        assert config.min_questions == 3
        assert config.max_retries == 2
        assert config.fail_strategy == GateFailStrategy.HOLD

    @pytest.mark.parametrize(
        ("max_retries", "attempts", "expected"),
        [
            (2, 0, True),
            (2, 1, True),
            (2, 2, False),
            (0, 0, False),
            (-1, 100, True),
        ],
    )
    def test_has_retries_left(self, max_retries, attempts, expected):
        assert GateConfig(max_retries=max_retries).has_retries_left(attempts) is expected

    def test_rejects_unknown_fail_strategy(self):
        with pytest.raises(ValidationError):
            GateConfig(fail_strategy="give-up")

    def test_rejects_retries_below_unlimited(self):
        with pytest.raises(ValidationError):
            GateConfig(max_retries=-2)


class TestStaticLearningUnit:
    def test_plain_unit_is_not_gate(self, make_lu):
        lu = make_lu()
        assert lu.is_gate is False
        assert lu.teaches_nodes == []

    def test_gate_unit(self, make_gate_lu):
        lu = make_gate_lu("gate-1", teaches_nodes=["node-x"])
        assert lu.is_gate is True
        assert lu.teaches_nodes == ["node-x"]
        assert lu.adaptive.gate_config.max_retries == 2


class TestPlaylistEntries:
    adapter = TypeAdapter(PlaylistEntry)

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            (
                {"kind": "injected-practice", "entry_id": "p-1", "title": "P", "target_node_ids": ["n1"]},
                InjectedPracticeEntry,
            ),
            (
                {"kind": "injected-review", "entry_id": "r-1", "title": "R", "reference_lu_id": "lu-1"},
                InjectedReviewEntry,
            ),
        ],
    )
    def test_kind_selects_variant(self, payload, expected):
        assert isinstance(self.adapter.validate_python(payload), expected)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"kind": "quiz", "entry_id": "q-1", "title": "Q"})

    def test_review_requires_reference(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"kind": "injected-review", "entry_id": "r-1", "title": "R"})

    def test_practice_default_question_count(self):
        entry = InjectedPracticeEntry(entry_id="p-1", title="P")
        assert entry.question_count == 5

    def test_retry_entry_for_gate(self, make_gate_lu):
        entry = RetryEntry.for_gate(make_gate_lu("gate-1"), 3)

        assert entry.entry_id == "retry-gate-1-3"
        assert entry.title == "Retry: Gate: gate-1 (#3)"
        assert entry.kind == "retry"

    def test_gate_unit_of(self, make_lu, make_gate_lu):
        gate = make_gate_lu("gate-1")

        assert gate_unit_of(StaticPlaylistEntry.from_unit(gate)) == gate
        assert gate_unit_of(RetryEntry.for_gate(gate, 2)) == gate
        assert gate_unit_of(StaticPlaylistEntry.from_unit(make_lu())) is None
        assert gate_unit_of(InjectedPracticeEntry(entry_id="p-1", title="P")) is None
        assert gate_unit_of(None) is None


class TestSessionModel:
    def _session(self, make_lu, **overrides):
        data = {
            "enrollment_id": "enr-1",
            "module_id": "mod-1",
            "playlist": [StaticPlaylistEntry.from_unit(make_lu(id="lu-1"))],
        }
        data.update(overrides)
        return LearnerModuleSession(**data)

    def test_valid_session_passes(self, make_lu):
        self._session(make_lu, current_index=1).validate_invariants()

    def test_cursor_out_of_bounds(self, make_lu):
        with pytest.raises(CorruptSessionError, match="current_index"):
            self._session(make_lu, current_index=2).validate_invariants()

    def test_misfiled_gate_result(self, make_lu):
        session = self._session(
            make_lu,
            gate_attempts={"lu-1": [GateResult(lu_id="lu-9", passed=True, score=1.0, attempt_number=1)]},
        )
        with pytest.raises(CorruptSessionError):
            session.validate_invariants()

    def test_non_finite_values_rejected(self):
        with pytest.raises(ValidationError):
            NodeProgress(mastery=float("inf"))

    def test_from_dict_wraps_validation_errors(self):
        with pytest.raises(CorruptSessionError) as exc_info:
            LearnerModuleSession.from_dict({"enrollment_id": "enr-1"})
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_to_dict_uses_plain_values(self, make_gate_lu):
        session = LearnerModuleSession(
            enrollment_id="enr-1",
            module_id="mod-1",
            playlist=[StaticPlaylistEntry.from_unit(make_gate_lu("gate-1", fail_strategy="prescribe-review"))],
        )
        data = session.to_dict()
        assert data["playlist"][0]["lu"]["adaptive"]["gateConfig"]["failStrategy"] == "prescribe-review"


class TestDisplayEntry:
    def test_is_frozen(self):
        entry = PlaylistDisplayEntry(id="static-lu-1", title="LU", kind="static")
        with pytest.raises(ValidationError):
            entry.is_current = True


class TestParseDecision:
    def test_models_pass_through(self):
        decision = SkipDecision(reason="mastered")
        assert parse_decision(decision) is decision

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ({"action": "advance"}, AdvanceDecision()),
            ({"action": "retry", "lu_id": "gate-1"}, RetryDecision(lu_id="gate-1")),
            ({"action": "skip", "reason": None}, SkipDecision()),
        ],
    )
    def test_dicts_parsed_by_action(self, payload, expected):
        assert parse_decision(payload) == expected

    def test_inject_entries_parsed(self):
        decision = parse_decision({
            "action": "inject",
            "entries": [{"kind": "injected-practice", "entry_id": "p-1", "title": "P"}],
        })
        assert isinstance(decision, InjectDecision)
        assert isinstance(decision.entries[0], InjectedPracticeEntry)

    def test_malformed_payload(self):
        with pytest.raises(InvalidDecisionError) as exc_info:
            parse_decision({"action": "retry", "lu_id": 7})
        assert exc_info.value.action == "retry"

    def test_non_mapping_payload(self):
        with pytest.raises(InvalidDecisionError) as exc_info:
            parse_decision("advance")
        assert exc_info.value.action == "unknown"
