"""
Guided Strategy.

Adds gate checkpoints to sequential navigation:
- A gate with no recorded attempt holds the learner on it
- A passed gate lets the learner continue
- A failed gate is retried while the retry budget lasts
- An exhausted gate follows its fail strategy
"""

from __future__ import annotations

from loguru import logger

from src.playlist.decisions import Decision, HoldDecision, RetryDecision
from src.playlist.models import (
    AdaptiveMode,
    GateConfig,
    GateFailStrategy,
    GateResult,
    PlaylistContext,
    PlaylistEntry,
    RetryEntry,
    StaticLearningUnit,
    gate_unit_of,
)
from src.playlist.strategies.base import PlaylistStrategy, StrategyRegistry


@StrategyRegistry.register(AdaptiveMode.GUIDED)
class GuidedStrategy(PlaylistStrategy):
    """Sequential navigation gated by mastery checkpoints."""

    def resolve_next(self, context: PlaylistContext) -> Decision:
        entry = context.current_entry
        if entry is None:
            return self.advance_or_complete(context)

        gate = gate_unit_of(entry)
        if gate is not None:
            return self._resolve_gate(context, gate, entry)

        return self._resolve_entry(context, entry)

    def _resolve_entry(self, context: PlaylistContext, entry: PlaylistEntry) -> Decision:
        """Decide for a non-gate entry."""
        return self.advance_or_complete(context)

    def _resolve_gate(
        self,
        context: PlaylistContext,
        gate: StaticLearningUnit,
        entry: PlaylistEntry,
    ) -> Decision:
        attempts = context.attempts_for(gate.id)
        if isinstance(entry, RetryEntry) and len(attempts) < entry.attempt_number:
            return HoldDecision(
                message=f"Complete attempt #{entry.attempt_number} of '{gate.title}' to continue"
            )

        if not attempts:
            return HoldDecision(message=f"Complete the checkpoint '{gate.title}' to continue")

        latest = attempts[-1]
        if latest.passed:
            return self.advance_or_complete(context)

        gate_config = self._gate_config(context, gate)
        if gate_config.has_retries_left(len(attempts)):
            # Revisited gate whose retry is already queued further down.
            if context.has_entry_after_cursor(RetryEntry.entry_id_for(gate.id, len(attempts) + 1)):
                return self.advance_or_complete(context)
            return RetryDecision(lu_id=gate.id)

        logger.debug(
            f"Gate {gate.id} exhausted after {len(attempts)} attempt(s), "
            f"fail strategy {gate_config.fail_strategy.value}"
        )
        return self._resolve_gate_failure(context, gate, gate_config, latest, len(attempts))

    def _resolve_gate_failure(
        self,
        context: PlaylistContext,
        gate: StaticLearningUnit,
        gate_config: GateConfig,
        latest: GateResult,
        attempt_count: int,
    ) -> Decision:
        """Apply the fail strategy once the retry budget is spent."""
        if gate_config.fail_strategy == GateFailStrategy.ALLOW_CONTINUE:
            return self.advance_or_complete(context)

        # Remediation strategies need full mode; guided holds instead.
        return HoldDecision(
            message=f"Checkpoint '{gate.title}' not passed after {attempt_count} attempt(s)"
        )

    @staticmethod
    def _gate_config(context: PlaylistContext, gate: StaticLearningUnit) -> GateConfig:
        if gate.adaptive is not None and gate.adaptive.gate_config is not None:
            return gate.adaptive.gate_config
        return context.default_gate_config
