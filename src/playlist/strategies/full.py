"""
Full Adaptive Strategy.

Extends guided gating with personalization:
- Skips skippable LUs whose taught nodes are already mastered
- On an exhausted gate, injects practice for the failed nodes
  (inject-practice) or review of the LUs that teach them (prescribe-review)

Injected entry ids are derived from the gate and its attempt count, so a
remediation that is already in the playlist is never proposed twice.
"""

from __future__ import annotations

from src.playlist.decisions import Decision, InjectDecision, SkipDecision
from src.playlist.models import (
    AdaptiveMode,
    GateConfig,
    GateFailStrategy,
    GateResult,
    InjectedPracticeEntry,
    InjectedReviewEntry,
    PlaylistContext,
    PlaylistEntry,
    StaticLearningUnit,
    StaticPlaylistEntry,
)
from src.playlist.strategies.base import StrategyRegistry
from src.playlist.strategies.guided import GuidedStrategy


@StrategyRegistry.register(AdaptiveMode.FULL)
class FullStrategy(GuidedStrategy):
    """Guided gating plus mastery-based skipping and remediation."""

    def _resolve_entry(self, context: PlaylistContext, entry: PlaylistEntry) -> Decision:
        if isinstance(entry, StaticPlaylistEntry) and self._can_skip(context, entry.lu):
            return SkipDecision(
                reason=f"All taught concepts mastered above {context.skip_mastery_threshold:.0%}"
            )
        return self.advance_or_complete(context)

    def _resolve_gate_failure(
        self,
        context: PlaylistContext,
        gate: StaticLearningUnit,
        gate_config: GateConfig,
        latest: GateResult,
        attempt_count: int,
    ) -> Decision:
        strategy = gate_config.fail_strategy
        if strategy not in (GateFailStrategy.INJECT_PRACTICE, GateFailStrategy.PRESCRIBE_REVIEW):
            return super()._resolve_gate_failure(context, gate, gate_config, latest, attempt_count)

        if not latest.failed_nodes:
            return self.advance_or_complete(context)

        if strategy == GateFailStrategy.PRESCRIBE_REVIEW:
            entries = self._review_entries(context, gate, latest.failed_nodes, attempt_count)
        else:
            entries = [self._practice_entry(context, gate, latest.failed_nodes, attempt_count)]

        if any(context.has_entry(entry.entry_id) for entry in entries):
            # Remediation for this attempt was already injected.
            return self.advance_or_complete(context)

        return InjectDecision(entries=entries)

    @staticmethod
    def _can_skip(context: PlaylistContext, lu: StaticLearningUnit) -> bool:
        """A skippable, non-gate LU whose every taught node is mastered."""
        if lu.adaptive is None or lu.adaptive.is_gate or not lu.adaptive.is_skippable:
            return False

        nodes = lu.adaptive.teaches_nodes
        if not nodes:
            return False

        for node_id in nodes:
            progress = context.node_progress.get(node_id)
            if progress is None or progress.mastery < context.skip_mastery_threshold:
                return False
        return True

    @staticmethod
    def _practice_entry(
        context: PlaylistContext,
        gate: StaticLearningUnit,
        node_ids: list[str],
        attempt_count: int,
    ) -> InjectedPracticeEntry:
        return InjectedPracticeEntry(
            entry_id=f"practice-{gate.id}-{attempt_count}",
            title=f"Practice: {gate.title}",
            target_node_ids=list(node_ids),
            question_count=context.practice_question_count,
        )

    def _review_entries(
        self,
        context: PlaylistContext,
        gate: StaticLearningUnit,
        failed_nodes: list[str],
        attempt_count: int,
    ) -> list[PlaylistEntry]:
        """Review entries for LUs teaching the failed nodes, practice for the rest."""
        entries: list[PlaylistEntry] = []
        covered: set[str] = set()

        for lu in context.static_sequence:
            if lu.id == gate.id:
                continue
            targets = [node for node in lu.teaches_nodes if node in failed_nodes]
            if not targets:
                continue
            entries.append(InjectedReviewEntry(
                entry_id=f"review-{lu.id}-{gate.id}-{attempt_count}",
                title=f"Review: {lu.title}",
                reference_lu_id=lu.id,
                target_node_ids=targets,
            ))
            covered.update(targets)

        uncovered = [node for node in failed_nodes if node not in covered]
        if uncovered:
            entries.append(self._practice_entry(context, gate, uncovered, attempt_count))

        return entries
