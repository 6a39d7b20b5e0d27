"""Sequential passthrough used when adaptive mode is off."""

from __future__ import annotations

from src.playlist.decisions import Decision
from src.playlist.models import AdaptiveMode, PlaylistContext
from src.playlist.strategies.base import PlaylistStrategy, StrategyRegistry


@StrategyRegistry.register(AdaptiveMode.OFF)
class StaticStrategy(PlaylistStrategy):
    """Advance through the authored order, ignoring adaptive metadata."""

    def resolve_next(self, context: PlaylistContext) -> Decision:
        return self.advance_or_complete(context)
