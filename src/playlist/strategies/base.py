"""
Base Playlist Strategy.

Provides the abstract base for adaptive-mode strategies and a registry
that maps each AdaptiveMode to the strategy implementing it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from loguru import logger

from src.playlist.decisions import AdvanceDecision, CompleteDecision, Decision
from src.playlist.models import AdaptiveMode, PlaylistContext


# =============================================================================
# Strategy Registry
# =============================================================================


class StrategyRegistry:
    """
    Registry for playlist strategies.

    Example:
        @StrategyRegistry.register(AdaptiveMode.GUIDED)
        class GuidedStrategy(PlaylistStrategy):
            ...

        strategy = StrategyRegistry.for_mode(AdaptiveMode.GUIDED)
    """

    _strategies: ClassVar[dict[AdaptiveMode, type[PlaylistStrategy]]] = {}
    fallback_mode: ClassVar[AdaptiveMode] = AdaptiveMode.OFF

    @classmethod
    def register(cls, mode: AdaptiveMode):
        """
        Decorator to register a playlist strategy.

        Args:
            mode: AdaptiveMode this strategy handles
        """

        def decorator(strategy_class: type[PlaylistStrategy]):
            cls._strategies[mode] = strategy_class
            strategy_class.mode = mode
            logger.debug(f"Registered playlist strategy: {mode.value} -> {strategy_class.__name__}")
            return strategy_class

        return decorator

    @classmethod
    def get(cls, mode: AdaptiveMode) -> type[PlaylistStrategy]:
        """Get strategy class by mode, falling back to sequential passthrough."""
        strategy_class = cls._strategies.get(mode)
        if strategy_class is None:
            logger.warning(f"No playlist strategy for mode {mode!r}, using {cls.fallback_mode.value}")
            strategy_class = cls._strategies[cls.fallback_mode]
        return strategy_class

    @classmethod
    def for_mode(cls, mode: AdaptiveMode) -> PlaylistStrategy:
        return cls.get(mode)()

    @classmethod
    def list_strategies(cls) -> dict[str, type[PlaylistStrategy]]:
        """List all registered strategies."""
        return {mode.value: cls._strategies[mode] for mode in cls._strategies}


# =============================================================================
# Base Playlist Strategy
# =============================================================================


class PlaylistStrategy(ABC):
    """
    Abstract base class for playlist strategies.

    A strategy looks at a read-only PlaylistContext and proposes the next
    Decision. It never mutates the context; the engine applies decisions.
    """

    mode: ClassVar[AdaptiveMode] = AdaptiveMode.OFF

    @abstractmethod
    def resolve_next(self, context: PlaylistContext) -> Decision:
        """
        Decide what happens after the current entry.

        Args:
            context: Snapshot of the session and course configuration

        Returns:
            The proposed Decision
        """
        ...

    @staticmethod
    def advance_or_complete(context: PlaylistContext) -> Decision:
        """Advance, or complete when the cursor is on the last entry."""
        if context.is_last_entry:
            return CompleteDecision()
        return AdvanceDecision()
