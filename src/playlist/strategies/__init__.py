"""
Playlist Strategies.

One strategy per adaptive mode, selected from the registry at engine
construction so new modes are additive.
"""

from .base import PlaylistStrategy, StrategyRegistry
from .static import StaticStrategy
from .guided import GuidedStrategy
from .full import FullStrategy


def create_strategy(mode) -> PlaylistStrategy:
    """Instantiate the strategy for an adaptive mode (unknown modes pass through)."""
    return StrategyRegistry.for_mode(mode)


__all__ = [
    # Base classes
    "PlaylistStrategy",
    "StrategyRegistry",
    "create_strategy",
    # Strategies
    "StaticStrategy",
    "GuidedStrategy",
    "FullStrategy",
]
