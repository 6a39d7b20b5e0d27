"""
Adaptive Playlist Engine.

Sequences a learner through a module's learning units, deciding whether to
advance, skip, inject remediation, retry a gate, hold, or complete.

Components:
- PlaylistEngine: Session owner and decision applier
- Strategies: One per adaptive mode (off, guided, full)
- Models: Learning units, playlist entries, session state, display rows
- Decisions: What a strategy proposes and the engine applies
"""
from src.playlist.models import (
    AdaptiveMode,
    CourseAdaptiveSettings,
    DEFAULT_ADAPTIVE_SETTINGS,
    GateConfig,
    GateDisplayStatus,
    GateFailStrategy,
    GateResult,
    InjectedPracticeEntry,
    InjectedReviewEntry,
    LearnerModuleSession,
    LearningUnitAdaptive,
    NodeProgress,
    PlaylistContext,
    PlaylistDisplayEntry,
    PlaylistEntry,
    RetryEntry,
    StaticLearningUnit,
    StaticPlaylistEntry,
)
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
from src.playlist.errors import CorruptSessionError, InvalidDecisionError, PlaylistError
from src.playlist.strategies import (
    FullStrategy,
    GuidedStrategy,
    PlaylistStrategy,
    StaticStrategy,
    StrategyRegistry,
    create_strategy,
)
from src.playlist.engine import PlaylistEngine

__all__ = [
    # Main engine
    "PlaylistEngine",
    # Strategies
    "PlaylistStrategy",
    "StrategyRegistry",
    "StaticStrategy",
    "GuidedStrategy",
    "FullStrategy",
    "create_strategy",
    # Data models
    "StaticLearningUnit",
    "LearningUnitAdaptive",
    "GateConfig",
    "CourseAdaptiveSettings",
    "DEFAULT_ADAPTIVE_SETTINGS",
    "StaticPlaylistEntry",
    "InjectedPracticeEntry",
    "InjectedReviewEntry",
    "RetryEntry",
    "PlaylistEntry",
    "NodeProgress",
    "GateResult",
    "LearnerModuleSession",
    "PlaylistContext",
    "PlaylistDisplayEntry",
    # Decisions
    "Decision",
    "AdvanceDecision",
    "SkipDecision",
    "InjectDecision",
    "RetryDecision",
    "HoldDecision",
    "CompleteDecision",
    "parse_decision",
    # Errors
    "PlaylistError",
    "InvalidDecisionError",
    "CorruptSessionError",
    # Enums
    "AdaptiveMode",
    "GateFailStrategy",
    "GateDisplayStatus",
]
