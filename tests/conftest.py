"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.config import PlaylistSettings
from src.playlist.models import AdaptiveMode, CourseAdaptiveSettings, StaticLearningUnit


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Learning unit factories
# =============================================================================


def build_lu(**overrides) -> StaticLearningUnit:
    """A plain media LU; any field can be overridden."""
    data = {
        "id": "lu-1",
        "title": "Test LU",
        "type": "media",
        "content_id": "c-1",
        "category": "topic",
        "is_required": True,
        "sequence": 1,
        "estimated_duration": 10,
    }
    data.update(overrides)
    return StaticLearningUnit.model_validate(data)


def build_gate_lu(
    lu_id: str,
    fail_strategy: str = "hold",
    max_retries: int = 2,
    assesses_nodes: list[str] | None = None,
    teaches_nodes: list[str] | None = None,
) -> StaticLearningUnit:
    return build_lu(
        id=lu_id,
        title=f"Gate: {lu_id}",
        adaptive={
            "teaches_nodes": teaches_nodes or [],
            "assesses_nodes": assesses_nodes if assesses_nodes is not None else ["node-1"],
            "is_gate": True,
            "is_skippable": False,
            "gate_config": {
                "mastery_threshold": 0.8,
                "min_questions": 3,
                "max_retries": max_retries,
                "fail_strategy": fail_strategy,
            },
        },
    )


def build_skippable_lu(lu_id: str, teaches_nodes: list[str]) -> StaticLearningUnit:
    return build_lu(
        id=lu_id,
        title=f"Skippable: {lu_id}",
        adaptive={
            "teaches_nodes": teaches_nodes,
            "assesses_nodes": [],
            "is_gate": False,
            "is_skippable": True,
        },
    )


def build_teaching_lu(lu_id: str, teaches_nodes: list[str]) -> StaticLearningUnit:
    return build_lu(
        id=lu_id,
        title=f"Teaching: {lu_id}",
        adaptive={
            "teaches_nodes": teaches_nodes,
            "assesses_nodes": [],
            "is_gate": False,
            "is_skippable": False,
        },
    )


@pytest.fixture
def make_lu():
    return build_lu


@pytest.fixture
def make_gate_lu():
    return build_gate_lu


@pytest.fixture
def make_skippable_lu():
    return build_skippable_lu


@pytest.fixture
def make_teaching_lu():
    return build_teaching_lu


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture
def settings():
    """Engine settings isolated from the environment and any .env file."""
    return PlaylistSettings(
        _env_file=None,
        log_level="WARNING",
        skip_mastery_threshold=0.7,
        practice_question_count=5,
        default_mastery_threshold=0.8,
        default_min_questions=3,
        default_max_retries=2,
    )


@pytest.fixture
def off_config():
    return CourseAdaptiveSettings(mode=AdaptiveMode.OFF)


@pytest.fixture
def guided_config():
    return CourseAdaptiveSettings(mode=AdaptiveMode.GUIDED)


@pytest.fixture
def full_config():
    return CourseAdaptiveSettings(mode=AdaptiveMode.FULL)
