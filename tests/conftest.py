"""
Pytest fixtures for the dice resolution engine test suite.

Provides fixed streams, sample contexts, and fresh registries and engines
so tests never depend on global state left behind by another test.
"""

import pytest

from dre.data_models import (
    ActionContext,
    CombatState,
    CombatTarget,
    CrewMember,
    Environment,
    MissionDefinition,
    RewardItem,
    RiskState,
    ShipComponent,
    ShipState,
    Weapon,
    WeightedEntry,
)
from dre.modifiers.registry import ModifierRegistry, ModifierSource, build_default_registry, reset_registry
from dre.observability.run_log import RunLog, reset_run_log
from dre.resolution.engine import ResolutionEngine, reset_engine
from dre.rng.substream import make_stream
from dre.tables.table_manager import TableManager, reset_table_manager
from dre.tables.table_types import DifficultyTable


def _constant_factory(value: float):
    """Stream factory whose every substream returns `value`."""
    return lambda seed_text, label: (lambda: value)


def _flat_source(name: str, value: int, priority: int = 1) -> ModifierSource:
    """A modifier source contributing a fixed value to every action."""
    return ModifierSource(name, priority, lambda action_type, context: value)


def _failing_source(name: str = "broken", priority: int = 1) -> ModifierSource:
    def fail(action_type, context):
        raise RuntimeError("sensor offline")
    return ModifierSource(name, priority, fail)


# =============================================================================
# GLOBAL STATE
# =============================================================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop global engines, registries and logs between tests."""
    yield
    reset_engine()
    reset_registry()
    reset_table_manager()
    reset_run_log()


# =============================================================================
# TABLES AND ENGINES
# =============================================================================


@pytest.fixture(scope="session")
def table_manager():
    """The packaged content tables, loaded once."""
    return TableManager()


@pytest.fixture
def default_registry():
    """A fresh registry with the built-in sources."""
    return build_default_registry()


@pytest.fixture
def empty_registry():
    """A registry with no sources."""
    return ModifierRegistry()


@pytest.fixture
def engine(table_manager, default_registry):
    """An engine over the packaged tables and built-in sources."""
    return ResolutionEngine(table_manager=table_manager, registry=default_registry)


@pytest.fixture
def run_log():
    """A private run log."""
    return RunLog()


@pytest.fixture
def logged_engine(table_manager, default_registry, run_log):
    """An engine that records to a private run log."""
    return ResolutionEngine(table_manager=table_manager, registry=default_registry, run_log=run_log)


@pytest.fixture
def flat_source():
    return _flat_source


@pytest.fixture
def failing_source():
    return _failing_source


@pytest.fixture
def make_engine(table_manager):
    """
    Build an engine with optional overrides.

    value: every substream returns this constant (None = real substreams)
    sources: modifier sources (None = built-in sources)
    difficulty: difficulty label -> target mapping
    """
    def _make(value=None, sources=None, difficulty=None, run_log=None):
        registry = ModifierRegistry(sources) if sources is not None else build_default_registry()
        return ResolutionEngine(
            table_manager=table_manager,
            registry=registry,
            difficulty_table=DifficultyTable(difficulty) if difficulty else None,
            stream_factory=_constant_factory(value) if value is not None else make_stream,
            run_log=run_log,
        )
    return _make


# =============================================================================
# CONTEXTS
# =============================================================================


@pytest.fixture
def empty_context():
    return ActionContext()


@pytest.fixture
def crew():
    return [
        CrewMember(name="Vega", role="engineer", personality="logical"),
        CrewMember(name="Oduya", role="medic", personality="cautious"),
        CrewMember(name="Renn", role="tactical", injured=True),
    ]


@pytest.fixture
def full_context(crew):
    """A context with every section filled in."""
    return ActionContext(
        difficulty="normal",
        ship=ShipState(
            components=[
                ShipComponent(type="mining_laser", tier=3),
                ShipComponent(type="scanner", tier=2),
                ShipComponent(type="engine", tier=2, health=0.4),
            ],
            hull=60,
            max_hull=100,
        ),
        crew=crew,
        attributes={"logic": 3, "resilience": 1, "reflexes": 2},
        skills={"engineering": 2, "mining": 1, "luck": 3},
        research={"efficient_mining"},
        environment=Environment(radiation="medium", zone="quiet", hazards=["asteroid_field"]),
        risk=RiskState(wake=0.5, time_elapsed=3, fatigue=20),
        combat=CombatState(
            weapon=Weapon(type="railgun", tier=2),
            target=CombatTarget(name="Drone", evasion=16, shields=2, initiative=2),
            range="medium",
            duration=4,
        ),
    )


@pytest.fixture
def combat_context():
    return ActionContext(
        combat=CombatState(
            weapon=Weapon(type="laser", tier=1),
            target=CombatTarget(name="Raider", evasion=10, shields=3),
            range="short",
        ),
    )


@pytest.fixture
def mission():
    return MissionDefinition(
        mission_id="m-cargo-run",
        name="Cargo Run",
        reward_profile="standard",
        difficulty="easy",
        base_rewards=[RewardItem(item="credits", quantity=100), RewardItem(item="ore", quantity=3)],
        bonus_pool=[WeightedEntry(value="artifact", weight=1, label="Alien Artifact")],
        duration=4.0,
        story_flag="act_two",
    )
