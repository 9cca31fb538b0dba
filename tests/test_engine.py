"""
Tests for the simulation engine: the generation pipeline, extinction,
per-agent failure isolation and the threaded control surface.
"""

import math
import time

import pytest

from conftest import StubRng, fixed_config

from evosim.core.engine import EngineState, SimulationEngine
from evosim.errors import FatalPipelineError
from evosim.genetics.traits import TRAIT_BOUNDS

STRONG = {"replicationRate": 1.0, "attractiveness": 1.0, "strength": 1.0}


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def starving_config(population=5):
    config = fixed_config(population=population)
    config.resources.initial_amount = 0.0
    config.survival.reference_amount = 100.0
    config.resources.capacity = 1.0
    config.resources.replenish_rate = 0.0
    return config


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def test_single_agent_reproduces_once():
    config = fixed_config(population=1, max_population=2, traits=STRONG)
    config.resources.reproduction_cost = 0.0
    engine = SimulationEngine(config, rng=StubRng(0.0))

    report = engine.process_generation()

    assert report.births == 1
    assert report.deaths == 0
    assert engine.population.size() == 2
    child = engine.population.agents[1]
    assert child.parent_id == engine.population.agents[0].id
    assert child.variant_id != engine.population.agents[0].variant_id
    stats = engine.get_statistics()
    assert stats.generation == 1
    assert stats.total_population == 2
    assert stats.births == 1


def test_starvation_leads_to_extinction():
    engine = SimulationEngine(starving_config(population=1), rng=StubRng(0.5))
    engine.pool.current_amount = 0.0

    report = engine.process_generation()

    assert report.extinct
    assert report.deaths == 1
    assert engine.population.size() == 0
    assert engine.extinct
    assert engine.get_statistics().total_population == 0


def test_extinct_engine_does_not_advance():
    engine = SimulationEngine(starving_config(), rng=StubRng(0.5))
    engine.pool.current_amount = 0.0
    engine.process_generation()
    generation = engine.population.generation

    report = engine.process_generation()

    assert not report.advanced
    assert report.extinct
    assert engine.population.generation == generation
    assert len(engine.get_history()) == generation


def test_extinction_handler_runs_once():
    config = fixed_config(population=5)
    config.resources.capacity = 10.0
    config.resources.replenish_rate = 10.0
    config.resources.consumption_model = "flat"
    config.resources.consumption_amount = 500.0
    engine = SimulationEngine(config, rng=StubRng(0.5))
    calls = []
    engine._on_extinction = lambda: calls.append(engine.population.generation)

    reports = engine.run(10)

    assert len(reports) == 1
    assert reports[0].extinct
    engine.process_generation()
    engine.process_generation()
    assert calls == [1]


def test_population_never_exceeds_cap():
    config = fixed_config(population=3, max_population=4, traits=STRONG)
    config.resources.reproduction_cost = 0.0
    engine = SimulationEngine(config, rng=StubRng(0.0))

    report = engine.process_generation()

    assert report.births == 1
    assert engine.population.size() == 4
    for _ in range(5):
        engine.process_generation()
        assert engine.population.size() <= 4


def test_failing_agent_is_isolated():
    engine = SimulationEngine(fixed_config(population=3), rng=StubRng(0.5))
    broken = engine.population.agents[0]
    broken.resources = float("nan")

    report = engine.process_generation()

    assert report.failures == 1
    assert report.deaths == 1
    assert broken not in engine.population.agents
    assert engine.population.size() == 2
    assert not engine.extinct


def test_unviable_offspring_does_not_harm_parent(monkeypatch):
    config = fixed_config(population=1, max_population=2, traits=STRONG)
    config.resources.reproduction_cost = 10.0
    engine = SimulationEngine(config, rng=StubRng(0.0))
    parent = engine.population.agents[0]
    spawn = engine.population.make_offspring

    def corrupt_offspring(traits, parent):
        child = spawn(traits, parent)
        child.replication_timer = float("inf")
        return child

    monkeypatch.setattr(engine.population, "make_offspring", corrupt_offspring)
    report = engine.process_generation()

    assert report.births == 0
    assert report.failures == 0
    assert parent.alive
    assert engine.population.agents == [parent]
    assert not engine.extinct


def test_fatal_error_pauses_and_propagates(monkeypatch):
    engine = SimulationEngine(fixed_config(population=3), rng=StubRng(0.5))
    engine.set_speed(1)
    assert engine.start()

    def explode(*args, **kwargs):
        raise RuntimeError("statistics store unavailable")

    monkeypatch.setattr(engine.population, "update_statistics", explode)
    with pytest.raises(FatalPipelineError) as excinfo:
        engine.process_generation()

    assert isinstance(excinfo.value.cause, RuntimeError)
    assert engine.state is EngineState.PAUSED
    assert engine.last_error is excinfo.value
    engine.stop()


def test_state_stays_within_bounds(config):
    engine = SimulationEngine(config)
    max_resources = config.resources.max_agent_resources
    for _ in range(30):
        report = engine.process_generation()
        assert engine.population.size() <= config.simulation.max_population
        assert 0.0 <= engine.pool.current_amount <= engine.pool.capacity
        for agent in engine.population.living():
            assert math.isfinite(agent.resources)
            assert 0.0 <= agent.resources <= max_resources
            for name, (lo, hi) in TRAIT_BOUNDS.items():
                assert lo <= agent.traits[name] <= hi
        assert report.generation == engine.population.generation


def test_seeded_runs_are_reproducible(config):
    first = SimulationEngine(config)
    second = SimulationEngine(config)
    first.run(10)
    second.run(10)
    assert first.get_statistics().total_population == second.get_statistics().total_population
    assert first.get_statistics().average_traits == second.get_statistics().average_traits


def test_reset_starts_over(config):
    engine = SimulationEngine(config)
    engine.run(5)
    engine.reset()
    assert engine.population.generation == 0
    assert engine.get_history() == []
    assert engine.population.size() == config.simulation.initial_population
    assert engine.pool.current_amount == engine.pool.capacity
    assert not engine.extinct
    assert engine.state is EngineState.STOPPED
    living = {agent.variant_id for agent in engine.population.living()}
    assert {key for key, _ in engine.registry.items()} == living


def test_engines_have_independent_registries():
    first = SimulationEngine(fixed_config(population=2, traits=STRONG), rng=StubRng(0.0))
    second = SimulationEngine(fixed_config(population=2), rng=StubRng(0.0))
    assert first.registry is not second.registry
    before = len(second.registry)
    first.run(3)
    assert len(first.registry) > 1
    assert len(second.registry) == before


def test_history_tracks_generations(config):
    engine = SimulationEngine(config)
    reports = engine.run(4)
    history = engine.get_history()
    assert [s.generation for s in history] == [r.generation for r in reports if r.advanced]
    assert engine.get_history(2) == history[-2:]
    assert engine.get_history(0) == []


# ---------------------------------------------------------------------------
# Control surface
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "requested, expected",
    [(5000, 1000), (0, 1), (-7, 1), (25, 25), ("40", 40), (12.9, 12)],
)
def test_set_speed_clamps(requested, expected):
    engine = SimulationEngine(fixed_config(population=1), rng=StubRng(0.5))
    assert engine.set_speed(requested)
    assert engine.speed == expected


@pytest.mark.parametrize("requested", ["abc", None, float("nan")])
def test_set_speed_rejects_non_numeric(requested):
    engine = SimulationEngine(fixed_config(population=1), rng=StubRng(0.5))
    assert not engine.set_speed(requested)
    assert engine.speed == engine.config.simulation.steps_per_second


def test_pause_and_stop_when_idle():
    engine = SimulationEngine(fixed_config(population=1), rng=StubRng(0.5))
    assert not engine.pause()
    assert engine.stop()
    assert engine.state is EngineState.STOPPED


def test_start_pause_resume_stop():
    config = fixed_config(population=10, max_population=50,
                          traits={"strength": 1.0, "intelligence": 1.0})
    engine = SimulationEngine(config, rng=StubRng(0.5))
    engine.set_speed(200)
    try:
        assert engine.start()
        assert not engine.start()
        assert engine.is_running
        assert wait_for(lambda: engine.population.generation >= 3)

        assert engine.pause()
        assert engine.state is EngineState.PAUSED
        paused_at = engine.population.generation
        time.sleep(0.05)
        assert engine.population.generation == paused_at
        assert not engine.pause()

        assert engine.resume()
        assert wait_for(lambda: engine.population.generation > paused_at)
        assert engine.set_speed(500)
        assert engine.is_running
    finally:
        engine.stop()
    assert engine.state is EngineState.STOPPED
    stopped_at = engine.population.generation
    time.sleep(0.05)
    assert engine.population.generation == stopped_at


def test_extinction_pauses_running_engine():
    engine = SimulationEngine(starving_config(), rng=StubRng(0.5))
    engine.pool.current_amount = 0.0
    engine.set_speed(1000)
    try:
        assert engine.start()
        assert wait_for(lambda: engine.extinct)
        assert wait_for(lambda: engine.state is EngineState.PAUSED)
    finally:
        engine.stop()
