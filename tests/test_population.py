"""
Unit tests for the Population container and statistics snapshots.
"""

import pytest

from conftest import StubRng, fixed_config, make_traits

from evosim.core.population import Population
from evosim.core.statistics import build_snapshot
from evosim.errors import ConfigurationError
from evosim.sim.agent import Agent


def test_fixed_mode_creates_single_variant():
    population = Population(fixed_config(population=5), StubRng(0.5))
    assert population.size() == 5
    assert len(population.population_by_variant()) == 1
    assert len(population.registry) == 1
    assert population.statistics.total_population == 5
    assert population.statistics.generation == 0


def test_randomized_mode_draws_each_agent():
    config = fixed_config(population=3)
    config.simulation.initial_mode = "randomized"
    population = Population(config, StubRng([0.1, 0.3, 0.5, 0.7, 0.9]))
    traits = [agent.traits for agent in population.agents]
    assert traits[0] != traits[1]


def test_agent_ids_are_sequential():
    population = Population(fixed_config(population=2), StubRng(0.5))
    assert [agent.id for agent in population.agents] == ["agent-1", "agent-2"]
    assert population.next_agent_id() == "agent-3"


def test_seeding_fails_when_no_agent_is_viable():
    config = fixed_config(population=3, traits={"replicationRate": 0.0})
    with pytest.raises(ConfigurationError) as excinfo:
        Population(config, StubRng(0.5))
    assert excinfo.value.path == "simulation.initial_population"


def test_make_offspring_links_parent():
    population = Population(fixed_config(population=1), StubRng(0.5))
    population.generation = 4
    parent = population.agents[0]
    child = population.make_offspring(make_traits(strength=0.9), parent)
    assert child.parent_id == parent.id
    assert child.birth_generation == 4
    assert child.resources == population.config.resources.initial_amount


def test_add_registers_variant_and_rejects_non_agents():
    population = Population(fixed_config(population=1), StubRng(0.5))
    agent = Agent("extra", make_traits(strength=0.9), 10.0, max_age=10)
    population.add(agent)
    assert agent.variant_id in population.registry
    assert population.by_variant(agent.variant_id) == [agent]
    with pytest.raises(TypeError):
        population.add({"id": "not-an-agent"})


def test_remove_and_evict_dead():
    population = Population(fixed_config(population=3), StubRng(0.5))
    first, second, _ = population.agents
    assert population.remove(first.id)
    assert not population.remove("missing")
    second.alive = False
    assert population.size() == 1
    assert population.evict_dead() == 1
    assert len(population.agents) == 1


def test_history_limit_and_get_history():
    config = fixed_config(population=1)
    config.simulation.history_limit = 2
    population = Population(config, StubRng(0.5))
    for generation in range(1, 4):
        population.generation = generation
        population.update_statistics()
        population.record_history()
    assert [s.generation for s in population.get_history()] == [2, 3]
    assert [s.generation for s in population.get_history(1)] == [3]
    assert population.get_history(0) == []
    assert population.get_history(-5) == []


def test_reset_clears_registry_and_history():
    population = Population(fixed_config(population=2), StubRng(0.5))
    stale = Agent("stale", make_traits(strength=0.01), 10.0, max_age=10)
    population.add(stale)
    population.generation = 7
    population.record_history()

    population.reset()
    assert stale.variant_id not in population.registry
    assert population.generation == 0
    assert population.get_history() == []
    assert population.size() == 2
    assert population.agents[0].id == "agent-1"


def test_snapshot_counts_variants():
    a = make_traits(strength=0.2)
    b = make_traits(strength=0.8)
    agents = [
        Agent("1", a, 10.0, max_age=10),
        Agent("2", a, 20.0, max_age=10),
        Agent("3", b, 30.0, max_age=10),
    ]
    snapshot = build_snapshot(agents, generation=5, births=1, deaths=2)
    assert snapshot.total_population == 3
    assert snapshot.unique_variants == 2
    assert snapshot.population_by_variant[agents[0].variant_id] == 2
    assert snapshot.population_by_variant[agents[2].variant_id] == 1
    assert snapshot.average_traits["strength"] == pytest.approx(0.4)
    assert snapshot.average_resources == pytest.approx(20.0)
    assert (snapshot.births, snapshot.deaths) == (1, 2)


def test_snapshot_groups_agents_equal_after_rounding():
    agents = [
        Agent("1", make_traits(strength=0.5012), 10.0, max_age=10),
        Agent("2", make_traits(strength=0.5034), 10.0, max_age=10),
    ]
    snapshot = build_snapshot(agents, generation=1)
    assert snapshot.unique_variants == 1
    assert snapshot.population_by_variant == {agents[0].variant_id: 2}


def test_snapshot_of_empty_population():
    snapshot = build_snapshot([], generation=3)
    assert snapshot.total_population == 0
    assert snapshot.unique_variants == 0
    assert all(value == 0.0 for value in snapshot.average_traits.values())
    assert snapshot.average_resources == 0.0
