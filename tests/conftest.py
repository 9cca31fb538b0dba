"""
Shared fixtures for the simulator test-suite.
"""

from __future__ import annotations

import itertools
from typing import Dict, Iterable, Optional

import pytest

from evosim.core.config import SimulationConfig, TraitRange
from evosim.genetics.traits import DEFAULT_VALUES


class StubRng:
    """
    Deterministic stand-in for ``numpy.random.Generator``.

    Only ``random()`` is used by the simulator. A single value repeats
    forever; a sequence is consumed in order and then cycles.
    """

    def __init__(self, values: Iterable[float] | float = 0.0) -> None:
        if isinstance(values, (int, float)):
            values = [float(values)]
        self._values = itertools.cycle(list(values))
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return next(self._values)


@pytest.fixture
def zero_rng() -> StubRng:
    return StubRng(0.0)


def make_traits(**overrides: float) -> Dict[str, float]:
    traits = dict(DEFAULT_VALUES)
    traits.update(overrides)
    return traits


def fixed_config(
    population: int = 1,
    max_population: int = 10,
    traits: Optional[Dict[str, float]] = None,
) -> SimulationConfig:
    """Fixed-mode config whose agents all start with ``traits``."""
    config = SimulationConfig()
    config.simulation.initial_population = population
    config.simulation.initial_mode = "fixed"
    config.simulation.max_population = max_population
    config.genetics.properties = {
        name: TraitRange(default=value) for name, value in (traits or {}).items()
    }
    return config


@pytest.fixture
def config() -> SimulationConfig:
    """Small, seeded randomized config."""
    cfg = SimulationConfig()
    cfg.simulation.initial_population = 20
    cfg.simulation.max_population = 60
    cfg.simulation.seed = 42
    cfg.resources.capacity = 2000.0
    cfg.resources.replenish_rate = 500.0
    cfg.resources.reproduction_cost = 20.0
    return cfg
