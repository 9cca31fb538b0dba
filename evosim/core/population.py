from __future__ import annotations

import itertools
import logging
from collections import deque
from typing import Deque, Dict, List, Mapping, Optional

from ..errors import ConfigurationError, ValidationError
from ..genetics.profile import create_genetic_profile
from ..genetics.variants import VariantRegistry
from ..sim.agent import Agent
from .config import SimulationConfig
from .statistics import StatisticsSnapshot, average_traits, build_snapshot, population_by_variant

logger = logging.getLogger(__name__)


class Population:
    """
    Owns the agent collection, the generation counter, the latest statistics
    snapshot, the history log and the variant registry of one simulation.
    """

    def __init__(
        self,
        config: SimulationConfig,
        rng,
        registry: Optional[VariantRegistry] = None,
    ) -> None:
        self.config = config
        self.rng = rng
        self.registry = registry if registry is not None else VariantRegistry()
        self.agents: List[Agent] = []
        self.generation = 0
        self.statistics = StatisticsSnapshot()
        self.history: Deque[StatisticsSnapshot] = deque(maxlen=config.simulation.history_limit)
        self._ids = itertools.count(1)
        self._seed_agents()

    # ----- construction -----
    def _seed_agents(self) -> None:
        sim = self.config.simulation
        properties = self.config.genetics.properties
        shared = None
        if sim.initial_mode == "fixed":
            shared = create_genetic_profile("fixed", properties)

        errors = []
        for index in range(sim.initial_population):
            traits = shared if shared is not None else create_genetic_profile("randomized", properties, self.rng)
            try:
                self.add(Agent.spawn(self.next_agent_id(), traits, self.config))
            except ValidationError as exc:
                errors.append(f"agent {index}: {exc}")

        if not self.agents:
            raise ConfigurationError(
                "simulation.initial_population",
                f"failed to create any agent ({'; '.join(errors[:3])})",
            )
        if errors:
            logger.warning("Created %d/%d agents, %d failed", len(self.agents), sim.initial_population, len(errors))
        self.statistics = build_snapshot(self.living(), self.generation)

    def next_agent_id(self) -> str:
        return f"agent-{next(self._ids)}"

    def make_offspring(self, traits: Mapping[str, float], parent: Agent) -> Agent:
        return Agent.spawn(
            self.next_agent_id(),
            traits,
            self.config,
            parent_id=parent.id,
            birth_generation=self.generation,
        )

    # ----- membership -----
    def add(self, agent: Agent) -> None:
        if not isinstance(agent, Agent):
            raise TypeError(f"expected Agent, got {type(agent).__name__}")
        self.agents.append(agent)
        self.registry.register(agent.variant_id, agent.traits)

    def remove(self, agent_id: str) -> bool:
        before = len(self.agents)
        self.agents = [agent for agent in self.agents if agent.id != agent_id]
        return len(self.agents) < before

    def evict_dead(self) -> int:
        before = len(self.agents)
        self.agents = [agent for agent in self.agents if agent.alive]
        return before - len(self.agents)

    def living(self) -> List[Agent]:
        return [agent for agent in self.agents if agent.alive]

    def size(self) -> int:
        return sum(1 for agent in self.agents if agent.alive)

    def by_variant(self, variant_id: str) -> List[Agent]:
        return [agent for agent in self.agents if agent.alive and agent.variant_id == variant_id]

    # ----- statistics -----
    def average_traits(self) -> Dict[str, float]:
        return average_traits(self.living())

    def population_by_variant(self) -> Dict[str, int]:
        return population_by_variant(self.living())

    def update_statistics(self, births: int = 0, deaths: int = 0) -> StatisticsSnapshot:
        self.statistics = build_snapshot(self.living(), self.generation, births, deaths)
        return self.statistics

    def record_history(self) -> None:
        self.history.append(self.statistics)

    def get_history(self, generations: Optional[int] = None) -> List[StatisticsSnapshot]:
        if generations is None:
            return list(self.history)
        if generations <= 0:
            return []
        return list(self.history)[-generations:]

    def reset(self) -> None:
        """Start over with fresh agents; stale variants must not leak into the next run."""
        self.registry.reset()
        self.agents = []
        self.generation = 0
        self.history.clear()
        self._ids = itertools.count(1)
        self._seed_agents()

    def __len__(self) -> int:
        return self.size()
