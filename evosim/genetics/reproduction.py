from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Mapping, Optional

from ..errors import ValidationError
from .mutation import create_offspring_traits

if TYPE_CHECKING:
    from ..core.config import SimulationConfig
    from ..sim.agent import Agent

logger = logging.getLogger(__name__)

BASE_SUCCESS_RATE = 0.5

OffspringFactory = Callable[[Mapping[str, float], "Agent"], "Agent"]


def success_probability(attractiveness: float, attractiveness_weight: float) -> float:
    """0.5 plus half the weighted attractiveness; 0.85 at the default weight."""
    return BASE_SUCCESS_RATE + attractiveness * attractiveness_weight * 0.5


def attempt_reproduction(
    parent: "Agent",
    config: "SimulationConfig",
    rng,
    make_offspring: OffspringFactory,
) -> Optional["Agent"]:
    """
    Try to produce one offspring from ``parent``.

    Returns None when the parent cannot pay, when the attractiveness roll
    fails, or when the offspring cannot form a viable agent. The
    cost is only charged once the offspring exists. Resetting the parent's
    replication timer is left to the caller, whatever the outcome.
    """
    cost = config.resources.reproduction_cost
    if parent.resources < cost:
        return None

    chance = success_probability(parent.traits["attractiveness"],
                                 config.reproduction.attractiveness_weight)
    if rng.random() > chance:
        return None

    traits = create_offspring_traits(
        parent.traits,
        config.mutation.per_property_probability,
        config.mutation.mutation_strength,
        config.genetics.inheritance_variation,
        rng,
    )
    try:
        offspring = make_offspring(traits, parent)
        offspring.validate_state(config.resources.max_agent_resources)
    except ValidationError as exc:
        logger.warning("Offspring of %s not viable: %s", parent.id, exc)
        return None

    parent.consume_resources(cost)
    return offspring
