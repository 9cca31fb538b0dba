from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from ..errors import ValidationError
from ..genetics.traits import TRAIT_BOUNDS, TraitVector, clamp_traits, symmetric, validate_traits
from ..genetics.variants import variant_key

if TYPE_CHECKING:
    from ..core.config import SimulationConfig

logger = logging.getLogger(__name__)

# replicationRate may be driven to 0 by the interaction rules after birth
MIN_TIMER_RATE = 1e-3
MAX_CONSUMPTION_RATE = TRAIT_BOUNDS["consumptionRate"][1]


class Agent:
    __slots__ = (
        "id",
        "traits",
        "age",
        "resources",
        "replication_timer",
        "variant_id",
        "alive",
        "max_age",
        "parent_id",
        "birth_generation",
    )

    def __init__(
        self,
        agent_id: str,
        traits: Mapping[str, float],
        resources: float,
        *,
        max_age: float,
        precision: int = 2,
        parent_id: Optional[str] = None,
        birth_generation: int = 0,
    ) -> None:
        validate_traits(traits)
        if traits["replicationRate"] <= 0:
            raise ValidationError(f"replicationRate must be > 0, got {traits['replicationRate']}")
        if not isinstance(resources, (int, float)) or not math.isfinite(resources) or resources < 0:
            raise ValidationError(f"invalid initial resource amount: {resources!r}")
        if not math.isfinite(max_age) or max_age <= 0:
            raise ValidationError(f"invalid max age: {max_age!r}")

        self.id = agent_id
        self.traits: TraitVector = clamp_traits(traits)
        self.variant_id = variant_key(self.traits, precision)
        self.age = 0
        self.resources = float(resources)
        self.replication_timer = 1.0 / self.traits["replicationRate"]
        self.alive = True
        self.max_age = float(max_age)
        self.parent_id = parent_id
        self.birth_generation = birth_generation

    @classmethod
    def spawn(
        cls,
        agent_id: str,
        traits: Mapping[str, float],
        config: "SimulationConfig",
        *,
        parent_id: Optional[str] = None,
        birth_generation: int = 0,
    ) -> "Agent":
        """Create an agent with the configured initial resources and lifespan."""
        validate_traits(traits)
        traits = clamp_traits(traits)
        life = config.lifespan
        if life.death_model == "flat":
            max_age = float(life.base_lifespan)
        else:
            max_age = life.consumption_constant / traits["consumptionRate"]
        return cls(
            agent_id,
            traits,
            config.resources.initial_amount,
            max_age=max_age,
            precision=config.variants.grouping_precision,
            parent_id=parent_id,
            birth_generation=birth_generation,
        )

    # ----- lifecycle -----
    def tick(self) -> None:
        self.age += 1
        self.replication_timer = max(0.0, self.replication_timer - 1.0)

    def reset_replication_timer(self, spawn_randomness: float, rng) -> None:
        rate = max(self.traits["replicationRate"], MIN_TIMER_RATE)
        self.replication_timer = (1.0 / rate) * (1.0 + symmetric(rng) * spawn_randomness)

    def can_reproduce(self, reproduction_cost: float) -> bool:
        return self.replication_timer <= 0 and self.resources >= reproduction_cost

    def should_die_from_age(self) -> bool:
        return self.age >= self.max_age

    def should_die_from_starvation(self, threshold: float = 0.0) -> bool:
        return self.resources <= threshold

    # ----- resources -----
    def absorb_resources(self, amount: float) -> float:
        """Keep the utilised fraction; the full amount leaves the shared pool."""
        self.resources += amount * self.traits["utilizationFactor"]
        return amount

    def consume_resources(self, amount: float) -> float:
        taken = min(self.resources, max(0.0, amount))
        self.resources = max(0.0, self.resources - amount)
        return taken

    def effective_strength(self, consumption_bonus: float = 0.5) -> float:
        return self.traits["strength"] + consumption_bonus * (
            self.traits["consumptionRate"] / MAX_CONSUMPTION_RATE
        )

    # ----- validation -----
    def validate_state(self, max_resources: Optional[float] = None) -> None:
        """
        Bring numeric state back in range.

        Out-of-range traits and resources are clamped with a warning; any
        non-finite resource, age or timer value is unrecoverable.
        """
        for label, value in (
            ("resources", self.resources),
            ("age", self.age),
            ("replication_timer", self.replication_timer),
        ):
            if not math.isfinite(value):
                raise ValidationError(f"agent {self.id} has non-finite {label}: {value}")
        if self.age < 0:
            raise ValidationError(f"agent {self.id} has negative age: {self.age}")
        self.traits = clamp_traits(self.traits, warn=True)
        if self.resources < 0:
            logger.warning("Agent %s resources %s clamped to 0", self.id, self.resources)
            self.resources = 0.0
        if max_resources is not None and self.resources > max_resources:
            logger.warning("Agent %s resources capped at %s", self.id, max_resources)
            self.resources = float(max_resources)
        if self.replication_timer < 0:
            self.replication_timer = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "birth_generation": self.birth_generation,
            "variant_id": self.variant_id,
            "age": self.age,
            "max_age": self.max_age,
            "resources": self.resources,
            "replication_timer": self.replication_timer,
            "alive": self.alive,
            "traits": dict(self.traits),
        }

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, age={self.age}, resources={self.resources:.2f}, alive={self.alive})"
