"""
Trait interaction rules.

Applied once per step to every living agent, in a fixed order:
attractiveness update, replication penalty, mutation bonus.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from .traits import TraitVector, clamp_trait

if TYPE_CHECKING:
    from ..core.config import InteractionSection

MAX_MUTATION_BONUS = 0.2


def attractiveness_modifier(strength: float, intelligence: float, strength_weight: float,
                            intelligence_weight: float) -> float:
    return strength * strength_weight + intelligence * intelligence_weight


def replication_penalty(strength: float, replication_rate: float, threshold: float) -> float:
    # linear ramp toward zero below the threshold
    if strength < threshold:
        return replication_rate * (strength / threshold)
    return replication_rate


def mutation_bonus(intelligence: float, mutation_chance: float, threshold: float) -> float:
    if intelligence > threshold:
        excess = (intelligence - threshold) / (1.0 - threshold)
        return mutation_chance + excess * MAX_MUTATION_BONUS
    return mutation_chance


def apply_interactions(traits: Mapping[str, float], cfg: "InteractionSection") -> TraitVector:
    """Return a new trait vector with the three rules applied and clamped."""
    result = dict(traits)
    result["attractiveness"] = clamp_trait(
        "attractiveness",
        result["attractiveness"]
        + attractiveness_modifier(
            result["strength"],
            result["intelligence"],
            cfg.attractiveness_from_strength,
            cfg.attractiveness_from_intelligence,
        ),
    )
    result["replicationRate"] = clamp_trait(
        "replicationRate",
        replication_penalty(result["strength"], result["replicationRate"],
                            cfg.replication_penalty_threshold),
    )
    result["mutationChance"] = clamp_trait(
        "mutationChance",
        mutation_bonus(result["intelligence"], result["mutationChance"],
                       cfg.mutation_bonus_threshold),
    )
    return result
