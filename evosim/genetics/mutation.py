"""
Offspring trait derivation: per-trait mutation followed by inheritance variation.
"""

from __future__ import annotations

from typing import Mapping

from .traits import TRAIT_NAMES, TraitVector, clamp_trait, symmetric


def mutate_traits(traits: Mapping[str, float], probability: float, strength: float, rng) -> TraitVector:
    """Each trait independently mutates with ``probability`` by U(-1,1) * ``strength``."""
    mutated = dict(traits)
    for name in TRAIT_NAMES:
        if rng.random() < probability:
            mutated[name] = clamp_trait(name, mutated[name] + symmetric(rng) * strength)
    return mutated


def apply_inheritance_variation(traits: Mapping[str, float], variation: float, rng) -> TraitVector:
    """Imperfect copying: every trait gets U(-1,1) * ``variation``."""
    varied = dict(traits)
    for name in TRAIT_NAMES:
        varied[name] = clamp_trait(name, varied[name] + symmetric(rng) * variation)
    return varied


def create_offspring_traits(
    parent: Mapping[str, float],
    probability: float,
    strength: float,
    variation: float,
    rng,
) -> TraitVector:
    return apply_inheritance_variation(mutate_traits(parent, probability, strength, rng), variation, rng)
