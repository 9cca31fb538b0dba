"""
Trait bounds table and helpers for keeping trait vectors valid.

A trait vector is a plain ``Dict[str, float]`` keyed by the canonical trait
names below. Every helper here returns new values rather than mutating.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Tuple

from ..errors import ValidationError

logger = logging.getLogger(__name__)

TraitVector = Dict[str, float]

# name -> (min, max)
TRAIT_BOUNDS: Dict[str, Tuple[float, float]] = {
    "replicationRate": (0.0, 1.0),
    "attractiveness": (0.0, 1.0),
    "strength": (0.0, 1.0),
    "mutationChance": (0.0, 1.0),
    "intelligence": (0.0, 1.0),
    "resourceEfficiency": (0.0, 1.0),
    "consumptionRate": (1.0, 10.0),
    "utilizationFactor": (0.1, 1.0),
}

DEFAULT_VALUES: Dict[str, float] = {
    "replicationRate": 0.5,
    "attractiveness": 0.5,
    "strength": 0.5,
    "mutationChance": 0.1,
    "intelligence": 0.5,
    "resourceEfficiency": 0.5,
    "consumptionRate": 3.0,
    "utilizationFactor": 0.5,
}

TRAIT_NAMES: Tuple[str, ...] = tuple(TRAIT_BOUNDS)


def bounds_of(name: str) -> Tuple[float, float]:
    try:
        return TRAIT_BOUNDS[name]
    except KeyError:
        raise ValidationError(f"unknown trait: {name}") from None


def is_trait_valid(name: str, value: float) -> bool:
    if name not in TRAIT_BOUNDS or not math.isfinite(value):
        return False
    lo, hi = TRAIT_BOUNDS[name]
    return lo <= value <= hi


def clamp_trait(name: str, value: float, *, warn: bool = False) -> float:
    """
    Clamp ``value`` into the hard bounds of ``name``.

    Non-finite values cannot be clamped meaningfully and fall back to the
    trait default. ``warn`` logs clamping, which the engine uses when
    validating state rather than during routine arithmetic.
    """
    lo, hi = bounds_of(name)
    value = float(value)
    if not math.isfinite(value):
        logger.error("Non-finite value %r for trait %s, using default", value, name)
        return DEFAULT_VALUES[name]
    clamped = min(max(value, lo), hi)
    if warn and clamped != value:
        logger.warning("Trait %s value %s clamped to %s", name, value, clamped)
    return clamped


def clamp_traits(traits: Mapping[str, float], *, warn: bool = False) -> TraitVector:
    return {name: clamp_trait(name, traits[name], warn=warn) for name in TRAIT_NAMES}


def validate_traits(traits: Mapping[str, float]) -> None:
    """Raise `ValidationError` unless every canonical trait is present and finite."""
    if traits is None:
        raise ValidationError("trait vector is required")
    missing = [name for name in TRAIT_NAMES if name not in traits]
    if missing:
        raise ValidationError(f"trait vector missing {', '.join(missing)}")
    for name in TRAIT_NAMES:
        value = traits[name]
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"trait {name} is not a finite number: {value!r}")


def uniform(rng, low: float, high: float) -> float:
    """U(low, high) drawn through ``rng.random()`` only."""
    return low + float(rng.random()) * (high - low)


def symmetric(rng) -> float:
    """U(-1, 1) drawn through ``rng.random()`` only."""
    return float(rng.random()) * 2.0 - 1.0
