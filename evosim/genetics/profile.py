"""
Genetic profile factory: builds the trait vector for a brand-new agent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional

from ..errors import ConfigurationError
from .traits import DEFAULT_VALUES, TRAIT_BOUNDS, TRAIT_NAMES, TraitVector, clamp_trait, uniform

if TYPE_CHECKING:
    from ..core.config import TraitRange


def create_genetic_profile(
    mode: str,
    properties: Optional[Mapping[str, "TraitRange"]] = None,
    rng=None,
) -> TraitVector:
    """
    Produce a full trait vector.

    ``fixed`` takes each trait's configured default (or the system default).
    ``randomized`` draws uniformly from the configured [min, max] (or the hard
    bounds). Either way the result is clamped to the hard bounds.
    """
    properties = properties or {}
    if mode not in ("fixed", "randomized"):
        raise ConfigurationError("simulation.initial_mode", f"unsupported mode {mode!r}")
    if mode == "randomized" and rng is None:
        raise ValueError("randomized profiles need a random source")

    traits: TraitVector = {}
    for name in TRAIT_NAMES:
        trait_range = properties.get(name)
        if mode == "fixed":
            if trait_range is not None and trait_range.default is not None:
                value = trait_range.default
            else:
                value = DEFAULT_VALUES[name]
        else:
            if trait_range is not None and trait_range.min is not None and trait_range.max is not None:
                low, high = trait_range.min, trait_range.max
            else:
                low, high = TRAIT_BOUNDS[name]
            if low > high:
                raise ConfigurationError(
                    f"genetics.properties.{name}", f"min ({low}) > max ({high})"
                )
            value = uniform(rng, low, high)
        traits[name] = clamp_trait(name, value)
    return traits
