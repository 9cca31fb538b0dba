"""
Survival policy: starvation, deterministic natural death and the weighted
stochastic fitness test.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Mapping

from ..genetics.traits import symmetric

if TYPE_CHECKING:
    from ..core.config import SimulationConfig
    from .agent import Agent

GENETIC_SHARE = 0.7
RESOURCE_SHARE = 0.3


class Verdict(Enum):
    SURVIVES = "survives"
    STARVED = "starved"
    UNFIT = "unfit"


def genetic_score(traits: Mapping[str, float], strength_weight: float, intelligence_weight: float) -> float:
    return strength_weight * traits["strength"] + intelligence_weight * traits["intelligence"]


def survival_score(
    traits: Mapping[str, float],
    resources: float,
    *,
    strength_weight: float,
    intelligence_weight: float,
    reference_amount: float,
) -> float:
    resource_score = min(1.0, resources / reference_amount)
    score = (
        GENETIC_SHARE * genetic_score(traits, strength_weight, intelligence_weight)
        + RESOURCE_SHARE * resource_score
    )
    return max(0.0, min(1.0, score))


def determine_survival(score: float, threshold: float, random_factor: float, rng) -> bool:
    return score + symmetric(rng) * random_factor >= threshold


class SurvivalPolicy:
    def __init__(self, config: "SimulationConfig", rng) -> None:
        self._survival = config.survival
        self._starvation_threshold = config.resources.starvation_threshold
        self._reference_amount = config.survival_reference_amount
        self._rng = rng

    def score(self, agent: "Agent") -> float:
        return survival_score(
            agent.traits,
            agent.resources,
            strength_weight=self._survival.strength_weight,
            intelligence_weight=self._survival.intelligence_weight,
            reference_amount=self._reference_amount,
        )

    def evaluate(self, agent: "Agent") -> Verdict:
        # starvation bypasses the stochastic test entirely
        if agent.should_die_from_starvation(self._starvation_threshold):
            return Verdict.STARVED
        survives = determine_survival(
            self.score(agent), self._survival.threshold, self._survival.random_factor, self._rng
        )
        return Verdict.SURVIVES if survives else Verdict.UNFIT


def is_natural_death(agent: "Agent") -> bool:
    return agent.should_die_from_age()
