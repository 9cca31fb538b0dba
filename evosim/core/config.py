from __future__ import annotations

import math
from dataclasses import dataclass, asdict, field, fields
from typing import Any, Dict, Iterable, Optional, Tuple

from ..errors import ConfigurationError
from ..genetics.traits import TRAIT_BOUNDS

INITIAL_MODES = ("randomized", "fixed")
CONSUMPTION_MODELS = ("per_agent", "flat")
DEATH_MODELS = ("consumption", "flat")
MIN_SPEED, MAX_SPEED = 1, 1000


@dataclass
class TraitRange:
    min: Optional[float] = None
    max: Optional[float] = None
    default: Optional[float] = None


@dataclass
class SimulationSection:
    initial_population: int = 100
    initial_mode: str = "randomized"
    steps_per_second: int = 10
    max_population: int = 1000
    history_limit: Optional[int] = None  # None keeps every snapshot
    log_generations: bool = False
    seed: Optional[int] = None


@dataclass
class GeneticsSection:
    properties: Dict[str, TraitRange] = field(default_factory=dict)
    inheritance_variation: float = 0.05


@dataclass
class ResourceSection:
    capacity: float = 1000.0
    replenish_rate: float = 1000.0
    initial_amount: float = 100.0
    reproduction_cost: float = 50.0
    starvation_threshold: float = 0.0
    consumption_model: str = "per_agent"
    consumption_amount: float = 5.0    # flat model: drained from every agent
    consumption_scale: float = 1.0     # per-agent model: consumptionRate * scale
    max_agent_resources: float = 10000.0
    consumption_strength_bonus: float = 0.5


@dataclass
class MutationSection:
    per_property_probability: float = 0.15
    mutation_strength: float = 0.1


@dataclass
class ReproductionSection:
    attractiveness_weight: float = 0.7
    spawn_randomness: float = 0.0


@dataclass
class InteractionSection:
    attractiveness_from_strength: float = 0.4
    attractiveness_from_intelligence: float = 0.3
    replication_penalty_threshold: float = 0.3
    mutation_bonus_threshold: float = 0.7


@dataclass
class SurvivalSection:
    threshold: float = 0.3
    random_factor: float = 0.1
    strength_weight: float = 0.6
    intelligence_weight: float = 0.4
    reference_amount: Optional[float] = None  # falls back to resources.initial_amount


@dataclass
class LifespanSection:
    death_model: str = "consumption"
    consumption_constant: float = 300.0  # max_age = constant / consumptionRate
    base_lifespan: int = 100             # flat model


@dataclass
class VariantSection:
    grouping_precision: int = 2


@dataclass
class SimulationConfig:
    simulation: SimulationSection = field(default_factory=SimulationSection)
    genetics: GeneticsSection = field(default_factory=GeneticsSection)
    resources: ResourceSection = field(default_factory=ResourceSection)
    mutation: MutationSection = field(default_factory=MutationSection)
    reproduction: ReproductionSection = field(default_factory=ReproductionSection)
    interactions: InteractionSection = field(default_factory=InteractionSection)
    survival: SurvivalSection = field(default_factory=SurvivalSection)
    lifespan: LifespanSection = field(default_factory=LifespanSection)
    variants: VariantSection = field(default_factory=VariantSection)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SimulationConfig":
        config = cls()
        config.update_from_mapping(data)
        config.validate()
        return config

    def update_from_mapping(self, data: Dict[str, Any]) -> None:
        """Merge settings from a nested mapping into the config."""
        for section_name, section_values in data.items():
            if section_name not in self._section_names():
                raise ConfigurationError(section_name, "unknown configuration section")
            section = getattr(self, section_name)
            if not isinstance(section_values, dict):
                raise ConfigurationError(section_name, "section must be a mapping")
            for key, value in section_values.items():
                if not hasattr(section, key):
                    raise ConfigurationError(f"{section_name}.{key}", "unknown setting")
                if section_name == "genetics" and key == "properties":
                    value = _trait_ranges(value)
                setattr(section, key, value)

    def iter_sections(self) -> Iterable[Tuple[str, Any]]:
        for name in self._section_names():
            yield name, getattr(self, name)

    @classmethod
    def _section_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @property
    def survival_reference_amount(self) -> float:
        ref = self.survival.reference_amount
        return self.resources.initial_amount if ref is None else ref

    def validate(self) -> "SimulationConfig":
        """Type- and range-check every field; raise on the first violation."""
        sim = self.simulation
        _int_in("simulation.initial_population", sim.initial_population, 1)
        _choice("simulation.initial_mode", sim.initial_mode, INITIAL_MODES)
        _int_in("simulation.steps_per_second", sim.steps_per_second, MIN_SPEED, MAX_SPEED)
        _int_in("simulation.max_population", sim.max_population, sim.initial_population)
        if sim.history_limit is not None:
            _int_in("simulation.history_limit", sim.history_limit, 1)
        if not isinstance(sim.log_generations, bool):
            raise ConfigurationError("simulation.log_generations", "must be a boolean")
        if sim.seed is not None:
            _int_in("simulation.seed", sim.seed, 0)

        gen = self.genetics
        for name, trait_range in gen.properties.items():
            _validate_trait_range(name, trait_range)
        _unit("genetics.inheritance_variation", gen.inheritance_variation)

        res = self.resources
        _number("resources.capacity", res.capacity, 0.0, exclusive_low=True)
        _number("resources.replenish_rate", res.replenish_rate, 0.0)
        _number("resources.initial_amount", res.initial_amount, 0.0)
        _number("resources.reproduction_cost", res.reproduction_cost, 0.0)
        _number("resources.starvation_threshold", res.starvation_threshold, 0.0)
        _choice("resources.consumption_model", res.consumption_model, CONSUMPTION_MODELS)
        _number("resources.consumption_amount", res.consumption_amount, 0.0)
        _number("resources.consumption_scale", res.consumption_scale, 0.0)
        _number("resources.max_agent_resources", res.max_agent_resources, res.initial_amount)
        _number("resources.consumption_strength_bonus", res.consumption_strength_bonus, 0.0)

        _unit("mutation.per_property_probability", self.mutation.per_property_probability)
        _unit("mutation.mutation_strength", self.mutation.mutation_strength)
        _unit("reproduction.attractiveness_weight", self.reproduction.attractiveness_weight)
        _unit("reproduction.spawn_randomness", self.reproduction.spawn_randomness)

        inter = self.interactions
        _unit("interactions.attractiveness_from_strength", inter.attractiveness_from_strength)
        _unit("interactions.attractiveness_from_intelligence", inter.attractiveness_from_intelligence)
        _number("interactions.replication_penalty_threshold",
                inter.replication_penalty_threshold, 0.0, 1.0, exclusive_low=True)
        _number("interactions.mutation_bonus_threshold",
                inter.mutation_bonus_threshold, 0.0, 1.0, exclusive_high=True)

        surv = self.survival
        _unit("survival.threshold", surv.threshold)
        _unit("survival.random_factor", surv.random_factor)
        _unit("survival.strength_weight", surv.strength_weight)
        _unit("survival.intelligence_weight", surv.intelligence_weight)
        if surv.reference_amount is not None:
            _number("survival.reference_amount", surv.reference_amount, 0.0, exclusive_low=True)
        elif res.initial_amount <= 0:
            raise ConfigurationError(
                "survival.reference_amount",
                "required when resources.initial_amount is 0",
            )

        life = self.lifespan
        _choice("lifespan.death_model", life.death_model, DEATH_MODELS)
        _number("lifespan.consumption_constant", life.consumption_constant, 0.0, exclusive_low=True)
        _int_in("lifespan.base_lifespan", life.base_lifespan, 1)

        _int_in("variants.grouping_precision", self.variants.grouping_precision, 0, 10)
        return self


DEFAULT_CONFIG = SimulationConfig()


def _trait_ranges(value: Any) -> Dict[str, TraitRange]:
    if not isinstance(value, dict):
        raise ConfigurationError("genetics.properties", "must be a mapping of trait ranges")
    ranges: Dict[str, TraitRange] = {}
    for name, entry in value.items():
        if isinstance(entry, TraitRange):
            ranges[name] = entry
        elif isinstance(entry, dict):
            unknown = set(entry) - {"min", "max", "default"}
            if unknown:
                raise ConfigurationError(
                    f"genetics.properties.{name}", f"unknown keys {sorted(unknown)}"
                )
            ranges[name] = TraitRange(**entry)
        else:
            raise ConfigurationError(f"genetics.properties.{name}", "must be a mapping")
    return ranges


def _validate_trait_range(name: str, trait_range: TraitRange) -> None:
    path = f"genetics.properties.{name}"
    if name not in TRAIT_BOUNDS:
        raise ConfigurationError(path, "unknown trait")
    lo, hi = TRAIT_BOUNDS[name]
    for attr in ("min", "max", "default"):
        value = getattr(trait_range, attr)
        if value is not None:
            _number(f"{path}.{attr}", value, lo, hi)
    if (trait_range.min is None) != (trait_range.max is None):
        raise ConfigurationError(path, "min and max must be given together")
    if trait_range.min is not None and trait_range.min > trait_range.max:
        raise ConfigurationError(path, f"min ({trait_range.min}) > max ({trait_range.max})")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number(
    path: str,
    value: Any,
    low: Optional[float] = None,
    high: Optional[float] = None,
    *,
    exclusive_low: bool = False,
    exclusive_high: bool = False,
) -> None:
    if not _is_number(value) or not math.isfinite(value):
        raise ConfigurationError(path, f"expected a finite number, got {value!r}")
    if low is not None and (value < low or (exclusive_low and value == low)):
        op = ">" if exclusive_low else ">="
        raise ConfigurationError(path, f"must be {op} {low}, got {value}")
    if high is not None and (value > high or (exclusive_high and value == high)):
        op = "<" if exclusive_high else "<="
        raise ConfigurationError(path, f"must be {op} {high}, got {value}")


def _unit(path: str, value: Any) -> None:
    _number(path, value, 0.0, 1.0)


def _int_in(path: str, value: Any, low: Optional[int] = None, high: Optional[int] = None) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(path, f"expected an integer, got {value!r}")
    _number(path, value, low, high)


def _choice(path: str, value: Any, options: Tuple[str, ...]) -> None:
    if value not in options:
        raise ConfigurationError(path, f"must be one of {', '.join(options)}, got {value!r}")
