"""
Per-generation statistics snapshots and helpers for analysing their history.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

from ..genetics.traits import TRAIT_NAMES


@dataclass
class StatisticsSnapshot:
    generation: int = 0
    total_population: int = 0
    population_by_variant: Dict[str, int] = field(default_factory=dict)
    unique_variants: int = 0
    average_traits: Dict[str, float] = field(default_factory=dict)
    average_resources: float = 0.0
    average_age: float = 0.0
    births: int = 0
    deaths: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def average_traits(agents: Sequence) -> Dict[str, float]:
    if not agents:
        return {name: 0.0 for name in TRAIT_NAMES}
    matrix = np.array([[agent.traits[name] for name in TRAIT_NAMES] for agent in agents], dtype=float)
    return dict(zip(TRAIT_NAMES, matrix.mean(axis=0).tolist()))


def population_by_variant(agents: Iterable) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for agent in agents:
        counts[agent.variant_id] = counts.get(agent.variant_id, 0) + 1
    return counts


def build_snapshot(agents: Sequence, generation: int, births: int = 0, deaths: int = 0) -> StatisticsSnapshot:
    by_variant = population_by_variant(agents)
    if agents:
        mean_resources = float(np.mean([agent.resources for agent in agents]))
        mean_age = float(np.mean([agent.age for agent in agents]))
    else:
        mean_resources = mean_age = 0.0
    return StatisticsSnapshot(
        generation=generation,
        total_population=len(agents),
        population_by_variant=by_variant,
        unique_variants=len(by_variant),
        average_traits=average_traits(agents),
        average_resources=mean_resources,
        average_age=mean_age,
        births=births,
        deaths=deaths,
    )


def track_variants(agents: Iterable) -> Dict[str, Dict[str, Any]]:
    """variant id -> count and the traits of its first living member."""
    variants: Dict[str, Dict[str, Any]] = {}
    for agent in agents:
        entry = variants.setdefault(
            agent.variant_id,
            {"variant_id": agent.variant_id, "count": 0, "traits": dict(agent.traits)},
        )
        entry["count"] += 1
    return variants


def metric_series(history: Iterable[StatisticsSnapshot], metric: str) -> List[Dict[str, Any]]:
    """
    Extract ``{"generation", "value"}`` points for graphing.

    ``metric`` is a dotted path such as ``"total_population"`` or
    ``"average_traits.strength"``; missing values read as 0.
    """
    keys = metric.split(".")
    series = []
    for snapshot in history:
        value: Any = snapshot.to_dict()
        for key in keys:
            value = value.get(key) if isinstance(value, dict) else None
            if value is None:
                break
        series.append({"generation": snapshot.generation, "value": 0 if value is None else value})
    return series


def variant_trend(history: Iterable[StatisticsSnapshot], variant_id: str) -> List[Dict[str, int]]:
    return [
        {"generation": s.generation, "population": s.population_by_variant.get(variant_id, 0)}
        for s in history
    ]


def history_frame(history: Iterable[StatisticsSnapshot]) -> pd.DataFrame:
    """One row per generation with trait averages flattened to ``avg_<trait>`` columns."""
    rows = []
    for snapshot in history:
        row = {
            "generation": snapshot.generation,
            "population": snapshot.total_population,
            "unique_variants": snapshot.unique_variants,
            "births": snapshot.births,
            "deaths": snapshot.deaths,
            "average_resources": snapshot.average_resources,
            "average_age": snapshot.average_age,
        }
        for name in TRAIT_NAMES:
            row[f"avg_{name}"] = snapshot.average_traits.get(name, 0.0)
        rows.append(row)
    columns = ["generation", "population", "unique_variants", "births", "deaths",
               "average_resources", "average_age"] + [f"avg_{name}" for name in TRAIT_NAMES]
    return pd.DataFrame(rows, columns=columns)
