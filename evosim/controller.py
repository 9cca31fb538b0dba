from __future__ import annotations

from typing import Any, Dict, Optional

from evosim.core.engine import SimulationEngine
from evosim.core.statistics import StatisticsSnapshot
from evosim.errors import EvolutionError


class SimulationController:
    """UI-agnostic facade returning plain payloads for a dashboard or HTTP layer."""

    def __init__(self, engine: SimulationEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> SimulationEngine:
        return self._engine

    def start(self) -> Dict[str, Any]:
        return self._control(self._engine.start)

    def pause(self) -> Dict[str, Any]:
        return self._control(self._engine.pause)

    def resume(self) -> Dict[str, Any]:
        return self._control(self._engine.resume)

    def stop(self) -> Dict[str, Any]:
        return self._control(self._engine.stop)

    def reset(self) -> Dict[str, Any]:
        return self._control(self._engine.reset)

    def set_speed(self, steps_per_second: Any) -> Dict[str, Any]:
        payload = self._control(lambda: self._engine.set_speed(steps_per_second))
        payload["speed"] = self._engine.speed
        return payload

    def step(self) -> Dict[str, Any]:
        try:
            report = self._engine.process_generation()
        except EvolutionError as exc:
            return {"success": False, "error": str(exc), **self.status()}
        return {"success": True, "advanced": report.advanced, **self.status()}

    def status(self) -> Dict[str, Any]:
        engine = self._engine
        return {
            "state": engine.state.value,
            "speed": engine.speed,
            "extinct": engine.extinct,
            "generation": engine.population.generation,
            "resources": engine.pool.stats(),
        }

    def statistics(self) -> Dict[str, Any]:
        return _snapshot_payload(self._engine.get_statistics())

    def history(self, generations: Optional[int] = None) -> Dict[str, Any]:
        snapshots = self._engine.get_history(generations)
        return {"history": [_snapshot_payload(s) for s in snapshots]}

    def _control(self, action) -> Dict[str, Any]:
        try:
            success = bool(action())
        except EvolutionError as exc:
            return {"success": False, "error": str(exc), **self.status()}
        return {"success": success, **self.status()}


def _snapshot_payload(snapshot: StatisticsSnapshot) -> Dict[str, Any]:
    return {
        "generation": snapshot.generation,
        "totalPopulation": snapshot.total_population,
        "populationByVariant": dict(snapshot.population_by_variant),
        "uniqueVariants": snapshot.unique_variants,
        "averageTraits": dict(snapshot.average_traits),
        "averageResources": snapshot.average_resources,
        "averageAge": snapshot.average_age,
        "births": snapshot.births,
        "deaths": snapshot.deaths,
        "timestamp": snapshot.timestamp,
    }
