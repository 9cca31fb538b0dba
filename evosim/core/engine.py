# SPDX-License-Identifier: MIT
"""
Simulation engine: owns one run's population, resource pool and random
source, drives the generation pipeline and exposes the control surface.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

import numpy as np

from ..errors import FatalPipelineError, TransientAgentError
from ..genetics.interactions import apply_interactions
from ..genetics.reproduction import attempt_reproduction
from ..sim.agent import Agent
from ..sim.survival import SurvivalPolicy, Verdict, is_natural_death
from .config import MAX_SPEED, MIN_SPEED, SimulationConfig
from .population import Population
from .resources import ResourcePool
from .statistics import StatisticsSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EngineState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class AgentOutcome(Generic[T]):
    agent: Agent
    value: Optional[T] = None
    error: Optional[TransientAgentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GenerationReport:
    generation: int
    advanced: bool = True
    births: int = 0
    deaths: int = 0
    failures: int = 0
    extinct: bool = False


class GenerationWorker(threading.Thread):
    """Calls back into the engine every ``interval`` seconds until stopped."""

    def __init__(self, engine: "SimulationEngine", interval: float) -> None:
        super().__init__(name="evosim-generation", daemon=True)
        self._engine = engine
        self._interval = interval
        self._stop_flag = threading.Event()

    def run(self) -> None:
        while not self._stop_flag.wait(self._interval):
            if not self._engine._scheduled_step(self):
                break

    def request_stop(self) -> None:
        self._stop_flag.set()


class SimulationEngine:
    def __init__(self, config: Optional[SimulationConfig] = None, rng=None) -> None:
        self.config = (config if config is not None else SimulationConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.simulation.seed)
        self.population = Population(self.config, self.rng)
        self.pool = ResourcePool(self.config.resources.capacity, self.config.resources.replenish_rate)
        self.survival = SurvivalPolicy(self.config, self.rng)

        self._lock = threading.RLock()
        self._state = EngineState.STOPPED
        self._speed = self.config.simulation.steps_per_second
        self._worker: Optional[GenerationWorker] = None
        self._extinct = False
        self.last_error: Optional[BaseException] = None

        self.births_this_generation = 0
        self.deaths_this_generation = 0

    # ----- properties -----
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def extinct(self) -> bool:
        return self._extinct

    @property
    def registry(self):
        return self.population.registry

    # ----- control surface -----
    def start(self) -> bool:
        with self._lock:
            if self._state is EngineState.RUNNING:
                logger.warning("Simulation is already running")
                return False
            self._launch_worker()
            self._state = EngineState.RUNNING
        logger.info("Simulation started at %d steps per second", self._speed)
        return True

    def pause(self) -> bool:
        with self._lock:
            if self._state is not EngineState.RUNNING:
                logger.warning("Simulation is not running")
                return False
            worker = self._halt()
        self._join(worker)
        logger.info("Simulation paused")
        return True

    def resume(self) -> bool:
        return self.start()

    def stop(self) -> bool:
        with self._lock:
            worker = self._detach_worker()
            self._state = EngineState.STOPPED
        self._join(worker)
        logger.info("Simulation stopped")
        return True

    def set_speed(self, steps_per_second: Any) -> bool:
        try:
            requested = float(steps_per_second)
        except (TypeError, ValueError):
            logger.warning("Invalid speed value %r", steps_per_second)
            return False
        if math.isnan(requested):
            logger.warning("Invalid speed value %r", steps_per_second)
            return False
        clamped = int(max(MIN_SPEED, min(MAX_SPEED, requested)))
        if clamped != requested:
            logger.warning("Speed %s clamped to %d", steps_per_second, clamped)

        old_worker = None
        with self._lock:
            self._speed = clamped
            if self._state is EngineState.RUNNING:
                old_worker = self._detach_worker()
                self._launch_worker()
        self._join(old_worker)
        logger.info("Simulation speed set to %d steps per second", clamped)
        return True

    def reset(self) -> bool:
        """Stop and start over with a fresh population, registry and pool."""
        self.stop()
        with self._lock:
            self.population.reset()
            self.pool.reset()
            self._extinct = False
            self.last_error = None
            self.births_this_generation = 0
            self.deaths_this_generation = 0
        logger.info("Simulation reset with %d agents", self.population.size())
        return True

    def get_statistics(self) -> StatisticsSnapshot:
        return self.population.statistics

    def get_history(self, generations: Optional[int] = None) -> List[StatisticsSnapshot]:
        return self.population.get_history(generations)

    def run(self, generations: int) -> List[GenerationReport]:
        """Drive the pipeline synchronously until ``generations`` steps or extinction."""
        reports = []
        for _ in range(generations):
            report = self.process_generation()
            reports.append(report)
            if report.extinct:
                break
        return reports

    # ----- generation pipeline -----
    def process_generation(self) -> GenerationReport:
        with self._lock:
            self.births_this_generation = 0
            self.deaths_this_generation = 0
            try:
                return self._run_generation()
            except Exception as exc:
                generation = self.population.generation
                logger.error("Critical error in generation %d: %s", generation, exc, exc_info=True)
                self._halt()
                error = exc if isinstance(exc, FatalPipelineError) else FatalPipelineError(generation, exc)
                self.last_error = error
                if error is exc:
                    raise
                raise error from exc

    def _run_generation(self) -> GenerationReport:
        population = self.population
        living = population.living()
        if not living:
            self._mark_extinct()
            return GenerationReport(generation=population.generation, advanced=False, extinct=True)

        cfg = self.config
        failures = self._run_phase("interactions", living, self._interact)

        self.pool.replenish()
        living = [agent for agent in living if agent.alive]
        self.pool.distribute(living, cfg.resources.consumption_strength_bonus)
        failures += self._run_phase("resources", living, self._settle_resources)
        failures += self._run_phase("consumption", living, self._consume)

        births, reproduction_failures = self._reproduction_phase(living)
        failures += reproduction_failures

        deaths = self._removal_phase("natural death", self._natural_death)
        deaths += self._removal_phase("survival", self._survives)
        population.evict_dead()
        deaths += failures

        self.births_this_generation = births
        self.deaths_this_generation = deaths
        population.generation += 1
        population.update_statistics(births, deaths)
        population.record_history()

        if cfg.simulation.log_generations:
            self._log_generation_summary()

        extinct = population.size() == 0
        if extinct:
            self._mark_extinct()
        return GenerationReport(
            generation=population.generation,
            births=births,
            deaths=deaths,
            failures=failures,
            extinct=extinct,
        )

    def _attempt(self, phase: str, agent: Agent, action: Callable[[Agent], T]) -> AgentOutcome[T]:
        try:
            return AgentOutcome(agent, value=action(agent))
        except Exception as exc:
            return AgentOutcome(agent, error=TransientAgentError(agent.id, phase, exc))

    def _isolate(self, outcome: AgentOutcome) -> None:
        logger.error("Removing agent: %s", outcome.error)
        outcome.agent.alive = False

    def _run_phase(self, phase: str, agents: List[Agent], action: Callable[[Agent], Any]) -> int:
        outcomes = [self._attempt(phase, agent, action) for agent in agents if agent.alive]
        failed = [outcome for outcome in outcomes if not outcome.ok]
        for outcome in failed:
            self._isolate(outcome)
        return len(failed)

    def _removal_phase(self, phase: str, keep: Callable[[Agent], bool]) -> int:
        removed = 0
        for agent in self.population.living():
            outcome = self._attempt(phase, agent, keep)
            if not outcome.ok:
                self._isolate(outcome)
                removed += 1
            elif not outcome.value:
                agent.alive = False
                removed += 1
        return removed

    def _reproduction_phase(self, agents: List[Agent]):
        max_population = self.config.simulation.max_population
        size = self.population.size()
        births = failures = 0
        for agent in agents:
            if size >= max_population:
                break
            if not agent.alive:
                continue
            outcome = self._attempt("reproduction", agent, self._reproduce)
            if not outcome.ok:
                self._isolate(outcome)
                failures += 1
                size -= 1
                continue
            if outcome.value is not None:
                self.population.add(outcome.value)
                births += 1
                size += 1
        return births, failures

    # ----- per-agent actions -----
    def _interact(self, agent: Agent) -> None:
        agent.traits = apply_interactions(agent.traits, self.config.interactions)
        agent.validate_state(self.config.resources.max_agent_resources)

    def _settle_resources(self, agent: Agent) -> None:
        agent.validate_state(self.config.resources.max_agent_resources)

    def _consume(self, agent: Agent) -> float:
        res = self.config.resources
        if res.consumption_model == "flat":
            amount = res.consumption_amount
        else:
            amount = agent.traits["consumptionRate"] * res.consumption_scale
        return agent.consume_resources(amount)

    def _reproduce(self, agent: Agent) -> Optional[Agent]:
        agent.tick()
        if not agent.can_reproduce(self.config.resources.reproduction_cost):
            return None
        offspring = attempt_reproduction(agent, self.config, self.rng, self.population.make_offspring)
        # a failed attempt still spends the cycle
        agent.reset_replication_timer(self.config.reproduction.spawn_randomness, self.rng)
        return offspring

    def _natural_death(self, agent: Agent) -> bool:
        return not is_natural_death(agent)

    def _survives(self, agent: Agent) -> bool:
        return self.survival.evaluate(agent) is Verdict.SURVIVES

    # ----- extinction & scheduling -----
    def _mark_extinct(self) -> None:
        if not self._extinct:
            self._extinct = True
            self._on_extinction()
        self._halt()

    def _on_extinction(self) -> None:
        logger.error("Extinction event: population died out at generation %d", self.population.generation)

    def _log_generation_summary(self) -> None:
        stats = self.population.statistics
        logger.info(
            "Gen %d: pop=%d variants=%d births=%d deaths=%d avg_resources=%.1f",
            stats.generation,
            stats.total_population,
            stats.unique_variants,
            stats.births,
            stats.deaths,
            stats.average_resources,
        )

    def _launch_worker(self) -> None:
        self._worker = GenerationWorker(self, 1.0 / self._speed)
        self._worker.start()

    def _detach_worker(self) -> Optional[GenerationWorker]:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.request_stop()
        return worker

    def _halt(self) -> Optional[GenerationWorker]:
        """Running -> Paused without joining; callers join outside the lock."""
        if self._state is EngineState.RUNNING:
            self._state = EngineState.PAUSED
        return self._detach_worker()

    def _join(self, worker: Optional[GenerationWorker]) -> None:
        if worker is not None and worker is not threading.current_thread():
            worker.join()

    def _scheduled_step(self, worker: GenerationWorker) -> bool:
        with self._lock:
            if worker is not self._worker:
                return False
            try:
                self.process_generation()
            except FatalPipelineError:
                return False
            return self._state is EngineState.RUNNING
