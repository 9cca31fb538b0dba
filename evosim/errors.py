"""
Error taxonomy shared by the simulation core.

Extinction is intentionally absent: it is a terminal simulation state exposed
through `SimulationEngine.extinct`, not an exception.
"""

from __future__ import annotations

from typing import Optional


class EvolutionError(Exception):
    """Base class for every error raised by the simulator."""


class ConfigurationError(EvolutionError, ValueError):
    """A configuration field is missing or out of range. Raised at construction."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ValidationError(EvolutionError, ValueError):
    """An agent's numeric state is non-finite or otherwise unusable."""


class TransientAgentError(EvolutionError):
    """A per-agent operation failed during a pipeline phase."""

    def __init__(self, agent_id: str, phase: str, cause: BaseException) -> None:
        super().__init__(f"agent {agent_id} failed during {phase}: {cause}")
        self.agent_id = agent_id
        self.phase = phase
        self.cause = cause


class FatalPipelineError(EvolutionError, RuntimeError):
    """Failure outside per-agent isolation; the engine pauses and re-raises."""

    def __init__(self, generation: int, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"generation {generation} aborted{detail}")
        self.generation = generation
        self.cause = cause
