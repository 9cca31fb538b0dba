from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Sequence

if TYPE_CHECKING:
    from ..sim.agent import Agent


@dataclass
class DistributionResult:
    distributed: float = 0.0
    absorbed: float = 0.0
    remaining: float = 0.0
    recipients: int = 0


class ResourcePool:
    """
    The single shared resource store of a simulation run.

    Allocation is one pass over the agents in iteration order, each taking
    its strength-proportional share of what is *currently* left, so later
    agents can end up with less than a fair share once the pool runs dry.
    """

    def __init__(self, capacity: float, replenish_rate: float, initial_amount: Optional[float] = None) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if replenish_rate < 0:
            raise ValueError(f"replenish_rate must be non-negative, got {replenish_rate}")
        self.capacity = float(capacity)
        self.replenish_rate = float(replenish_rate)
        start = self.capacity if initial_amount is None else initial_amount
        self.current_amount = float(min(max(0.0, start), self.capacity))

    def replenish(self) -> float:
        self.current_amount = min(self.capacity, self.current_amount + self.replenish_rate)
        return self.current_amount

    def distribute(self, agents: Sequence["Agent"], consumption_bonus: float = 0.5) -> DistributionResult:
        strengths = [agent.effective_strength(consumption_bonus) for agent in agents]
        total_strength = sum(strengths)
        result = DistributionResult(remaining=self.current_amount)
        if total_strength <= 0 or self.current_amount <= 0:
            return result

        for agent, strength in zip(agents, strengths):
            if self.current_amount <= 0:
                break
            share = (strength / total_strength) * self.current_amount
            amount = min(share, self.current_amount)
            absorbed = agent.absorb_resources(amount)
            self.current_amount = max(0.0, self.current_amount - absorbed)
            result.distributed += amount
            result.absorbed += absorbed
            result.recipients += 1

        result.remaining = self.current_amount
        return result

    def reset(self) -> None:
        self.current_amount = self.capacity

    def stats(self) -> Dict[str, float]:
        return {
            "current": self.current_amount,
            "capacity": self.capacity,
            "replenish_rate": self.replenish_rate,
            "utilization": 1.0 - self.current_amount / self.capacity,
        }
