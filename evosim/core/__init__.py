# SPDX-License-Identifier: MIT
"""
Simulation core: configuration, engine, population, resource pool and statistics.
"""

from .config import (
    DEFAULT_CONFIG,
    GeneticsSection,
    InteractionSection,
    LifespanSection,
    MutationSection,
    ReproductionSection,
    ResourceSection,
    SimulationConfig,
    SimulationSection,
    SurvivalSection,
    TraitRange,
    VariantSection,
)  # noqa: F401
from .engine import EngineState, GenerationReport, SimulationEngine  # noqa: F401
from .population import Population  # noqa: F401
from .resources import DistributionResult, ResourcePool  # noqa: F401
from .statistics import StatisticsSnapshot  # noqa: F401
