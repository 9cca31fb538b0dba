# SPDX-License-Identifier: MIT
"""
Trait table, profile factory, interaction rules, mutation, reproduction and
variant bookkeeping.
"""

from .interactions import apply_interactions  # noqa: F401
from .mutation import apply_inheritance_variation, create_offspring_traits, mutate_traits  # noqa: F401
from .profile import create_genetic_profile  # noqa: F401
from .reproduction import attempt_reproduction, success_probability  # noqa: F401
from .traits import DEFAULT_VALUES, TRAIT_BOUNDS, TRAIT_NAMES, clamp_trait  # noqa: F401
from .variants import VariantRegistry, variant_key  # noqa: F401
