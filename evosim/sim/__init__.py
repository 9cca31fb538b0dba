# SPDX-License-Identifier: MIT
"""
Agent entity and the survival policy applied to it.
"""

from .agent import Agent  # noqa: F401
from .survival import SurvivalPolicy, Verdict  # noqa: F401

__all__ = [
    "Agent",
    "SurvivalPolicy",
    "Verdict",
]
