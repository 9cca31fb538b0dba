# SPDX-License-Identifier: MIT
"""
Evolutionary population simulator.

`evosim.core` hosts the engine, population, resource pool, configuration and
statistics; `evosim.genetics` the trait table and the inheritance rules;
`evosim.sim` the agent entity and survival policy. `evosim.main` is a
headless runner and `evosim.controller` adapts an engine for a presentation
layer.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
