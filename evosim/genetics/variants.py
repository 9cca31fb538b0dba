from __future__ import annotations

import math
from typing import Dict, Iterator, Mapping, Optional, Tuple

from ..errors import ValidationError
from .traits import TraitVector


def variant_key(traits: Mapping[str, float], precision: int = 2) -> str:
    """Rounded-value key: traits sorted by name, fixed decimals, joined by '-'."""
    parts = []
    for name in sorted(traits):
        value = traits[name]
        if not math.isfinite(value):
            raise ValidationError(f"cannot key non-finite trait {name}: {value}")
        # +0.0 folds -0.0 into 0.0 so both round to the same key
        parts.append(f"{round(value, precision) + 0.0:.{precision}f}")
    return "-".join(parts)


class VariantRegistry:
    """variant key -> representative trait vector. Grows until `reset`."""

    def __init__(self) -> None:
        self._variants: Dict[str, TraitVector] = {}

    def register(self, key: str, traits: Mapping[str, float]) -> bool:
        if key in self._variants:
            return False
        self._variants[key] = dict(traits)
        return True

    def get(self, key: str) -> Optional[TraitVector]:
        found = self._variants.get(key)
        return dict(found) if found is not None else None

    def items(self) -> Iterator[Tuple[str, TraitVector]]:
        for key, traits in self._variants.items():
            yield key, dict(traits)

    def reset(self) -> None:
        self._variants.clear()

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, key: object) -> bool:
        return key in self._variants
