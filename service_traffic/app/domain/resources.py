"""
Upstream resources the proxy is allowed to forward.
"""

from typing import FrozenSet, Tuple


_FAMILY_VARIANTS = {
    "Cameras": ("All", "WithinBounds", "ByRegion", "ByJourney"),
    "RoadEvents": ("All", "WithinBounds", "ByRegion", "ByJourney"),
    "VmsSigns": ("All", "WithinBounds", "ByRegion", "ByJourney"),
    "TimSigns": ("All", "WithinBounds", "ByRegion", "ByJourney"),
    "Regions": ("All", "WithinBounds"),
    "Ways": ("All", "WithinBounds"),
    "Journeys": ("All", "WithinBounds"),
}

ALLOWED_RESOURCES: FrozenSet[str] = frozenset(
    f"find{family}{variant}"
    for family, variants in _FAMILY_VARIANTS.items()
    for variant in variants
)


def is_allowed(name: str) -> bool:
    """Return True when ``name`` is a whitelisted upstream resource."""
    return name in ALLOWED_RESOURCES


def allowed_resources() -> Tuple[str, ...]:
    return tuple(sorted(ALLOWED_RESOURCES))
