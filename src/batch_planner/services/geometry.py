"""
Cake geometry and frosting estimation helpers.

Converts a tier size descriptor into a diameter, and a diameter into the
surface area to cover and the ounces of buttercream that takes. Tiers are
treated as round with three cake layers, which gives two internal filling
layers in addition to the outside coat.
"""

import math
import re
from typing import Optional

from batch_planner.utils.constants import (
    DEFAULT_CAKE_LAYERS,
    DEFAULT_FROSTING_COMPLEXITY,
    DEFAULT_TIER_DIAMETER_INCHES,
    DEFAULT_TIER_HEIGHT_INCHES,
    FILLING_OZ_PER_SQ_IN,
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    OUTSIDE_FROSTING_OZ_PER_SQ_IN,
)

_DIAMETER_RE = re.compile(r"(\d+)\s*inch", re.IGNORECASE)


def parse_diameter(size_name: Optional[str]) -> int:
    """Parse the diameter in inches from a tier size name.

    Examples:
        >>> parse_diameter("8 inch round")
        8
        >>> parse_diameter("Large")
        8
    """
    if not size_name:
        return DEFAULT_TIER_DIAMETER_INCHES
    match = _DIAMETER_RE.search(size_name)
    return int(match.group(1)) if match else DEFAULT_TIER_DIAMETER_INCHES


def normalize_complexity(complexity: Optional[int]) -> int:
    """Clamp a frosting complexity score into 1-3; None becomes medium (2)."""
    if complexity is None or complexity == 0:
        return DEFAULT_FROSTING_COMPLEXITY
    return max(MIN_COMPLEXITY, min(MAX_COMPLEXITY, int(complexity)))


def calculate_surface_area(
    diameter_inches: float,
    height_inches: float = DEFAULT_TIER_HEIGHT_INCHES,
    cake_layers: int = DEFAULT_CAKE_LAYERS,
) -> int:
    """Surface area to cover for a round tier, in square inches.

    Includes the top, the sides, and the (cake_layers - 1) internal filling
    layers. Rounded to the nearest square inch.

    Example:
        >>> calculate_surface_area(8)
        251
    """
    radius = diameter_inches / 2
    top_area = math.pi * radius * radius
    side_area = math.pi * diameter_inches * height_inches
    internal_area = (cake_layers - 1) * top_area
    return round(top_area + side_area + internal_area)


def estimate_frosting_oz(
    diameter_inches: float,
    height_inches: float = DEFAULT_TIER_HEIGHT_INCHES,
    complexity: int = DEFAULT_FROSTING_COMPLEXITY,
    cake_layers: int = DEFAULT_CAKE_LAYERS,
) -> float:
    """Estimate buttercream ounces for one tier.

    The outside coat scales with complexity (1=light, 2=medium, 3=heavy);
    internal filling layers take a thinner, fixed coat. Rounded to 0.1 oz.

    Example:
        >>> estimate_frosting_oz(8, complexity=2)
        44.0
    """
    radius = diameter_inches / 2
    top_area = math.pi * radius * radius
    side_area = math.pi * diameter_inches * height_inches

    outside_oz = (top_area + side_area) * OUTSIDE_FROSTING_OZ_PER_SQ_IN * complexity
    filling_oz = (cake_layers - 1) * top_area * FILLING_OZ_PER_SQ_IN

    return round((outside_oz + filling_oz) * 10) / 10
