"""
Constants for the Bakery Batch Planner application.

This module defines all system-wide constants including:
- Application metadata
- Production stage codes and their canonical order
- Default batch type configuration (seeded on first run)
- Statuses that put orders and stock tasks in planning scope
- Cake geometry and frosting estimation defaults
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Bakery Batch Planner"
APP_VERSION = "0.1.0"
APP_DIRECTORY_NAME = "BatchPlanner"
DATABASE_FILENAME = "batch_planner.db"

# ============================================================================
# Production Stages
# ============================================================================

STAGE_BAKE = "BAKE"
STAGE_PREP = "PREP"
STAGE_STACK = "STACK"
STAGE_ASSEMBLE = "ASSEMBLE"
STAGE_DECORATE = "DECORATE"

# Canonical order used when a stage has no registry entry
STAGE_ORDER: List[str] = [
    STAGE_BAKE,
    STAGE_PREP,
    "FROST",
    STAGE_STACK,
    STAGE_ASSEMBLE,
    STAGE_DECORATE,
]

# Lead time applied to stages missing from the registry
DEFAULT_LEAD_TIME_DAYS = 1

# Stage codes: upper-case letters, digits and underscores (e.g. COLOR_BC)
STAGE_CODE_PATTERN = r"^[A-Z][A-Z0-9_]{0,31}$"

# Frosting recipes containing this word are bought in, not made
FONDANT_KEYWORD = "fondant"

DEFAULT_BATCH_TYPES: List[Dict] = [
    {
        "code": STAGE_BAKE,
        "name": "Bake Cakes",
        "description": "Baking cake batter into layers",
        "depends_on": [],
        "lead_time_days": 3,
        "sort_order": 1,
        "is_batchable": True,
        "color": "orange",
    },
    {
        "code": STAGE_PREP,
        "name": "Make Frosting",
        "description": "Preparing buttercream, fillings, and frostings",
        "depends_on": [],
        "lead_time_days": 2,
        "sort_order": 2,
        "is_batchable": True,
        "color": "amber",
    },
    {
        "code": STAGE_STACK,
        "name": "Stack & Fill",
        "description": "Compile layers, fill with frosting, crumb coat, and top coat",
        "depends_on": [STAGE_BAKE, STAGE_PREP],
        "lead_time_days": 2,
        "sort_order": 3,
        "is_batchable": True,
        "color": "indigo",
    },
    {
        "code": STAGE_ASSEMBLE,
        "name": "Assemble",
        "description": "Final assembly - attach tiers, structural support, finishing touches",
        "depends_on": [STAGE_STACK],
        "lead_time_days": 1,
        "sort_order": 4,
        "is_batchable": True,
        "color": "purple",
    },
    {
        "code": STAGE_DECORATE,
        "name": "Decorate",
        "description": "Final decoration, piping, flowers, toppers",
        "depends_on": [STAGE_ASSEMBLE],
        "lead_time_days": 1,
        "sort_order": 5,
        "is_batchable": False,  # Usually order-specific
        "color": "teal",
    },
]

# ============================================================================
# Planning Scope
# ============================================================================

ORDER_STATUSES_IN_SCOPE: List[str] = ["confirmed", "in_progress"]
STOCK_TASK_STATUSES_IN_SCOPE: List[str] = ["pending", "in_progress"]

# ============================================================================
# Cake Geometry (round tiers)
# ============================================================================

DEFAULT_TIER_DIAMETER_INCHES = 8
DEFAULT_TIER_HEIGHT_INCHES = 4
DEFAULT_CAKE_LAYERS = 3
DEFAULT_FROSTING_COMPLEXITY = 2

# Outside coat: ~1 oz per 8 sq in, scaled by complexity
OUTSIDE_FROSTING_OZ_PER_SQ_IN = 1 / 8
# Internal filling layers use a thinner coat: ~0.5 oz per 8 sq in
FILLING_OZ_PER_SQ_IN = 0.5 / 8

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 3
