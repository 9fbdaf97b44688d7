"""
Demand units for batch planning.

A demand unit is one atomic piece of production need: a cake tier from a
confirmed order, or a stock production task for a pre-made inventory item.
Both are immutable snapshots built by the collaborator layer
(demand_service) before aggregation starts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from batch_planner.models.enums import RecipeRole
from batch_planner.services import geometry
from batch_planner.utils.constants import FONDANT_KEYWORD, STAGE_BAKE, STAGE_PREP
from batch_planner.utils.datetime_utils import to_iso_datetime

# Demand keys are namespaced so tier 5 and stock task 5 never collide
DemandKey = Tuple[str, int]
TIER_KEY = "tier"
STOCK_KEY = "stock"


def clean_recipe_name(name: Optional[str]) -> Optional[str]:
    """Strip a recipe name, mapping blank strings to None."""
    if name is None:
        return None
    name = name.strip()
    return name or None


def is_purchased_recipe(name: Optional[str]) -> bool:
    """Fondant is bought in buckets, not made, so it never needs a PREP batch."""
    return bool(name) and FONDANT_KEYWORD in name.lower()


def to_decimal(value: Any) -> Decimal:
    """Exact quantity as Decimal; None counts as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class TierDemand:
    """One cake tier needing production.

    Attributes:
        tier_id: CakeTier ID
        order_id: Owning CakeOrder ID
        customer_name: Customer display name
        due: When the cake is due (event date plus pickup/delivery time)
        is_delivery: Delivery (True) or pickup (False)
        size_name: Tier size descriptor, e.g. "8 inch round"
        servings: Servings for this tier
        batter_recipe: Batter recipe name (BAKE)
        filling_recipe: Filling recipe name (PREP fallback)
        frosting_recipe: Frosting recipe name (PREP)
        complexity: Frosting complexity, 1=light, 2=medium, 3=heavy
        diameter_inches: Parsed tier diameter
        surface_area_sq_in: Area to frost including internal layers
        frosting_oz: Estimated buttercream for the tier
        assigned_stages: Stage codes this tier is already committed to
    """

    tier_id: int
    order_id: int
    customer_name: str
    due: datetime
    is_delivery: bool = False
    size_name: str = ""
    servings: int = 0
    batter_recipe: Optional[str] = None
    filling_recipe: Optional[str] = None
    frosting_recipe: Optional[str] = None
    complexity: int = 2
    diameter_inches: int = 8
    surface_area_sq_in: float = 0.0
    frosting_oz: float = 0.0
    assigned_stages: FrozenSet[str] = field(default_factory=frozenset)
    tier_index: int = 1
    finish_type: Optional[str] = None
    occasion: Optional[str] = None
    theme: Optional[str] = None

    @classmethod
    def from_size(cls, *, size_name: Optional[str], complexity: Optional[int] = None, **kwargs) -> "TierDemand":
        """Build a tier demand, estimating geometry from the size descriptor."""
        complexity = geometry.normalize_complexity(complexity)
        diameter = geometry.parse_diameter(size_name)
        return cls(
            size_name=size_name or "Unknown size",
            complexity=complexity,
            diameter_inches=diameter,
            surface_area_sq_in=geometry.calculate_surface_area(diameter),
            frosting_oz=geometry.estimate_frosting_oz(diameter, complexity=complexity),
            **kwargs,
        )

    @property
    def key(self) -> DemandKey:
        return (TIER_KEY, self.tier_id)

    def stage_recipes(self) -> List[Tuple[str, str, RecipeRole]]:
        """Stages this tier could be batched into, with the recipe for each.

        BAKE uses the batter. PREP uses the frosting, or the filling when
        there is no frosting; a fondant PREP recipe is bought in, so the
        tier is left out of PREP. Stages whose recipe is missing are left out.
        """
        candidates: List[Tuple[str, str, RecipeRole]] = []

        batter = clean_recipe_name(self.batter_recipe)
        if batter:
            candidates.append((STAGE_BAKE, batter, RecipeRole.BATTER))

        frosting = clean_recipe_name(self.frosting_recipe)
        filling = clean_recipe_name(self.filling_recipe)
        prep_recipe = frosting or filling
        if prep_recipe and not is_purchased_recipe(prep_recipe):
            role = RecipeRole.FROSTING if frosting else RecipeRole.FILLING
            candidates.append((STAGE_PREP, prep_recipe, role))

        return candidates

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier_id": self.tier_id,
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "tier_index": self.tier_index,
            "due_date": to_iso_datetime(self.due),
            "is_delivery": self.is_delivery,
            "size_name": self.size_name,
            "servings": self.servings,
            "batter_name": self.batter_recipe,
            "filling_name": self.filling_recipe,
            "frosting_name": self.frosting_recipe,
            "finish_type": self.finish_type,
            "occasion": self.occasion,
            "theme": self.theme,
            "complexity": self.complexity,
            "diameter_inches": self.diameter_inches,
            "surface_area_sq_in": self.surface_area_sq_in,
            "frosting_oz": self.frosting_oz,
        }


@dataclass(frozen=True)
class StockRecipeLink:
    """A recipe consumed by a stocked item, per unit of that item."""

    recipe_name: str
    recipe_category: Optional[str]
    quantity_per_unit: Decimal

    def __post_init__(self):
        object.__setattr__(self, "quantity_per_unit", to_decimal(self.quantity_per_unit))

    @property
    def role(self) -> RecipeRole:
        return RecipeRole.from_category(self.recipe_category)

    @property
    def stage_code(self) -> str:
        return STAGE_BAKE if self.role is RecipeRole.BATTER else STAGE_PREP


@dataclass(frozen=True)
class StockDemand:
    """A stock production task needing one or more recipes.

    Attributes:
        stock_task_id: StockProductionTask ID
        inventory_item_id: Item being restocked
        item_name: Item display name
        target_quantity: Units to produce
        scheduled_date: When the stock is needed (optional)
        status: Task status value
        recipes: Recipe links with quantity per unit
    """

    stock_task_id: int
    inventory_item_id: int
    item_name: str
    target_quantity: int
    scheduled_date: Optional[datetime] = None
    status: str = "pending"
    assigned_to: Optional[str] = None
    recipes: Tuple[StockRecipeLink, ...] = ()

    @property
    def key(self) -> DemandKey:
        return (STOCK_KEY, self.stock_task_id)

    def recipe_quantity(self, link: StockRecipeLink) -> Decimal:
        """Total recipe mass needed for this task: per-unit quantity x target."""
        return link.quantity_per_unit * self.target_quantity


DemandUnit = Union[TierDemand, StockDemand]
