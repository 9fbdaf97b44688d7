"""
Recipe and TierSize reference models.

Only the fields batch planning reads are modelled here: a recipe's name and
role, and a tier size's name and serving count.
"""

from sqlalchemy import Column, Enum as SQLEnum, Integer, String

from .base import BaseModel
from .enums import RecipeRole


class Recipe(BaseModel):
    """
    A producible recipe (batter, filling, frosting or finish).

    Attributes:
        name: Recipe name; batches are keyed by it
        recipe_type: Role the recipe plays (nullable for legacy rows)
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    recipe_type = Column(SQLEnum(RecipeRole), nullable=True)


class TierSize(BaseModel):
    """
    A cake tier size such as "8 inch round".

    Attributes:
        name: Size descriptor; the diameter is parsed from it
        servings: Servings one tier of this size yields
    """

    __tablename__ = "tier_sizes"

    name = Column(String(100), nullable=False, unique=True)
    servings = Column(Integer, nullable=False, default=0)
