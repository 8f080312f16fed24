from datetime import datetime
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from .database import Base


class Recipe(Base):
    """Recipe model - servings, waste buffer and pricing targets; lines live in recipe_components"""
    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("servings > 0", name="ck_recipes_servings_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    servings = Column(Numeric(10, 3), nullable=False, default=1)

    waste_buffer_percent = Column(Numeric(5, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    target_cost_percentage = Column(Numeric(5, 2), nullable=True)
    selling_price = Column(Numeric(12, 2), nullable=True)

    # What one batch yields when used as a sub-recipe (e.g. 2 l of stock)
    yield_amount = Column(Numeric(12, 3), nullable=True)
    yield_unit = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    components = relationship(
        "RecipeComponent",
        back_populates="recipe",
        foreign_keys="RecipeComponent.recipe_id",
        cascade="all, delete-orphan",
        order_by="RecipeComponent.sort_order",
    )
