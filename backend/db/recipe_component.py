from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from .database import Base


class RecipeComponent(Base):
    __tablename__ = "recipe_components"
    __table_args__ = (
        # exactly one of ingredient_id / sub_recipe_id
        CheckConstraint(
            "(ingredient_id IS NULL) <> (sub_recipe_id IS NULL)",
            name="ck_recipe_components_one_reference",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=True, index=True)
    sub_recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=True, index=True)

    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String, nullable=False)  # 'g', 'ml', 'piece', ...
    sort_order = Column(Integer, nullable=True)

    recipe = relationship("Recipe", back_populates="components", foreign_keys=[recipe_id])
    ingredient = relationship("Ingredient")
    sub_recipe = relationship("Recipe", foreign_keys=[sub_recipe_id])
