from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)

    ingredient_id = Column(
        Integer,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    transaction_type = Column(String, nullable=False, index=True)  # 'purchase' | 'usage' | 'waste' | 'adjustment'
    quantity = Column(Numeric(12, 3), nullable=False)
    cost_per_unit = Column(Numeric(12, 4), nullable=True)
    total_cost = Column(Numeric(14, 4), nullable=True)
    currency = Column(String(3), nullable=True)
    reference = Column(Text, nullable=True)  # invoice number, order id, ...
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    ingredient = relationship("Ingredient")
