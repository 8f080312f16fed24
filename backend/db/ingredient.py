from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text

from .database import Base


class Ingredient(Base):
    """Ingredient model - price record and stock level of one purchasable item"""
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    category = Column(String, nullable=True)

    # Price per `unit_of_measure`, kept as a weighted average by the ledger
    unit_of_measure = Column(String, nullable=False)  # 'g', 'kg', 'ml', 'piece', ...
    price_per_unit = Column(Numeric(12, 4), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")

    # May be negative: usage is never blocked by missing stock
    current_stock = Column(Numeric(12, 3), nullable=False, default=0)
    min_stock_level = Column(Numeric(12, 3), nullable=False, default=0)

    last_updated = Column(DateTime, nullable=True, default=datetime.utcnow, onupdate=datetime.utcnow)
    notes = Column(Text, nullable=True)

