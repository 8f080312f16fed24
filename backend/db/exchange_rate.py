from datetime import date

from sqlalchemy import Column, Date, Integer, Numeric, String, Text, UniqueConstraint

from .database import Base


class ExchangeRate(Base):
    """Manually entered rate; the most recent effective_date per pair wins"""
    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", "effective_date", name="ux_exchange_rates_pair_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    from_currency = Column(String(3), nullable=False, index=True)
    to_currency = Column(String(3), nullable=False, index=True)
    rate = Column(Numeric(18, 8), nullable=False)
    effective_date = Column(Date, nullable=False, default=date.today)
    source = Column(Text, nullable=True, default="manual")
