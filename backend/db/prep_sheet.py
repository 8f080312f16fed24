from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Integer, String, Text

from .database import Base


class PrepSheet(Base):
    """Saved prep sheet; recipes and aggregated items are stored as JSON snapshots"""
    __tablename__ = "prep_sheets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    shift = Column(String, nullable=True)  # 'morning' | 'evening'
    prep_cook_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    recipes_json = Column(JSON, nullable=False, default=list)
    items_json = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
