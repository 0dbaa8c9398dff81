"""
Inventory model - kitchen stock levels
"""
from sqlalchemy import Column, String, Text, DateTime, Float
from datetime import datetime

from canteen.database import Base
from canteen.utils.helpers import generate_id


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False, default=0)
    unit = Column(String, nullable=False)
    threshold = Column(Float, nullable=False, default=0)  # reorder level
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < self.threshold
