"""
Seating capacity model - confirmable attendance per day
"""
from sqlalchemy import Column, Integer, String, Date, DateTime
from datetime import datetime

from canteen.database import Base
from canteen.utils.helpers import generate_id


class SeatingCapacity(Base):
    __tablename__ = "seating_capacity"

    id = Column(String, primary_key=True, default=generate_id)
    date = Column(Date, nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow)
