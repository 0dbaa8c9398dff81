"""
Meal selection model - an employee's opt-in/opt-out for a meal service
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from datetime import datetime
from enum import Enum

from canteen.database import Base
from canteen.utils.helpers import generate_id


class SelectionStatus(str, Enum):
    OPT_IN = "opt-in"
    OPT_OUT = "opt-out"


class MealSelection(Base):
    """One live record per (user_id, menu_id); the store upserts instead of inserting twice"""
    __tablename__ = "meal_selections"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    menu_id = Column(String, ForeignKey("menus.id"), nullable=False, index=True)
    status = Column(SQLEnum(SelectionStatus, native_enum=False), nullable=False)
    reason = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow)
