"""
Feedback model - an employee's rating of a meal service
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from datetime import datetime

from canteen.database import Base
from canteen.utils.helpers import generate_id


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    menu_id = Column(String, ForeignKey("menus.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)  # re-stamped on update
