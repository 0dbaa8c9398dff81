"""
Notification model - announcements to employees and/or admins
"""
from sqlalchemy import Column, String, Text, DateTime, JSON, Enum as SQLEnum
from datetime import datetime
from enum import Enum

from canteen.database import Base
from canteen.utils.helpers import generate_id


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class NotificationScope(str, Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"
    ALL = "all"


class Notification(Base):
    """Append-only except for read_by"""
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=generate_id)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType, native_enum=False), nullable=False, default=NotificationType.INFO)
    scope = Column(SQLEnum(NotificationScope, native_enum=False), nullable=False, default=NotificationScope.ALL)
    read_by = Column(JSON, nullable=False, default=list)  # user ids
    created_at = Column(DateTime, default=datetime.utcnow)
