"""
User model - canteen employees and administrators
"""
from sqlalchemy import Column, String, Enum as SQLEnum
from enum import Enum

from canteen.database import Base
from canteen.utils.helpers import generate_id


class UserRole(str, Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(SQLEnum(UserRole, native_enum=False), nullable=False, default=UserRole.EMPLOYEE)
    password_hash = Column(String, nullable=False)
    department = Column(String, nullable=False, default="")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
