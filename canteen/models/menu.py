"""
Menu models - one meal service per date and meal type, with its dishes
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum

from canteen.database import Base
from canteen.utils.helpers import generate_id


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    SNACKS = "snacks"


MEAL_TYPE_LABEL = {
    MealType.BREAKFAST: "Breakfast",
    MealType.LUNCH: "Lunch",
    MealType.SNACKS: "Evening Snacks",
}


class Menu(Base):
    """A meal service. (date, meal_type) is unique by convention only."""
    __tablename__ = "menus"

    id = Column(String, primary_key=True, default=generate_id)
    date = Column(Date, nullable=False, index=True)
    meal_type = Column(SQLEnum(MealType, native_enum=False), nullable=False)
    special_notes = Column(Text, nullable=True)

    # Nutritional info for the whole service
    calories = Column(Float, nullable=False, default=0)
    protein = Column(Float, nullable=False, default=0)
    carbs = Column(Float, nullable=False, default=0)
    fats = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    dishes = relationship(
        "Dish",
        back_populates="menu",
        order_by="Dish.position",
        cascade="all, delete-orphan",
    )

    @property
    def nutritional_info(self) -> dict:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fats": self.fats,
        }


class Dish(Base):
    """Dish served as part of a menu, kept in display order"""
    __tablename__ = "dishes"

    id = Column(String, primary_key=True, default=generate_id)
    menu_id = Column(String, ForeignKey("menus.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    ingredients = Column(JSON, nullable=False, default=list)
    allergens = Column(JSON, nullable=False, default=list)

    # Relationships
    menu = relationship("Menu", back_populates="dishes")
