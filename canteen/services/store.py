"""
Canteen entity store.

The single owner of the ORM tables: every router reads and writes through a
CanteenStore bound to the request's session. Each mutation commits before
returning, so later reads see it immediately. Create and update are separate
operations; the ``upsert_*`` methods only pick between them.
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from canteen.database import get_db
from canteen.models.user import User, UserRole
from canteen.models.menu import Menu, Dish, MealType
from canteen.models.selection import MealSelection, SelectionStatus
from canteen.models.feedback import Feedback
from canteen.models.inventory import InventoryItem
from canteen.models.notification import Notification, NotificationScope
from canteen.models.seating import SeatingCapacity
from canteen.utils.validators import validate_rating

logger = logging.getLogger(__name__)

NUTRITION_FIELDS = ("calories", "protein", "carbs", "fats")


class StoreError(Exception):
    """Base class for store failures"""


class NotFoundError(StoreError):
    """Referenced record does not exist"""


class InvalidInputError(StoreError):
    """Value rejected by a store-level check"""


class CanteenStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.EMPLOYEE,
        department: str = "",
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            department=department,
        )
        self.session.add(user)
        await self.session.commit()
        return user

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    async def get_menus(
        self,
        include_past: bool = False,
        on_date: Optional[date] = None,
        meal_type: Optional[MealType] = None,
    ) -> List[Menu]:
        """Menus from today on (or all), ordered by date then meal type"""
        query = select(Menu).options(selectinload(Menu.dishes))
        if not include_past:
            query = query.where(Menu.date >= date.today())
        if on_date:
            query = query.where(Menu.date == on_date)
        if meal_type:
            query = query.where(Menu.meal_type == meal_type)

        result = await self.session.execute(query)
        menus = result.scalars().all()
        return sorted(menus, key=lambda m: (m.date, m.meal_type.value))

    async def get_menu(self, menu_id: str) -> Optional[Menu]:
        result = await self.session.execute(
            select(Menu).options(selectinload(Menu.dishes)).where(Menu.id == menu_id)
        )
        return result.scalar_one_or_none()

    async def _menu_exists(self, menu_id: str) -> bool:
        result = await self.session.execute(select(Menu.id).where(Menu.id == menu_id))
        return result.scalar_one_or_none() is not None

    @staticmethod
    def _apply_menu_fields(menu: Menu, data: Dict[str, Any]) -> None:
        for key in ("date", "meal_type", "special_notes"):
            if key in data:
                setattr(menu, key, data[key])

        nutrition = data.get("nutritional_info")
        if nutrition is not None:
            for key in NUTRITION_FIELDS:
                setattr(menu, key, nutrition.get(key, 0))

        dishes = data.get("dishes")
        if dishes is not None:
            # Replaced as a whole; orphaned dishes are deleted by the cascade
            menu.dishes = [
                Dish(
                    position=position,
                    name=dish["name"],
                    description=dish.get("description"),
                    ingredients=list(dish.get("ingredients") or []),
                    allergens=list(dish.get("allergens") or []),
                )
                for position, dish in enumerate(dishes)
            ]

    async def create_menu(self, data: Dict[str, Any]) -> Menu:
        now = datetime.utcnow()
        menu = Menu(created_at=now, updated_at=now)
        self._apply_menu_fields(menu, data)
        self.session.add(menu)
        await self.session.commit()
        logger.info(f"Created {menu.meal_type.value} menu for {menu.date} (id={menu.id})")
        return menu

    async def update_menu(self, menu_id: str, data: Dict[str, Any]) -> Menu:
        menu = await self.get_menu(menu_id)
        if not menu:
            raise NotFoundError("Menu not found")

        self._apply_menu_fields(menu, data)
        menu.updated_at = datetime.utcnow()
        await self.session.commit()
        logger.info(f"Updated menu {menu_id}")
        return menu

    async def upsert_menu(self, data: Dict[str, Any], menu_id: Optional[str] = None) -> Menu:
        if menu_id:
            return await self.update_menu(menu_id, data)
        return await self.create_menu(data)

    async def delete_menu(self, menu_id: str) -> bool:
        """Delete a menu with its selections and feedback. False if it was already gone."""
        menu = await self.get_menu(menu_id)
        if not menu:
            return False

        await self.session.execute(delete(MealSelection).where(MealSelection.menu_id == menu_id))
        await self.session.execute(delete(Feedback).where(Feedback.menu_id == menu_id))
        await self.session.delete(menu)
        await self.session.commit()
        logger.info(f"Deleted menu {menu_id} with its selections and feedback")
        return True

    # ------------------------------------------------------------------
    # Selections
    # ------------------------------------------------------------------

    async def upsert_selection(
        self,
        user_id: str,
        menu_id: str,
        status: SelectionStatus,
        reason: Optional[str] = None,
    ) -> MealSelection:
        if not await self._menu_exists(menu_id):
            raise NotFoundError("Menu not found")

        result = await self.session.execute(
            select(MealSelection).where(
                MealSelection.user_id == user_id,
                MealSelection.menu_id == menu_id,
            )
        )
        selection = result.scalars().first()
        now = datetime.utcnow()

        if selection:
            selection.status = status
            selection.reason = reason
            selection.updated_at = now
        else:
            selection = MealSelection(
                user_id=user_id,
                menu_id=menu_id,
                status=status,
                reason=reason,
                updated_at=now,
            )
            self.session.add(selection)

        await self.session.commit()
        return selection

    async def get_selections(
        self,
        user_id: Optional[str] = None,
        menu_id: Optional[str] = None,
    ) -> List[MealSelection]:
        query = select(MealSelection)
        if user_id:
            query = query.where(MealSelection.user_id == user_id)
        if menu_id:
            query = query.where(MealSelection.menu_id == menu_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    async def add_feedback(
        self,
        user_id: str,
        menu_id: str,
        rating: int,
        comments: Optional[str] = None,
    ) -> Feedback:
        try:
            validate_rating(rating)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        if not await self._menu_exists(menu_id):
            raise NotFoundError("Menu not found")

        result = await self.session.execute(
            select(Feedback).where(
                Feedback.user_id == user_id,
                Feedback.menu_id == menu_id,
            )
        )
        feedback = result.scalars().first()
        now = datetime.utcnow()

        if feedback:
            feedback.rating = rating
            feedback.comments = comments
            feedback.created_at = now
        else:
            feedback = Feedback(
                user_id=user_id,
                menu_id=menu_id,
                rating=rating,
                comments=comments,
                created_at=now,
            )
            self.session.add(feedback)

        await self.session.commit()
        return feedback

    async def get_feedback(self, menu_id: Optional[str] = None) -> List[Feedback]:
        query = select(Feedback)
        if menu_id:
            query = query.where(Feedback.menu_id == menu_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    async def get_inventory(self) -> List[InventoryItem]:
        result = await self.session.execute(select(InventoryItem).order_by(InventoryItem.name))
        return list(result.scalars().all())

    async def get_inventory_item(self, item_id: str) -> Optional[InventoryItem]:
        return await self.session.get(InventoryItem, item_id)

    async def create_inventory_item(self, data: Dict[str, Any]) -> InventoryItem:
        item = InventoryItem(**data, updated_at=datetime.utcnow())
        self.session.add(item)
        await self.session.commit()
        logger.info(f"Added inventory item '{item.name}' ({item.quantity} {item.unit})")
        return item

    async def update_inventory_item(self, item_id: str, data: Dict[str, Any]) -> InventoryItem:
        item = await self.get_inventory_item(item_id)
        if not item:
            raise NotFoundError("Inventory item not found")

        for key, value in data.items():
            setattr(item, key, value)
        item.updated_at = datetime.utcnow()
        await self.session.commit()
        logger.info(f"Updated inventory item '{item.name}' ({item.quantity} {item.unit})")
        return item

    async def upsert_inventory_item(self, data: Dict[str, Any], item_id: Optional[str] = None) -> InventoryItem:
        if item_id:
            return await self.update_inventory_item(item_id, data)
        return await self.create_inventory_item(data)

    async def remove_inventory_item(self, item_id: str) -> bool:
        item = await self.get_inventory_item(item_id)
        if not item:
            return False
        await self.session.delete(item)
        await self.session.commit()
        logger.info(f"Removed inventory item '{item.name}'")
        return True

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def get_notifications(self, scope: Optional[NotificationScope] = None) -> List[Notification]:
        """No scope: everything. 'all': broadcast only. A role scope: that role plus broadcast."""
        query = select(Notification).order_by(Notification.created_at.desc())
        if scope == NotificationScope.ALL:
            query = query.where(Notification.scope == NotificationScope.ALL)
        elif scope:
            query = query.where(Notification.scope.in_([scope, NotificationScope.ALL]))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def add_notification(self, data: Dict[str, Any]) -> Notification:
        notification = Notification(**data, read_by=[], created_at=datetime.utcnow())
        self.session.add(notification)
        await self.session.commit()
        logger.info(f"Published {notification.scope.value} notification '{notification.title}'")
        return notification

    async def mark_notification_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = await self.session.get(Notification, notification_id)
        if not notification:
            raise NotFoundError("Notification not found")

        if user_id not in notification.read_by:
            # Reassign so the JSON column is flagged dirty
            notification.read_by = [*notification.read_by, user_id]
            await self.session.commit()
        return notification

    # ------------------------------------------------------------------
    # Seating capacity
    # ------------------------------------------------------------------

    async def list_seating_capacity(self) -> List[SeatingCapacity]:
        result = await self.session.execute(select(SeatingCapacity).order_by(SeatingCapacity.date))
        return list(result.scalars().all())

    async def get_seating_capacity(self, on_date: date) -> Optional[SeatingCapacity]:
        result = await self.session.execute(
            select(SeatingCapacity).where(SeatingCapacity.date == on_date)
        )
        return result.scalars().first()

    async def create_seating_capacity(self, data: Dict[str, Any]) -> SeatingCapacity:
        record = SeatingCapacity(**data, updated_at=datetime.utcnow())
        self.session.add(record)
        await self.session.commit()
        logger.info(f"Seating capacity for {record.date} set to {record.capacity}")
        return record

    async def update_seating_capacity(self, record_id: str, data: Dict[str, Any]) -> SeatingCapacity:
        record = await self.session.get(SeatingCapacity, record_id)
        if not record:
            raise NotFoundError("Seating capacity record not found")

        for key, value in data.items():
            setattr(record, key, value)
        record.updated_at = datetime.utcnow()
        await self.session.commit()
        logger.info(f"Seating capacity for {record.date} set to {record.capacity}")
        return record

    async def upsert_seating_capacity(self, data: Dict[str, Any], record_id: Optional[str] = None) -> SeatingCapacity:
        if record_id:
            return await self.update_seating_capacity(record_id, data)
        return await self.create_seating_capacity(data)


async def get_store(db: AsyncSession = Depends(get_db)) -> CanteenStore:
    """Dependency: store bound to the request's session"""
    return CanteenStore(db)
