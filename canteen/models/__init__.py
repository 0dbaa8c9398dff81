from canteen.models.user import User, UserRole
from canteen.models.menu import Menu, Dish, MealType
from canteen.models.selection import MealSelection, SelectionStatus
from canteen.models.feedback import Feedback
from canteen.models.inventory import InventoryItem
from canteen.models.notification import Notification, NotificationType, NotificationScope
from canteen.models.seating import SeatingCapacity

__all__ = [
    "User",
    "UserRole",
    "Menu",
    "Dish",
    "MealType",
    "MealSelection",
    "SelectionStatus",
    "Feedback",
    "InventoryItem",
    "Notification",
    "NotificationType",
    "NotificationScope",
    "SeatingCapacity",
]
