"""
Demo data loaded into the in-memory database at startup
"""
import logging
from datetime import date, timedelta

from canteen.config import get_settings
from canteen.api.auth import get_password_hash
from canteen.models.user import UserRole
from canteen.models.menu import MealType
from canteen.models.notification import NotificationType, NotificationScope
from canteen.services.store import CanteenStore

settings = get_settings()
logger = logging.getLogger(__name__)

DEMO_USERS = [
    # (name, email, password, role, department)
    ("Priya Sharma", "jane@karmic.solutions", "Karmic@123", UserRole.EMPLOYEE, "Engineering"),
    ("Rahul Mehta", "admin@karmic.solutions", "Admin@123", UserRole.ADMIN, "Operations"),
]


def _dish(name, ingredients, allergens=None, description=None):
    return {
        "name": name,
        "description": description,
        "ingredients": ingredients,
        "allergens": allergens or [],
    }


def _nutrition(calories, protein, carbs, fats):
    return {"calories": calories, "protein": protein, "carbs": carbs, "fats": fats}


TODAY_MENUS = [
    (
        MealType.BREAKFAST,
        [
            _dish("Masala Oats Bowl", ["Oats", "Carrot", "Beans", "Peas", "Spices"], ["Gluten"],
                  "High fiber oats with seasonal vegetables"),
            _dish("Fresh Fruit Platter", ["Papaya", "Banana", "Apple", "Seasonal fruits"]),
        ],
        _nutrition(320, 14, 45, 9),
        "Includes sugar-free options",
    ),
    (
        MealType.LUNCH,
        [
            _dish("Millet Veg Biryani", ["Millet", "Carrot", "Beans", "Spices"], [],
                  "Foxtail millet cooked with mixed vegetables"),
            _dish("Dal Tadka", ["Lentils", "Ghee", "Spices"], ["Dairy"]),
        ],
        _nutrition(540, 22, 68, 16),
        "Served with raita and roasted papad",
    ),
    (
        MealType.SNACKS,
        [
            _dish("Sprout Chaat", ["Green gram", "Onions", "Tomato", "Spices"]),
            _dish("Masala Chai", ["Tea leaves", "Milk", "Spices"], ["Dairy"]),
        ],
        _nutrition(280, 12, 34, 8),
        "Low sugar option available",
    ),
]

UPCOMING_MENUS = [
    (
        MealType.BREAKFAST,
        [
            _dish("Rava Idli with Chutney", ["Semolina", "Coconut", "Curd"], ["Gluten", "Dairy"],
                  "Steamed semolina cakes with coconut chutney"),
            _dish("Seasonal Fruit Juice", ["Watermelon", "Mint", "Lime"]),
        ],
        _nutrition(350, 11, 58, 8),
        "Includes gluten-free millet option",
    ),
    (
        MealType.LUNCH,
        [
            _dish("Paneer Tikka Bowl", ["Paneer", "Quinoa", "Bell peppers", "Spices"], ["Dairy"],
                  "Grilled paneer with quinoa and greens"),
            _dish("Lemon Coriander Soup", ["Vegetable stock", "Lemon", "Coriander"]),
        ],
        _nutrition(560, 26, 62, 18),
        "Vegan tofu alternative available",
    ),
    (
        MealType.SNACKS,
        [
            _dish("Baked Samosa", ["Whole wheat flour", "Potato", "Peas"], ["Gluten"]),
            _dish("Herbal Infusion", ["Lemongrass", "Tulsi", "Ginger"]),
        ],
        _nutrition(260, 9, 35, 8),
        "Air-fried for lower oil content",
    ),
]

DEMO_INVENTORY = [
    {"name": "Organic Vegetables", "quantity": 85, "unit": "kg", "threshold": 40,
     "notes": "Sufficient for two days"},
    {"name": "Millets Assorted", "quantity": 45, "unit": "kg", "threshold": 25,
     "notes": "Reorder within this week"},
    {"name": "Dairy Supplies", "quantity": 30, "unit": "liters", "threshold": 15,
     "notes": "Low-fat options stocked"},
]

DEMO_NOTIFICATIONS = [
    {
        "title": "Update Your Lunch Preference",
        "message": "Please confirm your lunch preference by 9 PM today to avoid food wastage.",
        "type": NotificationType.WARNING,
        "scope": NotificationScope.ALL,
    },
    {
        "title": "Weekend Special Menu",
        "message": "Chef's special millet and greens menu planned for Saturday!",
        "type": NotificationType.INFO,
        "scope": NotificationScope.EMPLOYEE,
    },
]


async def seed_demo_data(store: CanteenStore) -> None:
    """Populate an empty store; does nothing if users already exist"""
    if await store.find_user_by_email(DEMO_USERS[0][1]):
        logger.info("Demo data already present")
        return

    for name, email, password, role, department in DEMO_USERS:
        await store.create_user(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=role,
            department=department,
        )
    logger.info(f"Created {len(DEMO_USERS)} demo users")

    today = date.today()
    plan = [(today, entry) for entry in TODAY_MENUS]
    for offset in range(1, 5):
        plan.extend((today + timedelta(days=offset), entry) for entry in UPCOMING_MENUS)

    for day, (meal_type, dishes, nutrition, notes) in plan:
        await store.create_menu({
            "date": day,
            "meal_type": meal_type,
            "dishes": dishes,
            "nutritional_info": nutrition,
            "special_notes": notes,
        })
    logger.info(f"Seeded {len(plan)} menus")

    for item in DEMO_INVENTORY:
        await store.create_inventory_item(dict(item))

    for notification in DEMO_NOTIFICATIONS:
        await store.add_notification(dict(notification))

    for day in (today, today + timedelta(days=1)):
        await store.create_seating_capacity({"date": day, "capacity": settings.DEFAULT_SEATING_CAPACITY})

    logger.info("Demo inventory, notifications and seating capacity seeded")
