"""
Test fixtures - in-memory SQLite database + authenticated HTTP clients
"""
from datetime import date, timedelta
from functools import lru_cache

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from canteen.database import Base, get_db
from canteen.main import app
from canteen.api.auth import get_password_hash, create_session_token
from canteen.models.user import UserRole
from canteen.models.menu import MealType
from canteen.services.store import CanteenStore

EMPLOYEE_PASSWORD = "Karmic@123"
ADMIN_PASSWORD = "Admin@123"


@lru_cache()
def _hashed(password: str) -> str:
    return get_password_hash(password)


def menu_payload(day: date = None, meal_type: str = "lunch", dishes=None) -> dict:
    """JSON body accepted by POST /api/menus/"""
    return {
        "date": (day or date.today()).isoformat(),
        "meal_type": meal_type,
        "dishes": dishes if dishes is not None else [
            {
                "name": "Paneer Tikka Bowl",
                "description": "Grilled paneer with quinoa",
                "ingredients": ["Paneer", "Quinoa"],
                "allergens": ["Dairy"],
            }
        ],
        "nutritional_info": {"calories": 560, "protein": 26, "carbs": 62, "fats": 18},
    }


def menu_data(day: date = None, meal_type: MealType = MealType.LUNCH, dish_names=("Dal Tadka",)) -> dict:
    """Store-level payload for CanteenStore.create_menu"""
    return {
        "date": day or date.today(),
        "meal_type": meal_type,
        "dishes": [{"name": name, "ingredients": [], "allergens": []} for name in dish_names],
        "nutritional_info": {"calories": 500, "protein": 20, "carbs": 60, "fats": 15},
    }


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def store(db_session):
    return CanteenStore(db_session)


@pytest_asyncio.fixture()
async def seed_data(store):
    """Insert baseline test data: one employee and one admin"""
    employee = await store.create_user(
        name="Priya Sharma",
        email="jane@karmic.solutions",
        password_hash=_hashed(EMPLOYEE_PASSWORD),
        role=UserRole.EMPLOYEE,
        department="Engineering",
    )
    admin = await store.create_user(
        name="Rahul Mehta",
        email="admin@karmic.solutions",
        password_hash=_hashed(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        department="Operations",
    )
    return {"employee": employee, "admin": admin}


@pytest_asyncio.fixture()
async def upcoming_menu(store):
    return await store.create_menu(menu_data(day=date.today() + timedelta(days=1)))


def _override_db(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """Employee-authenticated httpx AsyncClient bound to the FastAPI app"""
    _override_db(db_session)
    token = create_session_token(seed_data["employee"])

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def admin_client(db_session, seed_data):
    """Admin-authenticated httpx AsyncClient"""
    _override_db(db_session)
    token = create_session_token(seed_data["admin"])

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(db_session, seed_data):
    """Unauthenticated httpx AsyncClient"""
    _override_db(db_session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
