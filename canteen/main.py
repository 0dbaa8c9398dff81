"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from canteen.config import get_settings
from canteen.database import engine, Base, AsyncSessionLocal, db_lock
from canteen import models  # noqa: F401 - registers tables on Base.metadata
from canteen.api import auth, menus, selections, feedback, inventory, notifications, seating, analytics, pages
from canteen.api.errors import register_exception_handlers
from canteen.middleware import SessionGateMiddleware
from canteen.services.seed import seed_demo_data
from canteen.services.store import CanteenStore
from canteen.utils.logger import configure_logging

settings = get_settings()
logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The database lives in memory, so tables are created on every start
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    if settings.SEED_DEMO_DATA:
        async with db_lock, AsyncSessionLocal() as session:
            await seed_demo_data(CanteenStore(session))

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(SessionGateMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(menus.router, prefix="/api/menus", tags=["Menus"])
app.include_router(selections.router, prefix="/api/selections", tags=["Selections"])
app.include_router(feedback.router, prefix="/api/feedback", tags=["Feedback"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(seating.router, prefix="/api/seating", tags=["Seating"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(pages.router, tags=["Pages"])


@app.get("/health")
async def health_check():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "canteen.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
