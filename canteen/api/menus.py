"""
Menus API - published meal services with live attendance and rating stats
"""
import datetime as dt
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, model_validator

from canteen.models.user import User
from canteen.models.menu import Menu, MealType
from canteen.api.auth import get_current_user, require_admin
from canteen.services import analytics
from canteen.services.store import CanteenStore, get_store

router = APIRouter()


# --- Pydantic Schemas ---

class DishIn(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    ingredients: List[str] = []
    allergens: List[str] = []


class NutritionalInfo(BaseModel):
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)


class MenuCreate(BaseModel):
    date: dt.date
    meal_type: MealType
    dishes: List[DishIn] = Field(min_length=1)
    nutritional_info: NutritionalInfo
    special_notes: Optional[str] = None


class MenuUpdate(BaseModel):
    date: Optional[dt.date] = None
    meal_type: Optional[MealType] = None
    dishes: Optional[List[DishIn]] = Field(default=None, min_length=1)
    nutritional_info: Optional[NutritionalInfo] = None
    special_notes: Optional[str] = None

    @model_validator(mode="after")
    def check_required_not_null(self):
        # special_notes may be cleared with null; the rest only replaced
        for field in ("date", "meal_type", "dishes", "nutritional_info"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class DishResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    ingredients: List[str]
    allergens: List[str]

    class Config:
        from_attributes = True


class MenuStats(BaseModel):
    opt_ins: int
    opt_outs: int
    feedback_count: int
    average_rating: float


class MenuResponse(BaseModel):
    id: str
    date: dt.date
    meal_type: MealType
    dishes: List[DishResponse]
    nutritional_info: NutritionalInfo
    special_notes: Optional[str]
    created_at: Optional[dt.datetime]
    updated_at: Optional[dt.datetime]
    stats: Optional[MenuStats] = None


# --- Helper ---

def build_menu_response(menu: Menu, stats: Optional[Dict] = None) -> MenuResponse:
    return MenuResponse(
        id=menu.id,
        date=menu.date,
        meal_type=menu.meal_type,
        dishes=[DishResponse.model_validate(d) for d in menu.dishes],
        nutritional_info=NutritionalInfo(**menu.nutritional_info),
        special_notes=menu.special_notes,
        created_at=menu.created_at,
        updated_at=menu.updated_at,
        stats=MenuStats(**stats) if stats is not None else None,
    )


def _payload(data: BaseModel) -> dict:
    return data.model_dump(exclude_unset=True)


# --- Endpoints ---

@router.get("/")
async def list_menus(
    include_past: bool = False,
    on_date: Optional[dt.date] = Query(None, alias="date"),
    meal_type: Optional[MealType] = None,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """Upcoming menus (or all with include_past) with opt-in and rating stats"""
    menus = await store.get_menus(include_past=include_past, on_date=on_date, meal_type=meal_type)
    stats = analytics.stats_by_menu(menus, await store.get_selections(), await store.get_feedback())
    return {"menus": [build_menu_response(m, stats[m.id]) for m in menus]}


@router.get("/{menu_id}")
async def get_menu(
    menu_id: str,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    menu = await store.get_menu(menu_id)
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found.")

    stats = analytics.menu_stats(
        await store.get_selections(menu_id=menu_id),
        await store.get_feedback(menu_id=menu_id),
    )
    return {"menu": build_menu_response(menu, stats)}


@router.post("/")
async def create_menu(
    data: MenuCreate,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Publish a new menu"""
    menu = await store.create_menu(_payload(data))
    return {"menu": build_menu_response(menu)}


@router.put("/{menu_id}")
async def update_menu(
    menu_id: str,
    data: MenuUpdate,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Update the supplied fields; dishes are replaced as a whole"""
    menu = await store.update_menu(menu_id, _payload(data))
    return {"menu": build_menu_response(menu)}


@router.delete("/{menu_id}")
async def delete_menu(
    menu_id: str,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Delete a menu together with its selections and feedback"""
    if not await store.delete_menu(menu_id):
        raise HTTPException(status_code=404, detail="Menu not found.")
    return {"success": True}
