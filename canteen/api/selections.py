"""
Meal selection API - employee opt-in/opt-out and the admin seating view
"""
import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from canteen.models.user import User
from canteen.models.selection import SelectionStatus
from canteen.api.auth import get_current_user
from canteen.api.menus import build_menu_response
from canteen.services import analytics
from canteen.services.store import CanteenStore, get_store

router = APIRouter()


class SelectionCreate(BaseModel):
    menu_id: str
    status: SelectionStatus
    reason: Optional[str] = None


class SelectionResponse(BaseModel):
    id: str
    user_id: str
    menu_id: str
    status: SelectionStatus
    reason: Optional[str]
    updated_at: Optional[dt.datetime]

    class Config:
        from_attributes = True


@router.get("/")
async def list_selections(
    aggregate: bool = False,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """Own selections, or (admins, aggregate=true) attendance per menu against seating capacity"""
    if not aggregate:
        selections = await store.get_selections(user_id=current_user.id)
        return {"selections": [SelectionResponse.model_validate(s) for s in selections]}

    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")

    menus = await store.get_menus(include_past=True)
    capacities = {}
    for record in await store.list_seating_capacity():
        capacities.setdefault(record.date, record.capacity)

    rows = analytics.aggregate_seating(menus, await store.get_selections(), capacities)
    for row in rows:
        row["menu"] = build_menu_response(row["menu"])
    return {"selections": rows}


@router.post("/")
async def save_selection(
    data: SelectionCreate,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """Opt in or out of a meal; voting again replaces the earlier choice"""
    selection = await store.upsert_selection(
        user_id=current_user.id,
        menu_id=data.menu_id,
        status=data.status,
        reason=data.reason,
    )
    return {"selection": SelectionResponse.model_validate(selection)}
