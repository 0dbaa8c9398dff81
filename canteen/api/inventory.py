"""
Inventory API - kitchen stock list, admin create/update/delete
"""
import datetime as dt
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from canteen.models.user import User
from canteen.api.auth import get_current_user, require_admin
from canteen.services.store import CanteenStore, get_store
from canteen.utils.validators import validate_quantity

router = APIRouter()


class InventoryRequest(BaseModel):
    """One body for create, update (id given) and delete (action='delete')"""
    id: Optional[str] = None
    action: Optional[Literal["delete"]] = None
    name: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    threshold: Optional[float] = None
    notes: Optional[str] = None


class InventoryItemResponse(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    threshold: float
    notes: Optional[str]
    updated_at: Optional[dt.datetime]
    is_low_stock: bool

    class Config:
        from_attributes = True


@router.get("/")
async def list_inventory(
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    items = await store.get_inventory()
    return {"items": [InventoryItemResponse.model_validate(i) for i in items]}


@router.post("/")
async def save_inventory_item(
    data: InventoryRequest,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    if data.action == "delete":
        if not data.id:
            raise HTTPException(status_code=400, detail="Inventory ID required.")
        await store.remove_inventory_item(data.id)
        return {"success": True}

    if not data.name or data.quantity is None or not data.unit or data.threshold is None:
        raise HTTPException(status_code=400, detail="Name, quantity, unit, and threshold are required.")
    try:
        validate_quantity(data.quantity)
        validate_quantity(data.threshold)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    fields = data.model_dump(include={"name", "quantity", "unit", "threshold", "notes"})
    item = await store.upsert_inventory_item(fields, item_id=data.id)
    return {"item": InventoryItemResponse.model_validate(item)}
