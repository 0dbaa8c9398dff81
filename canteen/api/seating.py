"""
Seating capacity API - per-day capacity used for pending-seat counts
"""
import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from canteen.models.user import User
from canteen.api.auth import require_admin
from canteen.services.store import CanteenStore, get_store
from canteen.utils.validators import validate_capacity

router = APIRouter()


class SeatingCapacityRequest(BaseModel):
    id: Optional[str] = None
    date: dt.date
    capacity: int

    @field_validator("capacity")
    @classmethod
    def check_capacity(cls, v: int) -> int:
        return validate_capacity(v)


class SeatingCapacityResponse(BaseModel):
    id: str
    date: dt.date
    capacity: int
    updated_at: Optional[dt.datetime]

    class Config:
        from_attributes = True


@router.get("/")
async def list_seating_capacity(
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    records = await store.list_seating_capacity()
    return {"capacities": [SeatingCapacityResponse.model_validate(r) for r in records]}


@router.post("/")
async def save_seating_capacity(
    data: SeatingCapacityRequest,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Set a day's capacity. Without an id, an existing record for that date is updated."""
    record_id = data.id
    if not record_id:
        existing = await store.get_seating_capacity(data.date)
        record_id = existing.id if existing else None

    record = await store.upsert_seating_capacity(
        {"date": data.date, "capacity": data.capacity},
        record_id=record_id,
    )
    return {"capacity": SeatingCapacityResponse.model_validate(record)}
