"""
Feedback API - meal ratings
"""
import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from canteen.models.user import User
from canteen.api.auth import get_current_user
from canteen.services import analytics
from canteen.services.store import CanteenStore, get_store
from canteen.utils.validators import validate_rating

router = APIRouter()


class FeedbackCreate(BaseModel):
    menu_id: str
    rating: int
    comments: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def check_rating(cls, v: int) -> int:
        return validate_rating(v)


class FeedbackResponse(BaseModel):
    id: str
    user_id: str
    menu_id: str
    rating: int
    comments: Optional[str]
    created_at: Optional[dt.datetime]

    class Config:
        from_attributes = True


@router.get("/")
async def list_feedback(
    menu_id: str,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    feedback = await store.get_feedback(menu_id=menu_id)
    return {
        "feedback": [FeedbackResponse.model_validate(f) for f in feedback],
        "average_rating": analytics.average_rating(feedback),
    }


@router.post("/")
async def submit_feedback(
    data: FeedbackCreate,
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """Rate a meal 1-5; rating again replaces the earlier rating"""
    feedback = await store.add_feedback(
        user_id=current_user.id,
        menu_id=data.menu_id,
        rating=data.rating,
        comments=data.comments,
    )
    return {"feedback": FeedbackResponse.model_validate(feedback)}
