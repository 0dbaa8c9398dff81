"""
Analytics API - admin engagement dashboard
"""
from fastapi import APIRouter, Depends

from canteen.models.user import User
from canteen.api.auth import require_admin
from canteen.services import analytics
from canteen.services.store import CanteenStore, get_store

router = APIRouter()


@router.get("/")
async def get_analytics(
    store: CanteenStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Headline metrics, per-day trend and the best-rated menus, across all dates"""
    menus = await store.get_menus(include_past=True)
    selections = await store.get_selections()
    feedback = await store.get_feedback()

    return {
        "metrics": analytics.compute_dashboard_metrics(selections, feedback),
        "trend": analytics.build_trend(menus, selections, feedback),
        "top_menus": analytics.rank_top_menus(menus, selections, feedback),
    }
