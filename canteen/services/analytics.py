"""
Engagement analytics derived from store contents.

Everything here is a pure function over already-loaded records and is
recomputed on every request. Missing data degrades to zeros and empty lists.
"""
from collections import OrderedDict, defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from canteen.config import get_settings
from canteen.models.menu import Menu
from canteen.models.selection import MealSelection, SelectionStatus
from canteen.models.feedback import Feedback
from canteen.models.notification import Notification
from canteen.utils.helpers import round_half_up, format_day_label

TOP_MENUS_LIMIT = 5


def _count_status(selections: Iterable[MealSelection], status: SelectionStatus) -> int:
    return sum(1 for s in selections if s.status == status)


def _group_by_menu(records: Iterable) -> Dict[str, list]:
    grouped = defaultdict(list)
    for record in records:
        grouped[record.menu_id].append(record)
    return grouped


def average_rating(feedback: Sequence[Feedback]) -> float:
    """Mean rating to one decimal, 0 when nobody has rated"""
    if not feedback:
        return 0
    total = sum(item.rating for item in feedback)
    return round_half_up(total / len(feedback), 1)


def menu_stats(selections: Sequence[MealSelection], feedback: Sequence[Feedback]) -> dict:
    """Tallies for a single menu; callers pass only that menu's records"""
    return {
        "opt_ins": _count_status(selections, SelectionStatus.OPT_IN),
        "opt_outs": _count_status(selections, SelectionStatus.OPT_OUT),
        "feedback_count": len(feedback),
        "average_rating": average_rating(feedback),
    }


def stats_by_menu(
    menus: Sequence[Menu],
    selections: Sequence[MealSelection],
    feedback: Sequence[Feedback],
) -> Dict[str, dict]:
    """menu_stats for every menu, keyed by menu id"""
    selections_by_menu = _group_by_menu(selections)
    feedback_by_menu = _group_by_menu(feedback)
    return {
        menu.id: menu_stats(selections_by_menu.get(menu.id, []), feedback_by_menu.get(menu.id, []))
        for menu in menus
    }


def estimate_waste(
    opt_in_count: int,
    opt_out_count: int,
    baseline_waste_per_meal_kg: Optional[float] = None,
    reduction_factor: Optional[float] = None,
    opt_out_offset: Optional[float] = None,
) -> float:
    """
    Estimated food waste in kg.

    Policy heuristic: every confirmed meal is assumed to waste a baseline
    amount, scaled down by the reduction that pre-confirmation buys, and each
    opt-out cancels a fraction of a meal. The constants come from settings.
    """
    settings = get_settings()
    if baseline_waste_per_meal_kg is None:
        baseline_waste_per_meal_kg = settings.WASTE_BASELINE_KG_PER_MEAL
    if reduction_factor is None:
        reduction_factor = settings.WASTE_REDUCTION_FACTOR
    if opt_out_offset is None:
        opt_out_offset = settings.WASTE_OPT_OUT_OFFSET

    effective_meals = max(opt_in_count - opt_out_count * opt_out_offset, 0)
    return round_half_up(effective_meals * baseline_waste_per_meal_kg * reduction_factor, 2)


def compute_dashboard_metrics(
    selections: Sequence[MealSelection],
    feedback: Sequence[Feedback],
) -> dict:
    opt_ins = _count_status(selections, SelectionStatus.OPT_IN)
    opt_outs = _count_status(selections, SelectionStatus.OPT_OUT)
    opt_in_rate = round_half_up(opt_ins / len(selections) * 100, 1) if selections else 0

    return {
        "total_opt_ins": opt_ins,
        "total_opt_outs": opt_outs,
        "opt_in_rate": opt_in_rate,
        "average_rating": average_rating(feedback),
        "waste_estimate_kg": estimate_waste(opt_in_count=opt_ins, opt_out_count=opt_outs),
    }


def build_trend(
    menus: Sequence[Menu],
    selections: Sequence[MealSelection],
    feedback: Sequence[Feedback],
) -> List[dict]:
    """Per-day series in menu order; a day's rating is weighted by its feedback count"""
    selections_by_menu = _group_by_menu(selections)
    feedback_by_menu = _group_by_menu(feedback)
    by_label = OrderedDict()

    for menu in menus:
        label = format_day_label(menu.date)
        entry = by_label.setdefault(
            label, {"opt_ins": 0, "opt_outs": 0, "feedback_count": 0, "score_total": 0}
        )
        menu_selections = selections_by_menu.get(menu.id, [])
        entry["opt_ins"] += _count_status(menu_selections, SelectionStatus.OPT_IN)
        entry["opt_outs"] += _count_status(menu_selections, SelectionStatus.OPT_OUT)
        for item in feedback_by_menu.get(menu.id, []):
            entry["feedback_count"] += 1
            entry["score_total"] += item.rating

    return [
        {
            "label": label,
            "opt_ins": values["opt_ins"],
            "opt_outs": values["opt_outs"],
            "average_rating": (
                round_half_up(values["score_total"] / values["feedback_count"], 1)
                if values["feedback_count"] else 0
            ),
        }
        for label, values in by_label.items()
    ]


def rank_top_menus(
    menus: Sequence[Menu],
    selections: Sequence[MealSelection],
    feedback: Sequence[Feedback],
    limit: int = TOP_MENUS_LIMIT,
) -> List[dict]:
    """Best-rated menus first; ties keep menu order"""
    stats = stats_by_menu(menus, selections, feedback)
    rows = [
        {
            "id": menu.id,
            "date": menu.date,
            "meal_type": menu.meal_type.value,
            "average_rating": stats[menu.id]["average_rating"],
            "total_feedback": stats[menu.id]["feedback_count"],
            "opt_ins": stats[menu.id]["opt_ins"],
        }
        for menu in menus
    ]
    # sorted() is stable
    return sorted(rows, key=lambda row: row["average_rating"], reverse=True)[:limit]


def aggregate_seating(
    menus: Sequence[Menu],
    selections: Sequence[MealSelection],
    capacities: Dict[date, int],
) -> List[dict]:
    """Per-menu attendance against the day's seating capacity"""
    selections_by_menu = _group_by_menu(selections)
    rows = []
    for menu in menus:
        entries = selections_by_menu.get(menu.id, [])
        opt_in_count = _count_status(entries, SelectionStatus.OPT_IN)
        capacity = capacities.get(menu.date)
        rows.append({
            "menu": menu,
            "opt_in_count": opt_in_count,
            "opt_out_count": len(entries) - opt_in_count,
            "pending_count": max(capacity - opt_in_count, 0) if capacity is not None else 0,
            "capacity": capacity,
        })
    return rows


def unread_count(notifications: Iterable[Notification], user_id: str) -> int:
    return sum(1 for n in notifications if user_id not in (n.read_by or []))
