"""
General helper utilities
"""
import uuid
from datetime import date
from decimal import Decimal, ROUND_HALF_UP


def generate_id() -> str:
    """Fresh unique identifier for a stored record"""
    return str(uuid.uuid4())


def round_half_up(value: float, places: int = 1) -> float:
    """Round like a receipt does (2.25 -> 2.3), not banker's rounding"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_day_label(day: date) -> str:
    """Short chart label, e.g. 'Mar 4'"""
    return f"{day.strftime('%b')} {day.day}"
