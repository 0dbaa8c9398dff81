"""
Input validation utilities
"""

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: int) -> int:
    """Validate that a feedback rating is a whole number from 1 to 5"""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError("Rating must be a whole number")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValueError(f"Rating must be {MIN_RATING}-{MAX_RATING}")
    return rating


def validate_quantity(amount: float) -> float:
    """Validate that a stock quantity or threshold is not negative"""
    if amount < 0:
        raise ValueError("Quantity must not be negative")
    return amount


def validate_capacity(capacity: int) -> int:
    """Validate seating capacity is not negative"""
    if capacity < 0:
        raise ValueError("Capacity must not be negative")
    return capacity
