def price_per_family(total_price: float, participants: int) -> float:
    """Split a total across participants, rounded to cents. Zero participants pay nothing."""
    if participants == 0:
        return 0.0
    return round(total_price / participants, 2)
