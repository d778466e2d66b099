MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(price: int) -> int:
    """Catalog price (whole units) -> gateway amount (paise, cents)."""
    return int(price) * MINOR_UNITS_PER_MAJOR
