from decimal import Decimal, ROUND_HALF_UP


def round_naira(amount: int | float | Decimal) -> int:
    """Round half-up to a whole Naira."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_amount(amount: int | float | Decimal) -> int | float:
    """Keep whole amounts as int so stored values stay clean."""
    d = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if d == d.to_integral_value():
        return int(d)
    return float(d)


def naira_to_kobo(amount_naira: int | float | Decimal) -> int:
    return round_naira(Decimal(str(amount_naira)) * 100)


def kobo_to_naira(amount_kobo: int) -> int | float:
    return normalize_amount(Decimal(int(amount_kobo)) / 100)


def format_naira(amount: int | float | Decimal) -> str:
    d = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if d == d.to_integral_value():
        return f"₦{int(d):,}"
    return f"₦{d:,}"
