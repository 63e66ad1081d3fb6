from decimal import Decimal, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

# Legacy balance policy: two sides balance when they differ by less than a cent.
BALANCE_TOLERANCE = Decimal("0.01")


def to_money(amount) -> Decimal:
    """Quantize any numeric (Decimal, int, float, str or None) to two places."""
    if amount is None:
        return ZERO
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def is_balanced(total_debit, total_credit) -> bool:
    return abs(to_money(total_debit) - to_money(total_credit)) < BALANCE_TOLERANCE


def is_negligible(amount) -> bool:
    return abs(to_money(amount)) < BALANCE_TOLERANCE
