"""Currency display helpers"""

from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def format_currency(amount: Decimal, symbol: str = "₱") -> str:
    """Format an amount as e.g. ₱5,000.00 (negative amounts as -₱5.00)"""
    rounded = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"
