# billing/utils.py
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta

TWO_PLACES = Decimal('0.01')


def to_money(amount) -> Decimal:
    """Exact 2 dp Decimal, never via float"""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def percent_of(amount, percent) -> Decimal:
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal('100'))


def add_one_month(anchor):
    """Same day next month, clamped to the last day of shorter months"""
    return anchor + relativedelta(months=1)
