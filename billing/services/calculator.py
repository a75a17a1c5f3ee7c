"""
Discount and tax calculation
"""
from decimal import Decimal

from billing.models.domain import Totals
from billing.utils.money import ZERO, percent_of, round2


def compute_totals(subtotal: Decimal, discount_percent: Decimal, tax_percent: Decimal) -> Totals:
    """
    Apply a percentage discount, then a percentage tax

    Tax is charged on the discounted base. Swapping the order changes the
    result by cents, so it is fixed here.

    Args:
        subtotal: Sum of item totals
        discount_percent: Discount in [0, 100]
        tax_percent: Tax in [0, 100]

    Returns:
        Totals with discount, taxable, tax and total amounts
    """
    discount_amount = percent_of(subtotal, discount_percent)
    taxable_amount = max(round2(subtotal - discount_amount), ZERO)
    tax_amount = percent_of(taxable_amount, tax_percent)

    return Totals(
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total_amount=round2(taxable_amount + tax_amount),
    )
