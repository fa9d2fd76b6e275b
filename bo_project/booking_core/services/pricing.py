"""Pure pricing functions. Nothing here touches the database."""
from dataclasses import dataclass
from decimal import Decimal

from ..money import ZERO, to_decimal, to_money

HUNDRED = Decimal("100")
SECONDS_PER_HOUR = Decimal("3600")

# Upper bounds (inclusive) of each hall tier, in hours
HOURLY_MAX_HOURS = Decimal("8")
DAILY_MAX_HOURS = Decimal("24")
WEEKLY_MAX_HOURS = Decimal("168")


@dataclass(frozen=True)
class FeeConfig:
    service_fee_percentage: Decimal
    tax_rate: Decimal

    @classmethod
    def from_settings(cls, booking_settings):
        return cls(
            service_fee_percentage=booking_settings.service_fee_percentage,
            tax_rate=booking_settings.tax_rate,
        )


@dataclass(frozen=True)
class Quote:
    subtotal: Decimal
    service_fee: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    def as_dict(self):
        return {
            "subtotal": str(self.subtotal),
            "service_fee": str(self.service_fee),
            "discount_amount": str(self.discount_amount),
            "tax_amount": str(self.tax_amount),
            "total": str(self.total),
        }


@dataclass(frozen=True)
class Extra:
    """An ad-hoc service added to a hall booking (chairs, catering...)."""
    description: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self):
        return to_money(self.quantity * to_decimal(self.unit_price))


def duration_hours(start, end):
    """Exact length of [start, end) in hours, as a Decimal."""
    delta = end - start
    seconds = Decimal(delta.days * 86400 + delta.seconds)
    seconds += Decimal(delta.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_HOUR


def hall_rental_amount(hall, hours):
    """Step function over the hall's rate tiers.

    hours ≤ 8 → hourly_rate × hours
    hours ≤ 24 → daily_rate
    hours ≤ 168 → weekly_rate
    otherwise → monthly_rate
    """
    if hours <= HOURLY_MAX_HOURS:
        return hall.hourly_rate * hours
    if hours <= DAILY_MAX_HOURS:
        return hall.daily_rate
    if hours <= WEEKLY_MAX_HOURS:
        return hall.weekly_rate
    return hall.monthly_rate


def ticket_subtotal(lines):
    """Σ quantity × price over (ticket_class, quantity) pairs."""
    return sum(
        (quantity * ticket_class.price for ticket_class, quantity in lines),
        ZERO,
    )


def apply_fees(subtotal, fees, discount=ZERO):
    """Add service fee and tax to a subtotal, less any discount.

    service_fee = subtotal × pct / 100
    tax = (subtotal + service_fee - discount) × rate / 100

    Each component is rounded to 2dp as it would be stored, and later
    components are computed from the stored ones, so the stored total is
    always exactly subtotal + service_fee - discount_amount + tax_amount.
    """
    subtotal = to_money(subtotal)
    discount = to_money(discount)
    service_fee = to_money(subtotal * fees.service_fee_percentage / HUNDRED)
    taxable = subtotal + service_fee - discount
    tax_amount = to_money(taxable * fees.tax_rate / HUNDRED)
    return Quote(
        subtotal=subtotal,
        service_fee=service_fee,
        discount_amount=discount,
        tax_amount=tax_amount,
        total=taxable + tax_amount,
    )


def price_hall(hall, start, end, fees, extras=(), discount=ZERO):
    rental = to_money(hall_rental_amount(hall, duration_hours(start, end)))
    extras_total = sum((extra.line_total for extra in extras), ZERO)
    return apply_fees(rental + extras_total, fees, discount)


def price_tickets(lines, fees, discount=ZERO):
    return apply_fees(ticket_subtotal(lines), fees, discount)
