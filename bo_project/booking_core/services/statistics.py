"""Per-resource booking statistics for the back office.

Cancelled bookings are left out of every figure.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..models import Booking
from ..money import ZERO
from .pricing import duration_hours

HOURS_PER_DAY = Decimal("24")
ONE_PLACE = Decimal("0.1")


@dataclass(frozen=True)
class HallStatistics:
    bookings: int
    revenue: Decimal
    paid: Decimal
    outstanding: Decimal
    total_hours: Decimal
    average_booking_value: Decimal
    occupancy_rate: Decimal  # percent of the period's hours booked

    def as_dict(self):
        return {
            "bookings": self.bookings,
            "revenue": str(self.revenue),
            "paid": str(self.paid),
            "outstanding": str(self.outstanding),
            "total_hours": str(self.total_hours),
            "average_booking_value": str(self.average_booking_value),
            "occupancy_rate": str(self.occupancy_rate),
        }


@dataclass(frozen=True)
class EventStatistics:
    bookings: int
    revenue: Decimal
    paid: Decimal
    outstanding: Decimal
    tickets_sold: int
    tickets_remaining: int
    sold_out: bool

    def as_dict(self):
        return {
            "bookings": self.bookings,
            "revenue": str(self.revenue),
            "paid": str(self.paid),
            "outstanding": str(self.outstanding),
            "tickets_sold": self.tickets_sold,
            "tickets_remaining": self.tickets_remaining,
            "sold_out": self.sold_out,
        }


def hall_statistics(hall, start_date, end_date):
    """Bookings of `hall` starting between the two dates, both inclusive."""
    bookings = (
        Booking.objects.active()
        .for_hall(hall)
        .filter(start_at__date__range=(start_date, end_date))
    )
    totals = bookings.totals()
    hours = sum(
        (duration_hours(start, end)
         for start, end in bookings.values_list("start_at", "end_at")),
        Decimal("0"),
    )

    days = (end_date - start_date).days + 1
    occupancy = ZERO
    if days > 0:
        occupancy = min(Decimal("100"),
                        hours / (days * HOURS_PER_DAY) * Decimal("100"))
    average = ZERO
    if totals["bookings"]:
        average = (totals["revenue"] / totals["bookings"]).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP)

    return HallStatistics(
        bookings=totals["bookings"],
        revenue=totals["revenue"],
        paid=totals["paid"],
        outstanding=totals["outstanding"],
        total_hours=hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        average_booking_value=average,
        occupancy_rate=occupancy.quantize(ONE_PLACE, rounding=ROUND_HALF_UP),
    )


def event_statistics(event):
    totals = Booking.objects.active().for_event(event).totals()
    remaining = event.ticket_classes.remaining_total()
    return EventStatistics(
        bookings=totals["bookings"],
        revenue=totals["revenue"],
        paid=totals["paid"],
        outstanding=totals["outstanding"],
        tickets_sold=event.ticket_classes.sold_total(),
        tickets_remaining=remaining,
        sold_out=remaining <= 0,
    )
