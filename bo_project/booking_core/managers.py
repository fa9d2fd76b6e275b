from decimal import Decimal

from django.db import models
from django.db.models import (Count, DecimalField, F, IntegerField, Sum,
                              Value)
from django.db.models.functions import Coalesce

MONEY_FIELD = DecimalField(max_digits=18, decimal_places=2)


# -----------------------------------------
# Reusable query helpers for bookings
# -----------------------------------------
class BookingQuerySet(models.QuerySet):
    def active(self):
        # Cancelled bookings no longer hold a slot or tickets
        return self.exclude(booking_status="cancelled")

    def for_hall(self, hall):
        return self.filter(hall=hall)

    def for_event(self, event):
        return self.filter(event=event)

    def overlapping(self, start, end):
        """Half-open interval overlap: [start_at, end_at) vs [start, end).

        existing.start < new.end AND existing.end > new.start, so
        back-to-back windows never collide while nested ones always do.
        """
        return self.filter(start_at__lt=end, end_at__gt=start)

    def totals(self):
        """Booking count and money totals over the current queryset."""
        def money(field):
            return Coalesce(Sum(field), Value(Decimal("0.00")),
                            output_field=MONEY_FIELD)

        return self.aggregate(
            bookings=Count("id"),
            revenue=money("total"),
            paid=money("amount_paid"),
            outstanding=money("balance_due"),
        )

    def stale_pending(self, cutoff):
        # Pending, nothing paid yet, created before the cutoff
        return self.filter(
            booking_status="pending",
            amount_paid=0,
            created_at__lt=cutoff,
        )

    # Enables query:
    # Booking.objects.active().for_hall(hall).overlapping(start, end)


class TicketClassQuerySet(models.QuerySet):
    def with_remaining(self, quantity):
        # Rows that can still absorb `quantity` more tickets
        return self.filter(
            quantity_sold__lte=F("quantity_available") - quantity)

    def sold_total(self):
        return self.aggregate(
            sold=Coalesce(Sum("quantity_sold"), Value(0),
                          output_field=IntegerField()))["sold"]

    def remaining_total(self):
        # Seats left across the classes still on sale
        return self.filter(is_active=True).aggregate(
            left=Coalesce(Sum(F("quantity_available") - F("quantity_sold")),
                          Value(0), output_field=IntegerField()))["left"]


class InvoiceQuerySet(models.QuerySet):
    def open(self):
        return self.filter(status__in=["sent", "partial", "overdue"])

    def past_due(self, today):
        return self.open().filter(due_date__lt=today, balance_due__gt=0)
