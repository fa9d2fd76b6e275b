from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from ..managers import TicketClassQuerySet
from .account import Account
from .currency import Currency

HALL_STATUS = [
    ("available", "Available"),
    ("maintenance", "Maintenance"),
    ("unavailable", "Unavailable"),
]

EVENT_STATUS = [
    ("draft", "Draft"),
    ("published", "Published"),
    ("cancelled", "Cancelled"),
    ("completed", "Completed"),
]


# ---------- Hall (rented by time window) ----------
class Hall(models.Model):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    capacity = models.PositiveIntegerField(default=0)
    location = models.CharField(max_length=255, blank=True, default="")

    # Price tiers, picked by booking duration
    # ≤ 8h hourly × hours, ≤ 24h daily, ≤ 168h weekly, else monthly
    hourly_rate = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    daily_rate = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    weekly_rate = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    monthly_rate = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=12, choices=HALL_STATUS, default="available")
    enable_booking = models.BooleanField(default=True)
    currency = models.ForeignKey(
        Currency, null=True, blank=True, on_delete=models.PROTECT)
    # Falls back to settings.LEDGER_ACCOUNTS["hall_revenue"] when empty
    revenue_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(hourly_rate__gte=0) & Q(daily_rate__gte=0) &
                    Q(weekly_rate__gte=0) & Q(monthly_rate__gte=0)
                ),
                name="hall_non_negative_rates",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"


class HallClosure(models.Model):
    """A day the hall is blocked for maintenance."""

    hall = models.ForeignKey(
        Hall, on_delete=models.CASCADE, related_name="closures")
    date = models.DateField()
    reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["hall", "date"], name="uq_hall_closure_date"),
        ]

    def __str__(self):
        return f"{self.hall.code} closed {self.date}"


# ---------- Event (sold by ticket class) ----------
class Event(models.Model):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    venue = models.CharField(max_length=255, blank=True, default="")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=EVENT_STATUS, default="draft")
    enable_booking = models.BooleanField(default=True)
    # Optional booking window; open-ended when null
    booking_starts = models.DateTimeField(null=True, blank=True)
    booking_ends = models.DateTimeField(null=True, blank=True)
    currency = models.ForeignKey(
        Currency, null=True, blank=True, on_delete=models.PROTECT)
    # Falls back to settings.LEDGER_ACCOUNTS["event_revenue"] when empty
    revenue_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )

    class Meta:
        ordering = ["starts_at"]
        indexes = [
            models.Index(fields=["status", "starts_at"],
                         name="event_status_start_idx"),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        if self.ends_at and self.ends_at <= self.starts_at:
            raise ValidationError("Event must end after it starts")
        if (self.booking_starts and self.booking_ends
                and self.booking_ends <= self.booking_starts):
            raise ValidationError("Booking window must close after it opens")

    @property
    def is_sold_out(self):
        """True once no active ticket class has seats left."""
        return self.ticket_classes.remaining_total() <= 0


class TicketClass(models.Model):
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="ticket_classes")
    name = models.CharField(max_length=100)  # e.g. "Regular", "VIP"
    price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    # Inventory counters; quantity_sold only moves through guarded updates
    quantity_available = models.PositiveIntegerField(default=0)
    quantity_sold = models.PositiveIntegerField(default=0)
    sale_starts = models.DateTimeField(null=True, blank=True)
    sale_ends = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    objects = TicketClassQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "name"], name="uq_ticket_class_event_name"),
            # Never oversold, enforced by the database as well
            models.CheckConstraint(
                condition=Q(quantity_sold__lte=F("quantity_available")),
                name="ticket_class_not_oversold",
            ),
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name="ticket_class_non_negative_price",
            ),
        ]

    def __str__(self):
        return f"{self.event.code} / {self.name}"

    @property
    def quantity_remaining(self):
        return self.quantity_available - self.quantity_sold
