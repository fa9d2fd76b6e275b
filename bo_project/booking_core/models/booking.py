from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ..managers import BookingQuerySet
from ..money import to_money
from .customer import Customer
from .resource import Event, Hall, TicketClass

RESOURCE_TYPES = [
    ("hall", "Hall"),
    ("event", "Event"),
]

BOOKING_STATUS = [
    ("pending", "Pending"),
    ("confirmed", "Confirmed"),
    ("cancelled", "Cancelled"),
    ("completed", "Completed"),
]

PAYMENT_STATUS = [
    ("pending", "Pending"),
    ("partial", "Partial"),
    ("paid", "Paid"),
    ("refunded", "Refunded"),
    ("overdue", "Overdue"),
]

PAYMENT_TYPES = [
    ("full", "Full payment"),
    ("partial", "Partial payment"),
]

# Booking workflow, anything not listed is rejected
ALLOWED_TRANSITIONS = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["completed", "cancelled"],
    "cancelled": [],
    "completed": [],
}

MONEY = dict(max_digits=18, decimal_places=2, default=Decimal("0.00"))


class Booking(models.Model):
    """A reservation of one hall window or a set of event tickets."""

    # Human-readable, e.g. "HB-2026-0001" / "BKG-2026-0001"
    booking_number = models.CharField(max_length=32, unique=True)
    resource_type = models.CharField(max_length=5, choices=RESOURCE_TYPES)
    # Exactly one of hall / event is set (see constraint below)
    hall = models.ForeignKey(
        Hall,
        null=True,
        blank=True,
        # never lose a resource that bookings reference
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    event = models.ForeignKey(
        Event,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="bookings")

    # Requested window, halls only. Half-open: [start_at, end_at)
    start_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    attendee_count = models.PositiveIntegerField(default=0)
    event_name = models.CharField(max_length=200, blank=True, default="")
    special_requirements = models.TextField(blank=True, default="")
    booking_source = models.CharField(max_length=30, default="admin")

    # Money, rounded to 2dp when stored
    subtotal = models.DecimalField(**MONEY)
    service_fee = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY)
    tax_amount = models.DecimalField(**MONEY)
    total = models.DecimalField(**MONEY)
    amount_paid = models.DecimalField(**MONEY)
    # Refunds are tracked explicitly rather than clamping amount_paid
    amount_refunded = models.DecimalField(**MONEY)
    balance_due = models.DecimalField(**MONEY)

    payment_type = models.CharField(
        max_length=7, choices=PAYMENT_TYPES, default="full")
    booking_status = models.CharField(
        max_length=10, choices=BOOKING_STATUS, default="pending")
    payment_status = models.CharField(
        max_length=10, choices=PAYMENT_STATUS, default="pending")

    invoice = models.OneToOneField(
        "Invoice",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="booking",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default="")

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            # overlap lookups for a hall
            models.Index(fields=["hall", "start_at", "end_at"],
                         name="booking_hall_window_idx"),
            models.Index(fields=["booking_status", "created_at"],
                         name="booking_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(resource_type="hall", hall__isnull=False,
                      event__isnull=True) |
                    Q(resource_type="event", event__isnull=False,
                      hall__isnull=True)
                ),
                name="booking_exactly_one_resource",
            ),
            models.CheckConstraint(
                condition=(
                    Q(subtotal__gte=0) & Q(service_fee__gte=0) &
                    Q(tax_amount__gte=0) & Q(amount_paid__gte=0) &
                    Q(amount_refunded__gte=0)
                ),
                name="booking_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=Q(discount_amount__gte=0),
                name="booking_non_negative_discount",
            ),
        ]

    def __str__(self):
        return f"{self.booking_number} [{self.booking_status}]"

    @property
    def resource(self):
        return self.hall if self.resource_type == "hall" else self.event

    def clean(self):
        """Reject rows whose money columns disagree with each other."""
        issues = []
        if self.resource_type == "hall":
            if not self.start_at or not self.end_at:
                issues.append("Hall bookings need a start and end time.")
            elif self.end_at <= self.start_at:
                issues.append("End time must be after start time.")

        expected_total = to_money(
            self.subtotal + self.service_fee - self.discount_amount
            + self.tax_amount)
        if self.total != expected_total:
            issues.append(
                f"Total {self.total} does not equal subtotal + service fee "
                f"- discount + tax ({expected_total})."
            )
        if self.discount_amount > self.subtotal + self.service_fee:
            issues.append("Discount cannot exceed subtotal plus service fee.")
        if self.amount_paid > self.total:
            issues.append("Amount paid cannot exceed the booking total.")
        if self.balance_due != self.total - self.amount_paid:
            issues.append("Balance due must equal total minus amount paid.")
        if self.amount_refunded > self.amount_paid:
            issues.append("Amount refunded cannot exceed amount paid.")
        if issues:
            raise ValidationError(issues)

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    # Control status changes
    def transition_to(self, new_status, user=None):
        if new_status not in ALLOWED_TRANSITIONS.get(self.booking_status, []):
            raise ValidationError(
                f"Cannot go from {self.booking_status} to {new_status}")

        self.booking_status = new_status
        fields = ["booking_status", "updated_at"]
        if new_status == "cancelled":
            self.cancelled_at = timezone.now()
            fields += ["cancelled_at", "cancellation_reason"]
        self.save(update_fields=fields)


class BookingLineItem(models.Model):
    """One priced line of a booking: a ticket class, the hall rental
    itself, or an ad-hoc extra service."""

    booking = models.ForeignKey(
        Booking, on_delete=models.CASCADE, related_name="line_items")
    ticket_class = models.ForeignKey(
        TicketClass,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="line_items",
    )
    description = models.CharField(max_length=255)
    # quantity × unit_price = line_total
    quantity = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(**MONEY)
    line_total = models.DecimalField(**MONEY)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1) & Q(unit_price__gte=0),
                name="booking_line_positive_quantity",
            ),
        ]

    def __str__(self):
        return f"{self.booking.booking_number}: {self.quantity} × {self.description}"

    def save(self, *args, **kwargs):
        # compute line_total always
        self.line_total = to_money(self.quantity * self.unit_price)
        self.full_clean()
        return super().save(*args, **kwargs)
