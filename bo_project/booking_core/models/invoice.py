from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ..managers import InvoiceQuerySet
from ..money import to_money
from .account import Account
from .customer import Customer

INV_STATUS_CHOICES = [
    ("sent", "Sent"),
    ("partial", "Partial"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]

MONEY = dict(max_digits=18, decimal_places=2, default=Decimal("0.00"))


class Invoice(models.Model):  # Represents a customer invoice
    # human-readable (e.g. "INV-2026-0001")
    invoice_number = models.CharField(max_length=32, unique=True)
    customer = models.ForeignKey(
        Customer,
        # prevent deleting customer who has an invoice
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    # Booking number this invoice was generated from
    reference = models.CharField(max_length=64, blank=True, default="")
    date = models.DateField()  # issue date
    due_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="sent")
    """ Workflow, recomputed whenever a payment is recorded:
        sent = issued, nothing paid yet
        partial = something paid, balance remains
        paid = fully settled
        overdue = past due date with balance and nothing paid
        cancelled = booking was cancelled """

    # Mirrors the booking at creation time
    subtotal = models.DecimalField(**MONEY)
    service_fee = models.DecimalField(**MONEY)
    discount_amount = models.DecimalField(**MONEY)
    tax_amount = models.DecimalField(**MONEY)
    total = models.DecimalField(**MONEY)
    amount_paid = models.DecimalField(**MONEY)
    balance_due = models.DecimalField(**MONEY)
    notes = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = InvoiceQuerySet.as_manager()

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["customer"], name="invoice_customer_idx"),
            models.Index(fields=["status", "due_date"],
                         name="invoice_status_due_idx"),
        ]

    def __str__(self):
        return f"Inv {self.invoice_number}"

    def compute_status(self, today=None):
        """Status implied by the stored amounts on `today`."""
        if self.status == "cancelled":
            return "cancelled"
        today = today or timezone.localdate()
        if self.balance_due <= 0:
            return "paid"
        if self.amount_paid > 0:
            return "partial"
        if self.due_date and today > self.due_date:
            return "overdue"
        return "sent"

    def apply_paid_amount(self, amount_paid, today=None):
        self.amount_paid = to_money(amount_paid)
        self.balance_due = self.total - self.amount_paid
        self.status = self.compute_status(today)

    def clean(self):
        if self.total != to_money(
                self.subtotal + self.service_fee - self.discount_amount
                + self.tax_amount):
            raise ValidationError(
                "Invoice total must equal subtotal + service fee - discount + tax")
        if self.amount_paid > self.total:
            raise ValidationError("Amount paid cannot exceed invoice total")
        if self.balance_due != self.total - self.amount_paid:
            raise ValidationError(
                "Balance due must equal total minus amount paid")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class InvoiceLine(models.Model):
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="lines")
    description = models.CharField(max_length=255)
    # Core pricing logic: quantity × unit_price = line_total
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1"))
    unit_price = models.DecimalField(**MONEY)
    line_total = models.DecimalField(**MONEY)
    # Revenue GL account for this line
    account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=0) & Q(unit_price__gte=0),
                name="invl_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Invoice: {self.invoice.invoice_number} - {self.description}"

    def save(self, *args, **kwargs):
        self.line_total = to_money(self.quantity * self.unit_price)
        self.full_clean()
        return super().save(*args, **kwargs)
