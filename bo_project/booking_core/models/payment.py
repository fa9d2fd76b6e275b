from django.conf import settings
from django.db import models
from django.db.models import Q

from .booking import Booking

PAYMENT_KINDS = [
    ("payment", "Payment"),
    ("refund", "Refund"),
]

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("bank_transfer", "Bank transfer"),
    ("card", "Card"),
    ("pos", "POS"),
    ("cheque", "Cheque"),
]


class Payment(models.Model):
    """Money received for (or returned on) a booking."""

    payment_number = models.CharField(max_length=32, unique=True)
    booking = models.ForeignKey(
        Booking, on_delete=models.PROTECT, related_name="payments")
    kind = models.CharField(
        max_length=7, choices=PAYMENT_KINDS, default="payment")
    # Always positive, direction comes from kind
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    method = models.CharField(
        max_length=15, choices=PAYMENT_METHODS, default="cash")
    payment_date = models.DateField()
    reference = models.CharField(max_length=100, blank=True, default="")
    # Cash/AR posting produced for this payment, if the ledger is enabled
    journal = models.ForeignKey(
        "JournalEntry",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="payments",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["payment_date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="payment_positive_amount",
            ),
        ]

    def __str__(self):
        sign = "-" if self.kind == "refund" else ""
        return f"{self.payment_number} {sign}{self.amount}"

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
