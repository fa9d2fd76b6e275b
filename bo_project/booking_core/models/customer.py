from django.core.exceptions import ValidationError
from django.db import models

from .account import Account


# ---------- Customer ----------
# The party a booking is made for (AR side)
class Customer(models.Model):
    name = models.CharField(max_length=200)
    # Receives booking confirmations
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True, default="")

    # If set, receivables for this customer post here
    # instead of the default AR account from settings
    default_ar_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers_default_ar",
        help_text="Receivable account used for this customer's bookings",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["name"], name="customer_name_idx"),
            models.Index(fields=["email"], name="customer_email_idx"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        ar = self.default_ar_account
        if ar and ar.ac_type != "asset":
            raise ValidationError(
                "Default receivable account must be an asset account")
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
