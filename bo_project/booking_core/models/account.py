from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

# Classify general ledger accounts
AC_TYPES = [
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("income", "Income"),
    ("expense", "Expense"),
]

# Types whose balance grows on the debit side
DEBIT_NORMAL_TYPES = ("asset", "expense")


class Account(models.Model):
    """
    Ledger account in the chart of accounts.
    - code is unique and used by settings.LEDGER_ACCOUNTS lookups
    - current_balance is shared state, mutated by every posting
    """

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    ac_type = models.CharField(max_length=10, choices=AC_TYPES)
    # Running balance in the account's normal direction
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    # “soft deactivate” accounts (stop new postings) without deleting history
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["ac_type"], name="account_type_idx"),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_debit_normal(self):
        return self.ac_type in DEBIT_NORMAL_TYPES

    def balance_delta(self, debit, credit):
        """Signed change a posting line makes to current_balance.

        Asset/Expense: += debit - credit
        Liability/Equity/Income: += credit - debit
        """
        if self.is_debit_normal:
            return debit - credit
        return credit - debit

    def save(self, *args, **kwargs):
        """Can’t disable accounts used in journal lines"""
        if self.pk:
            old = Account.objects.filter(pk=self.pk).first()
            if old and old.is_active and not self.is_active:
                if self.journal_lines.exists():
                    raise ValidationError(
                        "Cannot disable an account that is used in journal lines."
                    )
        return super().save(*args, **kwargs)
