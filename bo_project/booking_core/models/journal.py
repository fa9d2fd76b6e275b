import hashlib
import json
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from ..money import to_money
from .account import Account


def posting_fingerprint(date, lines):
    """sha256 of a deterministic JSON view of (date, lines).

    `lines` is an iterable of (account_id, debit, credit, description).
    Same data in the same order always gives the same fingerprint, which
    is how a repeated post for one reference is recognised.
    """
    payload = {
        "date": date.isoformat(),
        "lines": [
            {
                "acct": account_id,
                "debit": str(to_money(debit)),
                "credit": str(to_money(credit)),
                "desc": description or "",
            }
            for account_id, debit, credit, description in lines
        ],
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    return hashlib.sha256(raw.encode()).hexdigest()


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # Represents one accounting transaction
    journal_number = models.CharField(max_length=32, unique=True)
    date = models.DateField()
    description = models.TextField(blank=True, default="")

    # Back-reference to the originating booking / payment / cancellation
    reference_type = models.CharField(max_length=50)
    reference_id = models.BigIntegerField()

    # Totals stored at posting time
    total_debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    # Fingerprint-based idempotency (safe to post twice if nothing changed)
    posting_fingerprint = models.CharField(max_length=64, blank=True, default="")
    # Set when this entry mirrors an earlier one
    reverses = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversals",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )

    class Meta:
        ordering = ["date", "id"]
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["date"], name="je_date_idx"),
        ]
        constraints = [
            # One posting per originating document
            models.UniqueConstraint(
                fields=["reference_type", "reference_id"],
                name="uq_je_reference",
            ),
        ]

    def __str__(self):
        return f"{self.journal_number} {self.date}"

    @property
    def is_posted(self):
        return self.posted_at is not None

    # Aggregate all debit and credit amounts across entry’s lines
    def compute_totals(self):
        """Return debits, credits sums for lines"""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    # True if double-entry rule holds: total debits = total credits
    def is_balanced(self):
        debit, credit = self.compute_totals()
        return to_money(debit) == to_money(credit)

    def _fingerprint(self):
        return posting_fingerprint(
            self.date,
            self.lines.order_by("line_order").values_list(
                "account_id", "debit", "credit", "description"),
        )

    def clean(self):
        """Don't modify posted journals"""
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).first()
            if orig and orig.is_posted:
                for f in ("date", "total_debit", "total_credit",
                          "reference_type", "reference_id"):
                    if getattr(orig, f) != getattr(self, f):
                        raise ValidationError(
                            "Cannot modify a posted JournalEntry. It is immutable."
                        )
                if self.posted_at is None:
                    raise ValidationError("Cannot unpost a posted journal")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_posted:
            raise ValidationError("Cannot delete a posted JournalEntry.")
        return super().delete(*args, **kwargs)


class JournalLine(models.Model):  # Stores Lines ( credits / debits )
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_order = models.PositiveSmallIntegerField(default=1)
    # Can’t delete account if lines exist → PROTECT
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="journal_lines")
    description = models.CharField(max_length=400, blank=True, default="")
    debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["journal", "line_order"]
        indexes = [
            models.Index(fields=["account"], name="jl_account_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            # exactly one side carries the amount
            models.CheckConstraint(
                condition=(
                    (Q(debit__gt=0) & Q(credit=0)) |
                    (Q(debit=0) & Q(credit__gt=0))
                ),
                name="jl_debit_xor_credit",
            ),
        ]

    def __str__(self):
        return (f"{self.journal_id} | {self.account.code} {self.account.name}"
                f" | D:{self.debit} C:{self.credit}")

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError(
                "JournalLine should not have both debit and credit > 0")
        if self.debit == 0 and self.credit == 0:
            raise ValidationError(
                "JournalLine requires a non-0 amount on either debit or credit")

        # Lines of a posted entry are frozen
        if self.journal_id and JournalEntry.objects.filter(
                pk=self.journal_id, posted_at__isnull=False).exists():
            if not self.pk:
                raise ValidationError(
                    "Cannot add JournalLine: parent journal is posted.")
            orig = JournalLine.objects.get(pk=self.pk)
            if (orig.debit != self.debit or orig.credit != self.credit
                    or orig.account_id != self.account_id):
                raise ValidationError(
                    "Cannot modify JournalLine: parent JournalEntry is posted.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(
                pk=self.journal_id, posted_at__isnull=False).exists():
            raise ValidationError(
                "Cannot delete JournalLine: parent JournalEntry is posted.")
        return super().delete(*args, **kwargs)
