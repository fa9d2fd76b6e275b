from decimal import Decimal

from django.contrib import admin
from django.utils.html import format_html

from booking_core.models import Account, JournalEntry

from .inlines import JournalLineInline


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "ac_type", "current_balance", "is_active")
    list_filter = ("ac_type", "is_active")
    search_fields = ("code", "name")
    # balances only move through postings
    readonly_fields = ("current_balance", "created_at")


# Journal entries are written by the ledger poster and never edited
@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "journal_number",
        "date",
        "reference_type",
        "reference_id",
        "description",
        "posted_at",
        "balanced",
    )
    list_filter = ("reference_type", "date")
    search_fields = ("journal_number", "description")
    inlines = [JournalLineInline]
    readonly_fields = [f.name for f in JournalEntry._meta.concrete_fields]

    """ Computed column for balance check """
    # Show total debits / total credits for each journal
    def balanced(self, obj):
        d, c = obj.total_debit, obj.total_credit
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.00"),
            c or Decimal("0.00")
        )

    balanced.short_description = "Debits / Credits"

    def has_add_permission(self, request):
        return False

    """ Prevent deletion after posting """
    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_delete_permission(request, obj)
