from django.contrib import admin

from booking_core.models import (BookingLineItem, HallClosure, InvoiceLine,
                                 JournalLine, Payment, TicketClass)

# ---------- Helpful inline admin classes ----------


class HallClosureInline(admin.TabularInline):
    """Maintenance days on the Hall page"""
    model = HallClosure
    extra = 0
    fields = ("date", "reason")


class TicketClassInline(admin.TabularInline):
    model = TicketClass
    extra = 0
    fields = ("name", "price", "quantity_available", "quantity_sold",
              "sale_starts", "sale_ends", "is_active")
    # counters only move through bookings
    readonly_fields = ("quantity_sold",)


class BookingLineItemInline(admin.TabularInline):
    model = BookingLineItem
    extra = 0
    fields = ("description", "ticket_class", "quantity", "unit_price",
              "line_total")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("payment_number", "kind", "amount", "method", "payment_date",
              "reference", "journal")
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


class JournalLineInline(admin.TabularInline):
    """Show JournalLine rows on JournalEntry page, always read-only"""
    model = JournalLine
    extra = 0
    fields = ("line_order", "account", "description", "debit", "credit")
    readonly_fields = fields
    can_delete = False
    ordering = ("line_order",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account")

    def has_add_permission(self, request, obj=None):
        return False


class InvoiceLineInline(admin.TabularInline):
    model = InvoiceLine
    extra = 0
    fields = ("description", "quantity", "unit_price", "line_total", "account")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False
