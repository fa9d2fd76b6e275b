from django.contrib import admin

from booking_core.models import Booking, Payment

from .actions import cancel_bookings, complete_bookings, confirm_bookings
from .inlines import BookingLineItemInline, PaymentInline


# Bookings are created through the booking service (API), never by hand
@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_number",
        "resource_type",
        "resource_name",
        "customer",
        "start_at",
        "end_at",
        "total",
        "balance_due",
        "booking_status",
        "payment_status",
    )
    list_filter = ("resource_type", "booking_status", "payment_status")
    search_fields = ("booking_number", "customer__name", "event_name")
    date_hierarchy = "created_at"
    inlines = [BookingLineItemInline, PaymentInline]
    actions = [confirm_bookings, complete_bookings, cancel_bookings]
    readonly_fields = (
        "booking_number", "resource_type", "hall", "event", "customer",
        "start_at", "end_at", "subtotal", "service_fee", "discount_amount",
        "tax_amount", "total", "amount_paid", "amount_refunded", "balance_due",
        "payment_type", "booking_status", "payment_status", "invoice",
        "created_by", "created_at", "cancelled_at", "cancellation_reason",
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("hall", "event", "customer", "invoice")

    def resource_name(self, obj):
        return obj.resource.name

    resource_name.short_description = "Resource"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_number", "booking", "kind", "amount", "method",
                    "payment_date", "journal")
    list_filter = ("kind", "method")
    search_fields = ("payment_number", "booking__booking_number", "reference")
    list_select_related = ("booking", "journal")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
