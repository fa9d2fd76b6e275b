from django.contrib import admin
from django.utils.html import format_html

from booking_core.models import Event, Hall, TicketClass

from .inlines import HallClosureInline, TicketClassInline


@admin.register(Hall)
class HallAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "capacity", "hourly_rate", "daily_rate",
                    "weekly_rate", "monthly_rate", "status", "enable_booking")
    list_filter = ("status", "enable_booking")
    search_fields = ("code", "name", "location")
    inlines = [HallClosureInline]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "starts_at", "status", "enable_booking",
                    "tickets_sold", "sold_out")
    list_filter = ("status", "enable_booking")
    search_fields = ("code", "name", "venue")
    date_hierarchy = "starts_at"
    inlines = [TicketClassInline]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("ticket_classes")

    """ Computed column: sold / available across classes """
    def tickets_sold(self, obj):
        classes = list(obj.ticket_classes.all())
        sold = sum(tc.quantity_sold for tc in classes)
        available = sum(tc.quantity_available for tc in classes)
        return format_html("<b>{}</b> / <small>{}</small>", sold, available)

    tickets_sold.short_description = "Sold / Available"

    def sold_out(self, obj):
        return obj.is_sold_out

    sold_out.boolean = True
    sold_out.short_description = "Sold out"


@admin.register(TicketClass)
class TicketClassAdmin(admin.ModelAdmin):
    list_display = ("event", "name", "price", "quantity_available",
                    "quantity_sold", "is_active")
    list_filter = ("is_active", "event")
    readonly_fields = ("quantity_sold",)
    list_select_related = ("event",)
