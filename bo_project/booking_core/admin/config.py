from django.contrib import admin

from booking_core.models import AuditLog, BookingSetting, Currency, NumberSequence


@admin.register(Currency)
class CurrencyAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "symbol", "decimal_places")


@admin.register(BookingSetting)
class BookingSettingAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "description", "updated_at")
    search_fields = ("key",)


@admin.register(NumberSequence)
class NumberSequenceAdmin(admin.ModelAdmin):
    list_display = ("prefix", "year", "last_value")
    # counters are issued by the numbering service only
    readonly_fields = ("prefix", "year", "last_value")

    def has_add_permission(self, request):
        return False


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")
    list_filter = ("action", "created_at")
    list_select_related = ("user",)

    def has_change_permission(self, request, obj=None):
        return False
