from django.contrib import admin

from booking_core.models import Customer, Invoice

from .inlines import InvoiceLineInline


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "phone", "default_ar_account")
    search_fields = ("name", "email", "phone")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "customer",
        "reference",
        "date",
        "due_date",
        "total",
        "amount_paid",
        "balance_due",
        "status",
    )
    list_filter = ("status", "date")
    search_fields = ("invoice_number", "reference", "customer__name")
    inlines = [InvoiceLineInline]
    list_select_related = ("customer",)

    # Invoices mirror their booking; amounts follow payments
    def get_readonly_fields(self, request, obj=None):
        if obj:
            return [f.name for f in self.model._meta.concrete_fields
                    if f.name != "notes"]
        return super().get_readonly_fields(request, obj)

    def has_add_permission(self, request):
        return False
