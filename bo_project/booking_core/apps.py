from django.apps import AppConfig


class BookingCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "booking_core"
    verbose_name = "Bookings & Ledger"

    # ensure receivers are registered
    def ready(self):
        import booking_core.signals  # noqa: F401
