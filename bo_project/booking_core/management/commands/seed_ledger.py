from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from booking_core.models import Account, BookingSetting, Currency

# Names and types for the codes in settings.LEDGER_ACCOUNTS
LEDGER_ACCOUNT_DEFAULTS = {
    "cash": ("Cash", "asset"),
    "receivable": ("Accounts Receivable", "asset"),
    "hall_revenue": ("Hall Rental Revenue", "income"),
    "event_revenue": ("Event Revenue", "income"),
}

SETTING_DESCRIPTIONS = {
    "service_fee_percentage": "Service fee applied to the booking subtotal (%)",
    "tax_rate": "Tax applied to subtotal plus service fee, less discount (%)",
    "min_deposit_percentage": "Deposit needed to confirm a partial booking (%)",
    "max_installments": "Maximum number of installments per booking",
    "booking_timeout_minutes": "Minutes before an unpaid pending booking expires",
    "auto_generate_invoice": "Create an invoice for every new booking",
    "auto_create_journal_entry": "Post revenue to the ledger for new bookings",
    "booking_confirmation_email": "Email the customer when a booking is created",
    "enable_discounts": "Allow a discount to be applied to new bookings",
}


class Command(BaseCommand):
    help = "Create the default currency, ledger accounts and booking settings."

    def add_arguments(self, parser):
        parser.add_argument(
            "--currency",
            default=getattr(settings, "DEFAULT_CURRENCY", "NGN"),
            help="ISO code of the default currency (default: DEFAULT_CURRENCY)",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        code = options["currency"].upper()
        currency, created = Currency.objects.get_or_create(
            code=code, defaults={"name": code})
        if created:
            self.stdout.write(self.style.SUCCESS(f"Created currency: {currency}"))

        # 1. Ledger accounts the booking core posts to
        for key, ac_code in settings.LEDGER_ACCOUNTS.items():
            name, ac_type = LEDGER_ACCOUNT_DEFAULTS.get(key, (key.title(), "asset"))
            account, created = Account.objects.get_or_create(
                code=ac_code, defaults={"name": name, "ac_type": ac_type})
            verb = "Created" if created else "Found"
            self.stdout.write(f"{verb} account: {account}")

        # 2. Settings rows, so admins can see and edit every key
        for key, value in settings.BOOKING_DEFAULTS.items():
            BookingSetting.objects.get_or_create(
                key=key,
                defaults={
                    "value": value,
                    "description": SETTING_DESCRIPTIONS.get(key, ""),
                },
            )

        self.stdout.write(self.style.SUCCESS("Ledger seeded successfully!"))
