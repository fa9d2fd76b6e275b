import datetime
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from booking_core.models import (Account, Customer, Event, Hall,
                                 TicketClass)
from booking_core.services.settings_store import set_setting

User = get_user_model()


def aware(*args):
    """Timezone-aware datetime in the project's TIME_ZONE."""
    return timezone.make_aware(datetime.datetime(*args))


# A Monday far enough ahead that nothing counts as "in the past"
DAY = (2030, 3, 4)


class BookingFixturesMixin:
    """Chart of accounts, one customer, one hall and one on-sale event."""

    def setUp(self):
        super().setUp()
        codes = settings.LEDGER_ACCOUNTS
        self.cash = Account.objects.create(
            code=codes["cash"], name="Cash", ac_type="asset")
        self.receivable = Account.objects.create(
            code=codes["receivable"], name="Accounts Receivable", ac_type="asset")
        self.hall_revenue = Account.objects.create(
            code=codes["hall_revenue"], name="Hall Rental Revenue",
            ac_type="income")
        self.event_revenue = Account.objects.create(
            code=codes["event_revenue"], name="Event Revenue", ac_type="income")

        self.user = User.objects.create_user(username="clerk", password="pw")
        self.customer = Customer.objects.create(
            name="Ada Obi", email="ada@example.com")

        self.hall = Hall.objects.create(
            code="H1",
            name="Grand Hall",
            capacity=200,
            hourly_rate=Decimal("5000.00"),
            daily_rate=Decimal("30000.00"),
            weekly_rate=Decimal("150000.00"),
            monthly_rate=Decimal("500000.00"),
        )

        self.event = Event.objects.create(
            code="JAZZ",
            name="Jazz Night",
            starts_at=aware(*DAY, 19, 0),
            status="published",
        )
        self.regular = TicketClass.objects.create(
            event=self.event, name="Regular", price=Decimal("2000.00"),
            quantity_available=100)
        self.vip = TicketClass.objects.create(
            event=self.event, name="VIP", price=Decimal("10000.00"),
            quantity_available=10)

        # e-mails are exercised explicitly where needed
        set_setting("booking_confirmation_email", "0")

    def no_fees(self):
        set_setting("service_fee_percentage", "0")
        set_setting("tax_rate", "0")

    def window(self, start_hour, end_hour, day=DAY):
        return aware(*day, start_hour, 0), aware(*day, end_hour, 0)
