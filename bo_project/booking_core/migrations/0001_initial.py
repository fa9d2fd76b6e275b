import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("ac_type", models.CharField(choices=[("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity"), ("income", "Income"), ("expense", "Expense")], max_length=10)),
                ("current_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["code"],
                "indexes": [models.Index(fields=["ac_type"], name="account_type_idx")],
            },
        ),
        migrations.CreateModel(
            name="Currency",
            fields=[
                ("code", models.CharField(max_length=3, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=64)),
                ("symbol", models.CharField(blank=True, max_length=8, null=True)),
                ("decimal_places", models.PositiveSmallIntegerField(default=2)),
            ],
            options={
                "verbose_name_plural": "currencies",
            },
        ),
        migrations.CreateModel(
            name="BookingSetting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=64, unique=True)),
                ("value", models.CharField(max_length=255)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="NumberSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("prefix", models.CharField(max_length=10)),
                ("year", models.PositiveSmallIntegerField()),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("prefix", "year"), name="uq_sequence_prefix_year")],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="auditlog_object_idx"),
                    models.Index(fields=["created_at"], name="auditlog_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("default_ar_account", models.ForeignKey(blank=True, help_text="Receivable account used for this customer's bookings", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="customers_default_ar", to="booking_core.account")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["name"], name="customer_name_idx"),
                    models.Index(fields=["email"], name="customer_email_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Hall",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("capacity", models.PositiveIntegerField(default=0)),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("hourly_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("daily_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("weekly_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("monthly_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("status", models.CharField(choices=[("available", "Available"), ("maintenance", "Maintenance"), ("unavailable", "Unavailable")], default="available", max_length=12)),
                ("enable_booking", models.BooleanField(default=True)),
                ("currency", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="booking_core.currency")),
                ("revenue_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="booking_core.account")),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("hourly_rate__gte", 0), ("daily_rate__gte", 0), ("weekly_rate__gte", 0), ("monthly_rate__gte", 0)), name="hall_non_negative_rates"),
                ],
            },
        ),
        migrations.CreateModel(
            name="HallClosure",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("hall", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="closures", to="booking_core.hall")),
            ],
            options={
                "ordering": ["date"],
                "constraints": [models.UniqueConstraint(fields=("hall", "date"), name="uq_hall_closure_date")],
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("venue", models.CharField(blank=True, default="", max_length=255)),
                ("starts_at", models.DateTimeField()),
                ("ends_at", models.DateTimeField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("published", "Published"), ("cancelled", "Cancelled"), ("completed", "Completed")], default="draft", max_length=10)),
                ("enable_booking", models.BooleanField(default=True)),
                ("booking_starts", models.DateTimeField(blank=True, null=True)),
                ("booking_ends", models.DateTimeField(blank=True, null=True)),
                ("currency", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="booking_core.currency")),
                ("revenue_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="booking_core.account")),
            ],
            options={
                "ordering": ["starts_at"],
                "indexes": [models.Index(fields=["status", "starts_at"], name="event_status_start_idx")],
            },
        ),
        migrations.CreateModel(
            name="TicketClass",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("quantity_available", models.PositiveIntegerField(default=0)),
                ("quantity_sold", models.PositiveIntegerField(default=0)),
                ("sale_starts", models.DateTimeField(blank=True, null=True)),
                ("sale_ends", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("event", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="ticket_classes", to="booking_core.event")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("event", "name"), name="uq_ticket_class_event_name"),
                    models.CheckConstraint(condition=models.Q(("quantity_sold__lte", models.F("quantity_available"))), name="ticket_class_not_oversold"),
                    models.CheckConstraint(condition=models.Q(("price__gte", 0)), name="ticket_class_non_negative_price"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=32, unique=True)),
                ("reference", models.CharField(blank=True, default="", max_length=64)),
                ("date", models.DateField()),
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("sent", "Sent"), ("partial", "Partial"), ("paid", "Paid"), ("overdue", "Overdue"), ("cancelled", "Cancelled")], default="sent", max_length=10)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("service_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("balance_due", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="booking_core.customer")),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["customer"], name="invoice_customer_idx"),
                    models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.DecimalField(decimal_places=4, default=Decimal("1"), max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="booking_core.account")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="booking_core.invoice")),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 0), ("unit_price__gte", 0)), name="invl_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("journal_number", models.CharField(max_length=32, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("reference_type", models.CharField(max_length=50)),
                ("reference_id", models.BigIntegerField()),
                ("total_debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("posting_fingerprint", models.CharField(blank=True, default="", max_length=64)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("reverses", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversals", to="booking_core.journalentry")),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ["date", "id"],
                "indexes": [models.Index(fields=["date"], name="je_date_idx")],
                "constraints": [models.UniqueConstraint(fields=("reference_type", "reference_id"), name="uq_je_reference")],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_order", models.PositiveSmallIntegerField(default=1)),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="booking_core.account")),
                ("journal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="booking_core.journalentry")),
            ],
            options={
                "ordering": ["journal", "line_order"],
                "indexes": [models.Index(fields=["account"], name="jl_account_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jl_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit__gt", 0), ("credit", 0)), models.Q(("debit", 0), ("credit__gt", 0)), _connector="OR"), name="jl_debit_xor_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_number", models.CharField(max_length=32, unique=True)),
                ("resource_type", models.CharField(choices=[("hall", "Hall"), ("event", "Event")], max_length=5)),
                ("start_at", models.DateTimeField(blank=True, null=True)),
                ("end_at", models.DateTimeField(blank=True, null=True)),
                ("attendee_count", models.PositiveIntegerField(default=0)),
                ("event_name", models.CharField(blank=True, default="", max_length=200)),
                ("special_requirements", models.TextField(blank=True, default="")),
                ("booking_source", models.CharField(default="admin", max_length=30)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("service_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("amount_refunded", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("balance_due", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("payment_type", models.CharField(choices=[("full", "Full payment"), ("partial", "Partial payment")], default="full", max_length=7)),
                ("booking_status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled"), ("completed", "Completed")], default="pending", max_length=10)),
                ("payment_status", models.CharField(choices=[("pending", "Pending"), ("partial", "Partial"), ("paid", "Paid"), ("refunded", "Refunded"), ("overdue", "Overdue")], default="pending", max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="booking_core.customer")),
                ("event", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="booking_core.event")),
                ("hall", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="booking_core.hall")),
                ("invoice", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="booking", to="booking_core.invoice")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["hall", "start_at", "end_at"], name="booking_hall_window_idx"),
                    models.Index(fields=["booking_status", "created_at"], name="booking_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(models.Q(("event__isnull", True), ("hall__isnull", False), ("resource_type", "hall")), models.Q(("event__isnull", False), ("hall__isnull", True), ("resource_type", "event")), _connector="OR"), name="booking_exactly_one_resource"),
                    models.CheckConstraint(condition=models.Q(("subtotal__gte", 0), ("service_fee__gte", 0), ("tax_amount__gte", 0), ("amount_paid__gte", 0), ("amount_refunded__gte", 0)), name="booking_non_negative_amounts"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingLineItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="line_items", to="booking_core.booking")),
                ("ticket_class", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="line_items", to="booking_core.ticketclass")),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1), ("unit_price__gte", 0)), name="booking_line_positive_quantity"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_number", models.CharField(max_length=32, unique=True)),
                ("kind", models.CharField(choices=[("payment", "Payment"), ("refund", "Refund")], default="payment", max_length=7)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(choices=[("cash", "Cash"), ("bank_transfer", "Bank transfer"), ("card", "Card"), ("pos", "POS"), ("cheque", "Cheque")], default="cash", max_length=15)),
                ("payment_date", models.DateField()),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="booking_core.booking")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("journal", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payments", to="booking_core.journalentry")),
            ],
            options={
                "ordering": ["payment_date", "id"],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_positive_amount")],
            },
        ),
    ]
