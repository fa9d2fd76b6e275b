from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from booking_core.exceptions import (PersistenceFailed, Unavailable,
                                     UnbalancedJournalError, ValidationFailed)
from booking_core.models import (Account, AuditLog, Booking, BookingLineItem,
                                 Invoice, JournalEntry, Payment, TicketClass)
from booking_core.services import (AvailabilityResult, Extra, HallRequest,
                                   TicketRequest, cancel_booking,
                                   complete_booking, confirm_booking,
                                   create_booking, record_payment)
from booking_core.services.settings_store import set_setting

from .helpers import BookingFixturesMixin


class CreateHallBookingTests(BookingFixturesMixin, TestCase):

    def request(self, start_hour=8, end_hour=14, **kwargs):
        start, end = self.window(start_hour, end_hour)
        return HallRequest(start_at=start, end_at=end, **kwargs)

    def test_booking_invoice_and_journal_are_created_together(self):
        booking = create_booking(self.hall, self.customer, self.request(),
                                 actor=self.user,
                                 metadata={"event_name": "Wedding"})

        self.assertTrue(booking.booking_number.startswith("HB-"))
        self.assertEqual(booking.booking_status, "pending")
        self.assertEqual(booking.payment_status, "pending")
        self.assertEqual(booking.total, Decimal("33056.25"))
        self.assertEqual(booking.balance_due, booking.total)
        self.assertEqual(booking.event_name, "Wedding")
        self.assertEqual(booking.created_by, self.user)

        self.assertEqual(booking.line_items.count(), 1)

        invoice = booking.invoice
        self.assertTrue(invoice.invoice_number.startswith("INV-"))
        self.assertEqual(invoice.total, booking.total)
        self.assertEqual(invoice.reference, booking.booking_number)
        self.assertEqual(invoice.status, "sent")
        self.assertEqual(invoice.lines.get().account, self.hall_revenue)

        entry = JournalEntry.objects.get(reference_type="booking",
                                         reference_id=booking.pk)
        self.assertTrue(entry.is_balanced())
        self.receivable.refresh_from_db()
        self.hall_revenue.refresh_from_db()
        self.assertEqual(self.receivable.current_balance, booking.total)
        self.assertEqual(self.hall_revenue.current_balance, booking.total)

        self.assertTrue(AuditLog.objects.filter(
            action="create", object_type="Booking",
            object_id=str(booking.pk)).exists())

    def test_extras_become_line_items(self):
        booking = create_booking(
            self.hall, self.customer,
            self.request(extras=(Extra("Chairs", 50, Decimal("200")),)))
        self.assertEqual(
            list(booking.line_items.values_list("description", "line_total"))[1],
            ("Chairs", Decimal("10000.00")))

    def test_hall_revenue_account_override(self):
        special = Account.objects.create(
            code="4150", name="Premium Hall Revenue", ac_type="income")
        self.hall.revenue_account = special
        self.hall.save()

        booking = create_booking(self.hall, self.customer, self.request())

        special.refresh_from_db()
        self.assertEqual(special.current_balance, booking.total)

    def test_ledger_and_invoice_can_be_switched_off(self):
        set_setting("auto_generate_invoice", "0")
        set_setting("auto_create_journal_entry", "0")

        booking = create_booking(self.hall, self.customer, self.request())

        self.assertIsNone(booking.invoice)
        self.assertFalse(JournalEntry.objects.exists())

    def test_invalid_payment_type(self):
        with self.assertRaises(ValidationFailed):
            create_booking(self.hall, self.customer, self.request(),
                           payment_type="layaway")

    def test_failed_journal_rolls_back_everything(self):
        with mock.patch("booking_core.services.booking.post_journal_entry",
                        side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceFailed):
                create_booking(self.hall, self.customer, self.request())

        self.assertFalse(Booking.objects.exists())
        self.assertFalse(BookingLineItem.objects.exists())
        self.assertFalse(Invoice.objects.exists())
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.current_balance, Decimal("0.00"))

    def test_unbalanced_journal_aborts_the_booking(self):
        with mock.patch("booking_core.services.booking.post_journal_entry",
                        side_effect=UnbalancedJournalError(
                            "Journal not balanced: debits=1.00, credits=2.00")):
            with self.assertRaises(UnbalancedJournalError):
                create_booking(self.hall, self.customer, self.request())

        self.assertFalse(Booking.objects.exists())
        self.assertFalse(BookingLineItem.objects.exists())
        self.assertFalse(Invoice.objects.exists())
        self.assertFalse(JournalEntry.objects.exists())

    def test_invalid_settings_block_booking(self):
        set_setting("tax_rate", "150")
        with self.assertRaises(ValidationFailed):
            create_booking(self.hall, self.customer, self.request())


class ConfirmationEmailTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        set_setting("booking_confirmation_email", "1")
        start, end = self.window(8, 14)
        self.request = HallRequest(start_at=start, end_at=end)

    def test_confirmation_is_queued_after_commit(self):
        with mock.patch("booking_core.tasks.send_booking_confirmation_task") as task:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                booking = create_booking(self.hall, self.customer, self.request)

        self.assertEqual(len(callbacks), 1)
        task.delay.assert_called_once_with(booking.pk)

    def test_queue_failure_does_not_undo_booking(self):
        with mock.patch("booking_core.tasks.send_booking_confirmation_task") as task:
            task.delay.side_effect = OSError("broker unreachable")
            with self.captureOnCommitCallbacks(execute=True):
                booking = create_booking(self.hall, self.customer, self.request)

        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

    def test_nothing_is_queued_when_booking_fails(self):
        with mock.patch("booking_core.tasks.send_booking_confirmation_task") as task:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                with self.assertRaises(ValidationFailed):
                    create_booking(self.hall, self.customer, self.request,
                                   payment_type="layaway")

        self.assertEqual(callbacks, [])
        task.delay.assert_not_called()


class TicketBookingTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.no_fees()

    def book(self, *lines):
        return create_booking(self.event, self.customer,
                              TicketRequest(lines=tuple(lines)))

    def test_ticket_booking_reserves_inventory(self):
        booking = self.book((self.regular.pk, 3), (self.vip.pk, 1))

        self.assertTrue(booking.booking_number.startswith("BKG-"))
        self.assertEqual(booking.total, Decimal("16000.00"))
        self.assertEqual(booking.attendee_count, 4)
        self.assertEqual(booking.line_items.count(), 2)
        self.regular.refresh_from_db()
        self.vip.refresh_from_db()
        self.assertEqual(self.regular.quantity_sold, 3)
        self.assertEqual(self.vip.quantity_sold, 1)
        self.event_revenue.refresh_from_db()
        self.assertEqual(self.event_revenue.current_balance, Decimal("16000.00"))

    def test_oversell_is_refused_and_inventory_untouched(self):
        self.book((self.vip.pk, 8))
        with self.assertRaises(Unavailable):
            self.book((self.regular.pk, 1), (self.vip.pk, 3))

        self.regular.refresh_from_db()
        self.vip.refresh_from_db()
        self.assertEqual(self.regular.quantity_sold, 0)
        self.assertEqual(self.vip.quantity_sold, 8)

    """ a request that slips past the availability check still cannot
        take more tickets than remain """
    def test_guarded_update_refuses_oversell(self):
        self.book((self.vip.pk, 8))
        with mock.patch(
                "booking_core.services.availability.check_ticket_availability",
                return_value=AvailabilityResult()):
            with self.assertRaises(Unavailable) as ctx:
                self.book((self.regular.pk, 1), (self.vip.pk, 3))

        self.assertIn(f"ticket class {self.vip.pk}", ctx.exception.issues[0])
        self.regular.refresh_from_db()
        self.vip.refresh_from_db()
        self.assertEqual(self.regular.quantity_sold, 0)
        self.assertEqual(self.vip.quantity_sold, 8)
        self.assertEqual(Booking.objects.count(), 1)

    def test_free_tickets_get_a_paid_invoice(self):
        free = TicketClass.objects.create(
            event=self.event, name="Guest list", quantity_available=20)
        booking = self.book((free.pk, 2))

        self.assertEqual(booking.total, Decimal("0.00"))
        self.assertEqual(booking.invoice.status, "paid")
        self.assertFalse(JournalEntry.objects.exists())

    def test_sold_out_class_can_be_bought_exactly(self):
        self.book((self.vip.pk, 10))
        self.vip.refresh_from_db()
        self.assertEqual(self.vip.quantity_remaining, 0)

    """ sold + remaining == available across any create / cancel mix """
    def test_inventory_is_conserved(self):
        bookings = [self.book((self.regular.pk, n)) for n in (5, 7, 11)]
        cancel_booking(bookings[1].pk, "Duplicate order")

        self.regular.refresh_from_db()
        live = sum(
            b.line_items.get().quantity
            for b in Booking.objects.active().filter(event=self.event))
        self.assertEqual(self.regular.quantity_sold, live)
        self.assertEqual(self.regular.quantity_sold, 16)
        self.assertEqual(self.regular.quantity_sold + self.regular.quantity_remaining,
                         self.regular.quantity_available)


class TransitionTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        start, end = self.window(8, 14)
        self.booking = create_booking(self.hall, self.customer,
                                      HallRequest(start_at=start, end_at=end))

    def test_pending_confirmed_completed(self):
        confirm_booking(self.booking.pk, actor=self.user)
        booking = complete_booking(self.booking.pk, actor=self.user)
        self.assertEqual(booking.booking_status, "completed")
        self.assertEqual(
            list(AuditLog.objects.filter(object_type="Booking",
                                         object_id=str(self.booking.pk))
                 .order_by("id").values_list("action", flat=True)),
            ["create", "confirmed", "completed"])

    def test_pending_cannot_complete(self):
        with self.assertRaises(ValidationFailed):
            complete_booking(self.booking.pk)

    def test_completed_cannot_be_cancelled(self):
        confirm_booking(self.booking.pk)
        complete_booking(self.booking.pk)
        with self.assertRaises(ValidationFailed):
            cancel_booking(self.booking.pk, "Too late")

    def test_cancelled_is_final(self):
        cancel_booking(self.booking.pk, "Changed plans")
        with self.assertRaises(ValidationFailed):
            confirm_booking(self.booking.pk)

    def test_unknown_booking(self):
        with self.assertRaises(ValidationFailed):
            confirm_booking(987654)


class CancellationTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.no_fees()
        start, end = self.window(8, 12)
        # 4h × 5000
        self.booking = create_booking(self.hall, self.customer,
                                      HallRequest(start_at=start, end_at=end))

    def balances(self):
        for account in (self.cash, self.receivable, self.hall_revenue):
            account.refresh_from_db()
        return (self.cash.current_balance, self.receivable.current_balance,
                self.hall_revenue.current_balance)

    def test_reason_is_required(self):
        with self.assertRaises(ValidationFailed):
            cancel_booking(self.booking.pk, "  ")

    def test_unpaid_cancellation_reverses_revenue(self):
        booking = cancel_booking(self.booking.pk, "No show", actor=self.user)

        self.assertEqual(booking.booking_status, "cancelled")
        self.assertIsNotNone(booking.cancelled_at)
        self.assertEqual(booking.cancellation_reason, "No show")
        self.assertEqual(booking.invoice.status, "cancelled")
        self.assertEqual(self.balances(), (Decimal("0.00"),) * 3)
        reversal = JournalEntry.objects.get(reference_type="booking_cancellation")
        self.assertEqual(reversal.reverses.reference_type, "booking")

    def test_partial_refund_keeps_the_rest_as_revenue(self):
        record_payment(self.booking.pk, Decimal("8000.00"))

        booking = cancel_booking(self.booking.pk, "Date moved",
                                 refund_amount=Decimal("5000.00"))

        self.assertEqual(booking.amount_refunded, Decimal("5000.00"))
        self.assertEqual(booking.payment_status, "refunded")
        refund = Payment.objects.get(kind="refund")
        self.assertTrue(refund.payment_number.startswith("RFD-"))
        self.assertEqual(refund.amount, Decimal("5000.00"))
        # cash kept == revenue kept, nothing left receivable
        self.assertEqual(self.balances(), (Decimal("3000.00"), Decimal("0.00"),
                                           Decimal("3000.00")))

    def test_refund_cannot_exceed_amount_paid(self):
        record_payment(self.booking.pk, Decimal("1000.00"))
        with self.assertRaises(ValidationFailed):
            cancel_booking(self.booking.pk, "Changed plans",
                           refund_amount=Decimal("1000.01"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "pending")

    def test_negative_refund_is_rejected(self):
        with self.assertRaises(ValidationFailed):
            cancel_booking(self.booking.pk, "Changed plans",
                           refund_amount=Decimal("-1"))


class DiscountTests(BookingFixturesMixin, TestCase):

    def request(self, discount):
        start, end = self.window(8, 14)
        return HallRequest(start_at=start, end_at=end, discount=discount)

    """ 30000 rental + 750 fee - 1000 discount, then 7.5% tax """
    def test_discount_is_stored_on_booking_and_invoice(self):
        booking = create_booking(self.hall, self.customer,
                                 self.request(Decimal("1000")))

        self.assertEqual(booking.discount_amount, Decimal("1000.00"))
        self.assertEqual(booking.tax_amount, Decimal("2231.25"))
        self.assertEqual(booking.total, Decimal("31981.25"))
        self.assertEqual(booking.invoice.discount_amount, Decimal("1000.00"))
        self.assertEqual(booking.invoice.total, booking.total)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.current_balance, booking.total)

    def test_discounts_can_be_switched_off(self):
        set_setting("enable_discounts", "0")
        with self.assertRaises(ValidationFailed) as ctx:
            create_booking(self.hall, self.customer,
                           self.request(Decimal("1000")))
        self.assertEqual(ctx.exception.issues, ["Discounts are not enabled."])
        self.assertFalse(Booking.objects.exists())

    def test_discount_cannot_exceed_the_charge(self):
        with self.assertRaises(ValidationFailed):
            create_booking(self.hall, self.customer,
                           self.request(Decimal("40000")))
        self.assertFalse(Booking.objects.exists())

    def test_negative_or_unparsable_discount(self):
        for discount in (Decimal("-1"), "NaN"):
            with self.subTest(discount=discount):
                with self.assertRaises(ValidationFailed):
                    create_booking(self.hall, self.customer,
                                   self.request(discount))
