import datetime
from smtplib import SMTPException
from unittest import mock

from django.core import mail
from django.test import TestCase
from django.utils import timezone

from booking_core.exceptions import NotificationFailed
from booking_core.models import Booking
from booking_core.services import HallRequest, create_booking, record_payment
from booking_core.services.notifications import send_booking_confirmation
from booking_core.tasks import (expire_pending_bookings,
                                refresh_overdue_invoices,
                                send_booking_confirmation_task)

from .helpers import BookingFixturesMixin


class ConfirmationTaskTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        start, end = self.window(8, 14)
        self.booking = create_booking(self.hall, self.customer,
                                      HallRequest(start_at=start, end_at=end))

    def test_email_is_sent(self):
        # eager run, no broker involved
        result = send_booking_confirmation_task.apply(args=[self.booking.pk])

        self.assertTrue(result.get())
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(self.booking.booking_number, mail.outbox[0].subject)
        self.assertIn("33056.25", mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["ada@example.com"])

    def test_customer_without_email_is_skipped(self):
        self.customer.email = None
        self.customer.save()
        self.assertFalse(send_booking_confirmation(self.booking.pk))
        self.assertEqual(mail.outbox, [])

    def test_smtp_failure_raises_notification_failed(self):
        with mock.patch("booking_core.services.notifications.send_mail",
                        side_effect=SMTPException("relay denied")):
            with self.assertRaises(NotificationFailed):
                send_booking_confirmation(self.booking.pk)

    def test_task_swallows_notification_failure(self):
        with mock.patch("booking_core.services.notifications.send_mail",
                        side_effect=SMTPException("relay denied")):
            result = send_booking_confirmation_task.apply(args=[self.booking.pk])
        self.assertFalse(result.get())


class ExpirePendingBookingsTests(BookingFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.no_fees()

    def make_booking(self, start_hour, end_hour, minutes_old):
        start, end = self.window(start_hour, end_hour)
        booking = create_booking(self.hall, self.customer,
                                 HallRequest(start_at=start, end_at=end))
        Booking.objects.filter(pk=booking.pk).update(
            created_at=timezone.now() - datetime.timedelta(minutes=minutes_old))
        return booking

    def test_only_stale_unpaid_bookings_expire(self):
        stale = self.make_booking(8, 10, minutes_old=30)
        fresh = self.make_booking(10, 12, minutes_old=5)
        paid = self.make_booking(12, 14, minutes_old=30)
        record_payment(paid.pk, "100")

        self.assertEqual(expire_pending_bookings(), 1)

        stale.refresh_from_db()
        fresh.refresh_from_db()
        paid.refresh_from_db()
        self.assertEqual(stale.booking_status, "cancelled")
        self.assertIn("Expired", stale.cancellation_reason)
        self.assertEqual(fresh.booking_status, "pending")
        self.assertEqual(paid.booking_status, "pending")


class RefreshOverdueInvoicesTests(BookingFixturesMixin, TestCase):

    def test_past_due_invoice_and_booking_become_overdue(self):
        start, end = self.window(8, 14)
        booking = create_booking(self.hall, self.customer,
                                 HallRequest(start_at=start, end_at=end))
        invoice = booking.invoice
        invoice.due_date = timezone.localdate() - datetime.timedelta(days=1)
        invoice.save()

        self.assertEqual(refresh_overdue_invoices(), 1)

        invoice.refresh_from_db()
        booking.refresh_from_db()
        self.assertEqual(invoice.status, "overdue")
        self.assertEqual(booking.payment_status, "overdue")
