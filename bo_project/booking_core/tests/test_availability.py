from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from booking_core.exceptions import Unavailable, ValidationFailed
from booking_core.models import Event, HallClosure, TicketClass
from booking_core.services import (HallRequest, TicketRequest,
                                   cancel_booking, check_availability,
                                   create_booking)

from .helpers import DAY, BookingFixturesMixin, aware


class HallAvailabilityTests(BookingFixturesMixin, TestCase):

    def book(self, start_hour, end_hour):
        start, end = self.window(start_hour, end_hour)
        return create_booking(self.hall, self.customer,
                              HallRequest(start_at=start, end_at=end))

    def check(self, start_hour, end_hour, **kwargs):
        start, end = self.window(start_hour, end_hour)
        return check_availability(
            self.hall, HallRequest(start_at=start, end_at=end, **kwargs))

    def test_empty_calendar_is_available(self):
        result = self.check(8, 14)
        self.assertTrue(result.available)
        self.assertEqual(result.conflicts, [])

    """ 12:00-16:00 overlaps an existing 08:00-14:00 """
    def test_overlapping_request_reports_conflict(self):
        first = self.book(8, 14)

        result = self.check(12, 16)

        self.assertFalse(result.available)
        self.assertEqual(result.conflicts, [first])
        self.assertIn(first.booking_number, result.issues[0])

    def test_adjacent_windows_do_not_conflict(self):
        self.book(8, 12)
        self.assertTrue(self.check(12, 16).available)
        self.assertTrue(self.check(6, 8).available)

    # new window strictly inside an existing one
    def test_nested_window_conflicts(self):
        outer = self.book(8, 18)
        result = self.check(10, 12)
        self.assertFalse(result.available)
        self.assertEqual(result.conflicts, [outer])

    # existing window strictly inside the new one
    def test_enclosing_window_conflicts(self):
        inner = self.book(10, 12)
        result = self.check(8, 18)
        self.assertFalse(result.available)
        self.assertEqual(result.conflicts, [inner])

    def test_cancelled_booking_frees_the_slot(self):
        booking = self.book(8, 14)
        cancel_booking(booking.pk, "Customer changed plans")
        self.assertTrue(self.check(8, 14).available)

    def test_confirmed_and_completed_bookings_still_block(self):
        booking = self.book(8, 14)
        booking.transition_to("confirmed")
        self.assertFalse(self.check(9, 10).available)
        booking.transition_to("completed")
        self.assertFalse(self.check(9, 10).available)

    def test_exclude_booking_id_ignores_that_booking(self):
        booking = self.book(8, 14)
        start, end = self.window(9, 13)
        result = check_availability(
            self.hall, HallRequest(start_at=start, end_at=end),
            exclude_booking_id=booking.pk)
        self.assertTrue(result.available)

    def test_closure_day_blocks_booking(self):
        HallClosure.objects.create(hall=self.hall, date=aware(*DAY, 0, 0).date(),
                                   reason="Painting")
        result = self.check(8, 14)
        self.assertFalse(result.available)
        self.assertIn("maintenance", result.issues[0])

    def test_hall_in_maintenance_is_unavailable(self):
        self.hall.status = "maintenance"
        self.hall.save()
        result = self.check(8, 14)
        self.assertFalse(result.available)

    def test_capacity_is_enforced(self):
        result = self.check(8, 14, attendee_count=201)
        self.assertFalse(result.available)
        self.assertTrue(self.check(8, 14, attendee_count=200).available)

    def test_past_window_is_rejected(self):
        start = timezone.now() - timedelta(days=1)
        result = check_availability(
            self.hall, HallRequest(start_at=start,
                                   end_at=start + timedelta(hours=2)))
        self.assertFalse(result.available)

    def test_end_before_start_is_a_validation_error(self):
        with self.assertRaises(ValidationFailed):
            self.check(14, 8)

    def test_create_booking_rejects_overlap(self):
        self.book(8, 14)
        with self.assertRaises(Unavailable) as ctx:
            self.book(12, 16)
        self.assertEqual(len(ctx.exception.conflicts), 1)


class TicketAvailabilityTests(BookingFixturesMixin, TestCase):

    def request(self, *lines):
        return TicketRequest(lines=tuple(lines))

    def test_enough_tickets_available(self):
        result = check_availability(self.event, self.request((self.regular.pk, 10)))
        self.assertTrue(result.available)

    """ 100 available, 95 sold, 10 requested """
    def test_not_enough_remaining(self):
        self.regular.quantity_sold = 95
        self.regular.save()

        result = check_availability(self.event, self.request((self.regular.pk, 10)))

        self.assertFalse(result.available)
        self.assertIn("Only 5", result.issues[0])

    def test_quantities_for_one_class_are_merged(self):
        self.vip.quantity_sold = 5
        self.vip.save()
        result = check_availability(
            self.event, self.request((self.vip.pk, 3), (self.vip.pk, 3)))
        self.assertFalse(result.available)

    def test_sale_ended(self):
        self.regular.sale_ends = timezone.now() - timedelta(hours=1)
        self.regular.save()
        result = check_availability(self.event, self.request((self.regular.pk, 1)))
        self.assertFalse(result.available)

    def test_draft_event_is_closed(self):
        self.event.status = "draft"
        self.event.save()
        result = check_availability(self.event, self.request((self.regular.pk, 1)))
        self.assertFalse(result.available)

    def test_ticket_class_of_other_event_is_a_validation_error(self):
        other = Event.objects.create(code="OPERA", name="Opera",
                                     starts_at=aware(*DAY, 20, 0),
                                     status="published")
        stranger = TicketClass.objects.create(
            event=other, name="Stalls", quantity_available=5)

        with self.assertRaises(ValidationFailed) as ctx:
            check_availability(self.event, self.request((stranger.pk, 1)))
        self.assertIn("does not belong to Jazz Night", ctx.exception.issues[0])

        with self.assertRaises(ValidationFailed):
            create_booking(self.event, self.customer,
                           self.request((self.regular.pk, 1), (stranger.pk, 1)))
        self.regular.refresh_from_db()
        self.assertEqual(self.regular.quantity_sold, 0)

    def test_empty_request_is_a_validation_error(self):
        with self.assertRaises(ValidationFailed):
            check_availability(self.event, self.request())
