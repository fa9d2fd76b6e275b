"""Read-only availability checks.

Used both as a pre-flight check for the booking UI and, with lock=True,
as the re-validation gate inside the booking transaction.
"""
from dataclasses import dataclass, field
from datetime import timedelta

from django.utils import timezone

from ..models import Booking, Event, Hall, HallClosure, TicketClass


@dataclass(frozen=True)
class Window:
    """Half-open time window [start, end)."""
    start: object
    end: object

    def local_dates(self):
        """Calendar dates (local time) the window touches."""
        first = timezone.localtime(self.start).date()
        # end is exclusive: a window ending at midnight does not touch that day
        last = timezone.localtime(self.end - timedelta(microseconds=1)).date()
        days = (last - first).days
        return [first + timedelta(days=n) for n in range(days + 1)]


@dataclass
class AvailabilityResult:
    available: bool = True
    conflicts: list = field(default_factory=list)
    issues: list = field(default_factory=list)

    def add_issue(self, message):
        if message not in self.issues:
            self.issues.append(message)
        self.available = False


def _fmt(dt):
    return timezone.localtime(dt).strftime("%Y-%m-%d %H:%M")


# ---------- Halls ----------
def check_hall_availability(hall, window, *, attendee_count=0,
                            exclude_booking_id=None, now=None, lock=False):
    now = now or timezone.now()
    result = AvailabilityResult()

    if lock:
        # serialise concurrent bookings of the same hall on its row
        hall = Hall.objects.select_for_update().get(pk=hall.pk)

    if hall.status != "available":
        result.add_issue(f"{hall.name} is not available for booking "
                         f"(status: {hall.get_status_display()}).")
    if not hall.enable_booking:
        result.add_issue(f"Booking is disabled for {hall.name}.")
    if window.end <= window.start:
        result.add_issue("End time must be after start time.")
        return result
    if window.start < now:
        result.add_issue("Cannot book a time window in the past.")
    if hall.capacity and attendee_count > hall.capacity:
        result.add_issue(f"{hall.name} holds at most {hall.capacity} guests.")

    closures = HallClosure.objects.filter(
        hall=hall, date__in=window.local_dates()).order_by("date")
    for closure in closures:
        result.add_issue(
            f"{hall.name} is closed for maintenance on {closure.date}.")

    conflicts = (
        Booking.objects.active()
        .for_hall(hall)
        .overlapping(window.start, window.end)
        .order_by("start_at")
    )
    if exclude_booking_id is not None:
        conflicts = conflicts.exclude(pk=exclude_booking_id)
    for booking in conflicts:
        result.conflicts.append(booking)
        result.add_issue(
            f"{hall.name} is already booked from {_fmt(booking.start_at)} "
            f"to {_fmt(booking.end_at)} ({booking.booking_number})."
        )
    return result


# ---------- Events / tickets ----------
def check_event_open(event, now=None):
    """Gate on the event itself: published, enabled, inside booking window."""
    now = now or timezone.now()
    result = AvailabilityResult()
    if event.status != "published":
        result.add_issue(f"{event.name} is not open for booking.")
    if not event.enable_booking:
        result.add_issue(f"Booking is disabled for {event.name}.")
    if event.booking_starts and now < event.booking_starts:
        result.add_issue(f"Booking for {event.name} has not opened yet.")
    if event.booking_ends and now > event.booking_ends:
        result.add_issue(f"Booking for {event.name} has closed.")
    if now >= event.starts_at:
        result.add_issue(f"{event.name} has already started.")
    return result


def merge_ticket_quantities(lines):
    """Collapse [(ticket_class_id, qty), ...] into {ticket_class_id: qty}."""
    merged = {}
    for ticket_class_id, quantity in lines:
        merged[ticket_class_id] = merged.get(ticket_class_id, 0) + quantity
    return merged


def load_ticket_classes(event, ticket_class_ids, lock=False):
    qs = TicketClass.objects.filter(event=event, pk__in=list(ticket_class_ids))
    if lock:
        qs = qs.select_for_update()
    # id order keeps lock acquisition consistent across transactions
    return {tc.pk: tc for tc in qs.order_by("pk")}


def check_ticket_availability(event, lines, *, now=None, lock=False):
    """`lines` is an iterable of (ticket_class_id, quantity)."""
    now = now or timezone.now()
    if lock:
        event = Event.objects.select_for_update().get(pk=event.pk)
    result = check_event_open(event, now)

    requested = merge_ticket_quantities(lines)
    if not requested:
        result.add_issue("Select at least one ticket.")
        return result

    classes = load_ticket_classes(event, requested.keys(), lock=lock)
    for ticket_class_id, quantity in requested.items():
        tc = classes.get(ticket_class_id)
        if tc is None:
            result.add_issue(
                f"Ticket class {ticket_class_id} does not belong to {event.name}.")
            continue
        if quantity <= 0:
            result.add_issue(f"Quantity for {tc.name} must be at least 1.")
            continue
        if not tc.is_active:
            result.add_issue(f"{tc.name} tickets are not on sale.")
        if tc.sale_starts and now < tc.sale_starts:
            result.add_issue(f"Sales for {tc.name} have not started.")
        if tc.sale_ends and now > tc.sale_ends:
            result.add_issue(f"Sales for {tc.name} have ended.")
        if tc.quantity_remaining < quantity:
            result.add_issue(
                f"Only {tc.quantity_remaining} {tc.name} tickets left, "
                f"{quantity} requested."
            )
    return result
