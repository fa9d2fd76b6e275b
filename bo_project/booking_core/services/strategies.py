"""Per-resource behaviour behind one generic booking core.

Each strategy answers the same questions for its resource kind: is the
request valid, is it available, what does it cost, which line items does
it produce, and how is inventory held and released.
"""
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import F

from ..exceptions import Unavailable, ValidationFailed
from ..models import Event, Hall, TicketClass
from ..money import ZERO, to_decimal, to_money
from . import availability, pricing
from .ledger import resolve_account
from .numbering import EVENT_BOOKING, HALL_BOOKING


@dataclass(frozen=True)
class HallRequest:
    start_at: object
    end_at: object
    attendee_count: int = 0
    extras: tuple = ()
    discount: Decimal = ZERO

    @property
    def window(self):
        return availability.Window(self.start_at, self.end_at)


@dataclass(frozen=True)
class TicketRequest:
    # (ticket_class_id, quantity) pairs
    lines: tuple = ()
    discount: Decimal = ZERO

    @property
    def quantities(self):
        return availability.merge_ticket_quantities(self.lines)

    @property
    def ticket_count(self):
        return sum(self.quantities.values())


class ResourceStrategy:
    resource_type = None
    number_prefix = None
    revenue_key = None
    label = None

    def __init__(self, resource):
        self.resource = resource

    def validate(self, request):
        try:
            discount = to_decimal(request.discount)
        except ValueError:
            return ["Discount must be a number."]
        if discount < 0:
            return ["Discount cannot be negative."]
        return []

    def check_availability(self, request, *, exclude_booking_id=None,
                           now=None, lock=False):
        raise NotImplementedError

    def price(self, request, fees):
        raise NotImplementedError

    def booking_fields(self, request):
        raise NotImplementedError

    def line_items(self, request):
        raise NotImplementedError

    def reserve(self, request):
        """Hold inventory inside the booking transaction."""

    def release(self, booking):
        """Give back whatever reserve() held."""

    def revenue_account(self):
        return self.resource.revenue_account or resolve_account(self.revenue_key)

    def description(self):
        return f"{self.label} - {self.resource.name}"


class HallStrategy(ResourceStrategy):
    resource_type = "hall"
    number_prefix = HALL_BOOKING
    revenue_key = "hall_revenue"
    label = "Hall Booking"

    def validate(self, request):
        issues = super().validate(request)
        if request.start_at is None or request.end_at is None:
            issues.append("Start and end time are required.")
        elif request.end_at <= request.start_at:
            issues.append("End time must be after start time.")
        if request.attendee_count < 0:
            issues.append("Attendee count cannot be negative.")
        for extra in request.extras:
            if extra.quantity < 1:
                issues.append(f"Quantity for {extra.description} must be at least 1.")
            try:
                unit_price = to_decimal(extra.unit_price)
            except ValueError:
                issues.append(f"Price for {extra.description} must be a number.")
                continue
            if unit_price < 0:
                issues.append(f"Price for {extra.description} cannot be negative.")
        return issues

    def check_availability(self, request, *, exclude_booking_id=None,
                           now=None, lock=False):
        return availability.check_hall_availability(
            self.resource,
            request.window,
            attendee_count=request.attendee_count,
            exclude_booking_id=exclude_booking_id,
            now=now,
            lock=lock,
        )

    def price(self, request, fees):
        return pricing.price_hall(
            self.resource, request.start_at, request.end_at, fees,
            extras=request.extras, discount=request.discount)

    def booking_fields(self, request):
        return {
            "hall": self.resource,
            "start_at": request.start_at,
            "end_at": request.end_at,
            "attendee_count": request.attendee_count,
        }

    def line_items(self, request):
        hours = pricing.duration_hours(request.start_at, request.end_at)
        rental = to_money(pricing.hall_rental_amount(self.resource, hours))
        items = [{
            "description": f"Hall rental: {self.resource.name} "
                           f"({to_money(hours).normalize():f}h)",
            "quantity": 1,
            "unit_price": rental,
        }]
        for extra in request.extras:
            items.append({
                "description": extra.description,
                "quantity": extra.quantity,
                "unit_price": to_money(extra.unit_price),
            })
        return items


class TicketStrategy(ResourceStrategy):
    resource_type = "event"
    number_prefix = EVENT_BOOKING
    revenue_key = "event_revenue"
    label = "Event Booking"

    def validate(self, request):
        issues = super().validate(request)
        if not request.lines:
            issues.append("Select at least one ticket.")
        for _, quantity in request.lines:
            if quantity < 1:
                issues.append("Ticket quantities must be at least 1.")
        if request.lines:
            classes = availability.load_ticket_classes(
                self.resource, request.quantities.keys())
            for pk in sorted(set(request.quantities) - set(classes)):
                issues.append(
                    f"Ticket class {pk} does not belong to {self.resource.name}.")
        return issues

    def check_availability(self, request, *, exclude_booking_id=None,
                           now=None, lock=False):
        return availability.check_ticket_availability(
            self.resource, request.lines, now=now, lock=lock)

    def _classes(self, request):
        classes = availability.load_ticket_classes(
            self.resource, request.quantities.keys())
        missing = sorted(set(request.quantities) - set(classes))
        if missing:
            raise ValidationFailed([
                f"Ticket class {pk} does not belong to {self.resource.name}."
                for pk in missing
            ])
        return classes

    def price(self, request, fees):
        classes = self._classes(request)
        return pricing.price_tickets(
            [(classes[pk], qty) for pk, qty in request.quantities.items()],
            fees,
            discount=request.discount,
        )

    def booking_fields(self, request):
        return {
            "event": self.resource,
            "attendee_count": request.ticket_count,
        }

    def line_items(self, request):
        classes = self._classes(request)
        return [
            {
                "ticket_class": classes[pk],
                "description": f"{self.resource.name} – {classes[pk].name}",
                "quantity": qty,
                "unit_price": classes[pk].price,
            }
            for pk, qty in sorted(request.quantities.items())
        ]

    def reserve(self, request):
        # Guarded increment: the row only matches while there is room,
        # so an oversell shows up as zero affected rows
        for pk, qty in sorted(request.quantities.items()):
            updated = (
                TicketClass.objects.filter(pk=pk)
                .with_remaining(qty)
                .update(quantity_sold=F("quantity_sold") + qty)
            )
            if updated != 1:
                raise Unavailable(
                    [f"Not enough tickets left in ticket class {pk}."])

    def release(self, booking):
        for item in booking.line_items.filter(
                ticket_class__isnull=False).order_by("ticket_class_id"):
            TicketClass.objects.filter(pk=item.ticket_class_id).update(
                quantity_sold=F("quantity_sold") - item.quantity)


def strategy_for(resource):
    if isinstance(resource, Hall):
        return HallStrategy(resource)
    if isinstance(resource, Event):
        return TicketStrategy(resource)
    raise TypeError(f"No booking strategy for {type(resource).__name__}")


def strategy_for_booking(booking):
    return strategy_for(booking.resource)
