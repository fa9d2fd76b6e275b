from django import forms

from .models import Customer, Event, Hall
from .models.booking import PAYMENT_TYPES, RESOURCE_TYPES
from .models.payment import PAYMENT_METHODS
from .money import ZERO, to_decimal
from .services import Extra, HallRequest, TicketRequest


class BookingRequestForm(forms.Form):
    """What is being booked: a hall window or a set of tickets."""

    resource_type = forms.ChoiceField(choices=RESOURCE_TYPES)
    hall = forms.ModelChoiceField(queryset=Hall.objects.all(), required=False)
    event = forms.ModelChoiceField(queryset=Event.objects.all(), required=False)
    start_at = forms.DateTimeField(required=False)
    end_at = forms.DateTimeField(required=False)
    attendee_count = forms.IntegerField(min_value=0, required=False)
    # [{"ticket_class": 3, "quantity": 2}, ...]
    tickets = forms.JSONField(required=False)
    # [{"description": "Chairs", "quantity": 50, "unit_price": "200"}, ...]
    extras = forms.JSONField(required=False)
    discount = forms.DecimalField(max_digits=18, decimal_places=2, min_value=0,
                                  required=False)

    def clean_tickets(self):
        raw = self.cleaned_data.get("tickets") or []
        if not isinstance(raw, list):
            raise forms.ValidationError("tickets must be a list")
        lines = []
        for row in raw:
            try:
                lines.append((int(row["ticket_class"]), int(row["quantity"])))
            except (KeyError, TypeError, ValueError):
                raise forms.ValidationError(
                    "Each ticket needs an integer ticket_class and quantity")
        return tuple(lines)

    def clean_extras(self):
        raw = self.cleaned_data.get("extras") or []
        if not isinstance(raw, list):
            raise forms.ValidationError("extras must be a list")
        extras = []
        for row in raw:
            try:
                extras.append(Extra(
                    description=str(row["description"]),
                    quantity=int(row.get("quantity", 1)),
                    unit_price=to_decimal(row["unit_price"]),
                ))
            except (KeyError, TypeError, ValueError):
                raise forms.ValidationError(
                    "Each extra needs a description, quantity and unit_price")
        return tuple(extras)

    def clean(self):
        cleaned = super().clean()
        rtype = cleaned.get("resource_type")
        if rtype == "hall":
            if not cleaned.get("hall"):
                self.add_error("hall", "Choose a hall.")
            if not cleaned.get("start_at"):
                self.add_error("start_at", "Start time is required.")
            if not cleaned.get("end_at"):
                self.add_error("end_at", "End time is required.")
        elif rtype == "event":
            if not cleaned.get("event"):
                self.add_error("event", "Choose an event.")
            if not cleaned.get("tickets"):
                self.add_error("tickets", "Select at least one ticket.")
        return cleaned

    def resource(self):
        if self.cleaned_data["resource_type"] == "hall":
            return self.cleaned_data["hall"]
        return self.cleaned_data["event"]

    def to_request(self):
        data = self.cleaned_data
        if data["resource_type"] == "hall":
            return HallRequest(
                start_at=data["start_at"],
                end_at=data["end_at"],
                attendee_count=data.get("attendee_count") or 0,
                extras=data.get("extras") or (),
                discount=data.get("discount") or ZERO,
            )
        return TicketRequest(lines=data.get("tickets") or (),
                             discount=data.get("discount") or ZERO)


class CreateBookingForm(BookingRequestForm):
    customer = forms.ModelChoiceField(queryset=Customer.objects.all())
    payment_type = forms.ChoiceField(choices=PAYMENT_TYPES, initial="full",
                                     required=False)
    event_name = forms.CharField(max_length=200, required=False)
    special_requirements = forms.CharField(required=False)
    booking_source = forms.CharField(max_length=30, required=False)

    def metadata(self):
        return {
            key: self.cleaned_data[key]
            for key in ("event_name", "special_requirements", "booking_source")
            if self.cleaned_data.get(key)
        }


class PaymentForm(forms.Form):
    amount = forms.DecimalField(max_digits=18, decimal_places=2)
    method = forms.ChoiceField(choices=PAYMENT_METHODS, initial="cash",
                               required=False)
    payment_date = forms.DateField(required=False)
    reference = forms.CharField(max_length=100, required=False)


class CancelBookingForm(forms.Form):
    reason = forms.CharField()
    refund_amount = forms.DecimalField(max_digits=18, decimal_places=2,
                                       min_value=0, required=False)
    refund_method = forms.ChoiceField(choices=PAYMENT_METHODS, required=False)


class StatisticsPeriodForm(forms.Form):
    start_date = forms.DateField()
    end_date = forms.DateField()

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and end < start:
            self.add_error("end_date", "End date must not be before start date.")
        return cleaned
