import json

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from .exceptions import (BookingError, PersistenceFailed, Unavailable,
                         ValidationFailed)
from .forms import (BookingRequestForm, CancelBookingForm, CreateBookingForm,
                    PaymentForm, StatisticsPeriodForm)
from .models import Event, Hall
from .services import (cancel_booking, check_availability, create_booking,
                       event_statistics, hall_statistics, quote,
                       record_payment)

STATUS_FOR_ERROR = {
    ValidationFailed: 400,
    Unavailable: 409,
    PersistenceFailed: 503,
}


def _payload(request):
    """JSON object body when sent as JSON, form fields otherwise.

    None means the body is not a JSON object.
    """
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def _actor(request):
    user = getattr(request, "user", None)
    return user if user is not None and user.is_authenticated else None


def _form_error(form):
    issues = [
        f"{field}: {message}" if field != "__all__" else message
        for field, messages in form.errors.items()
        for message in messages
    ]
    return JsonResponse(ValidationFailed(issues).as_dict(), status=400)


def _booking_error(exc):
    status = STATUS_FOR_ERROR.get(type(exc), 400)
    body = exc.as_dict()
    if isinstance(exc, Unavailable):
        body["conflicts"] = [b.booking_number for b in exc.conflicts]
    return JsonResponse(body, status=status)


def _bad_json():
    return JsonResponse(
        ValidationFailed(["Request body must be a JSON object."]).as_dict(),
        status=400)


def _booking_dict(booking):
    return {
        "id": booking.pk,
        "booking_number": booking.booking_number,
        "booking_status": booking.booking_status,
        "payment_status": booking.payment_status,
        "subtotal": str(booking.subtotal),
        "service_fee": str(booking.service_fee),
        "discount_amount": str(booking.discount_amount),
        "tax_amount": str(booking.tax_amount),
        "total": str(booking.total),
        "amount_paid": str(booking.amount_paid),
        "balance_due": str(booking.balance_due),
        "invoice": booking.invoice.invoice_number if booking.invoice_id else None,
    }


@require_POST
def availability_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    form = BookingRequestForm(data)
    if not form.is_valid():
        return _form_error(form)
    try:
        result = check_availability(form.resource(), form.to_request())
    except BookingError as e:
        return _booking_error(e)
    return JsonResponse({
        "ok": True,
        "available": result.available,
        "issues": result.issues,
        "conflicts": [b.booking_number for b in result.conflicts],
    })


@require_POST
def quote_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    form = BookingRequestForm(data)
    if not form.is_valid():
        return _form_error(form)
    try:
        q = quote(form.resource(), form.to_request())
    except BookingError as e:
        return _booking_error(e)
    return JsonResponse({"ok": True, **q.as_dict()})


@require_POST
def create_booking_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    form = CreateBookingForm(data)
    if not form.is_valid():
        return _form_error(form)
    try:
        booking = create_booking(
            form.resource(),
            form.cleaned_data["customer"],
            form.to_request(),
            payment_type=form.cleaned_data.get("payment_type") or "full",
            actor=_actor(request),
            metadata=form.metadata(),
        )
    except BookingError as e:
        return _booking_error(e)
    return JsonResponse({"ok": True, "booking": _booking_dict(booking)},
                        status=201)


@require_POST
def record_payment_view(request, booking_id):
    data = _payload(request)
    if data is None:
        return _bad_json()
    form = PaymentForm(data)
    if not form.is_valid():
        return _form_error(form)
    try:
        payment = record_payment(
            booking_id,
            form.cleaned_data["amount"],
            method=form.cleaned_data.get("method") or "cash",
            payment_date=form.cleaned_data.get("payment_date"),
            reference=form.cleaned_data.get("reference") or "",
            actor=_actor(request),
        )
    except BookingError as e:
        return _booking_error(e)
    return JsonResponse({
        "ok": True,
        "payment_number": payment.payment_number,
        "booking": _booking_dict(payment.booking),
    }, status=201)


@require_POST
def cancel_booking_view(request, booking_id):
    data = _payload(request)
    if data is None:
        return _bad_json()
    form = CancelBookingForm(data)
    if not form.is_valid():
        return _form_error(form)
    try:
        booking = cancel_booking(
            booking_id,
            form.cleaned_data["reason"],
            refund_amount=form.cleaned_data.get("refund_amount") or 0,
            refund_method=form.cleaned_data.get("refund_method") or "cash",
            actor=_actor(request),
        )
    except BookingError as e:
        return _booking_error(e)
    return JsonResponse({"ok": True, "booking": _booking_dict(booking)})


@require_GET
def hall_statistics_view(request, hall_id):
    hall = get_object_or_404(Hall, pk=hall_id)
    form = StatisticsPeriodForm(request.GET)
    if not form.is_valid():
        return _form_error(form)
    stats = hall_statistics(hall, form.cleaned_data["start_date"],
                            form.cleaned_data["end_date"])
    return JsonResponse({"ok": True, "hall": hall.code, **stats.as_dict()})


@require_GET
def event_statistics_view(request, event_id):
    event = get_object_or_404(Event, pk=event_id)
    return JsonResponse({"ok": True, "event": event.code,
                         **event_statistics(event).as_dict()})
