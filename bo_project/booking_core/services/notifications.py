"""Booking confirmation e-mails.

Delivery is best effort: a booking is already committed by the time a
confirmation goes out, so failures are logged and never propagate to
the caller that created the booking.
"""
import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from ..exceptions import NotificationFailed
from ..models import Booking

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Booking confirmation {booking_number}"

CONFIRMATION_BODY = """Dear {customer_name},

Thank you for your booking.

Booking number: {booking_number}
{resource_label}: {resource_name}
{schedule}
Subtotal: {subtotal}
Service fee: {service_fee}
Tax: {tax_amount}
Total: {total}
Balance due: {balance_due}

Booking status: {booking_status}
Payment status: {payment_status}
"""


def render_confirmation(booking):
    if booking.resource_type == "hall":
        start = timezone.localtime(booking.start_at)
        end = timezone.localtime(booking.end_at)
        schedule = f"From {start:%Y-%m-%d %H:%M} to {end:%Y-%m-%d %H:%M}"
        resource_label = "Hall"
    else:
        starts = timezone.localtime(booking.event.starts_at)
        schedule = f"Event starts {starts:%Y-%m-%d %H:%M}"
        resource_label = "Event"
    context = {
        "customer_name": booking.customer.name,
        "booking_number": booking.booking_number,
        "resource_label": resource_label,
        "resource_name": booking.resource.name,
        "schedule": schedule,
        "subtotal": booking.subtotal,
        "service_fee": booking.service_fee,
        "tax_amount": booking.tax_amount,
        "total": booking.total,
        "balance_due": booking.balance_due,
        "booking_status": booking.get_booking_status_display(),
        "payment_status": booking.get_payment_status_display(),
    }
    return (CONFIRMATION_SUBJECT.format(**context),
            CONFIRMATION_BODY.format(**context))


def send_booking_confirmation(booking_id):
    """Send the confirmation e-mail now. Raises NotificationFailed."""
    booking = Booking.objects.select_related(
        "customer", "hall", "event").get(pk=booking_id)
    if not booking.customer.email:
        logger.info("No e-mail address for %s, confirmation skipped",
                    booking.booking_number)
        return False
    subject, body = render_confirmation(booking)
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL,
                  [booking.customer.email], fail_silently=False)
    except (SMTPException, OSError) as exc:
        raise NotificationFailed(
            [f"Could not send confirmation for {booking.booking_number}: {exc}"]
        ) from exc
    logger.info("Confirmation sent for %s", booking.booking_number)
    return True


def queue_booking_confirmation(booking_id):
    """Hand the e-mail to the task queue. Runs after commit, never raises."""
    from ..tasks import send_booking_confirmation_task

    try:
        send_booking_confirmation_task.delay(booking_id)
    except Exception:
        # broker down, serialization error...: the booking stands regardless
        logger.exception("Could not queue confirmation for booking %s",
                         booking_id)
        return False
    return True
