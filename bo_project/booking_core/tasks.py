import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from .exceptions import BookingError, NotificationFailed

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def send_booking_confirmation_task(booking_id):
    # import lazily to avoid circular imports at module import time
    from .services.notifications import send_booking_confirmation

    try:
        return send_booking_confirmation(booking_id)
    except NotificationFailed as exc:
        # the booking is already committed; a missed e-mail is only logged
        logger.warning("Confirmation e-mail failed: %s", exc)
        return False


@shared_task
def expire_pending_bookings():
    """Cancel pending, unpaid bookings older than booking_timeout_minutes."""
    from .models import Booking
    from .services.booking import cancel_booking
    from .services.settings_store import load_booking_settings

    timeout = load_booking_settings().booking_timeout_minutes
    cutoff = timezone.now() - timedelta(minutes=timeout)
    expired = 0
    for booking_id in Booking.objects.stale_pending(cutoff).values_list(
            "pk", flat=True):
        try:
            cancel_booking(
                booking_id,
                f"Expired: no payment within {timeout} minutes",
            )
            expired += 1
        except BookingError as exc:
            # one bad row must not stop the sweep
            logger.warning("Could not expire booking %s: %s", booking_id, exc)
    if expired:
        logger.info("Expired %d pending bookings", expired)
    return expired


@shared_task
def refresh_overdue_invoices():
    """Flip past-due invoices (and their bookings) to overdue."""
    from .models import Booking, Invoice
    from .services.invoicing import refresh_invoice_status
    from .services.payments import payment_status_for

    today = timezone.localdate()
    changed = 0
    for invoice in Invoice.objects.past_due(today):
        before = invoice.status
        refresh_invoice_status(invoice, today)
        if invoice.status != before:
            changed += 1
        booking = Booking.objects.filter(invoice=invoice).first()
        if booking and booking.booking_status != "cancelled":
            status = payment_status_for(booking, today)
            if status != booking.payment_status:
                booking.payment_status = status
                booking.save(update_fields=["payment_status", "updated_at"])
    return changed


@shared_task
def reconcile_account_balances():
    """Recompute every account's current_balance from its journal lines."""
    from django.db import transaction

    from .models import Account
    from .services.ledger import recompute_account_balance

    fixed = 0
    for account_id in Account.objects.values_list("pk", flat=True):
        with transaction.atomic():
            account = Account.objects.select_for_update().get(pk=account_id)
            expected = recompute_account_balance(account)
            if account.current_balance != expected:
                logger.warning("Account %s drifted: stored=%s expected=%s",
                               account.code, account.current_balance, expected)
                account.current_balance = expected
                account.save(update_fields=["current_balance"])
                fixed += 1
    return fixed
