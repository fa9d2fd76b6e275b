import logging
from datetime import timedelta

from django.utils import timezone

from ..models import Invoice, InvoiceLine
from .audit_helper import log_action
from .numbering import INVOICE, next_number

logger = logging.getLogger(__name__)

# Standard credit terms
INVOICE_TERMS_DAYS = 30


def generate_booking_invoice(booking, strategy, actor=None, today=None):
    """Issue a one-line invoice mirroring the booking's amounts."""
    today = today or timezone.localdate()
    invoice = Invoice(
        invoice_number=next_number(INVOICE, today.year),
        customer=booking.customer,
        reference=booking.booking_number,
        date=today,
        due_date=today + timedelta(days=INVOICE_TERMS_DAYS),
        subtotal=booking.subtotal,
        service_fee=booking.service_fee,
        discount_amount=booking.discount_amount,
        tax_amount=booking.tax_amount,
        total=booking.total,
        amount_paid=booking.amount_paid,
        balance_due=booking.balance_due,
        created_by=actor if getattr(actor, "is_authenticated", False) else None,
    )
    # a zero-total booking is settled from the start
    invoice.status = invoice.compute_status(today)
    invoice.save()
    # Single summary line, e.g. "Event Booking - Jazz Night"
    InvoiceLine.objects.create(
        invoice=invoice,
        description=strategy.description(),
        quantity=1,
        unit_price=booking.total,
        account=strategy.revenue_account(),
    )
    log_action(action="create", instance=invoice, user=actor,
               changes={"booking": booking.booking_number,
                        "total": str(invoice.total)})
    logger.info("Issued %s for %s", invoice.invoice_number,
                booking.booking_number)
    return invoice


def sync_invoice_with_booking(invoice, booking, today=None):
    """Copy the booking's paid amount onto its invoice and refresh status."""
    invoice.apply_paid_amount(booking.amount_paid, today)
    invoice.save(update_fields=["amount_paid", "balance_due", "status"])
    return invoice


def refresh_invoice_status(invoice, today=None):
    status = invoice.compute_status(today)
    if status != invoice.status:
        invoice.status = status
        invoice.save(update_fields=["status"])
    return invoice


def cancel_invoice(invoice, actor=None):
    invoice.status = "cancelled"
    invoice.save(update_fields=["status"])
    log_action(action="cancel", instance=invoice, user=actor)
    return invoice
