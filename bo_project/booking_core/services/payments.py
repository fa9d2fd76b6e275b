import logging
from dataclasses import dataclass
from datetime import date as date_cls, timedelta
from decimal import ROUND_DOWN, Decimal

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import BookingError, PersistenceFailed, ValidationFailed
from ..models import Booking, Payment
from ..models.payment import PAYMENT_METHODS
from ..money import TWO_PLACES, ZERO, to_money
from .audit_helper import log_action
from .invoicing import sync_invoice_with_booking
from .ledger import (LedgerLine, post_journal_entry, receivable_account_for,
                     resolve_account)
from .numbering import PAYMENT, REFUND, next_number
from .settings_store import load_booking_settings

logger = logging.getLogger(__name__)

INSTALLMENT_INTERVAL_DAYS = 30


def payment_status_for(booking, today=None):
    """paid → partial → overdue → pending, from the booking's amounts."""
    if booking.balance_due <= ZERO:
        return "paid"
    if ZERO < booking.amount_paid < booking.total:
        return "partial"
    invoice = booking.invoice
    today = today or timezone.localdate()
    if invoice is not None and invoice.due_date and today > invoice.due_date:
        return "overdue"
    return "pending"


def should_auto_confirm(booking, booking_settings):
    """Full payment confirms once settled; partial once the deposit is in."""
    if booking.booking_status != "pending":
        return False
    if booking.payment_type == "full":
        return booking.balance_due <= ZERO
    deposit = to_money(
        booking.total * booking_settings.min_deposit_percentage / Decimal("100"))
    return booking.amount_paid >= deposit


def record_payment(booking_id, amount, *, method="cash", payment_date=None,
                   reference="", actor=None):
    """Apply a customer payment to a booking.

    Posts Dr Cash / Cr Accounts Receivable, moves amount_paid and
    balance_due, recomputes payment_status and the invoice status, and
    confirms the booking when the payment policy is satisfied.
    """
    issues = []
    try:
        amount = to_money(amount)
    except ValueError:
        issues.append("Payment amount must be a number.")
        amount = ZERO
    if amount <= ZERO:
        issues.append("Payment amount must be greater than zero.")
    if method not in dict(PAYMENT_METHODS):
        issues.append(f"Unknown payment method '{method}'.")
    if issues:
        raise ValidationFailed(issues)

    payment_date = payment_date or timezone.localdate()
    booking_settings = load_booking_settings()

    try:
        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().get(pk=booking_id)
            except Booking.DoesNotExist as exc:
                raise ValidationFailed(
                    [f"Booking {booking_id} does not exist."]) from exc

            if booking.booking_status == "cancelled":
                raise ValidationFailed(
                    ["Cannot record a payment against a cancelled booking."])
            if amount > booking.balance_due:
                raise ValidationFailed(
                    [f"Payment of {amount} exceeds the balance due of "
                     f"{booking.balance_due}."])

            payment = Payment.objects.create(
                payment_number=next_number(PAYMENT, payment_date.year),
                booking=booking,
                kind="payment",
                amount=amount,
                method=method,
                payment_date=payment_date,
                reference=reference or "",
                created_by=actor if getattr(actor, "is_authenticated", False) else None,
            )

            if booking_settings.auto_create_journal_entry:
                payment.journal = post_journal_entry(
                    date=payment_date,
                    description=f"Payment {payment.payment_number} for "
                                f"{booking.booking_number}",
                    lines=[
                        LedgerLine(resolve_account("cash"), debit=amount,
                                   description=f"Received {payment.payment_number}"),
                        LedgerLine(receivable_account_for(booking.customer),
                                   credit=amount,
                                   description=f"Settle {booking.booking_number}"),
                    ],
                    reference_type="payment",
                    reference_id=payment.pk,
                    actor=actor,
                )
                payment.save(update_fields=["journal"])

            booking.amount_paid += amount
            booking.balance_due = booking.total - booking.amount_paid
            booking.payment_status = payment_status_for(booking, payment_date)
            booking.save(update_fields=[
                "amount_paid", "balance_due", "payment_status", "updated_at"])

            if booking.invoice_id:
                sync_invoice_with_booking(booking.invoice, booking, payment_date)

            if should_auto_confirm(booking, booking_settings):
                booking.transition_to("confirmed", user=actor)

            log_action(
                action="payment",
                instance=payment,
                user=actor,
                changes={
                    "booking": booking.booking_number,
                    "amount": str(amount),
                    "balance_due": str(booking.balance_due),
                    "payment_status": booking.payment_status,
                },
            )
    except BookingError:
        raise
    except ValidationError as exc:
        raise ValidationFailed.from_django(exc) from exc
    except DatabaseError as exc:
        logger.exception("Could not record payment for booking %s", booking_id)
        raise PersistenceFailed(
            ["The payment could not be saved. Please try again."]) from exc

    logger.info("Recorded %s of %s on %s (%s)", payment.payment_number, amount,
                booking.booking_number, booking.payment_status)
    return payment


def record_refund(booking, amount, *, method="cash", refund_date=None,
                  actor=None):
    """Return money to the customer. Caller holds the booking lock.

    Posts Dr Accounts Receivable / Cr Cash and tracks the amount on
    booking.amount_refunded; amount_paid keeps the gross received.
    """
    refund_date = refund_date or timezone.localdate()
    booking_settings = load_booking_settings()

    refund = Payment.objects.create(
        payment_number=next_number(REFUND, refund_date.year),
        booking=booking,
        kind="refund",
        amount=amount,
        method=method,
        payment_date=refund_date,
        reference=f"Refund for {booking.booking_number}",
        created_by=actor if getattr(actor, "is_authenticated", False) else None,
    )
    if booking_settings.auto_create_journal_entry:
        refund.journal = post_journal_entry(
            date=refund_date,
            description=f"Refund {refund.payment_number} for "
                        f"{booking.booking_number}",
            lines=[
                LedgerLine(receivable_account_for(booking.customer),
                           debit=amount,
                           description=f"Refund {booking.booking_number}"),
                LedgerLine(resolve_account("cash"), credit=amount,
                           description=f"Paid out {refund.payment_number}"),
            ],
            reference_type="refund",
            reference_id=refund.pk,
            actor=actor,
        )
        refund.save(update_fields=["journal"])

    booking.amount_refunded += amount
    booking.payment_status = "refunded"
    booking.save(update_fields=["amount_refunded", "payment_status",
                                "updated_at"])
    log_action(action="refund", instance=refund, user=actor,
               changes={"booking": booking.booking_number,
                        "amount": str(amount)})
    return refund


@dataclass(frozen=True)
class Installment:
    number: int  # 0 is the deposit
    due_date: date_cls
    amount: Decimal

    @property
    def label(self):
        return "Deposit" if self.number == 0 else f"Installment {self.number}"


def installment_schedule(total, deposit_percentage, installments,
                         first_due_date=None, max_installments=None):
    """Deposit now, then `installments` equal parts every 30 days.

    Parts are rounded down to the cent and the last one absorbs the
    remainder, so the schedule always sums to the total exactly.
    """
    total = to_money(total)
    if max_installments is None:
        max_installments = load_booking_settings().max_installments
    issues = []
    if total <= ZERO:
        issues.append("Total must be greater than zero.")
    if not 1 <= installments <= max_installments:
        issues.append(
            f"Number of installments must be between 1 and {max_installments}.")
    if not ZERO <= Decimal(deposit_percentage) <= Decimal("100"):
        issues.append("Deposit percentage must be between 0 and 100.")
    if issues:
        raise ValidationFailed(issues)

    first_due_date = first_due_date or timezone.localdate()
    deposit = to_money(total * Decimal(deposit_percentage) / Decimal("100"))
    remaining = total - deposit
    part = (remaining / installments).quantize(TWO_PLACES, rounding=ROUND_DOWN)

    schedule = [Installment(0, first_due_date, deposit)]
    for n in range(1, installments + 1):
        amount = part if n < installments else remaining - part * (installments - 1)
        schedule.append(Installment(
            n,
            first_due_date + timedelta(days=INSTALLMENT_INTERVAL_DAYS * n),
            amount,
        ))
    return schedule
