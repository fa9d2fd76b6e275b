import logging
from functools import partial

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import BookingError, PersistenceFailed, Unavailable, ValidationFailed
from ..models import Booking, BookingLineItem, JournalEntry
from ..models.booking import PAYMENT_TYPES
from ..money import ZERO, to_money
from .audit_helper import log_action
from .invoicing import cancel_invoice, generate_booking_invoice
from .ledger import (LedgerLine, post_journal_entry, receivable_account_for,
                     reverse_journal_entry)
from .notifications import queue_booking_confirmation
from .numbering import next_number
from .payments import record_refund
from .pricing import FeeConfig
from .settings_store import load_booking_settings
from .strategies import strategy_for, strategy_for_booking

logger = logging.getLogger(__name__)

# JournalEntry.reference_type values owned by this module
BOOKING_REF = "booking"
REVERSAL_REF = "booking_cancellation"
RETENTION_REF = "booking_retention"


def check_availability(resource, request, exclude_booking_id=None, now=None):
    """Pre-flight availability check. Read-only."""
    strategy = strategy_for(resource)
    issues = strategy.validate(request)
    if issues:
        raise ValidationFailed(issues)
    return strategy.check_availability(
        request, exclude_booking_id=exclude_booking_id, now=now)


def _check_discount(q, booking_settings):
    issues = []
    if q.discount_amount > ZERO and not booking_settings.enable_discounts:
        issues.append("Discounts are not enabled.")
    if q.discount_amount > q.subtotal + q.service_fee:
        issues.append(
            f"Discount of {q.discount_amount} exceeds the "
            f"{q.subtotal + q.service_fee} being charged.")
    if issues:
        raise ValidationFailed(issues)
    return q


def quote(resource, request, fees=None):
    """Price a request without reserving anything."""
    strategy = strategy_for(resource)
    issues = strategy.validate(request)
    if issues:
        raise ValidationFailed(issues)
    booking_settings = load_booking_settings()
    if fees is None:
        fees = FeeConfig.from_settings(booking_settings)
    return _check_discount(strategy.price(request, fees), booking_settings)


def _post_booking_revenue(booking, strategy, actor):
    """Dr Accounts Receivable / Cr resource revenue, for the booking total."""
    if booking.total <= ZERO:
        logger.info("Nothing to post for zero-total booking %s",
                    booking.booking_number)
        return None
    return post_journal_entry(
        date=timezone.localdate(booking.created_at),
        description=f"{strategy.description()} ({booking.booking_number})",
        lines=[
            LedgerLine(receivable_account_for(booking.customer),
                       debit=booking.total,
                       description=f"Receivable for {booking.booking_number}"),
            LedgerLine(strategy.revenue_account(),
                       credit=booking.total,
                       description=f"Revenue for {booking.booking_number}"),
        ],
        reference_type=BOOKING_REF,
        reference_id=booking.pk,
        actor=actor,
    )


def create_booking(resource, customer, request, *, payment_type="full",
                   actor=None, metadata=None, now=None):
    """Reserve, price and persist one booking atomically.

    Either the booking, its line items, the inventory change, the invoice
    and the journal entry are all committed, or none of them are. The
    confirmation e-mail is queued only after commit.
    """
    metadata = metadata or {}
    booking_settings = load_booking_settings()
    strategy = strategy_for(resource)

    issues = strategy.validate(request)
    if payment_type not in dict(PAYMENT_TYPES):
        issues.append(f"Unknown payment type '{payment_type}'.")
    if issues:
        logger.warning("Rejected booking request for %s: %s", resource, issues)
        raise ValidationFailed(issues)

    try:
        with transaction.atomic():
            # 1. lock the resource and re-check inside the transaction
            result = strategy.check_availability(request, now=now, lock=True)
            if not result.available:
                raise Unavailable(result.issues, conflicts=result.conflicts)

            # 2. price
            q = _check_discount(
                strategy.price(request, FeeConfig.from_settings(booking_settings)),
                booking_settings)

            # 3. booking row
            booking = Booking(
                booking_number=next_number(strategy.number_prefix),
                resource_type=strategy.resource_type,
                customer=customer,
                subtotal=q.subtotal,
                service_fee=q.service_fee,
                discount_amount=q.discount_amount,
                tax_amount=q.tax_amount,
                total=q.total,
                amount_paid=ZERO,
                balance_due=q.total,
                payment_type=payment_type,
                booking_status="pending",
                payment_status="pending",
                event_name=metadata.get("event_name", ""),
                special_requirements=metadata.get("special_requirements", ""),
                booking_source=metadata.get("booking_source", "admin"),
                created_by=actor if getattr(actor, "is_authenticated", False) else None,
                **strategy.booking_fields(request),
            )
            booking.save()

            # 4. line items + inventory
            for item in strategy.line_items(request):
                BookingLineItem.objects.create(booking=booking, **item)
            strategy.reserve(request)

            # 5. invoice
            if booking_settings.auto_generate_invoice:
                booking.invoice = generate_booking_invoice(
                    booking, strategy, actor=actor)
                booking.save(update_fields=["invoice", "updated_at"])

            # 6. journal
            if booking_settings.auto_create_journal_entry:
                _post_booking_revenue(booking, strategy, actor)

            log_action(
                action="create",
                instance=booking,
                user=actor,
                changes={"total": str(booking.total),
                         "resource": str(resource)},
            )
    except Unavailable as exc:
        logger.warning("Booking unavailable for %s: %s", resource, exc.issues)
        raise
    except ValidationError as exc:
        raise ValidationFailed.from_django(exc) from exc
    except DatabaseError as exc:
        logger.exception("Could not persist booking for %s", resource)
        raise PersistenceFailed(
            ["The booking could not be saved. Please try again."]) from exc

    logger.info("Created booking %s (%s) total=%s", booking.booking_number,
                resource, booking.total)

    # 7. after commit, best effort
    if booking_settings.booking_confirmation_email:
        transaction.on_commit(partial(queue_booking_confirmation, booking.pk))
    return booking


def _transition(booking_id, new_status, actor=None):
    try:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            old_status = booking.booking_status
            booking.transition_to(new_status, user=actor)
            log_action(action=new_status, instance=booking, user=actor,
                       changes={"from": old_status, "to": new_status})
    except Booking.DoesNotExist as exc:
        raise ValidationFailed([f"Booking {booking_id} does not exist."]) from exc
    except ValidationError as exc:
        raise ValidationFailed.from_django(exc) from exc
    logger.info("Booking %s %s -> %s", booking.booking_number, old_status,
                new_status)
    return booking


def confirm_booking(booking_id, actor=None):
    return _transition(booking_id, "confirmed", actor)


def complete_booking(booking_id, actor=None):
    return _transition(booking_id, "completed", actor)


def _reverse_revenue(booking, retained, actor):
    """Undo the booking's revenue, keeping whatever the customer forfeits."""
    revenue_entry = JournalEntry.objects.filter(
        reference_type=BOOKING_REF, reference_id=booking.pk).first()
    if revenue_entry is None:
        return
    reverse_journal_entry(
        revenue_entry,
        reference_type=REVERSAL_REF,
        reference_id=booking.pk,
        description=f"Cancellation of {booking.booking_number}",
        actor=actor,
    )
    if retained > ZERO:
        strategy = strategy_for_booking(booking)
        post_journal_entry(
            date=timezone.localdate(),
            description=f"Retained on cancellation of {booking.booking_number}",
            lines=[
                LedgerLine(receivable_account_for(booking.customer),
                           debit=retained,
                           description=f"Retained from {booking.booking_number}"),
                LedgerLine(strategy.revenue_account(), credit=retained,
                           description=f"Cancellation revenue {booking.booking_number}"),
            ],
            reference_type=RETENTION_REF,
            reference_id=booking.pk,
            actor=actor,
        )


def cancel_booking(booking_id, reason, *, refund_amount=ZERO,
                   refund_method="cash", actor=None):
    """Cancel a pending or confirmed booking.

    Releases held inventory, reverses the booking's revenue posting and,
    when refund_amount > 0, records the refund and its cash posting.
    """
    issues = []
    if not reason or not str(reason).strip():
        issues.append("A cancellation reason is required.")
    try:
        refund = to_money(refund_amount or ZERO)
    except ValueError:
        issues.append("Refund amount must be a number.")
        refund = ZERO
    if refund < ZERO:
        issues.append("Refund amount cannot be negative.")
    if issues:
        raise ValidationFailed(issues)

    try:
        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().get(pk=booking_id)
            except Booking.DoesNotExist as exc:
                raise ValidationFailed(
                    [f"Booking {booking_id} does not exist."]) from exc

            refundable = booking.amount_paid - booking.amount_refunded
            if refund > refundable:
                raise ValidationFailed(
                    [f"Refund of {refund} exceeds the {refundable} paid."])

            strategy = strategy_for_booking(booking)
            booking.cancellation_reason = str(reason).strip()
            booking.transition_to("cancelled", user=actor)

            # released tickets go back on sale; halls free up because
            # cancelled bookings drop out of overlap queries
            strategy.release(booking)

            _reverse_revenue(booking, refundable - refund, actor)
            if refund > ZERO:
                record_refund(booking, refund, method=refund_method,
                              actor=actor)

            if booking.invoice_id:
                cancel_invoice(booking.invoice, actor=actor)

            log_action(
                action="cancel",
                instance=booking,
                user=actor,
                changes={"reason": booking.cancellation_reason,
                         "refund": str(refund)},
            )
    except BookingError:
        raise
    except ValidationError as exc:
        raise ValidationFailed.from_django(exc) from exc
    except DatabaseError as exc:
        logger.exception("Could not cancel booking %s", booking_id)
        raise PersistenceFailed(
            ["The cancellation could not be saved. Please try again."]) from exc

    logger.info("Cancelled booking %s (refund %s)", booking.booking_number,
                refund)
    return booking
