from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Account, Booking, Event, Hall, Invoice, JournalLine

""" Resources stay while bookings reference them."""


# pre_delete signal auto-fires just before Django deletes a model instance
@receiver(pre_delete, sender=Hall)
def prevent_delete_hall_with_bookings(sender, instance, **kwargs):
    if Booking.objects.filter(hall=instance).exists():
        raise ValidationError("Cannot delete a hall that has bookings.")


@receiver(pre_delete, sender=Event)
def prevent_delete_event_with_bookings(sender, instance, **kwargs):
    if Booking.objects.filter(event=instance).exists():
        raise ValidationError("Cannot delete an event that has bookings.")


"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines.")


"""Block invoice deletion once money has been received against it."""


@receiver(pre_delete, sender=Invoice)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if instance.amount_paid > 0:
        raise ValidationError("Cannot delete invoice with applied payments.")
