from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from booking_core.exceptions import BookingError
from booking_core.services import (cancel_booking, complete_booking,
                                   confirm_booking)

# ---------- Admin actions ----------
# Each action goes through the service layer so admins cannot bypass
# the transition table, the ledger or inventory release.


def _run_per_booking(modeladmin, request, queryset, func, verb):
    done = 0
    for booking in queryset:
        try:
            func(booking)
            done += 1
        except BookingError as exc:
            modeladmin.message_user(
                request,
                _("%(booking)s: %(err)s") % {"booking": booking, "err": exc},
                level=messages.ERROR,
            )
    modeladmin.message_user(
        request,
        _("%(verb)s %(done)d of %(total)d bookings.") % {
            "verb": verb, "done": done, "total": len(queryset)},
        level=messages.SUCCESS if done == len(queryset) else messages.WARNING,
    )


@admin.action(description="Confirm selected bookings")
def confirm_bookings(modeladmin, request, queryset):
    _run_per_booking(modeladmin, request, queryset,
                     lambda b: confirm_booking(b.pk, actor=request.user),
                     "Confirmed")


@admin.action(description="Mark selected bookings as Completed")
def complete_bookings(modeladmin, request, queryset):
    _run_per_booking(modeladmin, request, queryset,
                     lambda b: complete_booking(b.pk, actor=request.user),
                     "Completed")


@admin.action(description="Cancel selected bookings (no refund)")
def cancel_bookings(modeladmin, request, queryset):
    _run_per_booking(
        modeladmin, request, queryset,
        lambda b: cancel_booking(b.pk, "Cancelled from admin",
                                 actor=request.user),
        "Cancelled")
