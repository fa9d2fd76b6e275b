from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..models import NumberSequence

# Prefixes in use
HALL_BOOKING = "HB"
EVENT_BOOKING = "BKG"
INVOICE = "INV"
JOURNAL = "JE"
PAYMENT = "PAY"
REFUND = "RFD"


def next_number(prefix, year=None):
    """Issue the next "{prefix}-{year}-{n:04d}" label.

    The counter row is bumped with UPDATE ... SET last_value = last_value + 1,
    which row-locks it until the caller's transaction ends, so two
    concurrent callers can never read the same value.
    """
    year = year or timezone.localdate().year
    with transaction.atomic():
        # get_or_create retries the lookup when a concurrent insert wins
        NumberSequence.objects.get_or_create(prefix=prefix, year=year)
        NumberSequence.objects.filter(prefix=prefix, year=year).update(
            last_value=F("last_value") + 1)
        value = (
            NumberSequence.objects.filter(prefix=prefix, year=year)
            .values_list("last_value", flat=True)
            .get()
        )
    return f"{prefix}-{year}-{value:04d}"
