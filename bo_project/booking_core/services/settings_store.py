"""Typed access to the BookingSetting key/value table.

Missing keys fall back to settings.BOOKING_DEFAULTS, so a fresh database
behaves sensibly before anyone has touched the admin.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.conf import settings

from ..exceptions import ValidationFailed
from ..models import BookingSetting

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class BookingSettings:
    service_fee_percentage: Decimal
    tax_rate: Decimal
    min_deposit_percentage: Decimal
    max_installments: int
    booking_timeout_minutes: int
    auto_generate_invoice: bool
    auto_create_journal_entry: bool
    booking_confirmation_email: bool
    enable_discounts: bool


def get_setting(key, default=None):
    value = (
        BookingSetting.objects.filter(key=key)
        .values_list("value", flat=True)
        .first()
    )
    if value is None:
        return settings.BOOKING_DEFAULTS.get(key, default)
    return value


def set_setting(key, value, description=None):
    defaults = {"value": str(value)}
    if description is not None:
        defaults["description"] = description
    obj, _ = BookingSetting.objects.update_or_create(key=key, defaults=defaults)
    return obj


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def load_booking_settings():
    """Read and validate every booking setting.

    Raises ValidationFailed listing each out-of-range or unparsable value.
    """
    stored = dict(BookingSetting.objects.values_list("key", "value"))
    raw = {**settings.BOOKING_DEFAULTS, **stored}
    issues = []

    def percentage(key):
        try:
            value = Decimal(str(raw.get(key)))
        except (InvalidOperation, TypeError):
            issues.append(f"{key} must be a number")
            return Decimal("0")
        if not value.is_finite():
            issues.append(f"{key} must be a number")
            return Decimal("0")
        if not Decimal("0") <= value <= Decimal("100"):
            issues.append(f"{key} must be between 0 and 100")
        return value

    def bounded_int(key, low, high):
        try:
            value = int(str(raw.get(key)))
        except (TypeError, ValueError):
            issues.append(f"{key} must be a whole number")
            return low
        if not low <= value <= high:
            issues.append(f"{key} must be between {low} and {high}")
        return value

    result = BookingSettings(
        service_fee_percentage=percentage("service_fee_percentage"),
        tax_rate=percentage("tax_rate"),
        min_deposit_percentage=percentage("min_deposit_percentage"),
        max_installments=bounded_int("max_installments", 1, 12),
        booking_timeout_minutes=bounded_int("booking_timeout_minutes", 5, 60),
        auto_generate_invoice=_as_bool(raw.get("auto_generate_invoice", "1")),
        auto_create_journal_entry=_as_bool(
            raw.get("auto_create_journal_entry", "1")),
        booking_confirmation_email=_as_bool(
            raw.get("booking_confirmation_email", "1")),
        enable_discounts=_as_bool(raw.get("enable_discounts", "1")),
    )
    if issues:
        logger.warning("Invalid booking settings: %s", issues)
        raise ValidationFailed(issues)
    return result
