# Public booking API: views, admin actions and tasks call these
from .availability import AvailabilityResult, Window
from .booking import (cancel_booking, check_availability, complete_booking,
                      confirm_booking, create_booking, quote)
from .payments import installment_schedule, record_payment
from .pricing import Extra, FeeConfig, Quote
from .statistics import event_statistics, hall_statistics
from .strategies import HallRequest, TicketRequest

__all__ = [
    "AvailabilityResult",
    "Extra",
    "FeeConfig",
    "HallRequest",
    "Quote",
    "TicketRequest",
    "Window",
    "cancel_booking",
    "check_availability",
    "complete_booking",
    "confirm_booking",
    "create_booking",
    "event_statistics",
    "hall_statistics",
    "installment_schedule",
    "quote",
    "record_payment",
]
