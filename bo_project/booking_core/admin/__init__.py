from .actions import cancel_bookings, complete_bookings, confirm_bookings
from .booking import BookingAdmin, PaymentAdmin
from .config import (AuditLogAdmin, BookingSettingAdmin, CurrencyAdmin,
                     NumberSequenceAdmin)
from .inlines import (BookingLineItemInline, HallClosureInline,
                      InvoiceLineInline, JournalLineInline, PaymentInline,
                      TicketClassInline)
from .invoice import CustomerAdmin, InvoiceAdmin
from .ledger import AccountAdmin, JournalEntryAdmin
from .resource import EventAdmin, HallAdmin, TicketClassAdmin
