from .account import Account
from .auditlog import AuditLog
from .booking import Booking, BookingLineItem
from .currency import Currency
from .customer import Customer
from .invoice import Invoice, InvoiceLine
from .journal import JournalEntry, JournalLine
from .payment import Payment
from .resource import Event, Hall, HallClosure, TicketClass
from .sequence import NumberSequence
from .setting import BookingSetting
