class BookingError(Exception):
    """Base class for failures surfaced to booking callers.

    Carries every distinct, user-displayable issue found, in the
    order they were detected.
    """

    kind = "booking_error"

    def __init__(self, issues=None, message=None):
        if isinstance(issues, str):
            issues = [issues]
        # keep order, drop duplicates
        self.issues = list(dict.fromkeys(issues or []))
        super().__init__(message or "; ".join(self.issues) or self.kind)

    def as_dict(self):
        return {"ok": False, "error": self.kind, "issues": self.issues}


class ValidationFailed(BookingError):
    """Raised when input or a model invariant is rejected."""
    kind = "validation_failed"

    @classmethod
    def from_django(cls, exc):
        # django ValidationError flattens dict/list payloads via .messages
        return cls(getattr(exc, "messages", None) or [str(exc)])


class Unavailable(BookingError):
    """Raised when the requested window or quantity cannot be reserved."""
    kind = "unavailable"

    def __init__(self, issues=None, conflicts=None, message=None):
        self.conflicts = list(conflicts or [])
        super().__init__(issues, message)


class PersistenceFailed(BookingError):
    """Raised when the database rejects a booking write."""
    kind = "persistence_failed"


class NotificationFailed(BookingError):
    """Raised when a confirmation e-mail cannot be delivered."""
    kind = "notification_failed"


class UnbalancedJournalError(Exception):
    """Raised when a JournalEntry fails double-entry balance check."""
    pass


class AlreadyPostedDifferentPayload(Exception):
    """Raised when a JournalEntry already posted with different payload """
    pass
