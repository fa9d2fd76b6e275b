import datetime
import random
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from booking_core.exceptions import (AlreadyPostedDifferentPayload,
                                     UnbalancedJournalError, ValidationFailed)
from booking_core.models import Account, AuditLog, JournalEntry, JournalLine
from booking_core.services.ledger import (LedgerLine, post_journal_entry,
                                          recompute_account_balance,
                                          reverse_journal_entry)
from booking_core.tasks import reconcile_account_balances

from .helpers import BookingFixturesMixin

D = datetime.date(2030, 3, 4)


""" Success tests """
class PostJournalEntryTests(BookingFixturesMixin, TestCase):

    def post(self, amount="100.00", reference_id=1, **kwargs):
        amount = Decimal(amount)
        return post_journal_entry(
            date=D,
            description="Test posting",
            lines=[LedgerLine(self.receivable, debit=amount),
                   LedgerLine(self.hall_revenue, credit=amount)],
            reference_type="test",
            reference_id=reference_id,
            **kwargs,
        )

    def test_balanced_entry_posts_and_moves_balances(self):
        entry = self.post(actor=self.user)

        self.assertTrue(entry.is_posted)
        self.assertTrue(entry.journal_number.startswith("JE-2030-"))
        self.assertEqual(entry.total_debit, Decimal("100.00"))
        self.assertEqual(entry.total_credit, Decimal("100.00"))
        self.assertEqual(entry.lines.count(), 2)
        self.assertTrue(entry.is_balanced())
        # stored fingerprint matches what the lines actually say
        self.assertEqual(entry._fingerprint(), entry.posting_fingerprint)

        self.receivable.refresh_from_db()
        self.hall_revenue.refresh_from_db()
        # asset grows on debit, income on credit
        self.assertEqual(self.receivable.current_balance, Decimal("100.00"))
        self.assertEqual(self.hall_revenue.current_balance, Decimal("100.00"))
        self.assertTrue(AuditLog.objects.filter(
            action="post", object_type="JournalEntry", user=self.user).exists())

    """ Test for Idempotency
          Posting the same lines twice for one reference returns the
          first entry and does not touch balances again.
    """
    def test_post_is_idempotent_when_called_twice_with_same_data(self):
        first = self.post()
        second = self.post()

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(JournalLine.objects.count(), 2)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.current_balance, Decimal("100.00"))

    def test_same_reference_with_different_lines_is_rejected(self):
        self.post()
        with self.assertRaises(AlreadyPostedDifferentPayload):
            self.post(amount="250.00")

    def test_reversal_mirrors_lines_and_nets_to_zero(self):
        entry = self.post()
        reversal = reverse_journal_entry(
            entry, reference_type="test_reversal", reference_id=1)

        self.assertEqual(reversal.reverses, entry)
        original = list(entry.lines.values_list("account_id", "debit", "credit"))
        mirrored = list(reversal.lines.values_list("account_id", "credit", "debit"))
        self.assertEqual(original, mirrored)
        for account in (self.receivable, self.hall_revenue):
            account.refresh_from_db()
            self.assertEqual(account.current_balance, Decimal("0.00"))

    def test_recompute_matches_stored_balance(self):
        self.post(reference_id=1)
        self.post(amount="40.50", reference_id=2)
        self.receivable.refresh_from_db()
        self.assertEqual(recompute_account_balance(self.receivable),
                         self.receivable.current_balance)

    def test_reconcile_repairs_drifted_balance(self):
        self.post()
        Account.objects.filter(pk=self.receivable.pk).update(
            current_balance=Decimal("999.00"))

        fixed = reconcile_account_balances()

        self.assertEqual(fixed, 1)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.current_balance, Decimal("100.00"))


""" Failure tests """
class PostJournalEntryFailureTests(BookingFixturesMixin, TestCase):

    def test_unbalanced_entry_is_rejected_and_nothing_written(self):
        with self.assertRaises(UnbalancedJournalError):
            post_journal_entry(
                date=D,
                description="Broken",
                lines=[LedgerLine(self.cash, debit=Decimal("100.00")),
                       LedgerLine(self.hall_revenue, credit=Decimal("99.99"))],
                reference_type="test",
                reference_id=1,
            )
        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(JournalLine.objects.exists())
        self.cash.refresh_from_db()
        self.assertEqual(self.cash.current_balance, Decimal("0.00"))

    def test_random_unequal_line_sets_are_always_rejected(self):
        rng = random.Random(20300304)
        accounts = [self.cash, self.receivable, self.hall_revenue,
                    self.event_revenue]
        for n in range(50):
            debits = [Decimal(rng.randint(1, 100000)) / 100
                      for _ in range(rng.randint(1, 4))]
            credits = [Decimal(rng.randint(1, 100000)) / 100
                       for _ in range(rng.randint(1, 4))]
            if sum(debits) == sum(credits):
                credits[0] += Decimal("0.01")
            lines = (
                [LedgerLine(rng.choice(accounts), debit=d) for d in debits]
                + [LedgerLine(rng.choice(accounts), credit=c) for c in credits]
            )
            with self.assertRaises(UnbalancedJournalError):
                post_journal_entry(date=D, description="random", lines=lines,
                                   reference_type="random", reference_id=n)
        self.assertFalse(JournalEntry.objects.exists())

    def test_single_line_is_rejected(self):
        with self.assertRaises(UnbalancedJournalError):
            post_journal_entry(
                date=D, description="One-sided",
                lines=[LedgerLine(self.cash, debit=Decimal("10.00"))],
                reference_type="test", reference_id=1)

    def test_line_with_both_sides_is_rejected(self):
        with self.assertRaises(ValidationFailed):
            post_journal_entry(
                date=D, description="Both",
                lines=[LedgerLine(self.cash, debit=Decimal("10.00"),
                                  credit=Decimal("10.00")),
                       LedgerLine(self.hall_revenue, credit=Decimal("0.00"))],
                reference_type="test", reference_id=1)

    def test_inactive_account_is_rejected(self):
        self.event_revenue.is_active = False
        self.event_revenue.save()
        with self.assertRaises(ValidationFailed):
            post_journal_entry(
                date=D, description="Inactive",
                lines=[LedgerLine(self.cash, debit=Decimal("10.00")),
                       LedgerLine(self.event_revenue, credit=Decimal("10.00"))],
                reference_type="test", reference_id=1)

    def test_posted_entry_cannot_be_deleted_or_edited(self):
        entry = post_journal_entry(
            date=D, description="Frozen",
            lines=[LedgerLine(self.cash, debit=Decimal("10.00")),
                   LedgerLine(self.hall_revenue, credit=Decimal("10.00"))],
            reference_type="test", reference_id=1)

        with self.assertRaises(ValidationError):
            entry.delete()

        entry.date = D + datetime.timedelta(days=1)
        with self.assertRaises(ValidationError):
            entry.save()

        line = entry.lines.first()
        line.debit = Decimal("20.00")
        with self.assertRaises(ValidationError):
            line.save()
