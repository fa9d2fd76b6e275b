import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import (AlreadyPostedDifferentPayload, UnbalancedJournalError,
                          ValidationFailed)
from ..models import Account, JournalEntry, JournalLine
from ..models.journal import posting_fingerprint
from ..money import ZERO, to_money
from .audit_helper import log_action
from .numbering import JOURNAL, next_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerLine:
    account: Account
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str = ""


def resolve_account(key):
    """Account configured under settings.LEDGER_ACCOUNTS[key]."""
    code = settings.LEDGER_ACCOUNTS.get(key)
    account = Account.objects.filter(code=code, is_active=True).first()
    if account is None:
        raise ValidationFailed(
            f"Ledger account '{key}' (code {code}) is not configured")
    return account


def receivable_account_for(customer):
    return customer.default_ar_account or resolve_account("receivable")


def _normalise(lines):
    """Round every line to 2dp and reject malformed lines."""
    issues = []
    normalised = []
    for n, line in enumerate(lines, start=1):
        try:
            debit, credit = to_money(line.debit), to_money(line.credit)
        except ValueError:
            issues.append(f"Line {n}: debit and credit must be numbers")
            continue
        if debit < 0 or credit < 0:
            issues.append(f"Line {n}: debit and credit must be >= 0")
        elif debit > 0 and credit > 0:
            issues.append(f"Line {n}: cannot carry both a debit and a credit")
        elif debit == 0 and credit == 0:
            issues.append(f"Line {n}: needs a non-zero debit or credit")
        if not line.account.is_active:
            issues.append(f"Line {n}: account {line.account.code} is inactive")
        normalised.append(LedgerLine(line.account, debit, credit,
                                     line.description))
    if issues:
        raise ValidationFailed(issues)
    return normalised


def check_balanced(lines):
    """Return (total_debit, total_credit) or raise UnbalancedJournalError.

    Runs before anything is written, so a rejected entry leaves no trace.
    """
    td = to_money(sum((line.debit for line in lines), ZERO))
    tc = to_money(sum((line.credit for line in lines), ZERO))
    if len(lines) < 2:
        raise UnbalancedJournalError(
            "Journal needs at least one debit and one credit line")
    if td != tc:
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={td}, credits={tc}"
        )
    return td, tc


def posting_fingerprint_for(date, lines):
    return posting_fingerprint(
        date,
        [(line.account.pk, line.debit, line.credit, line.description)
         for line in lines],
    )


def _apply_balances(lines):
    """Move account balances by each line's signed delta.

    Accounts are locked in id order (no deadlock between two postings
    touching the same pair) and updated with F() so there is no
    read-modify-write window.
    """
    deltas = defaultdict(lambda: ZERO)
    for line in lines:
        deltas[line.account.pk] += line.account.balance_delta(
            line.debit, line.credit)

    list(Account.objects.select_for_update()
         .filter(pk__in=list(deltas)).order_by("pk"))
    for account_id in sorted(deltas):
        Account.objects.filter(pk=account_id).update(
            current_balance=F("current_balance") + deltas[account_id])


def post_journal_entry(*, date, description, lines, reference_type,
                       reference_id, actor=None, reverses=None):
    """Validate, persist and apply one balanced journal entry.

    Idempotent per (reference_type, reference_id): posting the same lines
    again returns the existing entry; different lines raise
    AlreadyPostedDifferentPayload.
    """
    lines = _normalise(lines)
    total_debit, total_credit = check_balanced(lines)
    fp = posting_fingerprint_for(date, lines)

    with transaction.atomic():
        existing = (
            JournalEntry.objects.select_for_update()
            .filter(reference_type=reference_type, reference_id=reference_id)
            .first()
        )
        if existing is not None:
            if existing.posting_fingerprint == fp:
                # Idempotent: safe to return without raising
                return existing
            raise AlreadyPostedDifferentPayload(
                "Journal already posted with different payload."
            )

        entry = JournalEntry.objects.create(
            journal_number=next_number(JOURNAL, date.year),
            date=date,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
            reverses=reverses,
            created_by=actor if getattr(actor, "is_authenticated", False) else None,
        )
        for order, line in enumerate(lines, start=1):
            JournalLine.objects.create(
                journal=entry,
                line_order=order,
                account=line.account,
                description=line.description,
                debit=line.debit,
                credit=line.credit,
            )

        _apply_balances(lines)

        # freeze the entry
        entry.total_debit = total_debit
        entry.total_credit = total_credit
        entry.posting_fingerprint = fp
        entry.posted_at = timezone.now()
        entry.save(update_fields=[
            "total_debit", "total_credit", "posting_fingerprint", "posted_at"])

        log_action(
            action="post",
            instance=entry,
            user=actor,
            changes={
                "reference": f"{reference_type}:{reference_id}",
                "total": str(total_debit),
            },
        )

    logger.info("Posted %s for %s:%s (%s)", entry.journal_number,
                reference_type, reference_id, total_debit)
    return entry


def reverse_journal_entry(entry, *, reference_type, reference_id, date=None,
                          description=None, actor=None):
    """Post the mirror image of `entry` (debits and credits swapped)."""
    lines = [
        LedgerLine(
            account=line.account,
            debit=line.credit,
            credit=line.debit,
            description=f"Reversal: {line.description}".strip(),
        )
        for line in entry.lines.select_related("account").order_by("line_order")
    ]
    return post_journal_entry(
        date=date or timezone.localdate(),
        description=description or f"Reversal of {entry.journal_number}",
        lines=lines,
        reference_type=reference_type,
        reference_id=reference_id,
        actor=actor,
        reverses=entry,
    )


def recompute_account_balance(account):
    """Balance implied by the account's journal lines."""
    agg = JournalLine.objects.filter(account=account).aggregate(
        debit=models.Sum("debit"),
        credit=models.Sum("credit"),
    )
    # If nothing was posted, Django returns None → fallback to 0
    return to_money(account.balance_delta(agg["debit"] or ZERO,
                                          agg["credit"] or ZERO))
