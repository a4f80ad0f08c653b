# Overview: Pure reconciliation of a stay's charges and payments into a ledger with totals.

"""
Stay Reconciliation

Builds the guest ledger shown at the desk from a stay and the payment
entries already fetched for it. No database access happens here.

LEDGER SHAPE:
- [0] check-in charge: amount = stay rent, stamped at check-in
- [1] initial payment: the first stored "initial" entry, or a synthesized
      cash payment of the full rent when none was recorded
- [2:] every other stored entry, ascending by timestamp

TOTALS:
- total rent owed = rent + |amount| of every extension and shop-purchase entry
- total paid = initial/advance entries taken in cash or gpay
- pending balance = max(0, owed - paid)

Initial or advance entries in any other mode (refunds, write-offs) are left
out of "total paid".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from frontdesk.time_utils import utcnow, to_utc_z, format_date, format_time


# =============================================================================
# ENTRY TYPES AND PAYMENT MODES
# =============================================================================

class EntryType(str, Enum):
    CHECK_IN_CHARGE = "check-in"
    INITIAL = "initial"
    ADVANCE = "advance"
    EXTENSION = "extension"
    SHOP_PURCHASE = "shop-purchase"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "EntryType":
        """
        Map a stored type string to an EntryType.

        The check-in charge is never stored, so a stored "check-in" string is
        treated like any other unrecognised label.
        """
        if raw is None:
            return cls.OTHER
        return _STORED_TYPES.get(raw.strip().lower(), cls.OTHER)


_STORED_TYPES = {
    "initial": EntryType.INITIAL,
    "advance": EntryType.ADVANCE,
    "additional": EntryType.ADVANCE,
    "extension": EntryType.EXTENSION,
    "shop-purchase": EntryType.SHOP_PURCHASE,
}

MODE_CASH = "cash"
MODE_GPAY = "gpay"
MODE_OTHER = "other"
MODE_NOT_APPLICABLE = "n/a"

VALID_PAYMENT_MODES = [MODE_CASH, MODE_GPAY, MODE_OTHER]

# Only these modes count towards "total paid"
PAID_MODES = frozenset({MODE_CASH, MODE_GPAY})

CHECK_IN_CHARGE_ID = "rent-entry"
SYNTHESIZED_INITIAL_ID = "advance-entry"
SYNTHESIZED_INITIAL_DESCRIPTION = "Initial payment at check-in"


# =============================================================================
# LEDGER TYPES
# =============================================================================

@dataclass(frozen=True)
class TransactionEntry:
    id: int | str | None
    amount_cents: int
    mode: str | None
    entry_type: EntryType
    timestamp: datetime | None
    description: str | None = None
    raw_type: str | None = None
    synthesized: bool = False

    @classmethod
    def from_payment(cls, entry) -> "TransactionEntry":
        """Wrap a stored PaymentEntry (or any object with the same attributes)."""
        raw_type = entry.entry_type
        return cls(
            id=entry.id,
            amount_cents=entry.amount_cents or 0,
            mode=entry.mode,
            entry_type=EntryType.parse(raw_type),
            timestamp=entry.timestamp,
            description=entry.description,
            raw_type=raw_type,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents,
            "mode": self.mode,
            "type": self.entry_type.value,
            "raw_type": self.raw_type,
            "timestamp": to_utc_z(self.timestamp) if self.timestamp else None,
            "description": self.description,
            "synthesized": self.synthesized,
        }


@dataclass
class Reconciliation:
    transactions: list[TransactionEntry]
    total_rent_owed_cents: int
    total_paid_cents: int
    pending_balance_cents: int
    # Stored "initial" entries after the first; excluded from the ledger
    discarded_initial_entries: list[TransactionEntry] = field(default_factory=list)

    @property
    def check_in_charge(self) -> TransactionEntry:
        return self.transactions[0]

    @property
    def initial_payment(self) -> TransactionEntry:
        return self.transactions[1]

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "total_rent_owed_cents": self.total_rent_owed_cents,
            "total_paid_cents": self.total_paid_cents,
            "pending_balance_cents": self.pending_balance_cents,
            "discarded_initial_entries": [t.to_dict() for t in self.discarded_initial_entries],
        }


# =============================================================================
# RECONCILIATION
# =============================================================================

def _timestamp_order(entry: TransactionEntry):
    # Entries without a timestamp go last, keeping their relative order
    return (entry.timestamp is None, entry.timestamp or datetime.min)


def build_check_in_charge(stay, now: datetime | None = None) -> TransactionEntry:
    return TransactionEntry(
        id=CHECK_IN_CHARGE_ID,
        amount_cents=stay.rent_cents or 0,
        mode=MODE_NOT_APPLICABLE,
        entry_type=EntryType.CHECK_IN_CHARGE,
        timestamp=stay.checked_in_at or now or utcnow(),
        synthesized=True,
    )


def build_initial_payment(stay, now: datetime | None = None) -> TransactionEntry:
    """Stand-in initial payment: the full rent taken in cash at check-in."""
    return TransactionEntry(
        id=SYNTHESIZED_INITIAL_ID,
        amount_cents=stay.rent_cents or 0,
        mode=MODE_CASH,
        entry_type=EntryType.INITIAL,
        timestamp=stay.checked_in_at or now or utcnow(),
        description=SYNTHESIZED_INITIAL_DESCRIPTION,
        raw_type=EntryType.INITIAL.value,
        synthesized=True,
    )


def rent_contribution(entry: TransactionEntry) -> int:
    """Amount an entry adds to the rent owed."""
    entry_type = entry.entry_type
    if entry_type is EntryType.CHECK_IN_CHARGE:
        return entry.amount_cents
    if entry_type is EntryType.EXTENSION or entry_type is EntryType.SHOP_PURCHASE:
        # shop purchases are stored negative
        return abs(entry.amount_cents)
    if entry_type in (EntryType.INITIAL, EntryType.ADVANCE, EntryType.OTHER):
        return 0
    raise AssertionError(f"Unhandled entry type: {entry_type!r}")


def paid_contribution(entry: TransactionEntry) -> int:
    """Amount an entry adds to the total paid."""
    entry_type = entry.entry_type
    if entry_type is EntryType.INITIAL or entry_type is EntryType.ADVANCE:
        return entry.amount_cents if entry.mode in PAID_MODES else 0
    if entry_type in (
        EntryType.CHECK_IN_CHARGE,
        EntryType.EXTENSION,
        EntryType.SHOP_PURCHASE,
        EntryType.OTHER,
    ):
        return 0
    raise AssertionError(f"Unhandled entry type: {entry_type!r}")


def reconcile(stay, entries: Iterable, now: datetime | None = None) -> Reconciliation:
    """
    Merge a stay with its stored payment entries.

    Args:
        stay: Stay (needs rent_cents and checked_in_at)
        entries: stored PaymentEntry rows (or TransactionEntry values)
        now: fallback timestamp when the stay has no check-in time

    Returns:
        Reconciliation with the ledger and its totals
    """
    real = [
        e if isinstance(e, TransactionEntry) else TransactionEntry.from_payment(e)
        for e in entries
    ]
    real.sort(key=_timestamp_order)

    initials = [e for e in real if e.entry_type is EntryType.INITIAL]
    initial = initials[0] if initials else build_initial_payment(stay, now)

    transactions = [
        build_check_in_charge(stay, now),
        initial,
        *[e for e in real if e.entry_type is not EntryType.INITIAL],
    ]

    total_rent_owed = sum(rent_contribution(e) for e in transactions)
    total_paid = sum(paid_contribution(e) for e in transactions)

    return Reconciliation(
        transactions=transactions,
        total_rent_owed_cents=total_rent_owed,
        total_paid_cents=total_paid,
        pending_balance_cents=max(0, total_rent_owed - total_paid),
        discarded_initial_entries=initials[1:],
    )


def total_shop_purchases(purchases: Iterable) -> int:
    """Sum of purchase amounts, independent of the ledger."""
    return sum(p.amount_cents or 0 for p in purchases)


# =============================================================================
# PRESENTATION CLASSIFICATION
# =============================================================================

@dataclass(frozen=True)
class LedgerRow:
    date: str
    time: str
    process: str
    cash_cents: int | None
    gpay_cents: int | None
    rent_cents: int | None

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "time": self.time,
            "process": self.process,
            "cash_cents": self.cash_cents,
            "gpay_cents": self.gpay_cents,
            "rent_cents": self.rent_cents,
        }


def describe_entry(entry: TransactionEntry) -> LedgerRow:
    """Classify one ledger entry into the desk's Cash / GPay / Rent columns."""
    cash = gpay = rent = None
    entry_type = entry.entry_type

    if entry_type is EntryType.CHECK_IN_CHARGE:
        process = "Check-in"
        rent = entry.amount_cents
    elif entry_type is EntryType.EXTENSION:
        process = "Extension"
        rent = entry.amount_cents
    elif entry_type is EntryType.INITIAL or entry_type is EntryType.ADVANCE:
        process = "Initial Payment" if entry_type is EntryType.INITIAL else "Additional Payment"
        if entry.mode == MODE_CASH:
            cash = entry.amount_cents
        elif entry.mode == MODE_GPAY:
            gpay = entry.amount_cents
    elif entry_type is EntryType.SHOP_PURCHASE:
        process = "Shop Purchase"
        rent = abs(entry.amount_cents)
    else:
        process = entry.raw_type or "Transaction"

    return LedgerRow(
        date=format_date(entry.timestamp),
        time=format_time(entry.timestamp),
        process=process,
        cash_cents=cash,
        gpay_cents=gpay,
        rent_cents=rent,
    )


def ledger_description(raw_type: str | None) -> str:
    """Short description used on the all-payments ledger."""
    entry_type = EntryType.parse(raw_type)
    if entry_type is EntryType.EXTENSION:
        return "Stay extension"
    if entry_type is EntryType.INITIAL:
        return "Initial payment"
    return "Additional payment"


def format_amount(cents: int | None, symbol: str = "₹") -> str:
    """Render minor units as e.g. '₹1000.00'; missing renders '—'."""
    if cents is None:
        return "—"
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{symbol}{whole}.{frac:02d}"
