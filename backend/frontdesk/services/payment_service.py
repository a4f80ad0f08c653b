# Overview: Service-layer operations for payment entries; encapsulates business logic and database work.

"""
Payment Entry Service

WHY: Every money movement on a stay is an append-only PaymentEntry.
The desk ledger is derived from these rows; nothing here computes totals.

DESIGN PRINCIPLES:
- Entries are never updated or deleted
- Entries of one stay are read in ascending timestamp order
- A stay carries at most one "initial" entry going forward; legacy data
  with several is tolerated by the reconciliation (first one wins)
- Extensions are charges (mode "n/a") and flip the room to "extension"
- Direct payments are desk takings with no stay; they only appear on the
  flat payment ledger
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import DirectPayment, PaymentEntry, Room, Stay
from ..models.rooms import ROOM_STATUS_EXTENSION
from ..validation import ValidationError, ConflictError, require_amount
from frontdesk.time_utils import utcnow, to_utc_z
from .cache import get_cache, invalidate_reads
from .errors import store_read
from .reconciliation_service import (
    EntryType,
    MODE_NOT_APPLICABLE,
    VALID_PAYMENT_MODES,
    ledger_description,
)
from .stay_service import get_stay


# Types a caller may record directly; shop purchases go through shop_service
RECORDABLE_TYPES = ["initial", "advance", "additional", "extension", "other"]

DEFAULT_LEDGER_TYPE = "additional"

SOURCE_STAY = "stay"
SOURCE_DIRECT = "direct"


# =============================================================================
# READS
# =============================================================================

def list_payment_entries(stay_id: int) -> list[PaymentEntry]:
    """
    Stored entries for a stay, ascending by timestamp.

    Raises:
        StoreReadError: if the store cannot be read
    """
    with store_read("payment history"):
        return (
            db.session.query(PaymentEntry)
            .filter(PaymentEntry.stay_id == stay_id)
            .order_by(PaymentEntry.timestamp.asc(), PaymentEntry.id.asc())
            .all()
        )


def list_all_payments() -> list[dict]:
    """
    Flat payment ledger: every stay entry, then every direct payment.

    Stay rows carry the guest name and room number of their stay and a
    derived description. Direct rows are not tied to a stay (stay_id is
    None). Cached for the configured TTL.
    """
    cache = get_cache()
    return cache.get_or_load(cache.cache_key("all_payments"), _load_all_payments)


def _load_all_payments() -> list[dict]:
    with store_read("payments"):
        rows = (
            db.session.query(PaymentEntry, Stay, Room)
            .join(Stay, PaymentEntry.stay_id == Stay.id)
            .outerjoin(Room, Stay.room_id == Room.id)
            .order_by(Stay.id.asc(), PaymentEntry.timestamp.asc(), PaymentEntry.id.asc())
            .all()
        )
        direct = (
            db.session.query(DirectPayment)
            .order_by(DirectPayment.timestamp.asc(), DirectPayment.id.asc())
            .all()
        )

    records = []
    for entry, stay, room in rows:
        records.append({
            "id": entry.id,
            "source": SOURCE_STAY,
            "stay_id": stay.id,
            "amount_cents": entry.amount_cents,
            "timestamp": to_utc_z(entry.timestamp) if entry.timestamp else None,
            "type": entry.entry_type or DEFAULT_LEDGER_TYPE,
            "payment_status": "completed",
            "customer_name": stay.guest_name or "Guest",
            "room_number": room.room_number if room is not None and room.room_number else "N/A",
            "description": ledger_description(entry.entry_type),
            "mode": entry.mode,
        })
    for payment in direct:
        records.append({**payment.to_dict(), "source": SOURCE_DIRECT, "stay_id": None})
    return records


# =============================================================================
# WRITES
# =============================================================================

def record_payment(
    stay_id: int,
    *,
    amount_cents: int,
    mode: str,
    entry_type: str = EntryType.ADVANCE.value,
    description: str | None = None,
    timestamp: datetime | None = None,
) -> PaymentEntry:
    """
    Append a payment entry to a stay.

    Args:
        stay_id: stay being paid
        amount_cents: amount in paise (> 0)
        mode: cash, gpay or other
        entry_type: initial, advance, additional, extension or other
        description: optional note
        timestamp: business time (defaults to now)

    Raises:
        NotFoundError: stay does not exist
        ConflictError: a second initial entry was attempted
        ValidationError: invalid amount, mode or type
    """
    amount_cents = require_amount(amount_cents)
    if entry_type not in RECORDABLE_TYPES:
        raise ValidationError(f"Invalid entry type: {entry_type}. Must be one of {RECORDABLE_TYPES}")
    if entry_type == EntryType.EXTENSION.value:
        return extend_stay(stay_id, amount_cents=amount_cents, description=description, timestamp=timestamp)
    if mode not in VALID_PAYMENT_MODES:
        raise ValidationError(f"Invalid payment mode: {mode}. Must be one of {VALID_PAYMENT_MODES}")

    stay = get_stay(stay_id)
    if entry_type == EntryType.INITIAL.value:
        # Legacy rows may be stored as "Initial" or " initial"; match the ledger's parsing
        if any(EntryType.parse(e.entry_type) is EntryType.INITIAL for e in list_payment_entries(stay.id)):
            raise ConflictError("Stay already has an initial payment")

    entry = PaymentEntry(
        stay_id=stay.id,
        amount_cents=amount_cents,
        mode=mode,
        entry_type=entry_type,
        timestamp=timestamp or utcnow(),
        description=description,
    )
    db.session.add(entry)
    db.session.commit()
    invalidate_reads()
    return entry


def extend_stay(
    stay_id: int,
    *,
    amount_cents: int,
    description: str | None = None,
    timestamp: datetime | None = None,
) -> PaymentEntry:
    """
    Charge extra rent for extending an open stay.

    The room status becomes "extension".

    Raises:
        ConflictError: stay already checked out
    """
    amount_cents = require_amount(amount_cents)
    stay = get_stay(stay_id)
    if stay.is_checked_out:
        raise ConflictError("Cannot extend a checked-out stay")

    entry = PaymentEntry(
        stay_id=stay.id,
        amount_cents=amount_cents,
        mode=MODE_NOT_APPLICABLE,
        entry_type=EntryType.EXTENSION.value,
        timestamp=timestamp or utcnow(),
        description=description or "Stay extension",
    )
    db.session.add(entry)

    room = db.session.get(Room, stay.room_id)
    if room is not None:
        room.status = ROOM_STATUS_EXTENSION

    db.session.commit()
    invalidate_reads()
    return entry


def record_direct_payment(
    *,
    amount_cents: int,
    mode: str,
    customer_name: str | None = None,
    room_number: int | None = None,
    payment_type: str | None = None,
    description: str | None = None,
    timestamp: datetime | None = None,
) -> DirectPayment:
    """
    Record money taken at the desk that belongs to no stay.

    Raises:
        ValidationError: invalid amount, mode or room number
    """
    amount_cents = require_amount(amount_cents)
    if mode not in VALID_PAYMENT_MODES:
        raise ValidationError(f"Invalid payment mode: {mode}. Must be one of {VALID_PAYMENT_MODES}")
    if room_number is not None and (
        isinstance(room_number, bool) or not isinstance(room_number, int) or room_number <= 0
    ):
        raise ValidationError("room_number must be a positive integer")

    payment = DirectPayment(
        amount_cents=amount_cents,
        mode=mode,
        payment_type=payment_type,
        payment_status="completed",
        customer_name=(customer_name or "").strip() or None,
        room_number=room_number,
        description=description,
        timestamp=timestamp or utcnow(),
    )
    db.session.add(payment)
    db.session.commit()
    invalidate_reads()
    return payment
