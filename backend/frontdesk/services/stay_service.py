# Overview: Service-layer operations for stays; check-in, check-out and stay history.

"""
Stay Service

DESIGN:
- A stay is opened by check_in and closed by check_out; it is never deleted
- Check-in records the real "initial" payment entry so the ledger does not
  need to synthesize one for new stays
- Room history lists only checked-out stays, most recent check-in first
- reconcile_stay fetches everything a ledger needs and hands it to the pure
  reconciliation_service
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Room, Stay, PaymentEntry
from ..models.rooms import (
    ROOM_STATUS_CLEANING,
    ROOM_STATUS_MAINTENANCE,
    ROOM_STATUS_OCCUPIED,
)
from ..validation import ValidationError, ConflictError, require_amount
from frontdesk.time_utils import utcnow
from .cache import invalidate_reads
from .errors import NotFoundError, store_read
from .reconciliation_service import (
    EntryType,
    MODE_CASH,
    VALID_PAYMENT_MODES,
    Reconciliation,
    reconcile,
    total_shop_purchases,
)
from .room_service import get_room


# =============================================================================
# READS
# =============================================================================

def get_stay(stay_id: int) -> Stay:
    with store_read("stay"):
        stay = db.session.get(Stay, stay_id)
    if stay is None:
        raise NotFoundError(f"Stay {stay_id} not found")
    return stay


def list_stays_for_room(room_id: int) -> list[Stay]:
    """
    Checked-out stays for a room, most recent check-in first.

    Stays missing a check-in time sort last.

    Raises:
        StoreReadError: if the store cannot be read
    """
    with store_read("customer details"):
        stays = (
            db.session.query(Stay)
            .filter(Stay.room_id == room_id, Stay.is_checked_out.is_(True))
            .all()
        )

    stays.sort(key=lambda s: (s.checked_in_at is not None, s.checked_in_at or datetime.min), reverse=True)
    return stays


def get_active_stay(room_id: int) -> Stay | None:
    with store_read("active stay"):
        return (
            db.session.query(Stay)
            .filter(Stay.room_id == room_id, Stay.is_checked_out.is_(False))
            .order_by(Stay.id.desc())
            .first()
        )


def reconcile_stay(stay_id: int, now: datetime | None = None) -> dict:
    """
    Fetch a stay's entries and purchases and reconcile them.

    Returns:
        Dict with keys stay, entries (raw), purchases, reconciliation,
        shop_purchase_total_cents
    """
    # Local import keeps payment/shop services free to import this module
    from .payment_service import list_payment_entries
    from .shop_service import list_shop_purchases

    stay = get_stay(stay_id)
    entries = list_payment_entries(stay.id)
    purchases = list_shop_purchases(stay.id)

    return {
        "stay": stay,
        "entries": entries,
        "purchases": purchases,
        "reconciliation": reconcile(stay, entries, now=now),
        "shop_purchase_total_cents": total_shop_purchases(purchases),
    }


# =============================================================================
# CHECK-IN / CHECK-OUT
# =============================================================================

def check_in(
    *,
    room_id: int,
    guest_name: str,
    rent_cents: int,
    phone_number: str | None = None,
    initial_amount_cents: int | None = None,
    mode: str = MODE_CASH,
    checked_in_at: datetime | None = None,
) -> Stay:
    """
    Open a stay on a room.

    Args:
        room_id: room being let
        guest_name: guest name (required)
        rent_cents: agreed base rent
        phone_number: optional contact number
        initial_amount_cents: amount taken at check-in (defaults to rent)
        mode: cash, gpay or other
        checked_in_at: business time of check-in (defaults to now)

    Raises:
        NotFoundError: room does not exist
        ConflictError: room already has an open stay or is under maintenance
        ValidationError: bad amounts, mode or name
    """
    if not guest_name or not str(guest_name).strip():
        raise ValidationError("guest_name is required")
    rent_cents = require_amount(rent_cents, "rent_cents", allow_zero=True)
    if initial_amount_cents is None:
        initial_amount_cents = rent_cents
    initial_amount_cents = require_amount(initial_amount_cents, "initial_amount_cents", allow_zero=True)
    if mode not in VALID_PAYMENT_MODES:
        raise ValidationError(f"Invalid payment mode: {mode}. Must be one of {VALID_PAYMENT_MODES}")

    room = get_room(room_id)
    if get_active_stay(room.id) is not None:
        raise ConflictError("Room is already occupied")
    if room.status == ROOM_STATUS_MAINTENANCE:
        raise ConflictError("Room is under maintenance")

    checked_in_at = checked_in_at or utcnow()
    stay = Stay(
        room_id=room.id,
        guest_name=str(guest_name).strip(),
        phone_number=phone_number,
        checked_in_at=checked_in_at,
        rent_cents=rent_cents,
        is_checked_out=False,
    )
    db.session.add(stay)
    db.session.flush()

    db.session.add(PaymentEntry(
        stay_id=stay.id,
        amount_cents=initial_amount_cents,
        mode=mode,
        entry_type=EntryType.INITIAL.value,
        timestamp=checked_in_at,
        description="Payment at check-in",
    ))

    room.status = ROOM_STATUS_OCCUPIED
    room.has_pending_payment = initial_amount_cents < rent_cents

    db.session.commit()
    invalidate_reads()
    return stay


def check_out(stay_id: int, checked_out_at: datetime | None = None) -> tuple[Stay, Reconciliation]:
    """
    Close a stay.

    The room goes to cleaning and its pending-payment flag follows the
    reconciled balance at checkout.

    Raises:
        ConflictError: stay already checked out
    """
    from .payment_service import list_payment_entries

    stay = get_stay(stay_id)
    if stay.is_checked_out:
        raise ConflictError(f"Stay {stay_id} is already checked out")

    result = reconcile(stay, list_payment_entries(stay.id))

    stay.is_checked_out = True
    stay.checked_out_at = checked_out_at or utcnow()

    room = db.session.get(Room, stay.room_id)
    if room is not None:
        room.status = ROOM_STATUS_CLEANING
        room.has_pending_payment = result.pending_balance_cents > 0

    db.session.commit()
    invalidate_reads()
    return stay, result

