# Overview: Service-layer operations for shop purchases charged to a stay.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import PaymentEntry, ShopPurchase
from ..validation import ValidationError, ConflictError, require_amount
from frontdesk.time_utils import utcnow
from .cache import invalidate_reads
from .errors import store_read
from .reconciliation_service import EntryType, MODE_OTHER
from .stay_service import get_stay


PURCHASE_STATUS_PENDING = "pending"
PURCHASE_STATUS_PAID = "paid"

VALID_PURCHASE_STATUSES = [PURCHASE_STATUS_PENDING, PURCHASE_STATUS_PAID]


def list_shop_purchases(stay_id: int) -> list[ShopPurchase]:
    """Purchases linked to a stay, in store order."""
    with store_read("shop purchases"):
        return (
            db.session.query(ShopPurchase)
            .filter(ShopPurchase.stay_id == stay_id)
            .order_by(ShopPurchase.id.asc())
            .all()
        )


def record_shop_purchase(
    stay_id: int,
    *,
    item_name: str,
    quantity: int,
    amount_cents: int,
    inventory_id: str | None = None,
    payment_status: str = PURCHASE_STATUS_PENDING,
    created_at: datetime | None = None,
) -> ShopPurchase:
    """
    Record a shop purchase and charge it to the stay.

    Alongside the purchase a "shop-purchase" payment entry is appended with
    a negative amount, so the purchase shows on the stay ledger and raises
    the rent owed.

    Raises:
        ConflictError: stay already checked out
        ValidationError: bad item, quantity, amount or status
    """
    if not item_name or not str(item_name).strip():
        raise ValidationError("item_name is required")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    amount_cents = require_amount(amount_cents)
    if payment_status not in VALID_PURCHASE_STATUSES:
        raise ValidationError(f"Invalid payment status: {payment_status}. Must be one of {VALID_PURCHASE_STATUSES}")

    stay = get_stay(stay_id)
    if stay.is_checked_out:
        raise ConflictError("Cannot add purchases to a checked-out stay")

    created_at = created_at or utcnow()
    item_name = str(item_name).strip()

    purchase = ShopPurchase(
        stay_id=stay.id,
        inventory_id=inventory_id,
        item_name=item_name,
        quantity=quantity,
        amount_cents=amount_cents,
        payment_status=payment_status,
        created_at=created_at,
    )
    db.session.add(purchase)

    db.session.add(PaymentEntry(
        stay_id=stay.id,
        amount_cents=-amount_cents,
        mode=MODE_OTHER,
        entry_type=EntryType.SHOP_PURCHASE.value,
        timestamp=created_at,
        description=f"{item_name} x{quantity}",
    ))

    db.session.commit()
    invalidate_reads()
    return purchase
