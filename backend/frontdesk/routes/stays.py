# Overview: Flask API routes for stays operations; parses input and returns JSON responses.

# backend/frontdesk/routes/stays.py
"""
Stay API Routes

DESIGN:
- Check-in opens a stay and records its initial payment
- Payments, extensions and shop purchases are appended to a stay
- Check-out closes the stay and returns the final ledger
- The ledger endpoint returns the reconciled transaction list, its totals,
  the display rows and the shop purchases of the stay
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import handle_service_errors
from ..services import payment_service, shop_service, stay_service
from ..services.reconciliation_service import MODE_CASH, EntryType, describe_entry
from ..validation import ValidationError
from frontdesk.time_utils import parse_iso_datetime


stays_bp = Blueprint("stays", __name__, url_prefix="/api/stays")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def _optional_time(data: dict, key: str):
    try:
        return parse_iso_datetime(data.get(key))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _ledger_response(result: dict) -> dict:
    stay = result["stay"]
    reconciliation = result["reconciliation"]

    if reconciliation.discarded_initial_entries:
        current_app.logger.warning(
            "Stay %s has %d extra initial payment entries excluded from its ledger: %s",
            stay.id,
            len(reconciliation.discarded_initial_entries),
            [e.id for e in reconciliation.discarded_initial_entries],
        )

    return {
        "stay": stay.to_dict(),
        **reconciliation.to_dict(),
        "rows": [describe_entry(e).to_dict() for e in reconciliation.transactions],
        "shop_purchases": [p.to_dict() for p in result["purchases"]],
        "shop_purchase_total_cents": result["shop_purchase_total_cents"],
    }


# =============================================================================
# CHECK-IN / CHECK-OUT
# =============================================================================

@stays_bp.post("")
@handle_service_errors("Failed to check in guest")
def check_in_route():
    """
    Check a guest into a room.

    Request body:
    {
        "room_id": 3,
        "guest_name": "Asha",
        "phone_number": "9876543210",   (optional)
        "rent_cents": 150000,
        "initial_amount_cents": 150000, (optional, defaults to rent)
        "mode": "cash",                 (optional: cash | gpay | other)
        "checked_in_at": "2025-03-05T14:30:00Z" (optional)
    }
    """
    data = _json_body()
    room_id = data.get("room_id")
    if room_id is None:
        raise ValidationError("room_id required")
    if isinstance(room_id, bool) or not isinstance(room_id, int):
        raise ValidationError("room_id must be an integer")

    stay = stay_service.check_in(
        room_id=room_id,
        guest_name=data.get("guest_name"),
        phone_number=data.get("phone_number"),
        rent_cents=data.get("rent_cents"),
        initial_amount_cents=data.get("initial_amount_cents"),
        mode=data.get("mode") or MODE_CASH,
        checked_in_at=_optional_time(data, "checked_in_at"),
    )
    return jsonify({"stay": stay.to_dict()}), 201


@stays_bp.get("/<int:stay_id>")
@handle_service_errors("Failed to fetch customer details")
def get_stay_route(stay_id: int):
    return jsonify({"stay": stay_service.get_stay(stay_id).to_dict()})


@stays_bp.post("/<int:stay_id>/checkout")
@handle_service_errors("Failed to check out guest")
def check_out_route(stay_id: int):
    data = _json_body()
    stay_service.check_out(stay_id, checked_out_at=_optional_time(data, "checked_out_at"))
    return jsonify(_ledger_response(stay_service.reconcile_stay(stay_id)))


# =============================================================================
# LEDGER
# =============================================================================

@stays_bp.get("/<int:stay_id>/ledger")
@handle_service_errors("Failed to fetch payment history")
def stay_ledger_route(stay_id: int):
    """
    Reconciled ledger for a stay.

    Returns:
    - transactions: check-in charge, initial payment, then other entries
    - total_rent_owed_cents, total_paid_cents, pending_balance_cents
    - rows: Cash / GPay / Rent column classification per transaction
    - shop_purchases and shop_purchase_total_cents
    """
    return jsonify(_ledger_response(stay_service.reconcile_stay(stay_id)))


@stays_bp.get("/<int:stay_id>/payments")
@handle_service_errors("Failed to fetch payment history")
def list_payments_route(stay_id: int):
    stay = stay_service.get_stay(stay_id)
    entries = payment_service.list_payment_entries(stay.id)
    return jsonify({"stay_id": stay.id, "items": [e.to_dict() for e in entries]})


@stays_bp.post("/<int:stay_id>/payments")
@handle_service_errors("Failed to record payment")
def record_payment_route(stay_id: int):
    """
    Request body:
    {
        "amount_cents": 50000,
        "mode": "gpay",
        "type": "advance",          (optional: initial | advance | additional | extension | other)
        "description": "...",       (optional)
        "timestamp": "..."          (optional)
    }
    """
    data = _json_body()
    entry = payment_service.record_payment(
        stay_id,
        amount_cents=data.get("amount_cents"),
        mode=data.get("mode"),
        entry_type=data.get("type") or EntryType.ADVANCE.value,
        description=data.get("description"),
        timestamp=_optional_time(data, "timestamp"),
    )
    return jsonify({"payment": entry.to_dict()}), 201


@stays_bp.post("/<int:stay_id>/extensions")
@handle_service_errors("Failed to extend stay")
def extend_stay_route(stay_id: int):
    data = _json_body()
    entry = payment_service.extend_stay(
        stay_id,
        amount_cents=data.get("amount_cents"),
        description=data.get("description"),
        timestamp=_optional_time(data, "timestamp"),
    )
    return jsonify({"payment": entry.to_dict()}), 201


# =============================================================================
# SHOP PURCHASES
# =============================================================================

@stays_bp.get("/<int:stay_id>/purchases")
@handle_service_errors("Failed to fetch shop purchases")
def list_purchases_route(stay_id: int):
    stay = stay_service.get_stay(stay_id)
    purchases = shop_service.list_shop_purchases(stay.id)
    return jsonify({"stay_id": stay.id, "items": [p.to_dict() for p in purchases]})


@stays_bp.post("/<int:stay_id>/purchases")
@handle_service_errors("Failed to record shop purchase")
def record_purchase_route(stay_id: int):
    """
    Request body:
    {
        "item_name": "Water bottle",
        "quantity": 2,
        "amount_cents": 4000,
        "inventory_id": "INV-12",   (optional)
        "payment_status": "pending" (optional: pending | paid)
    }
    """
    data = _json_body()
    purchase = shop_service.record_shop_purchase(
        stay_id,
        item_name=data.get("item_name"),
        quantity=data.get("quantity", 1),
        amount_cents=data.get("amount_cents"),
        inventory_id=data.get("inventory_id"),
        payment_status=data.get("payment_status") or shop_service.PURCHASE_STATUS_PENDING,
        created_at=_optional_time(data, "created_at"),
    )
    return jsonify({"purchase": purchase.to_dict()}), 201
