# Overview: Flask API routes for the payment ledger; parses input and returns JSON responses.

# backend/frontdesk/routes/payments.py
"""
Payment ledger routes.

Flat list of every payment entry across all stays, followed by direct
desk payments that belong to no stay. Each row has a guest name, room
number and description. Served from the read cache.
"""

from flask import Blueprint, request, jsonify

from ..decorators import handle_service_errors
from ..services import payment_service
from ..validation import ValidationError
from frontdesk.time_utils import parse_iso_datetime


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.get("")
@handle_service_errors("Failed to fetch payments")
def list_all_payments_route():
    """
    Query params:
    - mode: only rows taken in this mode (cash | gpay | other)
    - type: only rows with this stored type
    """
    mode = request.args.get("mode")
    entry_type = request.args.get("type")

    records = payment_service.list_all_payments()
    if mode:
        records = [r for r in records if r["mode"] == mode]
    if entry_type:
        records = [r for r in records if r["type"] == entry_type]

    return jsonify({
        "items": records,
        "count": len(records),
        "total_amount_cents": sum(r["amount_cents"] for r in records),
    })


@payments_bp.post("")
@handle_service_errors("Failed to record payment")
def record_direct_payment_route():
    """
    Record a desk payment that belongs to no stay.

    Request body:
    {
        "amount_cents": 25000,
        "mode": "cash",                 (cash | gpay | other)
        "customer_name": "Walk-in",     (optional)
        "room_number": 204,             (optional)
        "type": "deposit",              (optional, defaults to "payment")
        "description": "...",           (optional)
        "timestamp": "..."              (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    try:
        timestamp = parse_iso_datetime(data.get("timestamp"))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("timestamp must be an ISO-8601 datetime")

    payment = payment_service.record_direct_payment(
        amount_cents=data.get("amount_cents"),
        mode=data.get("mode"),
        customer_name=data.get("customer_name"),
        room_number=data.get("room_number"),
        payment_type=data.get("type"),
        description=data.get("description"),
        timestamp=timestamp,
    )
    return jsonify({"payment": payment.to_dict()}), 201
