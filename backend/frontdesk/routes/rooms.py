# Overview: Flask API routes for rooms operations; parses input and returns JSON responses.

# backend/frontdesk/routes/rooms.py
"""
Room management routes.

- Room board (sorted by floor, then number) with optional status filter
- Floor / room selectors for the stay-history screen
- Admin edits: create, update, delete, status and pending-payment flag
"""
from flask import Blueprint, request, jsonify

from ..decorators import handle_service_errors
from ..models import Room
from ..services import room_service, stay_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_room,
    ValidationError,
)

ROOM_POLICY = ModelValidationPolicy(
    writable_fields={"room_number", "floor", "room_type", "status", "has_pending_payment"},
    required_on_create={"room_number"},
)

rooms_bp = Blueprint("rooms", __name__, url_prefix="/api/rooms")


@rooms_bp.get("")
@handle_service_errors("Failed to fetch rooms")
def list_rooms_route():
    """
    List rooms.

    Query params:
    - status: available | occupied | cleaning | maintenance | extension | all
    """
    status = request.args.get("status")
    rooms = room_service.list_rooms(status=status)
    return jsonify({"items": [r.to_dict() for r in rooms], "count": len(rooms)})


@rooms_bp.get("/overview")
@handle_service_errors("Failed to fetch rooms")
def rooms_overview_route():
    """Rooms plus their open stays (cached)."""
    return jsonify(room_service.get_rooms_with_bookings())


@rooms_bp.get("/floors")
@handle_service_errors("Failed to fetch rooms")
def list_floors_route():
    return jsonify({"floors": room_service.list_floors()})


@rooms_bp.get("/floors/<floor>")
@handle_service_errors("Failed to fetch rooms")
def list_floor_rooms_route(floor: str):
    rooms = room_service.list_rooms_on_floor(floor)
    return jsonify({"floor": floor, "items": [r.to_dict() for r in rooms]})


@rooms_bp.get("/<int:room_id>")
@handle_service_errors("Failed to fetch room")
def get_room_route(room_id: int):
    return jsonify({"room": room_service.get_room(room_id).to_dict()})


@rooms_bp.get("/<int:room_id>/stays")
@handle_service_errors("Failed to fetch customer details")
def list_room_stays_route(room_id: int):
    """Checked-out stays for the room, most recent first."""
    room = room_service.get_room(room_id)
    stays = stay_service.list_stays_for_room(room.id)
    return jsonify({"room": room.to_dict(), "items": [s.to_dict() for s in stays]})


@rooms_bp.post("")
@handle_service_errors("Failed to create room")
def create_room_route():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Room, payload=payload, policy=ROOM_POLICY, partial=False)
    enforce_rules_room(patch)
    room = room_service.create_room(patch=patch)
    return jsonify({"room": room.to_dict()}), 201


@rooms_bp.patch("/<int:room_id>")
@handle_service_errors("Failed to update room")
def update_room_route(room_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Room, payload=payload, policy=ROOM_POLICY, partial=True)
    enforce_rules_room(patch)
    room = room_service.update_room(room_id, patch=patch)
    return jsonify({"room": room.to_dict()})


@rooms_bp.delete("/<int:room_id>")
@handle_service_errors("Failed to delete room")
def delete_room_route(room_id: int):
    room_service.delete_room(room_id)
    return jsonify({"deleted": True, "id": room_id})


@rooms_bp.post("/<int:room_id>/status")
@handle_service_errors("Failed to update room status")
def set_room_status_route(room_id: int):
    """
    Request body:
    {
        "status": "cleaning"
    }
    """
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        raise ValidationError("status required")
    room = room_service.set_room_status(room_id, status)
    return jsonify({"room": room.to_dict(), "message": f"Room status updated to {status}"})


@rooms_bp.post("/<int:room_id>/pending-payment")
@handle_service_errors("Failed to update payment status")
def set_pending_payment_route(room_id: int):
    """
    Request body:
    {
        "has_pending_payment": true
    }
    """
    data = request.get_json(silent=True) or {}
    flag = data.get("has_pending_payment")
    if not isinstance(flag, bool):
        raise ValidationError("has_pending_payment must be true or false")
    room = room_service.set_pending_payment(room_id, flag)
    label = "Pending" if flag else "Cleared"
    return jsonify({"room": room.to_dict(), "message": f"Payment status updated to {label}"})
