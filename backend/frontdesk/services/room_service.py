# Overview: Service-layer operations for rooms; encapsulates business logic and database work.

"""
Room Service

Room inventory reads (sorted by floor then room number), the cached room
overview used by the desk board, and the admin write commands: create,
edit, delete, status change and pending-payment flag.

Status is mutually exclusive and changed independently of stays.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Room, Stay
from ..models.rooms import VALID_ROOM_STATUSES, floor_number
from ..validation import ValidationError, ConflictError
from .cache import get_cache, invalidate_reads
from .errors import NotFoundError, store_read

ROOM_MUTABLE_FIELDS = {"room_number", "floor", "room_type", "status", "has_pending_payment"}

STATUS_FILTER_ALL = "all"


def apply_room_patch(room: Room, patch: dict) -> None:
    for k, v in patch.items():
        if k not in ROOM_MUTABLE_FIELDS:
            continue
        setattr(room, k, v)


def _require_valid_status(status: str) -> None:
    if status not in VALID_ROOM_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {VALID_ROOM_STATUSES}")


def _require_unique_number(room_number: int | None, room_id: int | None = None) -> None:
    if room_number is None:
        return
    query = db.session.query(Room).filter(Room.room_number == room_number)
    if room_id is not None:
        query = query.filter(Room.id != room_id)
    if query.first() is not None:
        raise ConflictError(f"Room {room_number} already exists")


# =============================================================================
# READS
# =============================================================================

def list_rooms(status: str | None = None) -> list[Room]:
    """
    All rooms sorted by numeric floor, then room number.

    Args:
        status: optional status filter; None or "all" returns every room

    Raises:
        StoreReadError: if the store cannot be read
    """
    if status and status != STATUS_FILTER_ALL:
        _require_valid_status(status)

    with store_read("rooms"):
        query = db.session.query(Room)
        if status and status != STATUS_FILTER_ALL:
            query = query.filter(Room.status == status)
        rooms = query.all()

    rooms.sort(key=Room.sort_key)
    return rooms


def get_room(room_id: int) -> Room:
    with store_read("room"):
        room = db.session.get(Room, room_id)
    if room is None:
        raise NotFoundError(f"Room {room_id} not found")
    return room


def list_floors() -> list[str]:
    """Distinct floor labels in numeric order."""
    floors = {room.floor_label for room in list_rooms()}
    return sorted(floors, key=floor_number)


def list_rooms_on_floor(floor: str) -> list[Room]:
    return [room for room in list_rooms() if room.floor_label == str(floor)]


def get_rooms_with_bookings() -> dict:
    """
    Desk board data: every room plus the stays that are still open.

    Each open stay is annotated with its room number. Cached for the
    configured TTL.
    """
    cache = get_cache()
    return cache.get_or_load(cache.cache_key("rooms_with_bookings"), _load_rooms_with_bookings)


def _load_rooms_with_bookings() -> dict:
    rooms = list_rooms()
    with store_read("active stays"):
        active = db.session.query(Stay).filter(Stay.is_checked_out.is_(False)).all()

    room_numbers = {room.id: room.number for room in rooms}
    bookings = []
    for stay in active:
        booking = stay.to_dict()
        booking["room_number"] = room_numbers.get(stay.room_id)
        bookings.append(booking)

    return {
        "rooms": [room.to_dict() for room in rooms],
        "bookings": bookings,
        "booking_by_room": {b["room_id"]: b for b in bookings},
    }


# =============================================================================
# WRITES
# =============================================================================

def create_room(*, patch: dict) -> Room:
    """
    Create a room from a validated patch dict.

    Raises:
        ConflictError: room number already in use
        ValidationError: invalid status
    """
    if patch.get("room_number") is None:
        raise ValidationError("room_number is required")
    if "status" in patch and patch["status"] is not None:
        _require_valid_status(patch["status"])
    _require_unique_number(patch.get("room_number"))

    room = Room()
    apply_room_patch(room, patch)
    db.session.add(room)
    db.session.commit()
    invalidate_reads()
    return room


def update_room(room_id: int, *, patch: dict) -> Room:
    room = get_room(room_id)
    if "status" in patch:
        if patch["status"] is None:
            raise ValidationError("status cannot be null")
        _require_valid_status(patch["status"])
    if "room_number" in patch:
        _require_unique_number(patch["room_number"], room_id=room.id)

    apply_room_patch(room, patch)
    db.session.commit()
    invalidate_reads()
    return room


def delete_room(room_id: int) -> None:
    """
    Delete a room.

    Rooms that still have stays on record cannot be deleted; their history
    would be orphaned.
    """
    room = get_room(room_id)
    if db.session.query(Stay).filter(Stay.room_id == room.id).first() is not None:
        raise ConflictError("Room has stay history and cannot be deleted")

    db.session.delete(room)
    db.session.commit()
    invalidate_reads()


def set_room_status(room_id: int, status: str) -> Room:
    _require_valid_status(status)
    room = get_room(room_id)
    room.status = status
    db.session.commit()
    invalidate_reads()
    return room


def set_pending_payment(room_id: int, has_pending_payment: bool) -> Room:
    room = get_room(room_id)
    room.has_pending_payment = bool(has_pending_payment)
    db.session.commit()
    invalidate_reads()
    return room
