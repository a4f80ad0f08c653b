from __future__ import annotations

from ..extensions import db
from frontdesk.time_utils import to_utc_z


ROOM_STATUS_AVAILABLE = "available"
ROOM_STATUS_OCCUPIED = "occupied"
ROOM_STATUS_CLEANING = "cleaning"
ROOM_STATUS_MAINTENANCE = "maintenance"
ROOM_STATUS_EXTENSION = "extension"

VALID_ROOM_STATUSES = [
    ROOM_STATUS_AVAILABLE,
    ROOM_STATUS_OCCUPIED,
    ROOM_STATUS_CLEANING,
    ROOM_STATUS_MAINTENANCE,
    ROOM_STATUS_EXTENSION,
]

DEFAULT_FLOOR = "1"


def floor_number(floor: str | None) -> int:
    """
    Numeric sort value for a floor label.

    Floors are stored as strings ("1", "2", "10"). Labels that are not
    numeric sort after every numeric floor.
    """
    try:
        return int(str(floor if floor is not None else DEFAULT_FLOOR).strip())
    except ValueError:
        return 10**9


class Room(db.Model):
    """
    Sellable room inventory.

    Status is mutated independently of stays (housekeeping can mark a room
    cleaning or maintenance while no stay is open).
    """
    __tablename__ = "rooms"
    __table_args__ = (
        db.UniqueConstraint("room_number", name="uq_rooms_room_number"),
        db.Index("ix_rooms_floor_number", "floor", "room_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    room_number = db.Column(db.Integer, nullable=True)
    floor = db.Column(db.String(16), nullable=True)
    room_type = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ROOM_STATUS_AVAILABLE, index=True)
    has_pending_payment = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def floor_label(self) -> str:
        return self.floor or DEFAULT_FLOOR

    @property
    def number(self) -> int:
        return self.room_number or 0

    def sort_key(self) -> tuple[int, int]:
        return floor_number(self.floor_label), self.number

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "room_number": self.number,
            "floor": self.floor_label,
            "room_type": self.room_type,
            "status": self.status,
            "has_pending_payment": bool(self.has_pending_payment),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Room {self.id} number={self.room_number} floor={self.floor}>"
