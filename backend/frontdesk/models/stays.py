from __future__ import annotations

from ..extensions import db
from frontdesk.time_utils import to_utc_z


DEFAULT_GUEST_NAME = "Unknown Guest"
DEFAULT_PHONE = "N/A"


class Stay(db.Model):
    """
    One guest occupancy of a room, from check-in to check-out.

    Created at check-in; mutated at checkout and extension; never deleted
    in normal flow. Money is held in minor units (paise).
    """
    __tablename__ = "stays"
    __table_args__ = (
        db.Index("ix_stays_room_checked_out", "room_id", "is_checked_out"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)

    guest_name = db.Column(db.String(128), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)

    checked_in_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    checked_out_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Base rent agreed at check-in (signed)
    rent_cents = db.Column(db.Integer, nullable=True)
    is_checked_out = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    room = db.relationship("Room", backref=db.backref("stays", lazy=True))

    @property
    def display_name(self) -> str:
        return self.guest_name or DEFAULT_GUEST_NAME

    @property
    def display_phone(self) -> str:
        return self.phone_number or DEFAULT_PHONE

    @property
    def base_rent_cents(self) -> int:
        return self.rent_cents or 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "room_id": self.room_id,
            "guest_name": self.display_name,
            "phone_number": self.display_phone,
            "checked_in_at": to_utc_z(self.checked_in_at),
            "checked_out_at": to_utc_z(self.checked_out_at) if self.checked_out_at else None,
            "rent_cents": self.base_rent_cents,
            "is_checked_out": bool(self.is_checked_out),
        }


class PaymentEntry(db.Model):
    """
    Append-only money movement recorded against a stay.

    ENTRY TYPES (stored strings):
    - initial: payment taken at check-in
    - advance / additional: further payment during the stay
    - extension: extra rent charged for extending the stay
    - shop-purchase: shop item charged to the room (stored negative)
    - anything else is carried through as "other"

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "payment_entries"
    __table_args__ = (
        db.Index("ix_payment_entries_stay_timestamp", "stay_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    stay_id = db.Column(db.Integer, db.ForeignKey("stays.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    mode = db.Column(db.String(16), nullable=True)
    entry_type = db.Column("type", db.String(32), nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=True)
    description = db.Column(db.String(255), nullable=True)

    stay = db.relationship("Stay", backref=db.backref("payment_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stay_id": self.stay_id,
            "amount_cents": self.amount_cents,
            "mode": self.mode,
            "type": self.entry_type,
            "timestamp": to_utc_z(self.timestamp) if self.timestamp else None,
            "description": self.description,
        }
