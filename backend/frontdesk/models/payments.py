from __future__ import annotations

from ..extensions import db
from frontdesk.time_utils import to_utc_z


DEFAULT_DIRECT_TYPE = "payment"
DEFAULT_DIRECT_DESCRIPTION = "Payment"
DEFAULT_CUSTOMER_NAME = "Guest"


class DirectPayment(db.Model):
    """
    Money taken at the desk that is not tied to a stay (walk-in shop sale,
    deposit, settlement of an old balance).

    Listed on the flat payment ledger next to stay entries. Never part of a
    stay's reconciliation.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "direct_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    amount_cents = db.Column(db.Integer, nullable=False, default=0)
    mode = db.Column(db.String(16), nullable=True)
    payment_type = db.Column("type", db.String(32), nullable=True)
    payment_status = db.Column(db.String(16), nullable=True)

    customer_name = db.Column(db.String(128), nullable=True)
    room_number = db.Column(db.Integer, nullable=True)
    description = db.Column(db.String(255), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount_cents": self.amount_cents or 0,
            "mode": self.mode,
            "type": self.payment_type or DEFAULT_DIRECT_TYPE,
            "payment_status": self.payment_status or "completed",
            "customer_name": self.customer_name or DEFAULT_CUSTOMER_NAME,
            "room_number": self.room_number or "N/A",
            "description": self.description or DEFAULT_DIRECT_DESCRIPTION,
            "timestamp": to_utc_z(self.timestamp) if self.timestamp else None,
        }
