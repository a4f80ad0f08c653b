from __future__ import annotations

from ..extensions import db
from frontdesk.time_utils import to_utc_z


class ShopPurchase(db.Model):
    """Shop item bought by a guest during a stay; joined to the stay by stay_id."""
    __tablename__ = "shop_purchases"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    stay_id = db.Column(db.Integer, db.ForeignKey("stays.id"), nullable=False, index=True)
    inventory_id = db.Column(db.String(64), nullable=True)

    item_name = db.Column(db.String(128), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    amount_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    stay = db.relationship("Stay", backref=db.backref("shop_purchases", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "stay_id": self.stay_id,
            "inventory_id": self.inventory_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "amount_cents": self.amount_cents,
            "payment_status": self.payment_status,
            "created_at": to_utc_z(self.created_at),
        }
