from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

MOVEMENT_TYPES = ("in", "out", "adjustment")


class StockMovement(db.Model):
    """
    Append-only audit log of stock changes.

    TYPES:
    - in: stock added (receiving, cancelled/refunded sale)
    - out: stock removed (sale, shrinkage)
    - adjustment: stock count corrected to an absolute value

    quantity is always the positive magnitude of the change; the type carries
    the direction (for adjustments, the reason records old and new counts).

    IMMUTABLE: Records are never updated.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Set when the movement was caused by a sale (checkout or its reversal)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "user_id": self.user_id,
            "sale_id": self.sale_id,
            "created_at": to_utc_z(self.created_at),
        }
