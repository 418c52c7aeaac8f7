from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z

PAYMENT_METHODS = ("cash", "card", "upi")
SALE_STATUSES = ("completed", "cancelled", "refunded")


class Sale(db.Model):
    """
    Completed checkout.

    Sales are written once, at checkout, together with their items and the
    stock movements they cause. Afterwards only the status may change
    (completed -> cancelled / refunded), guarded by version_id.

    All amounts are Numeric(10, 2); subtotal - discount + tax == total.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", name="uq_sales_transaction_id"),
        db.Index("ix_sales_status_created", "status", "created_at"),
        db.CheckConstraint("subtotal >= 0 AND tax >= 0 AND discount >= 0 AND total >= 0", name="ck_sales_amounts_nonnegative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable transaction reference (e.g., "TXN-20261019143055-9f3a1c2b")
    transaction_id = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    tax = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)

    # Cash only: what the customer handed over and what was given back
    amount_tendered = db.Column(db.Numeric(10, 2), nullable=True)
    change_due = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "subtotal": money_str(self.subtotal),
            "tax": money_str(self.tax),
            "discount": money_str(self.discount),
            "total": money_str(self.total),
            "payment_method": self.payment_method,
            "amount_tendered": money_str(self.amount_tendered),
            "change_due": money_str(self.change_due),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class SaleItem(db.Model):
    """Line item on a sale; unit_price is the product price at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total": money_str(self.total),
        }
