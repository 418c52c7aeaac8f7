# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Sale
from ..validation import ConflictError

CUSTOMER_MUTABLE_FIELDS = {"name", "email", "phone", "address"}


def _apply_customer_patch(customer: Customer, patch: dict) -> None:
    for k, v in patch.items():
        if k in CUSTOMER_MUTABLE_FIELDS:
            setattr(customer, k, v)


def list_customers(search: str | None = None) -> list[Customer]:
    q = db.session.query(Customer)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            db.or_(
                Customer.name.ilike(like),
                Customer.email.ilike(like),
                Customer.phone.ilike(like),
            )
        )
    return q.order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def create_customer(*, patch: dict) -> Customer:
    customer = Customer()
    _apply_customer_patch(customer, patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(*, customer_id: int, patch: dict) -> Customer | None:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return None
    _apply_customer_patch(customer, patch)
    db.session.commit()
    return customer


def delete_customer(*, customer_id: int) -> bool:
    """
    Delete a customer with no purchase history.

    Raises:
        ConflictError: If any sale references the customer
    """
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return False

    has_sales = db.session.query(Sale.id).filter(Sale.customer_id == customer_id).first() is not None
    if has_sales:
        raise ConflictError("Customer has sales history and cannot be deleted.")

    db.session.delete(customer)
    db.session.commit()
    return True
