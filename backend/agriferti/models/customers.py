from __future__ import annotations

from ..extensions import db
from agriferti.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer purchase record.

    MULTI-TENANT: Customers are scoped to an owner via owner_id.

    One row is written per sale; customers are never merged or looked up by
    phone or name. purchased_product is a snapshot of the product name at
    the time of purchase, so renaming a product later does not rewrite
    history.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner_city", "owner_id", "city"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    address = db.Column(db.String(512), nullable=False)
    phone_number = db.Column(db.String(32), nullable=True)

    # YYYY-MM-DD
    purchase_date = db.Column(db.String(10), nullable=False)
    purchased_product = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "owner_id": self.owner_id,
            "name": self.name,
            "city": self.city,
            "address": self.address,
            "phone_number": self.phone_number,
            "purchase_date": self.purchase_date,
            "purchased_product": self.purchased_product,
            "quantity": self.quantity,
            "created_at": to_utc_z(self.created_at),
        }
