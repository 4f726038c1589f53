from __future__ import annotations

from ..extensions import db
from agriferti.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale record (append-only).

    Written by the sale transaction together with its Customer row and the
    product stock decrement. Revenue and profit are frozen at sale time.

    product_id is a historical reference without a foreign key: the product
    may be deleted after it has sold.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_owner_date", "owner_id", "date"),
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    # YYYY-MM-DD
    date = db.Column(db.String(10), nullable=False)

    total_revenue = db.Column(db.Numeric(14, 2), nullable=False)
    total_profit = db.Column(db.Numeric(14, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "owner_id": self.owner_id,
            "product_id": str(self.product_id),
            "customer_id": str(self.customer_id),
            "quantity": self.quantity,
            "date": self.date,
            "total_revenue": self.total_revenue,
            "total_profit": self.total_profit,
            "created_at": to_utc_z(self.created_at),
        }
