from __future__ import annotations

from ..extensions import db
from agriferti.time_utils import to_utc_z


PRODUCT_UNITS = ("kg", "bag", "litre")


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products are scoped to an owner via owner_id (the
    authenticated user's public id). Nothing outside the owner's partition
    may read or change a product.

    STOCK: stock is an integer count of sellable units. Only product edits
    and the sale transaction change it, and it never goes below zero.

    CONCURRENCY: version_id is the optimistic lock. A stale UPDATE raises
    StaleDataError, which the store retries.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_owner_name", "owner_id", "name"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False)
    unit = db.Column(db.String(16), nullable=False)

    purchase_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "owner_id": self.owner_id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "purchase_price": self.purchase_price,
            "selling_price": self.selling_price,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
