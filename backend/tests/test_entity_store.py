# Overview: Pytest coverage for the entity store contract (both backends).

"""
Entity Store contract tests.

Run against SqlEntityStore and MemoryEntityStore via the parametrized
`app` fixture.
"""

from decimal import Decimal

import pytest

from agriferti.errors import NotFoundError, TransactionFailedError, ValidationError
from agriferti.services.entity_store import CUSTOMERS, PRODUCTS, SALES, get_store


PRODUCT_FIELDS = {
    "name": "DAP",
    "category": "Phosphate",
    "unit": "bag",
    "purchase_price": Decimal("1350.00"),
    "selling_price": Decimal("1400.00"),
    "stock": 20,
}


class TestBasicOperations:

    def test_insert_generates_id_and_stamps_owner(self, owner_a):
        store = get_store()
        record = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        assert isinstance(record["id"], str) and record["id"]
        assert record["owner_id"] == owner_a.owner_id
        assert record["stock"] == 20
        assert record["selling_price"] == Decimal("1400.00")

    def test_insert_ignores_client_id_and_owner(self, owner_a, owner_b):
        store = get_store()
        fields = dict(PRODUCT_FIELDS, id="999", owner_id=owner_b.owner_id)
        record = store.insert(PRODUCTS, owner_a.owner_id, fields)

        assert record["id"] != "999"
        assert record["owner_id"] == owner_a.owner_id
        assert store.list(PRODUCTS, owner_b.owner_id) == []

    def test_ids_unique_per_collection(self, owner_a):
        store = get_store()
        ids = {store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))["id"] for _ in range(5)}
        assert len(ids) == 5

    def test_list_in_insertion_order(self, owner_a):
        store = get_store()
        for name in ("Urea", "DAP", "MOP"):
            store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS, name=name))

        assert [p["name"] for p in store.list(PRODUCTS, owner_a.owner_id)] == ["Urea", "DAP", "MOP"]

    def test_get_roundtrip(self, owner_a):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))
        assert store.get(PRODUCTS, created["id"], owner_a.owner_id) == created

    def test_update_applies_patch(self, owner_a):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        updated = store.update(PRODUCTS, created["id"], owner_a.owner_id, {"stock": 7, "name": "DAP 18-46"})

        assert updated["stock"] == 7
        assert updated["name"] == "DAP 18-46"
        assert store.get(PRODUCTS, created["id"], owner_a.owner_id)["stock"] == 7

    def test_delete_removes_record(self, owner_a):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        store.delete(PRODUCTS, created["id"], owner_a.owner_id)

        assert store.list(PRODUCTS, owner_a.owner_id) == []
        with pytest.raises(NotFoundError):
            store.get(PRODUCTS, created["id"], owner_a.owner_id)

    @pytest.mark.parametrize("record_id", ["unknown", "424242", "", "../1"])
    def test_unknown_ids_not_found(self, owner_a, record_id):
        with pytest.raises(NotFoundError, match="Product not found"):
            get_store().get(PRODUCTS, record_id, owner_a.owner_id)

    def test_reads_are_idempotent(self, owner_a):
        store = get_store()
        store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))
        store.insert(CUSTOMERS, owner_a.owner_id, {
            "name": "Sita", "city": "Pune", "address": "MG Road",
            "purchase_date": "2026-01-05", "purchased_product": "DAP", "quantity": 2,
        })

        assert store.list(PRODUCTS, owner_a.owner_id) == store.list(PRODUCTS, owner_a.owner_id)
        assert store.list(CUSTOMERS, owner_a.owner_id) == store.list(CUSTOMERS, owner_a.owner_id)
        assert store.list(SALES, owner_a.owner_id) == store.list(SALES, owner_a.owner_id) == []

    def test_ping(self, app):
        assert get_store().ping() is True


class TestOwnershipGuard:
    """Foreign records behave exactly like missing ones."""

    def test_list_is_owner_scoped(self, owner_a, owner_b):
        store = get_store()
        store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS, name="A's"))
        store.insert(PRODUCTS, owner_b.owner_id, dict(PRODUCT_FIELDS, name="B's"))

        assert [p["name"] for p in store.list(PRODUCTS, owner_a.owner_id)] == ["A's"]
        assert [p["name"] for p in store.list(PRODUCTS, owner_b.owner_id)] == ["B's"]

    def test_get_foreign_record_not_found(self, owner_a, owner_b):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        with pytest.raises(NotFoundError, match="Product not found"):
            store.get(PRODUCTS, created["id"], owner_b.owner_id)

    def test_update_foreign_record_not_found_and_unchanged(self, owner_a, owner_b):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        with pytest.raises(NotFoundError):
            store.update(PRODUCTS, created["id"], owner_b.owner_id, {"stock": 0})

        assert store.get(PRODUCTS, created["id"], owner_a.owner_id)["stock"] == 20

    def test_delete_foreign_record_not_found_and_kept(self, owner_a, owner_b):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        with pytest.raises(NotFoundError):
            store.delete(PRODUCTS, created["id"], owner_b.owner_id)

        assert len(store.list(PRODUCTS, owner_a.owner_id)) == 1

    def test_cross_owner_attempt_is_logged(self, owner_a, owner_b, caplog):
        store = get_store()
        created = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        with caplog.at_level("WARNING", logger="agriferti.services.ownership"):
            with pytest.raises(NotFoundError):
                store.get(PRODUCTS, created["id"], owner_b.owner_id)

        assert "Cross-owner access denied" in caplog.text


class TestTransactions:

    def test_service_error_rolls_back_every_write(self, owner_a):
        store = get_store()
        product = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        def _op(unit):
            unit.update(PRODUCTS, product["id"], owner_a.owner_id, {"stock": 1})
            unit.insert(CUSTOMERS, owner_a.owner_id, {
                "name": "X", "city": "Y", "address": "Z",
                "purchase_date": "2026-01-01", "purchased_product": "DAP", "quantity": 19,
            })
            raise ValidationError("abort")

        with pytest.raises(ValidationError, match="abort"):
            store.run_in_transaction(_op)

        assert store.get(PRODUCTS, product["id"], owner_a.owner_id)["stock"] == 20
        assert store.list(CUSTOMERS, owner_a.owner_id) == []

    def test_commit_returns_callback_result(self, owner_a):
        store = get_store()

        def _op(unit):
            first = unit.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS, name="One"))
            second = unit.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS, name="Two"))
            return first["id"], second["id"]

        first_id, second_id = store.run_in_transaction(_op)

        assert [p["id"] for p in store.list(PRODUCTS, owner_a.owner_id)] == [first_id, second_id]

    def test_locked_get_sees_writes_of_same_unit(self, owner_a):
        store = get_store()
        product = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        def _op(unit):
            unit.update(PRODUCTS, product["id"], owner_a.owner_id, {"stock": 3})
            return unit.get(PRODUCTS, product["id"], owner_a.owner_id, lock=True)["stock"]

        assert store.run_in_transaction(_op) == 3

    def test_unexpected_error_rolls_back_and_fails_transaction(self, owner_a):
        store = get_store()
        product = store.insert(PRODUCTS, owner_a.owner_id, dict(PRODUCT_FIELDS))

        def _op(unit):
            unit.update(PRODUCTS, product["id"], owner_a.owner_id, {"stock": 0})
            raise OverflowError("Python int too large to convert to SQLite INTEGER")

        with pytest.raises(TransactionFailedError) as exc_info:
            store.run_in_transaction(_op)

        assert isinstance(exc_info.value.__cause__, OverflowError)
        assert store.get(PRODUCTS, product["id"], owner_a.owner_id)["stock"] == 20
