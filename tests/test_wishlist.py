"""
Tests for customer wishlists and their conversion into sales.
"""
import pytest

from api.wishlist.services import sort_wishlist, compute_wishlist_stats
from conftest import server_time


def seed_item(fake_db, doc_id, status="pending", priority="medium", quantity=1, unit_price=10.0,
              customer_id="cus1"):
    return fake_db.seed('wishlist', doc_id, {
        'customerId': customer_id, 'productId': None, 'productName': f"Item {doc_id}",
        'quantity': quantity, 'unitPrice': unit_price, 'totalPrice': quantity * unit_price,
        'status': status, 'priority': priority,
        'createdAt': server_time(), 'updatedAt': server_time(),
    })


def test_sort_wishlist_by_status_priority_then_newest():
    items = [
        {"id": "a", "status": "converted", "priority": "urgent", "createdAt": server_time()},
        {"id": "b", "status": "pending", "priority": "low", "createdAt": server_time()},
        {"id": "c", "status": "pending", "priority": "urgent", "createdAt": server_time()},
        {"id": "d", "status": "confirmed", "priority": "high", "createdAt": server_time()},
        {"id": "e", "status": "pending", "priority": "urgent", "createdAt": server_time()},
        {"id": "f", "status": "cancelled", "priority": "high", "createdAt": server_time()},
    ]
    assert [i["id"] for i in sort_wishlist(items)] == ["e", "c", "b", "d", "f", "a"]


def test_compute_wishlist_stats_excludes_cancelled_value():
    items = [
        {"status": "pending", "quantity": 2, "totalPrice": 20},
        {"status": "cancelled", "quantity": 1, "totalPrice": 500},
        {"status": "converted", "quantity": 3, "totalPrice": 30},
    ]
    stats = compute_wishlist_stats("cus1", items)

    assert stats.totalItems == 3
    assert stats.pendingItems == 1
    assert stats.cancelledItems == 1
    assert stats.convertedItems == 1
    assert stats.totalValue == 50
    assert stats.totalQuantity == 6


class TestWishlistEndpoints:

    def test_add_item_computes_total(self, client, fake_db, customer):
        data = client.post("/api/customers/cus1/wishlist", json={
            "productName": "Perceuse", "quantity": 3, "unitPrice": 120.5, "requestedDate": "2025-07-01T10:00:00Z",
        }).json()

        item = data["data"]["item"]
        assert item["totalPrice"] == 361.5
        assert item["status"] == "pending"
        assert item["priority"] == "medium"
        assert item["requestedDate"] == "2025-07-01"
        assert item["customerId"] == "cus1"

    @pytest.mark.parametrize("payload", [
        {"productName": "Perceuse", "quantity": 0, "unitPrice": 10},
        {"productName": "Perceuse", "quantity": 1, "unitPrice": -1},
        {"quantity": 1, "unitPrice": 10},
        {"productName": "Perceuse", "quantity": 1, "unitPrice": 10, "priority": "asap"},
    ])
    def test_add_item_validation(self, client, fake_db, customer, payload):
        response = client.post("/api/customers/cus1/wishlist", json=payload)
        assert response.status_code == 422

    def test_add_item_unknown_customer(self, client, fake_db):
        data = client.post("/api/customers/nope/wishlist",
                           json={"productName": "Perceuse", "quantity": 1, "unitPrice": 10}).json()
        assert data["code"] == 404

    def test_list_and_stats(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', status="confirmed")
        seed_item(fake_db, 'w2', status="pending", priority="low")
        seed_item(fake_db, 'w3', status="pending", priority="urgent")
        seed_item(fake_db, 'w4', customer_id="other")

        data = client.get("/api/customers/cus1/wishlist").json()["data"]
        assert [i["id"] for i in data["items"]] == ["w3", "w2", "w1"]

        stats = client.get("/api/customers/cus1/wishlist/stats").json()["data"]
        assert stats["totalItems"] == 3
        assert stats["pendingItems"] == 2
        assert stats["confirmedItems"] == 1
        assert stats["totalValue"] == 30

    def test_update_item_recomputes_total(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', quantity=2, unit_price=10.0)

        data = client.put("/api/wishlist/w1", json={"quantity": 5, "priority": "high"}).json()

        assert data["data"]["item"]["totalPrice"] == 50
        assert data["data"]["item"]["priority"] == "high"

    def test_update_item_without_fields(self, client, fake_db, customer):
        seed_item(fake_db, 'w1')

        data = client.put("/api/wishlist/w1", json={}).json()

        assert data["code"] == 400
        assert data["message"] == "No fields to update"

    def test_get_and_delete_item(self, client, fake_db, customer):
        seed_item(fake_db, 'w1')

        assert client.get("/api/wishlist/w1").json()["data"]["item"]["id"] == "w1"
        assert client.delete("/api/wishlist/w1").json()["status"] == "success"

        data = client.get("/api/wishlist/w1").json()
        assert data["code"] == 404
        assert data["message"] == "Wishlist item not found"


class TestWishlistConversion:

    def test_convert_creates_sales_and_marks_items(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', quantity=2, unit_price=15.0)
        seed_item(fake_db, 'w2', status="cancelled")
        seed_item(fake_db, 'w3', status="converted")
        seed_item(fake_db, 'w4', customer_id="other")

        data = client.post("/api/customers/cus1/wishlist/convert",
                           json={"wishlistIds": ["w1", "w2", "w3", "w4", "missing"]}).json()

        result = data["data"]
        assert result["convertedItems"] == 1
        assert len(result["salesIds"]) == 1

        sale = fake_db.docs('sales')[result["salesIds"][0]]
        assert sale["category"] == "Wishlist Conversion"
        assert sale["customerId"] == "cus1"
        assert sale["price"] == 15.0
        assert sale["quantity"] == 2
        assert sale["totalPrice"] == 30.0
        assert sale["saleNumber"].startswith("SALE-")

        assert fake_db.docs('wishlist')['w1']['status'] == "converted"
        assert fake_db.docs('wishlist')['w2']['status'] == "cancelled"

    def test_convert_free_item_with_priced_one(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', quantity=3, unit_price=0.0)
        seed_item(fake_db, 'w2', quantity=2, unit_price=10.0)

        data = client.post("/api/customers/cus1/wishlist/convert",
                           json={"wishlistIds": ["w1", "w2"]}).json()

        assert data["status"] == "success"
        assert data["data"]["convertedItems"] == 2
        totals = sorted(sale["totalPrice"] for sale in fake_db.docs('sales').values())
        assert totals == [0.0, 20.0]
        assert fake_db.docs('wishlist')['w1']['status'] == "converted"
        assert fake_db.docs('wishlist')['w2']['status'] == "converted"

    def test_convert_requires_ids(self, client, fake_db, customer):
        for body in ({}, {"wishlistIds": []}):
            data = client.post("/api/customers/cus1/wishlist/convert", json=body).json()
            assert data["code"] == 400
            assert data["message"] == "wishlistIds must be a non-empty array"

    def test_convert_with_no_valid_items(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', status="converted")

        data = client.post("/api/customers/cus1/wishlist/convert", json={"wishlistIds": ["w1"]}).json()

        assert data["code"] == 404
        assert data["message"] == "No valid wishlist items found"
        assert fake_db.docs('sales') == {}

    def test_converted_sales_appear_in_customer_history(self, client, fake_db, customer):
        seed_item(fake_db, 'w1', quantity=1, unit_price=40.0)

        client.post("/api/customers/cus1/wishlist/convert", json={"wishlistIds": ["w1"]})

        history = client.get("/api/customers/cus1/history").json()["data"]
        assert len(history) == 1
        assert history[0]["productName"] == "Item w1"
