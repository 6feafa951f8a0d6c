"""
Tests for product endpoints and services.
"""
import io

import pytest
from fastapi import HTTPException
from openpyxl import load_workbook

from api.products.services import (
    get_stock_status, get_alert_level, compute_new_stock, process_product_images, sort_products,
    build_inventory_workbook,
)

NEW_PRODUCT = {
    "name": "Perceuse 18V",
    "sku": "PER-18",
    "barcode": "6111000000011",
    "sellingPrice": 899.0,
    "purchasePrice": 650.0,
    "stockQuantity": 12,
    "category": {"id": "cat1"},
}


class TestStockHelpers:
    @pytest.mark.parametrize("stock,min_level,expected", [
        (0, 10, "out_of_stock"),
        (-2, 10, "out_of_stock"),
        (10, 10, "low_stock"),
        (3, 10, "low_stock"),
        (11, 10, "in_stock"),
    ])
    def test_get_stock_status(self, stock, min_level, expected):
        assert get_stock_status(stock, min_level) == expected

    @pytest.mark.parametrize("stock,min_level,expected", [
        (0, 10, "out_of_stock"),
        (5, 10, "critical"),
        (6, 10, "low"),
        (10, 10, "low"),
        (11, 10, None),
    ])
    def test_get_alert_level(self, stock, min_level, expected):
        assert get_alert_level(stock, min_level) == expected

    def test_compute_new_stock(self):
        assert compute_new_stock(10, "in", 5) == 15
        assert compute_new_stock(10, "out", 4) == 6
        assert compute_new_stock(10, "adjustment", 0) == 0

    def test_compute_new_stock_insufficient(self):
        with pytest.raises(HTTPException) as exc_info:
            compute_new_stock(3, "out", 5)
        assert exc_info.value.detail == "Insufficient stock. Available: 3, Requested: 5"

    @pytest.mark.parametrize("movement_type,quantity", [("in", 0), ("out", -1), ("adjustment", -1), ("lost", 2)])
    def test_compute_new_stock_invalid(self, movement_type, quantity):
        with pytest.raises(HTTPException) as exc_info:
            compute_new_stock(3, movement_type, quantity)
        assert exc_info.value.status_code == 400

    def test_process_product_images(self):
        urls, thumbnail = process_product_images([" https://img/a.png ", ""], "Drill")
        assert urls == ["https://img/a.png"]
        assert thumbnail == "https://img/a.png"

        urls, thumbnail = process_product_images([], "Drill")
        assert urls == []
        assert "dicebear" in thumbnail

    def test_sort_products_missing_values_last(self):
        products = [{"name": "b", "sellingPrice": 5}, {"name": "a"}, {"name": "c", "sellingPrice": 9}]
        ordered = sort_products(products, "sellingPrice", "desc")
        assert [p["name"] for p in ordered] == ["c", "b", "a"]
        ordered = sort_products(products, "sellingPrice", "asc")
        assert [p["name"] for p in ordered] == ["b", "c", "a"]

    def test_sort_products_unknown_field_uses_created_at(self):
        products = [{"name": "old", "createdAt": 1}, {"name": "new", "createdAt": 2}]
        assert [p["name"] for p in sort_products(products, "password", "desc")] == ["new", "old"]


class TestProductEndpoints:

    def test_create_product(self, client, fake_db, category, supplier):
        payload = dict(NEW_PRODUCT, supplier={"id": "sup1"})
        data = client.post("/api/products", json=payload).json()

        assert data["status"] == "success"
        item = data["data"]["item"]
        assert item["category"] == {"id": "cat1", "name": "Outillage"}
        assert item["supplier"] == {"id": "sup1", "name": "Atlas Quincaillerie"}
        assert item["stockStatus"] == "in_stock"
        assert item["stockValue"] == 899.0 * 12
        assert item["minStockLevel"] == 10
        assert "dicebear" in item["thumbnailUrl"]

    def test_create_product_unknown_category(self, client, fake_db):
        data = client.post("/api/products", json=NEW_PRODUCT).json()

        assert data["code"] == 404
        assert data["message"] == "Category with ID cat1 not found"

    def test_create_product_requires_selling_price(self, client, fake_db, category):
        payload = {k: v for k, v in NEW_PRODUCT.items() if k != "sellingPrice"}
        response = client.post("/api/products", json=payload)
        assert response.status_code == 422

    def test_create_product_duplicate_sku(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Ancienne perceuse', sku="PER-18")

        data = client.post("/api/products", json=NEW_PRODUCT).json()

        assert data["code"] == 400
        assert data["message"] == "A product with this sku already exists"

    def test_list_products_filters_and_pagination(self, client, fake_db, category, product_factory):
        fake_db.seed('categories', 'cat2', {'name': 'Plomberie'})
        product_factory('p1', 'Marteau', stock=50)
        product_factory('p2', 'Tournevis', stock=3)
        product_factory('p3', 'Robinet', stock=1, category={'id': 'cat2', 'name': 'Plomberie'})

        data = client.get("/api/products?category=cat1").json()["data"]
        assert {p["id"] for p in data["items"]} == {"p1", "p2"}

        data = client.get("/api/products?low_stock=true").json()["data"]
        assert {p["id"] for p in data["items"]} == {"p2", "p3"}

        data = client.get("/api/products?sort_by=name&sort_order=asc&size=2&page=2").json()["data"]
        assert [p["name"] for p in data["items"]] == ["Tournevis"]
        assert data["total"] == 3
        assert data["pages"] == 2
        assert data["hasPrev"] is True

    def test_list_products_default_newest_first(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')
        product_factory('p2', 'Tournevis')

        data = client.get("/api/products").json()["data"]
        assert [p["id"] for p in data["items"]] == ["p2", "p1"]

    def test_list_products_page_size_capped(self, client, fake_db):
        response = client.get("/api/products?size=101")
        assert response.status_code == 422

    def test_search_products(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')
        product_factory('p2', 'Tournevis')

        data = client.get("/api/products/search?q=tourne").json()["data"]
        assert [p["id"] for p in data["items"]] == ["p2"]

        assert client.get("/api/products/search?q=t").json()["code"] == 400

    def test_get_product_by_sku_and_barcode(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', sku="MAR-1", barcode="123")

        assert client.get("/api/products/sku/MAR-1").json()["data"]["item"]["id"] == "p1"
        assert client.get("/api/products/barcode/123").json()["data"]["item"]["id"] == "p1"
        assert client.get("/api/products/sku/NOPE").json()["code"] == 404

    def test_update_product(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=20)

        data = client.put("/api/products/p1", json={"sellingPrice": 60, "minStockLevel": 25}).json()

        item = data["data"]["item"]
        assert item["sellingPrice"] == 60
        assert item["stockStatus"] == "low_stock"
        assert fake_db.docs('products')['p1']['name'] == "Marteau"

    def test_update_missing_product(self, client, fake_db):
        data = client.put("/api/products/nope", json={"name": "x"}).json()
        assert data["code"] == 404

    def test_delete_product_removes_images(self, client, fake_db, category, product_factory, mock_cloudinary):
        url = "https://res.cloudinary.com/demo/image/upload/v1700000000/products/img_1.png"
        product_factory('p1', 'Marteau', imageUrls=[url])

        data = client.delete("/api/products/p1").json()

        assert data["data"]["message"] == "Product deleted successfully"
        assert fake_db.docs('products') == {}
        mock_cloudinary.destroy.assert_called_once_with("products/img_1")

    def test_upload_image(self, client, mock_cloudinary):
        response = client.post(
            "/api/products/upload-image",
            files={"file": ("drill.png", b"\x89PNG fake", "image/png")},
        )

        data = response.json()
        assert data["status"] == "success"
        assert data["data"]["imageUrl"].startswith("https://res.cloudinary.com/")

    def test_upload_rejects_non_images(self, client, mock_cloudinary):
        response = client.post(
            "/api/products/upload-image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.json()["code"] == 400
        mock_cloudinary.upload.assert_not_called()

    def test_delete_unknown_image(self, client, mock_cloudinary):
        data = client.delete("/api/products/upload-image?url=https://example.com/a.png").json()
        assert data["code"] == 404


class TestStockEndpoints:

    def test_stock_in_and_out_record_movements(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=10)

        data = client.post("/api/products/p1/stock", json={"movementType": "in", "quantity": 5}).json()
        assert data["data"]["movement"]["previousStock"] == 10
        assert data["data"]["movement"]["newStock"] == 15
        assert data["data"]["product"]["stockQuantity"] == 15

        client.post("/api/products/p1/stock", json={"movementType": "out", "quantity": 3, "reason": "Casse"})

        movements = client.get("/api/products/p1/movements").json()["data"]
        assert movements["total"] == 2
        assert [m["movementType"] for m in movements["items"]] == ["out", "in"]
        assert movements["items"][0]["reason"] == "Casse"
        assert fake_db.docs('products')['p1']['stockQuantity'] == 12

    def test_stock_out_insufficient_leaves_stock_unchanged(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=2)

        data = client.post("/api/products/p1/stock", json={"movementType": "out", "quantity": 5}).json()

        assert data["code"] == 400
        assert data["message"] == "Insufficient stock. Available: 2, Requested: 5"
        assert fake_db.docs('products')['p1']['stockQuantity'] == 2
        assert fake_db.docs('stock_movements') == {}

    def test_adjustment_sets_counted_stock(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=10)

        data = client.post("/api/products/p1/stock", json={"movementType": "adjustment", "quantity": 7}).json()
        assert data["data"]["product"]["stockQuantity"] == 7

    def test_invalid_movement_type(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')
        response = client.post("/api/products/p1/stock", json={"movementType": "lost", "quantity": 1})
        assert response.status_code == 422

    def test_low_stock_ordered_by_urgency(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Low', stock=8, min_stock=10)
        product_factory('p2', 'Out', stock=0, min_stock=10)
        product_factory('p3', 'Critical', stock=2, min_stock=10)
        product_factory('p4', 'Fine', stock=50, min_stock=10)

        data = client.get("/api/products/low-stock").json()["data"]

        assert [p["name"] for p in data["items"]] == ["Out", "Critical", "Low"]
        assert data["items"][2]["deficit"] == 2
        assert data["summary"] == {"out_of_stock": 1, "critical": 1, "low": 1}

    def test_out_of_stock(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Empty', stock=0)
        product_factory('p2', 'Full', stock=10)

        data = client.get("/api/products/out-of-stock").json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["stockStatus"] == "out_of_stock"

    def test_inactive_products_are_hidden_from_lists(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=0, isActive=False)
        product_factory('p2', 'Cle', stock=30)

        assert client.get("/api/products").json()["data"]["total"] == 1
        assert client.get("/api/products/search?q=marteau").json()["data"]["total"] == 0
        assert client.get("/api/products/low-stock").json()["data"]["total"] == 0
        assert client.get("/api/products/out-of-stock").json()["data"]["total"] == 0

        response = client.get("/api/products/export?lang=en")
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert [row[0] for row in sheet.iter_rows(min_row=2, values_only=True)] == ["Cle"]

        # direct lookups still find it
        assert client.get("/api/products/p1").json()["data"]["item"]["isActive"] is False

    def test_product_categories(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')
        product_factory('p2', 'Cle')
        product_factory('p3', 'Tuyau', category={'id': 'cat2', 'name': 'Plomberie'})
        product_factory('p4', 'Ancien', category={'id': 'cat2', 'name': 'Plomberie'}, isActive=False)

        items = client.get("/api/products/categories").json()["data"]["items"]

        assert items == [
            {"categoryId": "cat1", "category": "Outillage", "productCount": 2},
            {"categoryId": "cat2", "category": "Plomberie", "productCount": 1},
        ]

    def test_product_stats(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=4, min_stock=5, price=40.0)
        product_factory('p2', 'Cle', stock=10, min_stock=2, price=20.0)
        product_factory('p3', 'Ancien', stock=100, price=10.0, isActive=False)

        stats = client.get("/api/products/stats").json()["data"]

        assert stats == {"totalProducts": 2, "totalValue": 360.0, "totalCost": 180.0, "lowStockCount": 1}

    def test_availability(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=4)

        data = client.get("/api/products/p1/availability?quantity=6").json()["data"]
        assert data["available"] is False
        assert data["shortage"] == 2

        data = client.get("/api/products/p1/availability?quantity=4").json()["data"]
        assert data["available"] is True


class TestProductExport:

    def test_export_products(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=3, price=40.0)
        product_factory('p2', 'Cle', stock=1, price=10.0)

        response = client.get("/api/products/export?lang=en")

        assert response.status_code == 200
        assert "products_export_" in response.headers["content-disposition"]
        sheet = load_workbook(io.BytesIO(response.content)).active
        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0][0] == "Name"
        assert [row[0] for row in rows[1:]] == ["Cle", "Marteau"]
        assert rows[2][9] == 120

    def test_export_selected_ids_keeps_order(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')
        product_factory('p2', 'Cle')

        response = client.get("/api/products/export?ids=p1,missing,p2&lang=fr")

        sheet = load_workbook(io.BytesIO(response.content)).active
        assert [row[0] for row in sheet.iter_rows(min_row=2, values_only=True)] == ["Marteau", "Cle"]

    def test_inventory_workbook_layout(self):
        products = [{"id": "p1", "name": "Marteau", "sellingPrice": 40}]
        sheet = build_inventory_workbook(products, "fr").active

        assert sheet.title == "Inventaire"
        assert [c.value for c in sheet[1]] == ["ID", "Produit", "Quantité", "Prix unitaire", "Prix total"]
        assert sheet.cell(row=2, column=4).value == 40
        assert sheet.cell(row=3, column=2).value == "TOTAL"
        assert sheet.cell(row=3, column=2).fill.start_color.rgb.endswith("FFFFCC")
        assert sheet.column_dimensions["B"].width == 30

    def test_export_inventory_endpoint(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')

        response = client.get("/api/products/export/inventory")

        assert response.status_code == 200
        assert "inventaire_export_" in response.headers["content-disposition"]
