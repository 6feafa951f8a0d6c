"""
Tests for sales endpoints, statistics and aggregation.
"""
import io
import re

from openpyxl import load_workbook

from api.sales.services import (
    compute_sales_stats, aggregate_sales, filter_sales, generate_sale_number, build_aggregated_workbook,
)

SALE = {
    "date": "2025-06-10",
    "productName": "Marteau",
    "price": 50,
    "quantity": 2,
    "category": "Outillage",
}


def seed_sale(fake_db, doc_id, date, name, total, category="Outillage", quantity=1, price=None, **extra):
    from conftest import server_time
    data = {
        "date": date, "productName": name, "price": price if price is not None else total,
        "quantity": quantity, "category": category, "totalPrice": total,
        "discount": 0, "taxAmount": 0, "paymentMethod": "cash", "notes": "",
        "createdAt": server_time(), "updatedAt": server_time(),
    }
    data.update(extra)
    return fake_db.seed('sales', doc_id, data)


class TestSaleHelpers:
    def test_generate_sale_number(self):
        assert re.fullmatch(r"SALE-\d{13}-p1", generate_sale_number("p1"))
        assert re.fullmatch(r"SALE-\d{13}-[0-9a-f]{9}", generate_sale_number())

    def test_filter_sales(self):
        sales = [
            {"date": "2025-06-01", "category": "A", "productName": "Marteau"},
            {"date": "2025-06-05", "category": "B", "productName": "Cle"},
            {"date": "2025-06-09", "category": "A", "productName": "Scie"},
        ]
        assert len(filter_sales(sales, start_date="2025-06-05")) == 2
        assert len(filter_sales(sales, start_date="2025-06-01", end_date="2025-06-05")) == 2
        assert filter_sales(sales, category="B")[0]["productName"] == "Cle"
        assert filter_sales(sales, search="MART")[0]["date"] == "2025-06-01"
        assert filter_sales(sales, date="2025-06-09")[0]["productName"] == "Scie"

    def test_compute_sales_stats(self):
        sales = [
            {"id": "s1", "date": "2025-06-10", "category": "A", "totalPrice": 100, "quantity": 2, "productName": "x"},
            {"id": "s2", "date": "2025-06-10", "category": "B", "totalPrice": 50, "quantity": 1, "productName": "y"},
            {"id": "s3", "date": "2025-06-04", "category": "A", "totalPrice": 30, "quantity": 3, "productName": "z"},
            {"id": "s4", "date": "2025-06-03", "category": "C", "totalPrice": 20, "quantity": 1, "productName": "w"},
        ]

        stats = compute_sales_stats(sales, today="2025-06-10")

        assert stats.totalSales == 4
        assert stats.totalRevenue == 200
        assert stats.totalProducts == 7
        assert stats.averageSale == 50
        assert [c.name for c in stats.topCategories] == ["A", "B", "C"]
        assert stats.topCategories[0].sales == 2
        # 2025-06-03 falls outside the 7-day window
        assert [(d.date, d.revenue) for d in stats.dailyRevenue] == [("2025-06-04", 30), ("2025-06-10", 150)]

    def test_compute_sales_stats_empty(self):
        stats = compute_sales_stats([], today="2025-06-10")
        assert stats.totalSales == 0
        assert stats.averageSale == 0
        assert stats.dailyRevenue == []

    def test_aggregate_sales(self):
        sales = [
            {"productName": "Marteau", "category": "Outillage", "quantity": 2, "price": 50, "totalPrice": 100, "productId": "p1"},
            {"productName": "Marteau", "category": "Outillage", "quantity": 1, "price": 60, "totalPrice": 60},
            {"productName": "Marteau", "category": "Promo", "quantity": 5, "price": 40, "totalPrice": 200},
        ]

        items = aggregate_sales(sales)

        assert [(i.category, i.totalQuantity) for i in items] == [("Promo", 5), ("Outillage", 3)]
        assert items[1].averagePrice == 55
        assert items[1].totalRevenue == 160
        assert items[1].productId == "p1"

    def test_aggregated_workbook_total_row(self):
        sales = [{"productName": "Marteau", "category": "A", "quantity": 2, "price": 5, "totalPrice": 10}]
        sheet = build_aggregated_workbook(aggregate_sales(sales), "en").active

        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0] == ("Product", "Category", "Quantity sold", "Average price", "Total")
        assert rows[-1][0] == "TOTAL"
        assert rows[-1][2] == 2
        assert rows[-1][4] == 10


class TestSaleEndpoints:

    def test_create_sale_computes_total(self, client, fake_db):
        data = client.post("/api/sales", json=dict(SALE, discount=10, taxAmount=5)).json()

        item = data["data"]["item"]
        assert item["totalPrice"] == 95
        assert item["saleNumber"].startswith("SALE-")
        assert data["data"]["inventory"] is None

    def test_create_sale_normalizes_iso_date(self, client, fake_db):
        data = client.post("/api/sales", json=dict(SALE, date="2025-06-10T08:30:00.000Z")).json()
        assert data["data"]["item"]["date"] == "2025-06-10"

    def test_create_sale_missing_fields(self, client, fake_db):
        data = client.post("/api/sales", json={"productName": "Marteau", "price": 10}).json()

        assert data["code"] == 400
        assert data["message"] == "Missing required fields: date, productName, price, quantity, category"

    def test_create_sale_rejects_zero_price(self, client, fake_db):
        data = client.post("/api/sales", json=dict(SALE, price=0)).json()
        assert data["code"] == 400

    def test_create_sale_unknown_customer(self, client, fake_db):
        data = client.post("/api/sales", json=dict(SALE, customerId="ghost")).json()
        assert data["code"] == 404
        assert data["message"] == "Customer not found"

    def test_create_sale_updates_inventory(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=12, min_stock=10)

        data = client.post("/api/sales", json=dict(SALE, productId="p1", updateInventory=True)).json()

        inventory = data["data"]["inventory"]
        assert inventory == {"productId": "p1", "previousStock": 12, "newStock": 10, "isLowStock": True}
        assert fake_db.docs('products')['p1']['stockQuantity'] == 10
        movement = list(fake_db.docs('stock_movements').values())[0]
        assert movement["movementType"] == "out"
        assert movement["reason"] == "Sale"
        assert movement["reference"] == data["data"]["item"]["saleNumber"]

    def test_create_sale_insufficient_stock_writes_nothing(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau', stock=1)

        data = client.post("/api/sales", json=dict(SALE, productId="p1", updateInventory=True)).json()

        assert data["code"] == 400
        assert data["message"] == "Insufficient stock. Available: 1, Requested: 2"
        assert fake_db.docs('sales') == {}
        assert fake_db.docs('products')['p1']['stockQuantity'] == 1

    def test_update_inventory_requires_product(self, client, fake_db):
        data = client.post("/api/sales", json=dict(SALE, updateInventory=True)).json()
        assert data["message"] == "productId is required to update inventory"

    def test_list_sales_newest_first_with_filters(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 10)
        seed_sale(fake_db, 's2', "2025-06-03", "Cle", 20, category="Plomberie")
        seed_sale(fake_db, 's3', "2025-06-03", "Scie", 30)

        data = client.get("/api/sales").json()["data"]
        assert [s["id"] for s in data["items"]] == ["s3", "s2", "s1"]

        data = client.get("/api/sales?category=Plomberie").json()["data"]
        assert [s["id"] for s in data["items"]] == ["s2"]

        data = client.get("/api/sales?start_date=2025-06-02&search=sc").json()["data"]
        assert [s["id"] for s in data["items"]] == ["s3"]

    def test_update_sale_recomputes_total(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 100, quantity=2, price=50)

        data = client.put("/api/sales/s1", json={"quantity": 3}).json()

        assert data["data"]["item"]["totalPrice"] == 150
        assert fake_db.docs('sales')['s1']['totalPrice'] == 150

    def test_get_and_delete_sale(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 10)

        assert client.get("/api/sales/s1").json()["data"]["item"]["productName"] == "Marteau"
        assert client.delete("/api/sales/s1").json()["status"] == "success"
        assert client.get("/api/sales/s1").json()["code"] == 404

    def test_sale_categories(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 10, category="Outillage")
        seed_sale(fake_db, 's2', "2025-06-01", "Cle", 10, category="Electricite")
        seed_sale(fake_db, 's3', "2025-06-01", "Scie", 10, category="Outillage")

        data = client.get("/api/sales/categories").json()["data"]
        assert data["items"] == ["Electricite", "Outillage"]

    def test_aggregated_and_export(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 100, quantity=2, price=50)
        seed_sale(fake_db, 's2', "2025-06-02", "Marteau", 50, quantity=1, price=50)
        seed_sale(fake_db, 's3', "2025-06-02", "Cle", 300, quantity=3, price=100)

        data = client.get("/api/sales/aggregated").json()["data"]
        assert data["total"] == 2
        assert data["items"][0]["productName"] == "Cle"
        assert data["items"][1]["totalQuantity"] == 3

        response = client.get("/api/sales/export/aggregated?lang=fr")
        assert "sales_aggregated_" in response.headers["content-disposition"]
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet.cell(row=1, column=1).value == "Produit"
        assert sheet.cell(row=4, column=5).value == 450

    def test_sales_stats_endpoint(self, client, fake_db):
        seed_sale(fake_db, 's1', "2025-06-01", "Marteau", 100)

        data = client.get("/api/sales/stats").json()["data"]
        assert data["totalSales"] == 1
        assert data["recentSales"][0]["id"] == "s1"
