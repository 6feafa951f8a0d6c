"""
Tests for supplier endpoints.
"""
SUPPLIER_REF = {'id': 'sup1', 'name': 'Atlas Quincaillerie'}


class TestSupplierEndpoints:

    def test_create_supplier_defaults(self, client, fake_db):
        data = client.post("/api/suppliers", json={"name": "Sofimed", "email": ""}).json()

        item = data["data"]["item"]
        assert item["name"] == "Sofimed"
        assert item["paymentTerms"] == "Net 30"
        assert item["isActive"] is True
        assert item["email"] is None

    def test_create_supplier_invalid_email(self, client, fake_db):
        response = client.post("/api/suppliers", json={"name": "Sofimed", "email": "not-an-email"})

        assert response.status_code == 422
        assert response.json()["status"] == "fail"

    def test_update_supplier_email(self, client, fake_db, supplier):
        response = client.put("/api/suppliers/sup1", json={"email": "not-an-email"})
        assert response.status_code == 422

        data = client.put("/api/suppliers/sup1", json={"email": ""}).json()
        assert data["data"]["item"]["email"] == ""

    def test_list_suppliers_city_filter(self, client, fake_db, supplier):
        fake_db.seed('suppliers', 'sup2', {'name': 'Bricoma', 'city': 'Tanger'})

        data = client.get("/api/suppliers?city=casablanca").json()

        assert [s["name"] for s in data["data"]["items"]] == ["Atlas Quincaillerie"]

    def test_search_suppliers_requires_two_characters(self, client, fake_db, supplier):
        data = client.get("/api/suppliers/search?q=a").json()
        assert data["code"] == 400

        data = client.get("/api/suppliers/search?q=atlas").json()
        assert data["data"]["total"] == 1

    def test_get_supplier_counts_products(self, client, fake_db, supplier, product_factory):
        product_factory('p1', 'Marteau', supplier=SUPPLIER_REF)

        data = client.get("/api/suppliers/sup1").json()
        assert data["data"]["item"]["productCount"] == 1

    def test_rename_supplier_updates_products(self, client, fake_db, supplier, product_factory):
        product_factory('p1', 'Marteau', supplier=SUPPLIER_REF)

        client.put("/api/suppliers/sup1", json={"name": "Atlas Pro"})

        assert fake_db.docs('products')['p1']['supplier']['name'] == "Atlas Pro"

    def test_delete_referenced_supplier_fails(self, client, fake_db, supplier, product_factory):
        product_factory('p1', 'Marteau', supplier=SUPPLIER_REF)

        data = client.delete("/api/suppliers/sup1").json()

        assert data["code"] == 400
        assert data["message"] == "Cannot delete supplier that is referenced by products"

    def test_delete_supplier(self, client, fake_db, supplier):
        data = client.delete("/api/suppliers/sup1").json()
        assert data["status"] == "success"
        assert fake_db.docs('suppliers') == {}

    def test_supplier_products_and_stats(self, client, fake_db, supplier, product_factory):
        product_factory('p1', 'Marteau', stock=4, min_stock=5, price=40.0, supplier=SUPPLIER_REF)
        product_factory('p2', 'Cle', stock=10, min_stock=2, price=20.0, supplier=SUPPLIER_REF)
        product_factory('p3', 'Scie', stock=10)

        products = client.get("/api/suppliers/sup1/products").json()
        assert [p["name"] for p in products["data"]["items"]] == ["Cle", "Marteau"]

        stats = client.get("/api/suppliers/sup1/stats").json()["data"]
        assert stats["productCount"] == 2
        assert stats["totalStock"] == 14
        # purchase price is half the selling price in the factory
        assert stats["stockValue"] == 4 * 20.0 + 10 * 10.0
        assert stats["lowStockCount"] == 1

    def test_inactive_suppliers_and_products_are_skipped(self, client, fake_db, supplier, product_factory):
        fake_db.seed('suppliers', 'sup2', {'name': 'Atlas Ancien', 'isActive': False})
        product_factory('p1', 'Marteau', supplier=SUPPLIER_REF)
        product_factory('p2', 'Cle', supplier=SUPPLIER_REF, isActive=False)

        listed = client.get("/api/suppliers").json()["data"]
        assert [s["id"] for s in listed["items"]] == ["sup1"]
        assert listed["items"][0]["productCount"] == 1

        found = client.get("/api/suppliers/search?q=atlas").json()["data"]
        assert [s["id"] for s in found["items"]] == ["sup1"]

        assert client.get("/api/suppliers/sup1/stats").json()["data"]["productCount"] == 1

    def test_supplier_categories(self, client, fake_db, supplier, product_factory):
        plumbing = {'id': 'cat2', 'name': 'Plomberie'}
        product_factory('p1', 'Tuyau', supplier=SUPPLIER_REF, category=plumbing)
        product_factory('p2', 'Marteau', supplier=SUPPLIER_REF)
        product_factory('p3', 'Raccord', supplier=SUPPLIER_REF, category=plumbing)
        product_factory('p4', 'Scie')

        items = client.get("/api/suppliers/sup1/categories").json()["data"]["items"]

        assert [(c["category"], c["productCount"]) for c in items] == [("Outillage", 1), ("Plomberie", 2)]
        assert client.get("/api/suppliers/nope/categories").json()["code"] == 404

    def test_supplier_stats_not_found(self, client, fake_db):
        data = client.get("/api/suppliers/nope/stats").json()
        assert data["code"] == 404
