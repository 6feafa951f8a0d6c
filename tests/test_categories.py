"""
Tests for category endpoints.
"""


class TestCategoryEndpoints:

    def test_list_categories_sorted_with_product_count(self, client, fake_db, category, product_factory):
        fake_db.seed('categories', 'cat0', {'name': 'electricité'})
        product_factory('p1', 'Marteau')
        product_factory('p2', 'Tournevis')

        response = client.get("/api/categories")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        items = data["data"]["items"]
        assert [c["name"] for c in items] == ["electricité", "Outillage"]
        assert items[1]["productCount"] == 2
        assert items[0]["productCount"] == 0

    def test_list_categories_search(self, client, fake_db, category):
        fake_db.seed('categories', 'cat2', {'name': 'Plomberie'})

        data = client.get("/api/categories?search=plomb").json()
        assert [c["name"] for c in data["data"]["items"]] == ["Plomberie"]

    def test_create_category(self, client, fake_db):
        response = client.post("/api/categories", json={"name": "  Peinture ", "description": "Paints"})

        data = response.json()
        assert data["status"] == "success"
        assert data["data"]["item"]["name"] == "Peinture"
        assert len(fake_db.docs('categories')) == 1

    def test_create_category_duplicate_name_case_insensitive(self, client, category):
        data = client.post("/api/categories", json={"name": "OUTILLAGE"}).json()

        assert data["status"] == "error"
        assert data["code"] == 400
        assert data["message"] == "Category name already exists"

    def test_create_category_blank_name(self, client, fake_db):
        data = client.post("/api/categories", json={"name": "   "}).json()
        assert data["code"] == 400
        assert data["message"] == "Category name is required"

    def test_get_category_not_found(self, client, fake_db):
        data = client.get("/api/categories/missing").json()
        assert data["status"] == "error"
        assert data["code"] == 404

    def test_rename_category_updates_products(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')

        data = client.put("/api/categories/cat1", json={"name": "Outils"}).json()

        assert data["data"]["item"]["name"] == "Outils"
        assert fake_db.docs('products')['p1']['category'] == {'id': 'cat1', 'name': 'Outils'}

    def test_delete_category_in_use(self, client, fake_db, category, product_factory):
        product_factory('p1', 'Marteau')

        data = client.delete("/api/categories/cat1").json()

        assert data["code"] == 400
        assert "cat1" in fake_db.docs('categories')

    def test_delete_category(self, client, fake_db, category):
        data = client.delete("/api/categories/cat1").json()

        assert data["status"] == "success"
        assert data["data"]["message"] == "Category deleted successfully"
        assert fake_db.docs('categories') == {}
