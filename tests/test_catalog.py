import json
from unittest.mock import patch

import pytest

from app.models import Category, Product


@pytest.mark.catalog
class TestCategories:
    """Test suite for category endpoints."""

    def test_create_and_list_categories(self, client, db):
        """Test creating categories and listing them with product counts."""
        response = client.post("/api/categories", json={"name": "Tea", "description": "Infusions"})
        assert response.status_code == 201
        assert response.get_json()["success"] is True

        client.post("/api/categories", json={"name": "Bakery"})

        response = client.get("/api/categories")
        data = json.loads(response.data)
        assert response.status_code == 200
        assert [c["name"] for c in data["data"]] == ["Bakery", "Tea"]
        assert data["data"][0]["product_count"] == 0

    def test_create_category_requires_name(self, client, db):
        response = client.post("/api/categories", json={"description": "no name"})

        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": "name is required"}

    def test_duplicate_category_name_rejected(self, client, make_category):
        make_category("Coffee")

        response = client.post("/api/categories", json={"name": "coffee"})

        assert response.status_code == 409
        assert "already exists" in response.get_json()["error"]

    def test_product_count_ignores_discontinued(self, client, make_category, make_product):
        coffee = make_category("Coffee")
        make_product("Espresso", category_id=coffee)
        make_product("Old blend", category_id=coffee, is_active=False)

        data = client.get("/api/categories").get_json()["data"]

        assert data[0]["product_count"] == 1

    def test_update_category(self, client, make_category):
        category_id = make_category("Coffe")

        response = client.put(f"/api/categories/{category_id}", json={"name": "Coffee"})

        assert response.status_code == 200
        assert response.get_json()["data"]["name"] == "Coffee"

    def test_delete_category_in_use_fails(self, client, db, make_category, make_product):
        """Test that a category referenced by a product cannot be deleted."""
        category_id = make_category("Coffee")
        make_product("Espresso", category_id=category_id)

        response = client.delete(f"/api/categories/{category_id}")

        assert response.status_code == 409
        assert response.get_json()["error"] == (
            "This category cannot be deleted because it is in use by some products"
        )
        assert db.session.get(Category, category_id) is not None

    def test_delete_category_in_use_by_discontinued_product_fails(
        self, client, make_category, make_product
    ):
        category_id = make_category("Seasonal")
        make_product("Pumpkin latte", category_id=category_id, is_active=False)

        response = client.delete(f"/api/categories/{category_id}")

        assert response.status_code == 409

    def test_delete_unused_category(self, client, fetch, make_category):
        category_id = make_category("Empty")

        response = client.delete(f"/api/categories/{category_id}")

        assert response.status_code == 200
        assert fetch(Category, category_id) is None

    def test_get_missing_category(self, client, db):
        response = client.get("/api/categories/999")

        assert response.status_code == 404
        assert response.get_json()["success"] is False


@pytest.mark.catalog
class TestProducts:
    """Test suite for product endpoints."""

    def test_create_product(self, client, make_category):
        category_id = make_category("Coffee")

        response = client.post(
            "/api/products",
            json={
                "name": "Cappuccino",
                "price": "3.75",
                "cost": 1.2,
                "category_id": category_id,
                "points_awarded": 30,
            },
        )

        assert response.status_code == 201
        product = response.get_json()["data"]
        assert product["price"] == 3.75
        assert product["category"] == "Coffee"
        assert product["status"] == "available"
        assert product["is_active"] is True

    def test_create_product_requires_price(self, client, db):
        response = client.post("/api/products", json={"name": "Mocha"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "price is required"

    @pytest.mark.parametrize("price", ["NaN", "Infinity"])
    def test_create_product_rejects_non_finite_price(self, client, db, price):
        response = client.post("/api/products", json={"name": "Mocha", "price": price})

        assert response.status_code == 400
        assert response.get_json()["error"] == "price must be a finite number"

    def test_create_product_rejects_fractional_points(self, client, db):
        response = client.post(
            "/api/products", json={"name": "Mocha", "price": 3, "points_awarded": 2.5}
        )

        assert response.status_code == 400

    def test_create_product_rejects_discontinued_status(self, client, db):
        response = client.post(
            "/api/products", json={"name": "Mocha", "price": 3, "status": "discontinued"}
        )

        assert response.status_code == 400

    def test_list_hides_inactive_by_default(self, client, make_product):
        make_product("Espresso")
        make_product("Old blend", is_active=False)

        names = [p["name"] for p in client.get("/api/products").get_json()["data"]]

        assert names == ["Espresso"]

    def test_list_filters(self, client, make_product):
        make_product("Espresso")
        make_product("Muffin", status="out_of_stock")
        make_product("Old blend", is_active=False)

        out = client.get("/api/products?status=out_of_stock").get_json()["data"]
        gone = client.get("/api/products?status=discontinued").get_json()["data"]
        everything = client.get("/api/products?include_inactive=true").get_json()["data"]

        assert [p["name"] for p in out] == ["Muffin"]
        assert [p["name"] for p in gone] == ["Old blend"]
        assert len(everything) == 3

    def test_list_by_category(self, client, make_category, make_product):
        coffee = make_category("Coffee")
        make_product("Espresso", category_id=coffee)
        make_product("Muffin")

        data = client.get(f"/api/products?category_id={coffee}").get_json()["data"]

        assert [p["name"] for p in data] == ["Espresso"]

    def test_update_product_replaces_image(self, client, make_product):
        old_url = "https://storage.test/productos/1-a.png"
        product_id = make_product("Espresso", image_url=old_url)

        with patch("app.services.catalog.delete_file_from_s3", return_value=True) as delete:
            response = client.put(
                f"/api/products/{product_id}",
                json={"image_url": "https://storage.test/productos/2-b.png"},
            )

        assert response.status_code == 200
        delete.assert_called_once_with(old_url, "productos-imagenes")

    def test_update_product_skips_placeholder_image(self, client, make_product):
        product_id = make_product("Espresso", image_url="/placeholder.svg")

        with patch("app.services.catalog.delete_file_from_s3") as delete:
            client.put(f"/api/products/{product_id}", json={"image_url": "https://x/y.png"})

        delete.assert_not_called()

    def test_update_product_tolerates_failed_image_delete(self, client, make_product):
        product_id = make_product(
            "Espresso", image_url="https://storage.test/productos/1.png"
        )

        with patch("app.services.catalog.delete_file_from_s3", return_value=False):
            response = client.put(
                f"/api/products/{product_id}", json={"image_url": None, "price": 2.8}
            )

        assert response.status_code == 200
        assert response.get_json()["data"]["image_url"] is None
        assert response.get_json()["data"]["price"] == 2.8

    def test_delete_product_in_active_order_fails(
        self, client, fetch, sample_menu, sample_customer, create_order
    ):
        """Test that a product on a pending order stays untouched."""
        order = create_order(sample_customer, [{"product_id": sample_menu["espresso"]}])

        response = client.delete(f"/api/products/{sample_menu['espresso']}")

        assert response.status_code == 409
        assert f"(ID: {order['id']})" in response.get_json()["error"]
        product = fetch(Product, sample_menu["espresso"])
        assert product.is_active is True
        assert product.status == "available"

    def test_delete_product_discontinues_it(self, client, fetch, make_product):
        url = "https://storage.test/productos/1.png"
        product_id = make_product("Espresso", image_url=url)

        with patch("app.services.catalog.delete_file_from_s3", return_value=True) as delete:
            response = client.delete(f"/api/products/{product_id}")

        assert response.status_code == 200
        delete.assert_called_once_with(url, "productos-imagenes")
        product = fetch(Product, product_id)
        assert product is not None
        assert product.is_active is False
        assert product.image_url is None

    def test_delete_product_after_order_completed(
        self, client, fetch, sample_menu, completed_order
    ):
        response = client.delete(f"/api/products/{sample_menu['espresso']}")

        assert response.status_code == 200
        assert fetch(Product, sample_menu["espresso"]).is_active is False
