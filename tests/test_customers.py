import pytest

from app.models import Customer


@pytest.mark.customers
class TestCustomers:
    """Test suite for customer endpoints."""

    def test_create_customer(self, client, db):
        response = client.post(
            "/api/customers",
            json={
                "first_name": "Luis",
                "last_name": "Mora",
                "email": "Luis.Mora@Example.com",
                "birth_date": "1990-04-12",
            },
        )

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["email"] == "luis.mora@example.com"
        assert data["loyalty_points"] == 0
        assert data["loyalty_tier"] == "bronze"
        assert data["birth_date"] == "1990-04-12"

    def test_create_customer_requires_email(self, client, db):
        response = client.post("/api/customers", json={"first_name": "Luis"})

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"first_name": "Luis", "email": 5},
            {"first_name": ["Luis"], "email": "l@x.com"},
            {"first_name": "Luis", "email": "l@x.com", "phone": 5551234},
        ],
    )
    def test_create_customer_rejects_non_text_fields(self, client, db, body):
        response = client.post("/api/customers", json=body)

        assert response.status_code == 400
        assert "must be a string" in response.get_json()["error"]
        assert db.session.query(Customer).count() == 0

    def test_create_customer_bad_birth_date(self, client, db):
        response = client.post(
            "/api/customers",
            json={"first_name": "Luis", "email": "l@x.com", "birth_date": "12/04/1990"},
        )

        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.get_json()["error"]

    def test_duplicate_email_rejected(self, client, make_customer):
        make_customer(email="ana@example.com")

        response = client.post(
            "/api/customers", json={"first_name": "Ana", "email": "ANA@example.com"}
        )

        assert response.status_code == 409

    def test_search_customers(self, client, make_customer):
        make_customer("Ana", "Lopez")
        make_customer("Bruno", "Diaz")

        data = client.get("/api/customers?q=diaz").get_json()["data"]

        assert [c["full_name"] for c in data] == ["Bruno Diaz"]

    def test_update_customer(self, client, sample_customer):
        response = client.put(
            f"/api/customers/{sample_customer}", json={"phone": "555-0100", "city": "Quito"}
        )

        assert response.status_code == 200
        assert response.get_json()["data"]["city"] == "Quito"

    def test_loyalty_fields_are_read_only(self, client, fetch, sample_customer):
        response = client.put(
            f"/api/customers/{sample_customer}", json={"loyalty_points": 500}
        )

        assert response.status_code == 400
        assert fetch(Customer, sample_customer).loyalty_points == 0

    def test_delete_customer_without_orders(self, client, fetch, sample_customer):
        response = client.delete(f"/api/customers/{sample_customer}")

        assert response.status_code == 200
        assert fetch(Customer, sample_customer) is None

    def test_delete_customer_with_orders_fails(
        self, client, fetch, sample_customer, completed_order
    ):
        response = client.delete(f"/api/customers/{sample_customer}")

        assert response.status_code == 409
        assert fetch(Customer, sample_customer) is not None

    def test_missing_customer(self, client, db):
        assert client.get("/api/customers/404").status_code == 404
