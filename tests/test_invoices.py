from decimal import Decimal

import pytest

from app.models import Invoice, Order


def issue(client, order_id, **extra):
    body = {"order_id": order_id}
    body.update(extra)
    return client.post("/api/invoices", json=body)


@pytest.mark.invoices
class TestInvoiceNumbers:
    """Test suite for sequential invoice numbers."""

    def test_first_invoice_number(self, client, completed_order):
        response = issue(client, completed_order["id"])

        assert response.status_code == 201
        assert response.get_json()["data"]["number"] == "F-000001"

    def test_number_follows_latest(
        self, client, db, sample_menu, sample_customer, create_order, completed_order
    ):
        """Test that after F-000042 the next invoice is F-000043."""
        other = create_order(sample_customer, [{"product_id": sample_menu["latte"]}])
        db.session.add(
            Invoice(
                number="F-000042",
                order_id=other["id"],
                customer_id=sample_customer,
                subtotal=Decimal("4.00"),
                tax=Decimal("0.60"),
                total=Decimal("4.60"),
                status="issued",
            )
        )
        db.session.commit()

        response = issue(client, completed_order["id"])

        assert response.get_json()["data"]["number"] == "F-000043"

    def test_next_number_endpoint(self, client, db):
        response = client.get("/api/invoices/next-number")

        assert response.get_json()["data"] == {"number": "F-000001"}


@pytest.mark.invoices
class TestInvoices:
    """Test suite for invoice issuing, payment and voiding."""

    def test_invoice_snapshots_order(self, client, fetch, completed_order):
        response = issue(
            client,
            completed_order["id"],
            billing_details={"business_name": "Lopez SRL", "tax_id": "1790012345001"},
            notes="Monthly account",
        )

        invoice = response.get_json()["data"]
        assert invoice["subtotal"] == 10.00
        assert invoice["tax"] == 1.50
        assert invoice["total"] == 11.50
        assert invoice["status"] == "issued"
        assert invoice["customer_name"] == "Ana Lopez"
        assert invoice["billing_details"]["business_name"] == "Lopez SRL"
        assert invoice["billing_details"]["email"] == "ana.lopez@example.com"
        assert fetch(Order, completed_order["id"]).billing_status == "invoiced"

    def test_pending_order_can_be_invoiced(
        self, client, sample_menu, sample_customer, create_order
    ):
        order = create_order(sample_customer, [{"product_id": sample_menu["latte"]}])

        assert issue(client, order["id"]).status_code == 201

    def test_already_invoiced_order_rejected(self, client, completed_order):
        issue(client, completed_order["id"])

        response = issue(client, completed_order["id"])

        assert response.status_code == 409
        assert "already invoiced" in response.get_json()["error"]

    def test_cancelled_order_rejected(self, client, sample_menu, sample_customer, create_order):
        order = create_order(sample_customer, [{"product_id": sample_menu["latte"]}])
        client.patch(f"/api/orders/{order['id']}/status", json={"status": "cancelled"})

        assert issue(client, order["id"]).status_code == 409

    def test_points_order_rejected(self, client, sample_menu, make_customer):
        customer_id = make_customer("Rita", "Vega", points=100)
        order = client.post(
            "/api/orders",
            json={
                "customer_id": customer_id,
                "payment_method": "points",
                "lines": [{"product_id": sample_menu["croissant"]}],
            },
        ).get_json()["data"]

        assert issue(client, order["id"]).status_code == 409

    def test_missing_order(self, client, db):
        assert issue(client, 12345).status_code == 404

    def test_void_resets_billing_status(self, client, fetch, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]

        response = client.post(f"/api/invoices/{invoice['id']}/void")

        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "void"
        order = fetch(Order, completed_order["id"])
        assert order.billing_status == "not_invoiced"
        assert order.status == "completed"

    def test_void_twice_is_noop(self, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]
        client.post(f"/api/invoices/{invoice['id']}/void")

        response = client.post(f"/api/invoices/{invoice['id']}/void")

        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "void"

    def test_reinvoice_after_void(self, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]
        client.post(f"/api/invoices/{invoice['id']}/void")

        response = issue(client, completed_order["id"])

        assert response.status_code == 201
        assert response.get_json()["data"]["number"] == "F-000002"

    def test_mark_paid(self, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]

        response = client.post(f"/api/invoices/{invoice['id']}/pay")

        assert response.get_json()["data"]["status"] == "paid"

    def test_void_invoice_cannot_be_paid(self, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]
        client.post(f"/api/invoices/{invoice['id']}/void")

        assert client.post(f"/api/invoices/{invoice['id']}/pay").status_code == 409

    def test_list_with_status_filter(self, client, completed_order):
        first = issue(client, completed_order["id"]).get_json()["data"]
        client.post(f"/api/invoices/{first['id']}/void")
        issue(client, completed_order["id"])

        everything = client.get("/api/invoices").get_json()["data"]
        void = client.get("/api/invoices?status=void").get_json()["data"]
        issued = client.get("/api/invoices?status=issued").get_json()["data"]

        assert len(everything) == 2
        assert [i["number"] for i in void] == ["F-000001"]
        assert [i["number"] for i in issued] == ["F-000002"]
        assert client.get("/api/invoices?status=lost").status_code == 400

    def test_invoice_detail(self, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]

        detail = client.get(f"/api/invoices/{invoice['id']}").get_json()["data"]

        assert detail["order"]["id"] == completed_order["id"]
        assert [line["product_name"] for line in detail["order"]["lines"]] == [
            "Espresso",
            "Latte",
        ]
        assert detail["customer"]["email"] == "ana.lopez@example.com"

    def test_general_customer_fallback(self, db, client, completed_order):
        invoice = issue(client, completed_order["id"]).get_json()["data"]
        stored = db.session.get(Invoice, invoice["id"])
        stored.customer_id = None
        db.session.commit()

        data = client.get("/api/invoices").get_json()["data"]

        assert data[0]["customer_name"] == "General customer"
