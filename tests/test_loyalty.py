import pytest

from app.services.loyalty import next_tier, tier_for_points


@pytest.mark.loyalty
class TestTiers:
    """Test suite for tier thresholds."""

    @pytest.mark.parametrize(
        "points, tier",
        [
            (0, "bronze"),
            (49, "bronze"),
            (50, "silver"),
            (99, "silver"),
            (100, "gold"),
            (199, "gold"),
            (200, "platinum"),
            (1500, "platinum"),
        ],
    )
    def test_tier_for_points(self, points, tier):
        assert tier_for_points(points) == tier

    def test_next_tier(self):
        assert next_tier(0) == ("silver", 50)
        assert next_tier(120) == ("platinum", 80)
        assert next_tier(250) == (None, 0)

    def test_tier_table(self, client, db):
        data = client.get("/api/loyalty/tiers").get_json()["data"]

        assert data == [
            {"tier": "bronze", "min_points": 0},
            {"tier": "silver", "min_points": 50},
            {"tier": "gold", "min_points": 100},
            {"tier": "platinum", "min_points": 200},
        ]


@pytest.mark.loyalty
class TestLoyaltyEndpoints:
    """Test suite for loyalty read endpoints."""

    def test_customer_summary(self, client, make_customer):
        customer_id = make_customer("Rita", "Vega", points=75)

        data = client.get(f"/api/loyalty/customers/{customer_id}").get_json()["data"]

        assert data["loyalty_points"] == 75
        assert data["loyalty_tier"] == "silver"
        assert data["next_tier"] == "gold"
        assert data["points_to_next_tier"] == 25

    def test_summary_missing_customer(self, client, db):
        assert client.get("/api/loyalty/customers/77").status_code == 404

    def test_activity_lists_movements_newest_first(
        self, client, sample_menu, sample_customer, completed_order
    ):
        order = client.post(
            "/api/orders",
            json={
                "customer_id": sample_customer,
                "payment_method": "points",
                "lines": [{"product_id": sample_menu["croissant"]}],
            },
        )
        # 2 points are not enough for a 25 point croissant
        assert order.status_code == 400

        data = client.get(f"/api/loyalty/customers/{sample_customer}/activity").get_json()["data"]

        assert len(data) == 1
        assert data[0]["reason"] == "order_completed"
        assert data[0]["points_change"] == 2
        assert data[0]["balance_after"] == 2
        assert data[0]["order_id"] == completed_order["id"]

    def test_ranking(self, client, make_customer):
        make_customer("Ana", "Lopez", points=10)
        make_customer("Bruno", "Diaz", points=210)
        make_customer("Carla", "Ruiz", points=60)

        data = client.get("/api/loyalty/ranking").get_json()["data"]

        assert [c["name"] for c in data] == ["Bruno Diaz", "Carla Ruiz", "Ana Lopez"]
        assert data[0]["loyalty_tier"] == "platinum"

    def test_rewards(self, client, sample_menu, make_product):
        make_product("Cookie", "1.00", points_awarded=10, status="out_of_stock")
        make_product("Old scone", "1.00", points_awarded=5, is_active=False)

        data = client.get("/api/loyalty/rewards").get_json()["data"]

        assert [r["name"] for r in data] == ["Latte", "Croissant"]
        assert data[0]["points_cost"] == 20

    def test_redemption_preview(self, client, fetch, sample_menu, make_customer):
        customer_id = make_customer("Rita", "Vega", points=60)

        data = client.post(
            f"/api/loyalty/customers/{customer_id}/redemption-preview",
            json={"lines": [{"product_id": sample_menu["croissant"], "quantity": 2}]},
        ).get_json()["data"]

        assert data == {
            "customer_id": customer_id,
            "points_required": 50,
            "points_available": 60,
            "can_redeem": True,
            "points_after": 10,
        }

    def test_redemption_preview_insufficient(self, client, sample_menu, make_customer):
        customer_id = make_customer("Rita", "Vega", points=40)

        data = client.post(
            f"/api/loyalty/customers/{customer_id}/redemption-preview",
            json={"lines": [{"product_id": sample_menu["croissant"], "quantity": 2}]},
        ).get_json()["data"]

        assert data["can_redeem"] is False
        assert data["points_after"] == 40
