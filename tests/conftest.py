"""
Pytest configuration and shared fixtures for the cafeteria back office tests.
"""

import os
import sys
from decimal import Decimal
from pathlib import Path

import bcrypt
import pytest
from dotenv import load_dotenv

test_env_path = Path(__file__).parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)

os.environ["FLASK_ENV"] = "testing"
os.environ["TESTING"] = "True"

from app.config import is_production_database  # noqa: E402
from app.extensions import db as database  # noqa: E402
from app.models import Base, Category, Customer, Product, StaffUser  # noqa: E402
from app.services.loyalty import tier_for_points  # noqa: E402
from main import create_app  # noqa: E402

TEST_DB_URL = os.environ.get("DATABASE_TEST_URL") or "sqlite://"


@pytest.fixture
def app():
    """A fresh app with its own in-memory database for every test."""
    if is_production_database(TEST_DB_URL):
        print(f" DANGER: Database URL appears to be production: {TEST_DB_URL}")
        sys.exit(1)

    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": TEST_DB_URL,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "S3_BUCKET_NAME": "productos-imagenes",
            "S3_BASE_URL": "https://storage.test",
            "DEFAULT_TAX_RATE": "0.15",
        }
    )

    with app.app_context():
        Base.metadata.drop_all(bind=database.engine)
        Base.metadata.create_all(bind=database.engine)

    yield app

    with app.app_context():
        database.session.remove()
        Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def db(app):
    """Database handle inside an app context, for setup and assertions."""
    with app.app_context():
        yield database
        database.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_category(db):
    def _make(name="Coffee", description="Hot drinks"):
        category = Category(name=name, description=description)
        db.session.add(category)
        db.session.commit()
        return category.id

    return _make


@pytest.fixture
def make_product(db):
    def _make(
        name="Latte",
        price="3.00",
        points_awarded=0,
        category_id=None,
        status="available",
        is_active=True,
        image_url=None,
    ):
        product = Product(
            name=name,
            description="",
            price=Decimal(price),
            cost=Decimal("0"),
            points_awarded=points_awarded,
            category_id=category_id,
            status=status,
            is_active=is_active,
            featured=False,
            image_url=image_url,
        )
        db.session.add(product)
        db.session.commit()
        return product.id

    return _make


@pytest.fixture
def make_customer(db):
    def _make(first_name="Ana", last_name="Lopez", email=None, points=0):
        customer = Customer(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name.lower()}.{last_name.lower()}@example.com",
            loyalty_points=points,
            loyalty_tier=tier_for_points(points),
        )
        db.session.add(customer)
        db.session.commit()
        return customer.id

    return _make


@pytest.fixture
def make_user(db):
    def _make(first_name="Carla", last_name="Barista", email="carla@cafe.test", role="employee"):
        user = StaffUser(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role,
            password_hash=bcrypt.hashpw(b"password123", bcrypt.gensalt()),
        )
        db.session.add(user)
        db.session.commit()
        return user.id

    return _make


@pytest.fixture
def sample_menu(make_category, make_product):
    """Two coffees and a pastry; the pastry can be redeemed for 25 points."""
    coffee = make_category("Coffee")
    bakery = make_category("Bakery", "Pastries")
    return {
        "coffee_category": coffee,
        "bakery_category": bakery,
        "espresso": make_product("Espresso", "3.00", category_id=coffee),
        "latte": make_product("Latte", "4.00", points_awarded=20, category_id=coffee),
        "croissant": make_product("Croissant", "2.50", points_awarded=25, category_id=bakery),
    }


@pytest.fixture
def sample_customer(make_customer):
    return make_customer()


@pytest.fixture
def create_order(client):
    """Checkout through the API and return the created order's JSON."""

    def _create(customer_id, lines, **extra):
        body = {"customer_id": customer_id, "lines": lines}
        body.update(extra)
        response = client.post("/api/orders", json=body)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]

    return _create


@pytest.fixture
def completed_order(client, create_order, sample_menu, sample_customer):
    """2 espressos and 1 latte at 15%, already completed."""
    order = create_order(
        sample_customer,
        [
            {"product_id": sample_menu["espresso"], "quantity": 2},
            {"product_id": sample_menu["latte"], "quantity": 1},
        ],
    )
    response = client.patch(
        f"/api/orders/{order['id']}/status", json={"status": "completed"}
    )
    assert response.status_code == 200
    return response.get_json()["data"]


@pytest.fixture
def fetch(db):
    """Read a row again from the database, skipping the identity map."""

    def _fetch(model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)

    return _fetch
