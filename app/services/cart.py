"""Point-of-sale cart kept on the server until checkout turns it into an order."""

from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.constants import PaymentMethod, ProductStatus
from app.errors import NotFoundError, ValidationError
from app.extensions import db
from app.models import Cart, CartItem, Customer, Product
from app.services import orders
from app.utils.money import (
    compute_totals,
    money_json,
    parse_tax_rate,
    round_money,
    to_int,
)


def get_cart(cart_id):
    cart = db.session.scalar(
        select(Cart)
        .where(Cart.id == cart_id)
        .options(selectinload(Cart.cart_item).selectinload(CartItem.product))
    )
    if not cart:
        raise NotFoundError(f"No cart found with id {cart_id}")
    return cart


def cart_to_dict(cart):
    items = []
    subtotal = 0
    points_required = 0
    for item in cart.cart_item:
        line_total = round_money(item.product.price * item.qty)
        subtotal += line_total
        points_required += (item.product.points_awarded or 0) * item.qty
        items.append(
            {
                "item_id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name,
                "quantity": item.qty,
                "unit_price": money_json(item.product.price),
                "line_total": money_json(line_total),
                "points_cost": item.product.points_awarded,
                "notes": item.notes,
            }
        )

    subtotal, tax, total = compute_totals(subtotal, cart.tax_rate)
    return {
        "cart_id": cart.id,
        "customer_id": cart.customer_id,
        "tax_rate": money_json(cart.tax_rate),
        "total_items": sum(item["quantity"] for item in items),
        "items": items,
        "subtotal": money_json(subtotal),
        "tax": money_json(tax),
        "total": money_json(total),
        "points_required": points_required,
    }


def _check_customer(customer_id):
    if customer_id is not None and not db.session.get(Customer, customer_id):
        raise NotFoundError(f"Customer {customer_id} not found")


def create_cart(data):
    _check_customer(data.get("customer_id"))
    cart = Cart(
        customer_id=data.get("customer_id"),
        tax_rate=parse_tax_rate(
            data.get("tax_rate"), current_app.config["DEFAULT_TAX_RATE"]
        ),
    )
    db.session.add(cart)
    db.session.commit()
    return cart


def update_cart(cart_id, data):
    cart = get_cart(cart_id)
    if "customer_id" in data:
        _check_customer(data.get("customer_id"))
        cart.customer_id = data.get("customer_id")
    if "tax_rate" in data:
        cart.tax_rate = parse_tax_rate(
            data.get("tax_rate"), current_app.config["DEFAULT_TAX_RATE"]
        )
    db.session.commit()
    return cart


def _parse_quantity(value):
    quantity = to_int(value, "quantity")
    if quantity <= 0:
        raise ValidationError(
            "Quantity must be a positive integer. To remove, use the delete endpoint."
        )
    return quantity


def add_product(cart_id, product_id, quantity=1, notes=None):
    cart = get_cart(cart_id)
    quantity = _parse_quantity(quantity)
    product_id = to_int(product_id, "product_id")

    product = db.session.get(Product, product_id)
    if not product or not product.is_active:
        raise NotFoundError(f"Product ID {product_id} not found")
    if product.status != ProductStatus.AVAILABLE.value:
        raise ValidationError(f"{product.name} is out of stock")

    item = next((i for i in cart.cart_item if i.product_id == product.id), None)
    if item:
        item.qty += quantity
        if notes is not None:
            item.notes = notes
    else:
        cart.cart_item.append(CartItem(product=product, qty=quantity, notes=notes))

    db.session.commit()
    return cart


def _find_item(cart, product_id):
    item = next((i for i in cart.cart_item if i.product_id == product_id), None)
    if not item:
        raise NotFoundError(f"No product with ID {product_id} found in cart {cart.id}")
    return item


def update_item(cart_id, product_id, data):
    cart = get_cart(cart_id)
    item = _find_item(cart, product_id)
    if "quantity" in data:
        item.qty = _parse_quantity(data.get("quantity"))
    if "notes" in data:
        item.notes = data.get("notes")
    db.session.commit()
    return cart


def remove_item(cart_id, product_id):
    cart = get_cart(cart_id)
    cart.cart_item.remove(_find_item(cart, product_id))
    db.session.commit()
    return cart


def delete_cart(cart_id):
    db.session.delete(get_cart(cart_id))
    db.session.commit()


def checkout(cart_id, data):
    """Turn the cart into an order; the cart is deleted in the same transaction."""
    cart = get_cart(cart_id)
    if not cart.cart_item:
        raise ValidationError("Empty cart. Add products before checking out.")

    customer_id = data.get("customer_id") or cart.customer_id
    payment_method = data.get("payment_method") or PaymentMethod.CASH.value
    request_data = {
        "customer_id": customer_id,
        "payment_method": payment_method,
        "tax_rate": cart.tax_rate,
        "notes": data.get("notes"),
        "user_id": data.get("user_id"),
        "lines": [
            {"product_id": i.product_id, "quantity": i.qty, "notes": i.notes}
            for i in cart.cart_item
        ],
    }
    # Staged before create_order commits, so both land together
    db.session.delete(cart)
    return orders.create_order(request_data)
