"""Order workflow: checkout, edits, kitchen status changes and their point side effects.

Each public function that writes is one transaction: it stages every change
on ``db.session`` and commits once at the end. Any ``DomainError`` raised on
the way is rolled back by the error handlers before the response is sent.
"""

from datetime import datetime, time

from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.constants import (
    ACTIVE_ORDER_STATUSES,
    ORDER_TRANSITIONS,
    BillingStatus,
    OrderStatus,
    PaymentMethod,
    ProductStatus,
)
from app.errors import ConflictError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Customer, Order, OrderLine, Product, StaffUser
from app.services import loyalty
from app.utils.money import (
    compute_totals,
    money_json,
    parse_tax_rate,
    points_for_total,
    round_money,
    to_int,
)

PAYMENT_METHODS = {m.value for m in PaymentMethod}
ORDER_STATUSES = {s.value for s in OrderStatus}


def line_to_dict(line):
    return {
        "id": line.id,
        "product_id": line.product_id,
        "product_name": line.product.name if line.product else "Product not found",
        "image_url": line.product.image_url if line.product else None,
        "quantity": line.quantity,
        "unit_price": money_json(line.unit_price),
        "subtotal": money_json(line.subtotal),
        "notes": line.notes,
    }


def order_to_dict(order, with_lines=False):
    data = {
        "id": order.id,
        "customer_id": order.customer_id,
        "customer_name": order.customer.full_name if order.customer else None,
        "user_id": order.user_id,
        "status": order.status,
        "payment_method": order.payment_method,
        "tax_rate": money_json(order.tax_rate),
        "subtotal": money_json(order.subtotal),
        "tax": money_json(order.tax),
        "total": money_json(order.total),
        "points_earned": order.points_earned,
        "points_spent": order.points_spent,
        "notes": order.notes,
        "billing_status": order.billing_status,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }
    if with_lines:
        data["lines"] = [line_to_dict(line) for line in order.order_line]
    return data


# -----------------------------------------------------------------------------
# Input parsing
# -----------------------------------------------------------------------------
def parse_lines(raw_lines):
    if not raw_lines or not isinstance(raw_lines, list):
        raise ValidationError("At least one order line is required")

    lines = []
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise ValidationError("Each order line must be an object")
        product_id = to_int(raw.get("product_id"), "product_id")
        quantity = to_int(raw.get("quantity", 1), "quantity")
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        lines.append(
            {"product_id": product_id, "quantity": quantity, "notes": raw.get("notes") or ""}
        )
    return lines


def parse_payment_method(value):
    method = value or PaymentMethod.CASH.value
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method: {method}")
    return method


def _load_products(lines):
    product_ids = {line["product_id"] for line in lines}
    products = {
        p.id: p
        for p in db.session.scalars(
            select(Product).where(Product.id.in_(product_ids))
        ).all()
    }
    for product_id in sorted(product_ids):
        product = products.get(product_id)
        if not product:
            raise NotFoundError(f"Product ID {product_id} not found")
        if not product.is_active:
            raise ValidationError(f"{product.name} has been discontinued")
    return products


def _build_lines(order, lines, products, redeemed=False):
    subtotal = 0
    for line in lines:
        product = products[line["product_id"]]
        if not redeemed and product.status != ProductStatus.AVAILABLE.value:
            raise ValidationError(f"{product.name} is out of stock")
        unit_price = 0 if redeemed else product.price
        line_subtotal = round_money(unit_price * line["quantity"])
        order.order_line.append(
            OrderLine(
                product=product,
                quantity=line["quantity"],
                unit_price=unit_price,
                subtotal=line_subtotal,
                notes=line["notes"],
            )
        )
        subtotal += line_subtotal
    return subtotal


def _apply_totals(order, subtotal):
    order.subtotal, order.tax, order.total = compute_totals(subtotal, order.tax_rate)
    order.points_earned = points_for_total(order.total)


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------
def get_order(order_id):
    order = db.session.scalar(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.order_line).selectinload(OrderLine.product))
    )
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def list_orders(status=None, with_lines=False):
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Invalid order status: {status}")
        query = query.where(Order.status == status)
    if with_lines:
        query = query.options(
            selectinload(Order.order_line).selectinload(OrderLine.product)
        )
    return db.session.scalars(query).all()


def kitchen_board(today=None):
    """Orders grouped by kitchen column.

    Orders carry no completion time, so the completed column holds completed
    orders placed today.
    """
    today = today or datetime.now().date()
    start_of_day = datetime.combine(today, time.min)

    board = {
        OrderStatus.PENDING.value: [],
        OrderStatus.PREPARING.value: [],
        OrderStatus.COMPLETED.value: [],
    }
    orders = db.session.scalars(
        select(Order)
        .where(Order.status.in_(list(board)))
        .options(selectinload(Order.order_line).selectinload(OrderLine.product))
        .order_by(Order.created_at.asc(), Order.id.asc())
    ).all()
    for order in orders:
        if order.status == OrderStatus.COMPLETED.value and order.created_at < start_of_day:
            continue
        board[order.status].append(order_to_dict(order, with_lines=True))
    return board


# -----------------------------------------------------------------------------
# Checkout
# -----------------------------------------------------------------------------
def create_order(data):
    """Create an order with its lines from a checkout request.

    ``data`` keys: ``customer_id`` (required), ``lines`` (product_id,
    quantity, notes), ``payment_method``, ``tax_rate``, ``notes``,
    ``user_id``. Paying with ``points`` debits the customer instead of
    charging money.
    """
    customer_id = data.get("customer_id")
    if not customer_id:
        raise ValidationError("A customer is required to process the order")

    lines = parse_lines(data.get("lines"))
    payment_method = parse_payment_method(data.get("payment_method"))

    user_id = data.get("user_id")
    if user_id is not None and not db.session.get(StaffUser, user_id):
        raise NotFoundError(f"User {user_id} not found")

    if payment_method == PaymentMethod.POINTS.value:
        return _create_redemption_order(customer_id, lines, data, user_id)

    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")

    order = Order(
        customer=customer,
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        payment_method=payment_method,
        tax_rate=parse_tax_rate(
            data.get("tax_rate"), current_app.config["DEFAULT_TAX_RATE"]
        ),
        points_spent=0,
        notes=data.get("notes") or "",
        billing_status=BillingStatus.NOT_INVOICED.value,
    )
    subtotal = _build_lines(order, lines, _load_products(lines))
    _apply_totals(order, subtotal)

    db.session.add(order)
    db.session.commit()
    current_app.logger.info(
        f"Order {order.id} created for customer {customer.id}: total {order.total}, "
        f"{order.points_earned} points to earn"
    )
    return order


def _create_redemption_order(customer_id, lines, data, user_id):
    products = _load_products(lines)
    required = sum(
        (products[line["product_id"]].points_awarded or 0) * line["quantity"]
        for line in lines
    )
    if required <= 0:
        raise ValidationError("The selected products cannot be redeemed with points")

    customer = loyalty.get_customer_for_update(customer_id)
    order = Order(
        customer=customer,
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        payment_method=PaymentMethod.POINTS.value,
        tax_rate=0,
        subtotal=0,
        tax=0,
        total=0,
        points_earned=0,
        points_spent=required,
        notes=data.get("notes") or "Products redeemed with points",
        billing_status=BillingStatus.NOT_INVOICED.value,
    )
    _build_lines(order, lines, products, redeemed=True)
    db.session.add(order)
    db.session.flush()

    loyalty.debit_points(customer, required, order=order)
    db.session.commit()
    current_app.logger.info(
        f"Redemption order {order.id} created for customer {customer.id}: "
        f"{required} points spent"
    )
    return order


# -----------------------------------------------------------------------------
# Status changes
# -----------------------------------------------------------------------------
def _transition(order, new_status):
    if new_status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid order status: {new_status}")
    if new_status == order.status:
        return False
    if new_status not in ORDER_TRANSITIONS[order.status]:
        raise ConflictError(
            f"Order {order.id} cannot move from {order.status} to {new_status}"
        )

    order.status = new_status
    if new_status == OrderStatus.COMPLETED.value:
        earned = order.points_earned or points_for_total(order.total)
        if earned > 0:
            customer = loyalty.get_customer_for_update(order.customer_id)
            loyalty.credit_points(customer, earned, order=order)
    return True


def change_status(order_id, new_status):
    order = get_order(order_id)
    previous = order.status
    if _transition(order, new_status):
        db.session.commit()
        current_app.logger.info(
            f"Order {order_id} status changed from {previous} to {new_status}"
        )
    return order


# -----------------------------------------------------------------------------
# Edits
# -----------------------------------------------------------------------------
def edit_order(order_id, data):
    order = get_order(order_id)

    if "payment_method" in data:
        method = parse_payment_method(data.get("payment_method"))
        is_points = PaymentMethod.POINTS.value
        if method != order.payment_method and is_points in (method, order.payment_method):
            raise ValidationError(
                "Orders cannot be switched to or from payment with points"
            )
        order.payment_method = method

    if "notes" in data:
        order.notes = data.get("notes") or ""

    if data.get("lines") is not None:
        if order.payment_method == PaymentMethod.POINTS.value:
            raise ConflictError("Lines of a points redemption order cannot be edited")
        if order.status not in ACTIVE_ORDER_STATUSES:
            raise ConflictError(f"Lines of a {order.status} order cannot be edited")
        if order.billing_status == BillingStatus.INVOICED.value:
            raise ConflictError("Lines of an invoiced order cannot be edited")

        lines = parse_lines(data.get("lines"))
        products = _load_products(lines)
        order.order_line.clear()
        db.session.flush()
        _apply_totals(order, _build_lines(order, lines, products))

    if data.get("status"):
        _transition(order, data["status"])

    db.session.commit()
    current_app.logger.info(f"Order {order_id} updated")
    return order


def update_line_notes(items):
    if not items or not isinstance(items, list):
        raise ValidationError("A list of {id, notes} items is required")

    for item in items:
        if not isinstance(item, dict) or item.get("id") is None:
            raise ValidationError("Each item needs an order line id")
        line = db.session.get(OrderLine, item["id"])
        if not line:
            raise NotFoundError(f"Order line {item['id']} not found")
        line.notes = item.get("notes") or ""

    db.session.commit()
    return len(items)


def recalculate_totals(order_id):
    """Rebuild the order totals from its lines with the tax rate stored on the order."""
    order = get_order(order_id)
    if order.payment_method == PaymentMethod.POINTS.value:
        raise ConflictError("Points redemption orders have no monetary totals")
    if not order.order_line:
        raise ValidationError(f"Order {order_id} has no lines")

    subtotal = 0
    for line in order.order_line:
        line.subtotal = round_money(line.unit_price * line.quantity)
        subtotal += line.subtotal
    _apply_totals(order, subtotal)

    db.session.commit()
    current_app.logger.info(f"Order {order_id} totals recalculated: {order.total}")
    return order


def delete_order(order_id):
    order = get_order(order_id)
    if order.invoice:
        numbers = ", ".join(i.number for i in order.invoice)
        raise ConflictError(
            f"Order {order_id} has invoices ({numbers}) and cannot be deleted; "
            "invoices are kept on record even when void"
        )

    # Lines go with the order through the delete-orphan cascade
    db.session.delete(order)
    db.session.commit()
    current_app.logger.info(f"Order {order_id} deleted")
