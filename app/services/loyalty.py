"""Loyalty ledger: point balances, tiers and the movement history.

Balances only change as a side effect of the order workflow. ``credit_points``
and ``debit_points`` add to the current session and leave the commit to the
caller, so the balance change lands in the same transaction as the order
change that caused it.
"""

from flask import current_app
from sqlalchemy import select

from app.constants import TIER_THRESHOLDS, LoyaltyTier, PointsReason, ProductStatus
from app.errors import InsufficientPointsError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Customer, PointsMovement, Product
from app.utils.money import money_json

ACTIVITY_LIMIT = 20


def tier_for_points(points):
    points = points or 0
    for floor, tier in TIER_THRESHOLDS:
        if points >= floor:
            return tier.value
    return LoyaltyTier.BRONZE.value


def next_tier(points):
    """Return ``(tier, points_missing)`` for the next tier up, or ``(None, 0)`` at the top."""
    points = points or 0
    upcoming = None
    for floor, tier in TIER_THRESHOLDS:
        if points >= floor:
            break
        upcoming = (tier.value, floor - points)
    return upcoming or (None, 0)


def get_customer_for_update(customer_id):
    customer = db.session.scalar(
        select(Customer).where(Customer.id == customer_id).with_for_update()
    )
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def _record(customer, change, reason, order=None):
    customer.loyalty_points = (customer.loyalty_points or 0) + change
    customer.loyalty_tier = tier_for_points(customer.loyalty_points)
    movement = PointsMovement(
        customer=customer,
        order_id=order.id if order is not None else None,
        points_change=change,
        balance_after=customer.loyalty_points,
        reason=reason.value,
    )
    db.session.add(movement)
    return movement


def credit_points(customer, points, order=None):
    if points <= 0:
        return None
    movement = _record(customer, points, PointsReason.ORDER_COMPLETED, order)
    current_app.logger.info(
        f"Credited {points} points to customer {customer.id} "
        f"(balance {customer.loyalty_points}, tier {customer.loyalty_tier})"
    )
    return movement


def debit_points(customer, points, order=None):
    if points <= 0:
        raise ValidationError("Points to debit must be positive")
    balance = customer.loyalty_points or 0
    if balance < points:
        raise InsufficientPointsError(
            f"Insufficient points: {points} required, {balance} available"
        )
    movement = _record(customer, -points, PointsReason.POINTS_REDEMPTION, order)
    current_app.logger.info(
        f"Debited {points} points from customer {customer.id} "
        f"(balance {customer.loyalty_points}, tier {customer.loyalty_tier})"
    )
    return movement


def points_required(lines):
    """Points needed to redeem ``lines`` (dicts with product_id and quantity)."""
    product_ids = {line["product_id"] for line in lines}
    products = {
        p.id: p
        for p in db.session.scalars(
            select(Product).where(Product.id.in_(product_ids))
        ).all()
    }
    missing = product_ids - set(products)
    if missing:
        raise NotFoundError(f"Product ID {sorted(missing)[0]} not found")
    return sum(
        (products[line["product_id"]].points_awarded or 0) * line["quantity"]
        for line in lines
    )


def redemption_preview(customer_id, lines):
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")

    required = points_required(lines)
    balance = customer.loyalty_points or 0
    return {
        "customer_id": customer.id,
        "points_required": required,
        "points_available": balance,
        "can_redeem": required > 0 and balance >= required,
        "points_after": balance - required if balance >= required else balance,
    }


def customer_summary(customer):
    upcoming, missing = next_tier(customer.loyalty_points)
    return {
        "customer_id": customer.id,
        "name": customer.full_name,
        "loyalty_points": customer.loyalty_points,
        "loyalty_tier": customer.loyalty_tier,
        "next_tier": upcoming,
        "points_to_next_tier": missing,
    }


def customer_activity(customer_id, limit=ACTIVITY_LIMIT):
    if not db.session.get(Customer, customer_id):
        raise NotFoundError(f"Customer {customer_id} not found")

    movements = db.session.scalars(
        select(PointsMovement)
        .where(PointsMovement.customer_id == customer_id)
        .order_by(PointsMovement.created_at.desc(), PointsMovement.id.desc())
        .limit(limit)
    ).all()
    return [
        {
            "id": m.id,
            "date": m.created_at.isoformat(),
            "reason": m.reason,
            "points_change": m.points_change,
            "balance_after": m.balance_after,
            "order_id": m.order_id,
        }
        for m in movements
    ]


def ranking():
    customers = db.session.scalars(
        select(Customer).order_by(
            Customer.loyalty_points.desc(), Customer.first_name.asc()
        )
    ).all()
    return [customer_summary(c) for c in customers]


def redeemable_rewards():
    products = db.session.scalars(
        select(Product)
        .where(
            Product.is_active.is_(True),
            Product.status == ProductStatus.AVAILABLE.value,
            Product.points_awarded > 0,
        )
        .order_by(Product.points_awarded.asc(), Product.name.asc())
    ).all()
    return [
        {
            "product_id": p.id,
            "name": p.name,
            "points_cost": p.points_awarded,
            "price": money_json(p.price),
            "image_url": p.image_url,
        }
        for p in products
    ]


def tier_table():
    return [
        {"tier": tier.value, "min_points": floor}
        for floor, tier in reversed(TIER_THRESHOLDS)
    ]
