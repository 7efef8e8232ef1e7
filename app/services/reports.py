"""Read-side aggregation over completed orders for reports and dashboards."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from io import BytesIO

import pandas as pd
from sqlalchemy import func

from app.constants import OrderStatus
from app.errors import ValidationError
from app.extensions import db
from app.models import Category, Customer, Order, OrderLine, Product
from app.services.orders import order_to_dict
from app.utils.money import money_json, round_money

REPORT_TYPES = ("sales", "products", "customers", "categories")
PERIODS = ("day", "week", "month", "year")
TOP_LIMIT = 3
RECENT_ORDERS_LIMIT = 5
POPULAR_PRODUCTS_LIMIT = 5

SHEET_NAMES = {
    "sales": "Sales",
    "products": "Products",
    "customers": "Customers",
    "categories": "Categories",
}


def parse_reference_date(value):
    if not value:
        return date.today()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("date must use the YYYY-MM-DD format")


def period_range(period, reference):
    """Return ``(start, end)`` datetimes for the period holding ``reference``; end is exclusive."""
    if period == "day":
        start = reference
        end = start + timedelta(days=1)
    elif period == "week":
        # Weeks start on Sunday
        start = reference - timedelta(days=(reference.weekday() + 1) % 7)
        end = start + timedelta(days=7)
    elif period == "month":
        start = reference.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
    elif period == "year":
        start = reference.replace(month=1, day=1)
        end = start.replace(year=start.year + 1)
    else:
        raise ValidationError(f"Invalid period: {period}")
    return datetime.combine(start, datetime.min.time()), datetime.combine(
        end, datetime.min.time()
    )


def _completed_in(start, end):
    return (
        Order.status == OrderStatus.COMPLETED.value,
        Order.created_at >= start,
        Order.created_at < end,
    )


def _day_key(value):
    # func.date gives a string on SQLite and a date on MySQL
    return value.isoformat() if isinstance(value, date) else str(value)


# -----------------------------------------------------------------------------
# Report rows
# -----------------------------------------------------------------------------
def sales_rows(start, end):
    day = func.date(Order.created_at)
    rows = (
        db.session.query(day.label("day"), func.sum(Order.total).label("total"))
        .filter(*_completed_in(start, end))
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [{"date": _day_key(d), "total": money_json(t or 0)} for d, t in rows]


def product_rows(start, end, limit=None):
    quantity = func.sum(OrderLine.quantity)
    query = (
        db.session.query(
            Product.name, quantity.label("quantity"), func.sum(OrderLine.subtotal)
        )
        .join(OrderLine, OrderLine.product_id == Product.id)
        .join(Order, Order.id == OrderLine.order_id)
        .filter(*_completed_in(start, end))
        .group_by(Product.id, Product.name)
        .order_by(quantity.desc(), Product.name)
    )
    if limit:
        query = query.limit(limit)
    return [
        {"name": name, "quantity": int(qty or 0), "total": money_json(total or 0)}
        for name, qty, total in query.all()
    ]


def customer_rows(start, end, limit=None):
    visits = func.count(Order.id)
    query = (
        db.session.query(
            Customer.first_name,
            Customer.last_name,
            visits.label("visits"),
            func.sum(Order.total),
        )
        .join(Order, Order.customer_id == Customer.id)
        .filter(*_completed_in(start, end))
        .group_by(Customer.id, Customer.first_name, Customer.last_name)
        .order_by(visits.desc(), func.sum(Order.total).desc())
    )
    if limit:
        query = query.limit(limit)
    return [
        {
            "name": f"{first} {last or ''}".strip(),
            "visits": count,
            "total": money_json(total or 0),
        }
        for first, last, count, total in query.all()
    ]


def category_rows(start, end, limit=None):
    total = func.sum(OrderLine.subtotal)
    query = (
        db.session.query(Category.name, total.label("total"))
        .select_from(OrderLine)
        .join(Order, Order.id == OrderLine.order_id)
        .join(Product, Product.id == OrderLine.product_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .filter(*_completed_in(start, end))
        .group_by(Category.name)
        .order_by(total.desc())
    )
    if limit:
        query = query.limit(limit)
    return [
        {"category": name or "Uncategorized", "total": money_json(value or 0)}
        for name, value in query.all()
    ]


ROW_BUILDERS = {
    "sales": sales_rows,
    "products": product_rows,
    "customers": customer_rows,
    "categories": category_rows,
}


def get_report(report_type, period="month", reference=None):
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"Invalid report type: {report_type}")
    reference = parse_reference_date(reference)
    start, end = period_range(period, reference)
    return {
        "type": report_type,
        "period": period,
        "start": start.date().isoformat(),
        "end": (end - timedelta(days=1)).date().isoformat(),
        "rows": ROW_BUILDERS[report_type](start, end),
    }


# -----------------------------------------------------------------------------
# Dashboards
# -----------------------------------------------------------------------------
def _sales_metrics(start, end):
    total, count = (
        db.session.query(func.sum(Order.total), func.count(Order.id))
        .filter(*_completed_in(start, end))
        .one()
    )
    total = round_money(total or 0)
    average = round_money(total / count) if count else Decimal("0.00")
    return total, count, average


def dashboard_summary(period="month", reference=None):
    reference = parse_reference_date(reference)
    start, end = period_range(period, reference)

    total, count, average = _sales_metrics(start, end)
    days = sales_rows(start, end)
    best_day = max(days, key=lambda row: row["total"]) if days else None
    products_sold = (
        db.session.query(func.sum(OrderLine.quantity))
        .join(Order, Order.id == OrderLine.order_id)
        .filter(*_completed_in(start, end))
        .scalar()
    )

    return {
        "period": period,
        "start": start.date().isoformat(),
        "end": (end - timedelta(days=1)).date().isoformat(),
        "sales": {
            "total_sales": money_json(total),
            "order_count": count,
            "average_order": money_json(average),
            "best_day": best_day,
            "products_sold": int(products_sold or 0),
        },
        "top_products": product_rows(start, end, limit=TOP_LIMIT),
        "top_customers": customer_rows(start, end, limit=TOP_LIMIT),
        "top_categories": category_rows(start, end, limit=TOP_LIMIT),
    }


def dashboard_home(reference=None):
    reference = parse_reference_date(reference)
    start, end = period_range("month", reference)

    total, count, average = _sales_metrics(start, end)
    product_count = (
        db.session.query(func.count(Product.id))
        .filter(Product.is_active.is_(True))
        .scalar()
    )
    recent = (
        db.session.query(Order)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS_LIMIT)
        .all()
    )

    return {
        "month": {
            "total_sales": money_json(total),
            "order_count": count,
            "average_order": money_json(average),
            "product_count": product_count or 0,
        },
        "recent_orders": [order_to_dict(o) for o in recent],
        "popular_products": product_rows(start, end, limit=POPULAR_PRODUCTS_LIMIT),
    }


def export_excel(sections, period="month", reference=None):
    """Write the selected report types to an xlsx workbook, one sheet each."""
    sections = list(sections or REPORT_TYPES)
    unknown = [s for s in sections if s not in REPORT_TYPES]
    if unknown:
        raise ValidationError(f"Invalid report type: {unknown[0]}")

    output = BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        for section in sections:
            report = get_report(section, period, reference)
            df = pd.DataFrame(report["rows"])
            df.to_excel(writer, sheet_name=SHEET_NAMES[section], index=False)

    output.seek(0)
    return output
