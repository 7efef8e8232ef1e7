"""Invoice issuing, payment and voiding."""

import re

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from app.constants import (
    INVOICE_NUMBER_DIGITS,
    INVOICE_NUMBER_PREFIX,
    BillingStatus,
    InvoiceStatus,
    OrderStatus,
    PaymentMethod,
)
from app.errors import ConflictError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Invoice, Order, OrderLine
from app.services.orders import line_to_dict
from app.utils.money import money_json

BILLING_FIELDS = (
    "business_name",
    "tax_id",
    "address",
    "phone",
    "email",
    "contact_name",
)
INVOICE_STATUSES = {s.value for s in InvoiceStatus}


def format_invoice_number(sequence):
    return f"{INVOICE_NUMBER_PREFIX}{sequence:0{INVOICE_NUMBER_DIGITS}d}"


def parse_invoice_sequence(number):
    digits = re.sub(r"\D", "", number or "")
    return int(digits) if digits else None


def next_invoice_number():
    """Number following the latest issued invoice, ``F-000001`` when there is none."""
    latest = db.session.scalar(
        select(Invoice.number).order_by(Invoice.id.desc()).limit(1).with_for_update()
    )
    sequence = parse_invoice_sequence(latest)
    return format_invoice_number((sequence or 0) + 1)


def invoice_to_dict(invoice, with_order=False):
    customer = invoice.customer
    data = {
        "id": invoice.id,
        "number": invoice.number,
        "order_id": invoice.order_id,
        "customer_id": invoice.customer_id,
        "customer_name": customer.full_name if customer else "General customer",
        "issued_at": invoice.issued_at.isoformat() if invoice.issued_at else None,
        "subtotal": money_json(invoice.subtotal),
        "tax": money_json(invoice.tax),
        "total": money_json(invoice.total),
        "status": invoice.status,
        "billing_details": invoice.billing_details or {},
        "notes": invoice.notes,
    }
    if with_order and invoice.order:
        order = invoice.order
        data["customer"] = (
            {
                "id": customer.id,
                "name": customer.full_name,
                "email": customer.email,
                "phone": customer.phone,
                "address": customer.address,
                "city": customer.city,
                "postal_code": customer.postal_code,
            }
            if customer
            else None
        )
        data["order"] = {
            "id": order.id,
            "created_at": order.created_at.isoformat() if order.created_at else None,
            "status": order.status,
            "tax_rate": money_json(order.tax_rate),
            "lines": [line_to_dict(line) for line in order.order_line],
        }
    return data


def _billing_details(raw, order):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValidationError("billing_details must be an object")
    details = {field: raw.get(field) for field in BILLING_FIELDS if raw.get(field)}

    # Fall back to the customer profile for anything not given
    customer = order.customer
    if customer:
        details.setdefault("business_name", customer.business_name or customer.full_name)
        details.setdefault("tax_id", customer.document_number)
        details.setdefault("address", customer.address)
        details.setdefault("phone", customer.phone)
        details.setdefault("email", customer.email)
    return {k: v for k, v in details.items() if v}


def get_invoice(invoice_id):
    invoice = db.session.scalar(
        select(Invoice)
        .where(Invoice.id == invoice_id)
        .options(
            joinedload(Invoice.customer),
            joinedload(Invoice.order)
            .selectinload(Order.order_line)
            .joinedload(OrderLine.product),
        )
    )
    if not invoice:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def list_invoices(status="all"):
    query = (
        select(Invoice)
        .options(joinedload(Invoice.customer))
        .order_by(Invoice.issued_at.desc(), Invoice.id.desc())
    )
    if status and status != "all":
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"Invalid invoice status: {status}")
        query = query.where(Invoice.status == status)
    return db.session.scalars(query).all()


def create_invoice(data):
    order_id = data.get("order_id")
    if not order_id:
        raise ValidationError("order_id is required")

    order = db.session.scalar(
        select(Order).where(Order.id == order_id).with_for_update()
    )
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    if order.status == OrderStatus.CANCELLED.value:
        raise ConflictError(f"Order {order_id} is cancelled and cannot be invoiced")
    if order.payment_method == PaymentMethod.POINTS.value:
        raise ConflictError("Points redemption orders have no amount to invoice")
    if order.billing_status == BillingStatus.INVOICED.value:
        raise ConflictError(f"Order {order_id} is already invoiced")

    invoice = Invoice(
        number=next_invoice_number(),
        order=order,
        customer_id=order.customer_id,
        subtotal=order.subtotal,
        tax=order.tax,
        total=order.total,
        status=InvoiceStatus.ISSUED.value,
        billing_details=_billing_details(data.get("billing_details"), order),
        notes=data.get("notes") or "",
    )
    order.billing_status = BillingStatus.INVOICED.value
    db.session.add(invoice)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(
            f"Invoice number {invoice.number} was taken by another request, try again"
        )

    current_app.logger.info(
        f"Invoice {invoice.number} issued for order {order.id} (total {invoice.total})"
    )
    return invoice


def mark_paid(invoice_id):
    invoice = get_invoice(invoice_id)
    if invoice.status == InvoiceStatus.PAID.value:
        return invoice
    if invoice.status == InvoiceStatus.VOID.value:
        raise ConflictError(f"Invoice {invoice.number} is void")

    invoice.status = InvoiceStatus.PAID.value
    db.session.commit()
    current_app.logger.info(f"Invoice {invoice.number} marked as paid")
    return invoice


def void_invoice(invoice_id):
    """Void the invoice and free its order for invoicing again.

    The order's kitchen status is left as it is.
    """
    invoice = get_invoice(invoice_id)
    if invoice.status == InvoiceStatus.VOID.value:
        return invoice

    invoice.status = InvoiceStatus.VOID.value
    if invoice.order:
        invoice.order.billing_status = BillingStatus.NOT_INVOICED.value
    else:
        current_app.logger.error(
            f"Invoice {invoice.number} voided but order {invoice.order_id} is missing"
        )

    db.session.commit()
    current_app.logger.info(f"Invoice {invoice.number} voided")
    return invoice
