from datetime import datetime

from flask import Blueprint, current_app, request
from sqlalchemy import func, or_, select

from ...errors import ConflictError, NotFoundError, ValidationError
from ...extensions import db
from ...models import Customer, Order
from ...utils.responses import get_json_body, success_response

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")

EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "postal_code",
    "document_type",
    "document_number",
    "business_name",
)


def customer_to_dict(customer):
    return {
        "id": customer.id,
        "first_name": customer.first_name,
        "last_name": customer.last_name,
        "full_name": customer.full_name,
        "email": customer.email,
        "phone": customer.phone,
        "birth_date": customer.birth_date.isoformat() if customer.birth_date else None,
        "address": customer.address,
        "city": customer.city,
        "postal_code": customer.postal_code,
        "document_type": customer.document_type,
        "document_number": customer.document_number,
        "business_name": customer.business_name,
        "loyalty_points": customer.loyalty_points,
        "loyalty_tier": customer.loyalty_tier,
        "registered_at": (
            customer.registered_at.isoformat() if customer.registered_at else None
        ),
    }


def get_customer_or_404(customer_id):
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def _apply_fields(customer, data):
    for field in EDITABLE_FIELDS:
        if field in data:
            value = data.get(field)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{field} must be a string")
            setattr(customer, field, value.strip() if value is not None else None)

    if "birth_date" in data:
        raw = data.get("birth_date")
        try:
            customer.birth_date = (
                datetime.strptime(raw, "%Y-%m-%d").date() if raw else None
            )
        except (TypeError, ValueError):
            raise ValidationError("birth_date must use the YYYY-MM-DD format")

    if not customer.first_name:
        raise ValidationError("first_name is required")
    if not customer.email or "@" not in customer.email:
        raise ValidationError("A valid email is required")
    customer.email = customer.email.lower()


def _check_email_free(email, customer_id=None):
    query = select(Customer.id).where(func.lower(Customer.email) == email.lower())
    if customer_id is not None:
        query = query.where(Customer.id != customer_id)
    with db.session.no_autoflush:
        taken = db.session.scalar(query)
    if taken:
        raise ConflictError(f"A customer with email {email} already exists")


@customers_bp.route("", methods=["GET"])
def list_customers():
    """
    List customers, optionally filtered by a search term
    ---
    tags:
      - Customers
    parameters:
      - in: query
        name: q
        type: string
        required: false
        description: Matches first name, last name, email or phone
    responses:
      200:
        description: Customers ordered by first name
    """
    query = select(Customer).order_by(Customer.first_name, Customer.last_name)
    term = (request.args.get("q") or "").strip()
    if term:
        like = f"%{term}%"
        query = query.where(
            or_(
                Customer.first_name.ilike(like),
                Customer.last_name.ilike(like),
                Customer.email.ilike(like),
                Customer.phone.ilike(like),
            )
        )
    customers = db.session.scalars(query).all()
    return success_response([customer_to_dict(c) for c in customers])


@customers_bp.route("/<int:customer_id>", methods=["GET"])
def get_customer(customer_id):
    """
    Get a customer by ID
    ---
    tags:
      - Customers
    parameters:
      - in: path
        name: customer_id
        type: integer
        required: true
    responses:
      200:
        description: Customer found
        schema:
          $ref: '#/definitions/Customer'
      404:
        description: Customer not found
        schema:
          $ref: '#/definitions/Error'
    """
    return success_response(customer_to_dict(get_customer_or_404(customer_id)))


@customers_bp.route("", methods=["POST"])
def create_customer():
    """
    Register a customer
    ---
    tags:
      - Customers
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - first_name
            - email
          properties:
            first_name:
              type: string
            last_name:
              type: string
            email:
              type: string
            phone:
              type: string
            birth_date:
              type: string
              format: date
            document_type:
              type: string
            document_number:
              type: string
    responses:
      201:
        description: Customer created with 0 points and the bronze tier
      400:
        description: Missing or invalid fields
      409:
        description: Email already registered
    """
    data = get_json_body()
    customer = Customer(last_name="", loyalty_points=0)
    _apply_fields(customer, data)
    _check_email_free(customer.email)

    db.session.add(customer)
    db.session.commit()
    current_app.logger.info(f"Customer {customer.id} registered ({customer.email})")
    return success_response(customer_to_dict(customer), "Customer created", 201)


@customers_bp.route("/<int:customer_id>", methods=["PUT"])
def update_customer(customer_id):
    """
    Edit a customer's profile; loyalty points and tier cannot be written here
    ---
    tags:
      - Customers
    parameters:
      - in: path
        name: customer_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
    responses:
      200:
        description: Customer updated
      404:
        description: Customer not found
    """
    customer = get_customer_or_404(customer_id)
    data = get_json_body()
    if "loyalty_points" in data or "loyalty_tier" in data:
        raise ValidationError("Loyalty points and tier change only through orders")

    _apply_fields(customer, data)
    _check_email_free(customer.email, customer.id)
    db.session.commit()
    return success_response(customer_to_dict(customer), "Customer updated")


@customers_bp.route("/<int:customer_id>", methods=["DELETE"])
def delete_customer(customer_id):
    """
    Delete a customer without order history
    ---
    tags:
      - Customers
    parameters:
      - in: path
        name: customer_id
        type: integer
        required: true
    responses:
      200:
        description: Customer deleted
      409:
        description: The customer has orders
    """
    customer = get_customer_or_404(customer_id)
    order_count = db.session.scalar(
        select(func.count(Order.id)).where(Order.customer_id == customer_id)
    )
    if order_count:
        raise ConflictError(
            f"This customer cannot be deleted because they have {order_count} orders"
        )

    db.session.delete(customer)
    db.session.commit()
    current_app.logger.info(f"Customer {customer_id} deleted")
    return success_response({"id": customer_id}, "Customer deleted")
