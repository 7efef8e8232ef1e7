from flask import Blueprint, request

from ...errors import NotFoundError
from ...extensions import db
from ...models import Customer
from ...services import loyalty
from ...services.orders import parse_lines
from ...utils.responses import get_json_body, success_response

loyalty_bp = Blueprint("loyalty", __name__, url_prefix="/api/loyalty")


@loyalty_bp.route("/tiers", methods=["GET"])
def get_tiers():
    """
    Loyalty tiers and the points needed for each
    ---
    tags:
      - Loyalty
    responses:
      200:
        description: Tiers from bronze to platinum
    """
    return success_response(loyalty.tier_table())


@loyalty_bp.route("/customers/<int:customer_id>", methods=["GET"])
def get_customer_summary(customer_id):
    """
    Points balance, tier and distance to the next tier
    ---
    tags:
      - Loyalty
    parameters:
      - in: path
        name: customer_id
        type: integer
        required: true
    responses:
      200:
        description: Loyalty summary
      404:
        description: Customer not found
    """
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return success_response(loyalty.customer_summary(customer))


@loyalty_bp.route("/customers/<int:customer_id>/activity", methods=["GET"])
def get_customer_activity(customer_id):
    """
    Latest point movements of a customer, newest first
    ---
    tags:
      - Loyalty
    parameters:
      - in: path
        name: customer_id
        type: integer
        required: true
      - in: query
        name: limit
        type: integer
        required: false
        default: 20
    responses:
      200:
        description: Point movements
    """
    limit = request.args.get("limit", loyalty.ACTIVITY_LIMIT, type=int)
    return success_response(loyalty.customer_activity(customer_id, limit=limit))


@loyalty_bp.route("/ranking", methods=["GET"])
def get_ranking():
    """
    Customers ordered by points balance
    ---
    tags:
      - Loyalty
    responses:
      200:
        description: Loyalty ranking
    """
    return success_response(loyalty.ranking())


@loyalty_bp.route("/rewards", methods=["GET"])
def get_rewards():
    """
    Products that can be redeemed with points
    ---
    tags:
      - Loyalty
    responses:
      200:
        description: Redeemable products, cheapest first
    """
    return success_response(loyalty.redeemable_rewards())


@loyalty_bp.route("/customers/<int:customer_id>/redemption-preview", methods=["POST"])
def preview_redemption(customer_id):
    """
    Check whether a customer can pay a set of products with points
    ---
    tags:
      - Loyalty
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
          properties:
            lines:
              type: array
              items:
                $ref: '#/definitions/OrderLineInput'
    responses:
      200:
        description: Points required against the current balance; nothing is changed
    """
    lines = parse_lines(get_json_body().get("lines"))
    return success_response(loyalty.redemption_preview(customer_id, lines))
