from flask import Blueprint

from ...services import orders
from ...utils.responses import success_response

kitchen_bp = Blueprint("kitchen", __name__, url_prefix="/api/kitchen")


@kitchen_bp.route("/board", methods=["GET"])
def get_board():
    """
    Kitchen board: pending, preparing and completed orders placed today
    ---
    tags:
      - Orders
    responses:
      200:
        description: Orders grouped by status, oldest first
    """
    return success_response(orders.kitchen_board())
