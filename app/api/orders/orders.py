from flask import Blueprint, request

from ...services import orders
from ...utils.responses import get_json_body, success_response

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.route("", methods=["GET"])
def list_orders():
    """
    List orders, newest first
    ---
    tags:
      - Orders
    parameters:
      - in: query
        name: status
        type: string
        enum: [pending, preparing, completed, cancelled]
        required: false
      - in: query
        name: with_lines
        type: boolean
        required: false
    responses:
      200:
        description: Orders
    """
    with_lines = request.args.get("with_lines", "").lower() == "true"
    result = orders.list_orders(request.args.get("status"), with_lines=with_lines)
    return success_response([orders.order_to_dict(o, with_lines) for o in result])


@orders_bp.route("/<int:order_id>", methods=["GET"])
def get_order(order_id):
    """
    Order detail with its lines and product data
    ---
    tags:
      - Orders
    parameters:
      - in: path
        name: order_id
        type: integer
        required: true
    responses:
      200:
        description: Order found
        schema:
          $ref: '#/definitions/Order'
      404:
        description: Order not found
    """
    return success_response(orders.order_to_dict(orders.get_order(order_id), True))


@orders_bp.route("", methods=["POST"])
def create_order():
    """
    Checkout: create an order with its lines
    ---
    tags:
      - Orders
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - customer_id
            - lines
          properties:
            customer_id:
              type: integer
            user_id:
              type: integer
            payment_method:
              type: string
              enum: [cash, credit_card, debit_card, transfer, points]
            tax_rate:
              type: number
              example: 0.15
            notes:
              type: string
            lines:
              type: array
              items:
                $ref: '#/definitions/OrderLineInput'
    responses:
      201:
        description: Order created
        schema:
          $ref: '#/definitions/Order'
      400:
        description: Invalid input, product unavailable or insufficient points
    """
    order = orders.create_order(get_json_body())
    return success_response(orders.order_to_dict(order, True), "Order created", 201)


@orders_bp.route("/<int:order_id>", methods=["PUT"])
def edit_order(order_id):
    """
    Edit an order's payment method, notes, status or lines
    ---
    tags:
      - Orders
    parameters:
      - in: path
        name: order_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
            payment_method:
              type: string
            notes:
              type: string
            lines:
              type: array
              items:
                $ref: '#/definitions/OrderLineInput'
    responses:
      200:
        description: Order updated
      409:
        description: The order can no longer be changed that way
    """
    order = orders.edit_order(order_id, get_json_body())
    return success_response(orders.order_to_dict(order, True), "Order updated")


@orders_bp.route("/<int:order_id>/status", methods=["PATCH"])
def change_status(order_id):
    """
    Move an order to another kitchen status
    ---
    tags:
      - Orders
    parameters:
      - in: path
        name: order_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              enum: [pending, preparing, completed, cancelled]
    responses:
      200:
        description: Status changed; completing an order credits its points
      409:
        description: Transition not allowed
    """
    order = orders.change_status(order_id, get_json_body().get("status"))
    return success_response(orders.order_to_dict(order), "Order status updated")


@orders_bp.route("/<int:order_id>/recalculate", methods=["POST"])
def recalculate(order_id):
    """
    Recompute totals from the lines with the order's stored tax rate
    ---
    tags:
      - Orders
    parameters:
      - in: path
        name: order_id
        type: integer
        required: true
    responses:
      200:
        description: Totals recalculated
    """
    order = orders.recalculate_totals(order_id)
    return success_response(orders.order_to_dict(order), "Totals recalculated")


@orders_bp.route("/lines/notes", methods=["PUT"])
def update_line_notes():
    """
    Update the notes of several order lines at once
    ---
    tags:
      - Orders
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            items:
              type: array
              items:
                type: object
                properties:
                  id:
                    type: integer
                  notes:
                    type: string
    responses:
      200:
        description: Number of lines updated
    """
    updated = orders.update_line_notes(get_json_body().get("items"))
    return success_response({"updated": updated}, "Notes updated")


@orders_bp.route("/<int:order_id>", methods=["DELETE"])
def delete_order(order_id):
    """
    Delete an order and its lines
    ---
    tags:
      - Orders
    parameters:
      - in: path
        name: order_id
        type: integer
        required: true
    responses:
      200:
        description: Order deleted
      409:
        description: The order has invoices, void ones included
    """
    orders.delete_order(order_id)
    return success_response({"id": order_id}, "Order deleted")
