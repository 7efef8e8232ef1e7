from flask import Blueprint

from ...errors import ValidationError
from ...services import cart as cart_service
from ...services.orders import order_to_dict
from ...utils.responses import get_json_body, success_response

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.route("", methods=["POST"])
def create_cart():
    """
    Open a point-of-sale cart
    ---
    tags:
      - Cart
    parameters:
      - in: body
        name: body
        required: false
        schema:
          type: object
          properties:
            customer_id:
              type: integer
            tax_rate:
              type: number
              example: 0.15
    responses:
      201:
        description: Empty cart
    """
    cart = cart_service.create_cart(get_json_body())
    return success_response(cart_service.cart_to_dict(cart), "Cart created", 201)


@cart_bp.route("/<int:cart_id>", methods=["GET"])
def get_cart(cart_id):
    """
    Cart contents with computed totals
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
    responses:
      200:
        description: Items, subtotal, tax, total and points required
      404:
        description: Cart not found
    """
    return success_response(cart_service.cart_to_dict(cart_service.get_cart(cart_id)))


@cart_bp.route("/<int:cart_id>", methods=["PATCH"])
def update_cart(cart_id):
    """
    Change the cart's customer or tax rate
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
    responses:
      200:
        description: Cart updated
    """
    cart = cart_service.update_cart(cart_id, get_json_body())
    return success_response(cart_service.cart_to_dict(cart), "Cart updated")


@cart_bp.route("/<int:cart_id>/items", methods=["POST"])
def add_item(cart_id):
    """
    Add a product to the cart; adding it again increases the quantity
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          $ref: '#/definitions/OrderLineInput'
    responses:
      200:
        description: Updated cart
      400:
        description: Invalid quantity or product out of stock
    """
    data = get_json_body()
    if data.get("product_id") is None:
        raise ValidationError("product_id is required")
    cart = cart_service.add_product(
        cart_id, data["product_id"], data.get("quantity", 1), data.get("notes")
    )
    return success_response(cart_service.cart_to_dict(cart), "Product added to cart")


@cart_bp.route("/<int:cart_id>/items/<int:product_id>", methods=["PUT"])
def update_item(cart_id, product_id):
    """
    Change the quantity or notes of a cart item
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
      - in: path
        name: product_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            quantity:
              type: integer
            notes:
              type: string
    responses:
      200:
        description: Updated cart
    """
    cart = cart_service.update_item(cart_id, product_id, get_json_body())
    return success_response(cart_service.cart_to_dict(cart), "Cart item updated")


@cart_bp.route("/<int:cart_id>/items/<int:product_id>", methods=["DELETE"])
def remove_item(cart_id, product_id):
    """
    Remove a product from the cart
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
      - in: path
        name: product_id
        type: integer
        required: true
    responses:
      200:
        description: Updated cart
    """
    cart = cart_service.remove_item(cart_id, product_id)
    return success_response(cart_service.cart_to_dict(cart), "Product removed from cart")


@cart_bp.route("/<int:cart_id>", methods=["DELETE"])
def clear_cart(cart_id):
    """
    Discard a cart
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
    responses:
      200:
        description: Cart deleted
    """
    cart_service.delete_cart(cart_id)
    return success_response({"id": cart_id}, "Cart deleted")


@cart_bp.route("/<int:cart_id>/checkout", methods=["POST"])
def checkout(cart_id):
    """
    Turn the cart into an order
    ---
    tags:
      - Cart
    parameters:
      - in: path
        name: cart_id
        type: integer
        required: true
      - in: body
        name: body
        required: false
        schema:
          type: object
          properties:
            customer_id:
              type: integer
            payment_method:
              type: string
            user_id:
              type: integer
            notes:
              type: string
    responses:
      201:
        description: Order created and cart removed
        schema:
          $ref: '#/definitions/Order'
      400:
        description: Empty cart, missing customer or insufficient points
    """
    order = cart_service.checkout(cart_id, get_json_body())
    return success_response(order_to_dict(order, True), "Order created", 201)
