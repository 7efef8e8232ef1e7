from flask import Blueprint, request

from ...services import catalog
from ...utils.responses import get_json_body, success_response

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.route("", methods=["GET"])
def list_products():
    """
    List products
    ---
    tags:
      - Catalog
    parameters:
      - in: query
        name: status
        type: string
        enum: [available, out_of_stock, discontinued]
        required: false
        description: "discontinued lists the inactive products"
      - in: query
        name: category_id
        type: integer
        required: false
      - in: query
        name: include_inactive
        type: boolean
        required: false
    responses:
      200:
        description: Products ordered by name
        schema:
          type: object
          properties:
            success:
              type: boolean
            data:
              type: array
              items:
                $ref: '#/definitions/Product'
    """
    products = catalog.list_products(
        status=request.args.get("status"),
        category_id=request.args.get("category_id", type=int),
        include_inactive=request.args.get("include_inactive", "").lower() == "true",
    )
    return success_response([catalog.product_to_dict(p) for p in products])


@products_bp.route("/<int:product_id>", methods=["GET"])
def get_product(product_id):
    """
    Get a product by ID
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
    responses:
      200:
        description: Product found
        schema:
          $ref: '#/definitions/Product'
      404:
        description: Product not found
    """
    return success_response(catalog.product_to_dict(catalog.get_product(product_id)))


@products_bp.route("", methods=["POST"])
def create_product():
    """
    Create a product
    ---
    tags:
      - Catalog
    parameters:
      - in: body
        name: body
        required: true
        schema:
          $ref: '#/definitions/Product'
    responses:
      201:
        description: Product created
      400:
        description: Missing name or price
    """
    product = catalog.create_product(get_json_body())
    return success_response(catalog.product_to_dict(product), "Product created", 201)


@products_bp.route("/<int:product_id>", methods=["PUT"])
def update_product(product_id):
    """
    Update a product; a new image_url removes the previous stored image
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          $ref: '#/definitions/Product'
    responses:
      200:
        description: Product updated
    """
    product = catalog.update_product(product_id, get_json_body())
    return success_response(catalog.product_to_dict(product), "Product updated")


@products_bp.route("/<int:product_id>", methods=["DELETE"])
def delete_product(product_id):
    """
    Discontinue a product; it stays in the database for order history
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
    responses:
      200:
        description: Product discontinued
      409:
        description: The product is in an active order
        schema:
          $ref: '#/definitions/Error'
    """
    product = catalog.discontinue_product(product_id)
    return success_response(catalog.product_to_dict(product), "Product discontinued")
