from flask import Blueprint

from ...services import catalog
from ...utils.responses import get_json_body, success_response

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.route("", methods=["GET"])
def list_categories():
    """
    List categories with the number of active products in each
    ---
    tags:
      - Catalog
    responses:
      200:
        description: Categories ordered by name
    """
    return success_response(catalog.list_categories())


@categories_bp.route("/<int:category_id>", methods=["GET"])
def get_category(category_id):
    """
    Get a category by ID
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: category_id
        type: integer
        required: true
    responses:
      200:
        description: Category found
      404:
        description: Category not found
    """
    return success_response(catalog.category_to_dict(catalog.get_category(category_id)))


@categories_bp.route("", methods=["POST"])
def create_category():
    """
    Create a category
    ---
    tags:
      - Catalog
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - name
          properties:
            name:
              type: string
            description:
              type: string
    responses:
      201:
        description: Category created
      400:
        description: Missing name or duplicated name
    """
    category = catalog.create_category(get_json_body())
    return success_response(catalog.category_to_dict(category), "Category created", 201)


@categories_bp.route("/<int:category_id>", methods=["PUT"])
def update_category(category_id):
    """
    Rename or describe a category
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: category_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            description:
              type: string
    responses:
      200:
        description: Category updated
    """
    category = catalog.update_category(category_id, get_json_body())
    return success_response(catalog.category_to_dict(category), "Category updated")


@categories_bp.route("/<int:category_id>", methods=["DELETE"])
def delete_category(category_id):
    """
    Delete a category that no product uses
    ---
    tags:
      - Catalog
    parameters:
      - in: path
        name: category_id
        type: integer
        required: true
    responses:
      200:
        description: Category deleted
      409:
        description: The category is in use by some products
        schema:
          $ref: '#/definitions/Error'
    """
    catalog.delete_category(category_id)
    return success_response({"id": category_id}, "Category deleted")
