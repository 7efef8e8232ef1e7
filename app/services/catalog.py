"""Categories and products."""

from flask import current_app
from sqlalchemy import func, select

from app.constants import ACTIVE_ORDER_STATUSES, DISCONTINUED, ProductStatus
from app.errors import ConflictError, NotFoundError, ValidationError
from app.extensions import db
from app.models import Category, Order, OrderLine, Product
from app.utils.money import money_json, to_decimal, to_int
from app.utils.s3_utils import delete_file_from_s3, is_placeholder_url


def category_to_dict(category, product_count=None):
    data = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
    }
    if product_count is not None:
        data["product_count"] = product_count
    return data


def product_to_dict(product):
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category_id": product.category_id,
        "category": product.category.name if product.category else None,
        "price": money_json(product.price),
        "cost": money_json(product.cost),
        "image_url": product.image_url,
        "points_awarded": product.points_awarded,
        "status": product.status,
        "is_active": bool(product.is_active),
        "featured": bool(product.featured),
    }


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------
def list_categories():
    counts = dict(
        db.session.execute(
            select(Product.category_id, func.count(Product.id))
            .where(Product.is_active.is_(True))
            .group_by(Product.category_id)
        ).all()
    )
    categories = db.session.scalars(select(Category).order_by(Category.name)).all()
    return [category_to_dict(c, counts.get(c.id, 0)) for c in categories]


def get_category(category_id):
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFoundError(f"Category {category_id} not found")
    return category


def _check_name_free(name, category_id=None):
    query = select(Category.id).where(func.lower(Category.name) == name.lower())
    if category_id is not None:
        query = query.where(Category.id != category_id)
    if db.session.scalar(query):
        raise ConflictError(f"A category named {name} already exists")


def create_category(data):
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    _check_name_free(name)

    category = Category(name=name, description=data.get("description") or "")
    db.session.add(category)
    db.session.commit()
    current_app.logger.info(f"Category {category.id} created ({category.name})")
    return category


def update_category(category_id, data):
    category = get_category(category_id)
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be empty")
        _check_name_free(name, category.id)
        category.name = name
    if "description" in data:
        category.description = data.get("description") or ""
    db.session.commit()
    return category


def delete_category(category_id):
    category = get_category(category_id)
    in_use = db.session.scalar(
        select(func.count(Product.id)).where(Product.category_id == category_id)
    )
    if in_use:
        raise ConflictError(
            "This category cannot be deleted because it is in use by some products"
        )
    db.session.delete(category)
    db.session.commit()
    current_app.logger.info(f"Category {category_id} deleted")


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------
def _validate_status(status):
    if status == DISCONTINUED:
        raise ValidationError(
            "Use the delete operation to discontinue a product, or set is_active"
        )
    if status not in {s.value for s in ProductStatus}:
        raise ValidationError(f"Invalid product status: {status}")
    return status


def _apply_product_fields(product, data, partial):
    if not partial or "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        product.name = name

    if not partial or "price" in data:
        if data.get("price") is None:
            raise ValidationError("price is required")
        price = to_decimal(data["price"], "price")
        if price < 0:
            raise ValidationError("price cannot be negative")
        product.price = price

    if "cost" in data:
        cost = to_decimal(data.get("cost") or 0, "cost")
        if cost < 0:
            raise ValidationError("cost cannot be negative")
        product.cost = cost

    if "category_id" in data:
        category_id = data.get("category_id")
        if category_id is not None:
            get_category(category_id)
        product.category_id = category_id

    if "points_awarded" in data:
        points = to_int(data.get("points_awarded") or 0, "points_awarded")
        if points < 0:
            raise ValidationError("points_awarded cannot be negative")
        product.points_awarded = points

    if "description" in data:
        product.description = data.get("description") or ""
    if "status" in data and data.get("status"):
        product.status = _validate_status(data["status"])
    if "featured" in data:
        product.featured = bool(data.get("featured"))
    if "is_active" in data and data.get("is_active") is not None:
        product.is_active = bool(data["is_active"])


def list_products(status=None, category_id=None, include_inactive=False):
    query = select(Product).order_by(Product.name)

    if status == DISCONTINUED:
        query = query.where(Product.is_active.is_(False))
    else:
        if status:
            query = query.where(Product.status == _validate_status(status))
        if not include_inactive:
            query = query.where(Product.is_active.is_(True))

    if category_id is not None:
        query = query.where(Product.category_id == category_id)

    return db.session.scalars(query).all()


def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError(f"Product ID {product_id} not found")
    return product


def create_product(data):
    product = Product(
        description="",
        cost=0,
        points_awarded=0,
        status=ProductStatus.AVAILABLE.value,
        is_active=True,
        featured=False,
    )
    _apply_product_fields(product, data, partial=False)
    product.image_url = data.get("image_url") or None

    db.session.add(product)
    db.session.commit()
    current_app.logger.info(f"Product {product.id} created ({product.name})")
    return product


def update_product(product_id, data):
    product = get_product(product_id)
    _apply_product_fields(product, data, partial=True)

    if "image_url" in data:
        new_url = data.get("image_url") or None
        old_url = product.image_url
        if old_url and old_url != new_url and not is_placeholder_url(old_url):
            bucket = current_app.config.get("S3_BUCKET_NAME")
            if not delete_file_from_s3(old_url, bucket):
                current_app.logger.warning(
                    f"Previous image of product {product_id} was not removed: {old_url}"
                )
        product.image_url = new_url

    db.session.commit()
    return product


def find_active_order_for_product(product_id):
    return db.session.scalar(
        select(Order.id)
        .join(OrderLine, OrderLine.order_id == Order.id)
        .where(
            OrderLine.product_id == product_id,
            Order.status.in_(ACTIVE_ORDER_STATUSES),
        )
        .order_by(Order.id)
        .limit(1)
    )


def discontinue_product(product_id):
    """Soft-delete: hide the product but keep it for order history."""
    product = get_product(product_id)

    active_order_id = find_active_order_for_product(product_id)
    if active_order_id is not None:
        raise ConflictError(
            f"This product cannot be deleted because it is in an active order "
            f"(ID: {active_order_id}). Complete or cancel the order first."
        )

    image_url = product.image_url
    product.is_active = False
    if image_url and not is_placeholder_url(image_url):
        bucket = current_app.config.get("S3_BUCKET_NAME")
        if delete_file_from_s3(image_url, bucket):
            product.image_url = None
        else:
            current_app.logger.warning(
                f"Image of discontinued product {product_id} was not removed: {image_url}"
            )

    db.session.commit()
    current_app.logger.info(f"Product {product_id} discontinued")
    return product
