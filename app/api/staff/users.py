import secrets

import bcrypt
from flask import Blueprint, current_app
from sqlalchemy import func, select

from ...constants import StaffRole
from ...errors import ConflictError, NotFoundError, ValidationError
from ...extensions import db
from ...models import StaffUser
from ...utils.responses import get_json_body, success_response

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

STAFF_ROLES = {r.value for r in StaffRole}


def user_to_dict(user):
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def hash_password(password):
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())


def get_user_or_404(user_id):
    user = db.session.get(StaffUser, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _apply_fields(user, data):
    for field in ("first_name", "last_name", "phone", "email", "password"):
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")

    for field in ("first_name", "last_name", "phone"):
        if field in data:
            value = data.get(field)
            setattr(user, field, value.strip() if value is not None else None)

    if "email" in data:
        email = (data.get("email") or "").strip().lower()
        if "@" not in email:
            raise ValidationError("A valid email is required")
        query = select(StaffUser.id).where(func.lower(StaffUser.email) == email)
        if user.id is not None:
            query = query.where(StaffUser.id != user.id)
        if db.session.scalar(query):
            raise ConflictError(f"A user with email {email} already exists")
        user.email = email

    if "role" in data:
        if data.get("role") not in STAFF_ROLES:
            raise ValidationError(f"Invalid role: {data.get('role')}")
        user.role = data["role"]

    if not user.first_name or not user.last_name or not user.email:
        raise ValidationError("first_name, last_name and email are required")


@users_bp.route("", methods=["GET"])
def list_users():
    """
    List staff users ordered by first name
    ---
    tags:
      - Staff
    responses:
      200:
        description: Admins and employees
    """
    users = db.session.scalars(
        select(StaffUser)
        .where(StaffUser.role.in_(STAFF_ROLES))
        .order_by(StaffUser.first_name, StaffUser.last_name)
    ).all()
    return success_response([user_to_dict(u) for u in users])


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id):
    """
    Get a staff user by ID
    ---
    tags:
      - Staff
    parameters:
      - in: path
        name: user_id
        type: integer
        required: true
    responses:
      200:
        description: User found
      404:
        description: User not found
    """
    return success_response(user_to_dict(get_user_or_404(user_id)))


@users_bp.route("", methods=["POST"])
def create_user():
    """
    Create a staff user
    ---
    tags:
      - Staff
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - first_name
            - last_name
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
            role:
              type: string
              enum: [admin, employee]
            password:
              type: string
              description: A random password is set when missing
    responses:
      201:
        description: User created
      409:
        description: Email already in use
    """
    data = get_json_body()
    user = StaffUser(role=StaffRole.EMPLOYEE.value)
    _apply_fields(user, data)

    password = data.get("password") or secrets.token_urlsafe(12)
    user.password_hash = hash_password(password)

    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"Staff user {user.id} created with role {user.role}")
    return success_response(user_to_dict(user), "User created", 201)


@users_bp.route("/<int:user_id>", methods=["PUT"])
def update_user(user_id):
    """
    Update a staff user; a password in the body replaces the stored hash
    ---
    tags:
      - Staff
    parameters:
      - in: path
        name: user_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
    responses:
      200:
        description: User updated
    """
    user = get_user_or_404(user_id)
    data = get_json_body()
    _apply_fields(user, data)
    if data.get("password"):
        user.password_hash = hash_password(data["password"])

    db.session.commit()
    return success_response(user_to_dict(user), "User updated")


@users_bp.route("/<int:user_id>", methods=["DELETE"])
def delete_user(user_id):
    """
    Delete a staff user; their orders keep no user reference
    ---
    tags:
      - Staff
    parameters:
      - in: path
        name: user_id
        type: integer
        required: true
    responses:
      200:
        description: User deleted
    """
    user = get_user_or_404(user_id)
    # Orders keep their history with user_id set to NULL
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info(f"Staff user {user_id} deleted")
    return success_response({"id": user_id}, "User deleted")
