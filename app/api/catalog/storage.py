from flask import Blueprint, request

from ...services import storage
from ...utils.responses import success_response

storage_bp = Blueprint("storage", __name__, url_prefix="/api/storage")


@storage_bp.route("/images", methods=["POST"])
def upload_image():
    """
    Upload a product image
    ---
    tags:
      - Storage
    consumes:
      - multipart/form-data
    parameters:
      - in: formData
        name: image_file
        type: file
        required: true
    responses:
      201:
        description: Stored image path and public URL
      400:
        description: Not an image or larger than the size limit
      502:
        description: The storage service failed
    """
    result = storage.upload_product_image(request.files.get("image_file"))
    return success_response(result, "Image uploaded", 201)


@storage_bp.route("/diagnose", methods=["GET"])
def diagnose():
    """
    Check that the image bucket exists and can be read
    ---
    tags:
      - Storage
    responses:
      200:
        description: Bucket status and the list of buckets
    """
    return success_response(storage.diagnose_storage())


@storage_bp.route("/init", methods=["POST"])
def init():
    """
    Create the image bucket when it is missing
    ---
    tags:
      - Storage
    responses:
      200:
        description: Whether the bucket had to be created
    """
    return success_response(storage.init_storage())


@storage_bp.route("/repair", methods=["POST"])
def repair():
    """
    Delete the image bucket with its contents and create it again
    ---
    tags:
      - Storage
    responses:
      200:
        description: Bucket recreated
    """
    return success_response(storage.repair_storage(), "Bucket recreated")
