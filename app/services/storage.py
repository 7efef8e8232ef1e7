"""Product image uploads and administration of the image bucket."""

import os
import uuid
from datetime import datetime

from flask import current_app

from app.errors import DomainError, ValidationError
from app.utils.s3_utils import (
    StorageError,
    bucket_is_accessible,
    create_bucket,
    empty_and_delete_bucket,
    list_bucket_names,
    upload_file_to_s3,
)


class StorageUnavailableError(DomainError):
    status_code = 502


def _bucket():
    bucket = current_app.config.get("S3_BUCKET_NAME")
    if not bucket:
        raise StorageUnavailableError("S3_BUCKET_NAME is not configured")
    return bucket


def _file_size(file):
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def validate_image(file):
    if not file or not file.filename:
        raise ValidationError("image_file is required")
    if not (file.mimetype or "").startswith("image/"):
        raise ValidationError("Only image files can be uploaded")

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    if _file_size(file) > max_bytes:
        raise ValidationError(
            f"Image is too large, the limit is {max_bytes // (1024 * 1024)}MB"
        )


def build_image_key(filename):
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "img"
    stamp = int(datetime.now().timestamp() * 1000)
    return f"productos/{stamp}-{uuid.uuid4().hex[:8]}.{ext}"


def ensure_bucket(bucket):
    if bucket not in list_bucket_names():
        current_app.logger.info(f"Bucket {bucket} not found, creating it")
        create_bucket(bucket)


def upload_product_image(file):
    validate_image(file)
    bucket = _bucket()
    file_path = build_image_key(file.filename)
    try:
        ensure_bucket(bucket)
        public_url = upload_file_to_s3(
            file.stream, file_path, bucket, content_type=file.mimetype
        )
    except StorageError as e:
        current_app.logger.error(f"Image upload failed: {e}")
        raise StorageUnavailableError(str(e))

    current_app.logger.info(f"Image uploaded to {bucket}/{file_path}")
    return {"file_path": file_path, "public_url": public_url}


def diagnose_storage():
    bucket = _bucket()
    try:
        buckets = list_bucket_names()
    except StorageError as e:
        return {
            "bucket": bucket,
            "bucket_exists": False,
            "accessible": False,
            "buckets": [],
            "error": str(e),
        }

    exists = bucket in buckets
    accessible, error = bucket_is_accessible(bucket) if exists else (False, None)
    return {
        "bucket": bucket,
        "bucket_exists": exists,
        "accessible": accessible,
        "buckets": buckets,
        "error": error,
    }


def init_storage():
    bucket = _bucket()
    try:
        if bucket in list_bucket_names():
            return {"bucket": bucket, "created": False}
        create_bucket(bucket)
    except StorageError as e:
        raise StorageUnavailableError(str(e))

    current_app.logger.info(f"Bucket {bucket} created")
    return {"bucket": bucket, "created": True}


def repair_storage():
    """Drop the bucket with everything in it and create it again."""
    bucket = _bucket()
    try:
        if bucket in list_bucket_names():
            empty_and_delete_bucket(bucket)
            current_app.logger.warning(f"Bucket {bucket} emptied and deleted")
        create_bucket(bucket)
    except StorageError as e:
        raise StorageUnavailableError(str(e))

    current_app.logger.info(f"Bucket {bucket} recreated")
    return {"bucket": bucket, "recreated": True}
