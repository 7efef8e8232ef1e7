import boto3
import os
from botocore.exceptions import ClientError, NoCredentialsError
from flask import current_app
from urllib.parse import urlparse

from app.constants import PLACEHOLDER_IMAGE_MARKERS


class StorageError(Exception):
    """Raised when the image bucket cannot be reached or changed."""


def get_s3_client():
    return boto3.client(
        "s3",
        aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        region_name=os.getenv("AWS_REGION"),
    )


def get_public_url(file_path, bucket_name):
    """Public URL of an object.

    ``S3_BASE_URL`` points at the bucket root (virtual-host or CDN style) and
    the key is appended to it. Without it a path-style AWS URL is built.
    """
    base_url = current_app.config.get("S3_BASE_URL")
    if base_url:
        return f"{base_url.rstrip('/')}/{file_path}"
    region = current_app.config.get("S3_REGION") or "us-east-1"
    return f"https://s3.{region}.amazonaws.com/{bucket_name}/{file_path}"


def upload_file_to_s3(file, filename, bucket_name, content_type=None):
    s3 = get_s3_client()
    extra_args = {"ACL": "public-read", "CacheControl": "max-age=3600"}
    if content_type:
        extra_args["ContentType"] = content_type
    try:
        s3.upload_fileobj(file, bucket_name, filename, ExtraArgs=extra_args)
        return get_public_url(filename, bucket_name)

    except NoCredentialsError:
        raise StorageError("AWS credentials not found. Check environment variables.")
    except ClientError as e:
        raise StorageError(f"Failed to upload {filename}: {e}")


def is_placeholder_url(image_url):
    if not image_url:
        return True
    return any(marker in image_url for marker in PLACEHOLDER_IMAGE_MARKERS)


def key_from_url(image_url, bucket_name, base_url=None):
    """Object key for a public URL; ``None`` when the URL is not in the bucket."""
    if base_url:
        prefix = f"{base_url.rstrip('/')}/"
        if image_url.startswith(prefix):
            return image_url[len(prefix):] or None
    path = urlparse(image_url).path.lstrip("/")
    marker = f"{bucket_name}/"
    if marker in path:
        return path.split(marker, 1)[1]
    return None


def delete_file_from_s3(image_url, bucket_name):
    """Best-effort removal of a stored image. Returns True when an object was deleted."""
    if is_placeholder_url(image_url):
        return False

    key = key_from_url(image_url, bucket_name, current_app.config.get("S3_BASE_URL"))
    if not key:
        current_app.logger.warning(f"Image URL is not in bucket {bucket_name}: {image_url}")
        return False

    try:
        get_s3_client().delete_object(Bucket=bucket_name, Key=key)
        return True

    except (ClientError, NoCredentialsError) as e:
        current_app.logger.error(f"Error deleting file from S3: {e}")
        return False


def list_bucket_names():
    try:
        response = get_s3_client().list_buckets()
    except (ClientError, NoCredentialsError) as e:
        raise StorageError(f"Failed to list buckets: {e}")
    return [bucket["Name"] for bucket in response.get("Buckets", [])]


def bucket_is_accessible(bucket_name):
    try:
        get_s3_client().list_objects_v2(Bucket=bucket_name, MaxKeys=1)
        return True, None
    except (ClientError, NoCredentialsError) as e:
        return False, str(e)


def create_bucket(bucket_name):
    s3 = get_s3_client()
    region = os.getenv("AWS_REGION")
    kwargs = {"Bucket": bucket_name, "ACL": "public-read"}
    # us-east-1 rejects an explicit location constraint
    if region and region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
    try:
        s3.create_bucket(**kwargs)
    except (ClientError, NoCredentialsError) as e:
        raise StorageError(f"Failed to create bucket {bucket_name}: {e}")


def empty_and_delete_bucket(bucket_name):
    s3 = get_s3_client()
    try:
        paginator = s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket_name):
            keys = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
            if keys:
                s3.delete_objects(Bucket=bucket_name, Delete={"Objects": keys})
        s3.delete_bucket(Bucket=bucket_name)
    except (ClientError, NoCredentialsError) as e:
        raise StorageError(f"Failed to delete bucket {bucket_name}: {e}")
