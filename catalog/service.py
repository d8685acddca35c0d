import logging
import os
import uuid
from io import BytesIO
from urllib.parse import unquote, urlparse

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from decouple import config
from django.utils.text import slugify

from .errors import BlobStoreError, ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

# First non-empty wins
WRITE_TOKEN_VARIABLES = ("CIRCUS_READ_WRITE_TOKEN", "BLOB_READ_WRITE_TOKEN")

THUMBNAIL_CONTENT_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
)
THUMBNAIL_MAX_BYTES = 10 * 1024 * 1024  # 10 MiB


def _write_token() -> str:
    for variable in WRITE_TOKEN_VARIABLES:
        token = config(variable, default="")
        if token:
            return token
    raise ConfigurationError(
        "BLOB_READ_WRITE_TOKEN",
        detail="Missing Blob token - please configure BLOB_READ_WRITE_TOKEN environment variable",
    )


def _required(variable: str) -> str:
    value = config(variable, default="")
    if not value:
        raise ConfigurationError(variable)
    return value


def get_client():
    """Build an S3 client for the blob store from the current environment.

    Credentials are looked up on every call so a deployment can supply them
    per environment without a restart; a missing one raises
    ConfigurationError for the operation that needed it.
    """
    secret = _write_token()
    endpoint = _required("S3_CLIENT_ACCOUNT_ENDPOINT")
    access_key = _required("R2_ACCESS_KEY_ID")
    try:
        return boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )
    except ValueError as exc:
        # botocore rejects a malformed endpoint with a bare ValueError
        logger.error("Invalid blob store endpoint %r: %s", endpoint, exc)
        raise ConfigurationError(
            "S3_CLIENT_ACCOUNT_ENDPOINT",
            detail=f"Invalid S3_CLIENT_ACCOUNT_ENDPOINT: {exc}",
        ) from exc
    except BotoCoreError as exc:
        logger.error("Could not create the blob store client: %s", exc)
        raise BlobStoreError(f"Failed to create blob store client: {exc}") from exc


def make_key(suggested_name: str, folder: str | None = None) -> str:
    stem, ext = os.path.splitext(os.path.basename(suggested_name or ""))
    base = slugify(stem) or "upload"
    key = f"{base}-{uuid.uuid4().hex[:12]}{ext.lower()}"
    if folder:
        key = f"{folder.strip('/')}/{key}"
    return key


def public_url(key: str) -> str:
    return f"{_required('PUBLIC_URL').rstrip('/')}/{key}"


def key_from_url(url: str) -> str:
    base = config("PUBLIC_URL", default="").rstrip("/")
    if base and url.startswith(base + "/"):
        return unquote(url[len(base) + 1:])
    return unquote(urlparse(url).path.lstrip("/"))


def validate_thumbnail(content_type: str | None, size: int):
    if content_type not in THUMBNAIL_CONTENT_TYPES:
        raise ValidationError("Invalid file type. Only images (JPEG, PNG, WebP, GIF) are allowed.")
    if size > THUMBNAIL_MAX_BYTES:
        raise ValidationError("File too large. Maximum size is 10MB.")


def upload(file_bytes: bytes, suggested_name: str, content_type: str, folder: str | None = None) -> str:
    """Store ``file_bytes`` in the blob store and return its public URL."""
    client = get_client()
    bucket = _required("R2_BUCKET")
    key = make_key(suggested_name, folder)
    url = public_url(key)

    logger.debug("Target bucket: %s", bucket)
    logger.debug("Target key: %s (%s bytes, %s)", key, len(file_bytes), content_type)

    try:
        client.upload_fileobj(
            Fileobj=BytesIO(file_bytes),
            Bucket=bucket,
            Key=key,
            ExtraArgs={"ContentType": content_type or "application/octet-stream"},
        )
    except (BotoCoreError, ClientError) as exc:
        logger.error("Error uploading %s to the blob store: %s", key, exc)
        raise BlobStoreError(f"Failed to upload file: {exc}") from exc

    logger.info("Blob upload completed: %s", url)
    return url


def delete(url: str):
    """Remove the object behind a public blob URL."""
    client = get_client()
    bucket = _required("R2_BUCKET")
    key = key_from_url(url)

    try:
        client.delete_object(Bucket=bucket, Key=key)
    except (BotoCoreError, ClientError) as exc:
        logger.error("Error deleting %s from the blob store: %s", key, exc)
        raise BlobStoreError(f"Failed to delete blob: {exc}") from exc

    logger.info("Blob deleted: %s", key)
