"""
S3 service for storing and serving video files.

Provides a lazy-initialized boto3 client for one bucket on any S3-compatible
store (AWS S3, Cloudflare R2, MinIO) and helpers for existence checks,
presigned upload/download URLs, direct uploads and deletes. The object key
of a video is its original file name.
"""

import logging
import os
from typing import BinaryIO, Dict, Optional, Union

from matchreel.services.exceptions import ConfigurationError, StorageError
from matchreel.utils.constants import DEFAULT_VIDEO_CONTENT_TYPE

logger = logging.getLogger(__name__)

DEFAULT_URL_EXPIRES_SECONDS = 3600

# Lazy-initialized S3 client
_s3_client = None


def _get_config() -> Dict[str, Optional[str]]:
    """Read S3 configuration from environment at call time (not import time)."""
    return {
        "access_key_id": os.getenv("AWS_ACCESS_KEY_ID"),
        "secret_access_key": os.getenv("AWS_SECRET_ACCESS_KEY"),
        "bucket": os.getenv("AWS_S3_BUCKET"),
        "region": os.getenv("AWS_S3_REGION", "auto"),
        "endpoint_url": os.getenv("AWS_S3_ENDPOINT_URL") or None,
    }


def _get_bucket() -> str:
    bucket = _get_config()["bucket"]
    if not bucket:
        raise ConfigurationError("AWS_S3_BUCKET is not configured.")
    return bucket


def _get_s3_client():
    """Get or create the boto3 S3 client. Lazy-imports boto3 to avoid import-time dependency."""
    global _s3_client
    if _s3_client is None:
        cfg = _get_config()
        if not all([cfg["access_key_id"], cfg["secret_access_key"], cfg["bucket"]]):
            raise ConfigurationError(
                "AWS S3 environment variables not configured. "
                "Set AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, and AWS_S3_BUCKET."
            )
        import boto3
        from botocore.config import Config

        _s3_client = boto3.client(
            "s3",
            aws_access_key_id=cfg["access_key_id"],
            aws_secret_access_key=cfg["secret_access_key"],
            region_name=cfg["region"],
            endpoint_url=cfg["endpoint_url"],
            config=Config(signature_version="s3v4"),
        )
    return _s3_client


def reset_client() -> None:
    """Forget the cached client (e.g. after rotating credentials)."""
    global _s3_client
    _s3_client = None


def video_exists(key: str) -> bool:
    """
    Check whether an object exists in the bucket.

    Any failure (missing object, permissions, network, configuration) is
    logged and reported as False, so "absent" and "could not verify" look
    the same to the caller.
    """
    try:
        client = _get_s3_client()
        client.head_object(Bucket=_get_bucket(), Key=key)
        return True
    except Exception as e:
        logger.warning(f"Could not confirm S3 object {key}: {e}")
        return False


def generate_download_url(key: str, expires_in: int = DEFAULT_URL_EXPIRES_SECONDS) -> str:
    """
    Generate a time-boxed presigned GET URL for an object.

    Args:
        key: Object key (the video file name)
        expires_in: URL lifetime in seconds

    Returns:
        Presigned URL string

    Raises:
        StorageError: If the URL cannot be generated
    """
    try:
        client = _get_s3_client()
        return client.generate_presigned_url(
            "get_object",
            Params={"Bucket": _get_bucket(), "Key": key},
            ExpiresIn=expires_in,
        )
    except Exception as e:
        logger.error(f"Error generating download URL for {key}: {e}")
        raise StorageError("Failed to generate download URL") from e


def generate_upload_url(
    key: str,
    content_type: Optional[str] = None,
    expires_in: int = DEFAULT_URL_EXPIRES_SECONDS,
) -> str:
    """
    Generate a time-boxed presigned PUT URL for an object.

    The client must send the same Content-Type header it declared here,
    since the signature covers it.

    Raises:
        StorageError: If the URL cannot be generated
    """
    try:
        client = _get_s3_client()
        return client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": _get_bucket(),
                "Key": key,
                "ContentType": content_type or DEFAULT_VIDEO_CONTENT_TYPE,
            },
            ExpiresIn=expires_in,
        )
    except Exception as e:
        logger.error(f"Error generating upload URL for {key}: {e}")
        raise StorageError("Failed to generate upload URL") from e


def upload_video(
    key: str,
    body: Union[bytes, BinaryIO],
    content_type: Optional[str] = None,
) -> None:
    """
    Upload a video through the server.

    Args:
        key: Object key (the video file name)
        body: Raw bytes or a readable binary file object
        content_type: MIME type for the stored object

    Raises:
        StorageError: If the upload fails
    """
    try:
        client = _get_s3_client()
        client.put_object(
            Bucket=_get_bucket(),
            Key=key,
            Body=body,
            ContentType=content_type or DEFAULT_VIDEO_CONTENT_TYPE,
        )
    except Exception as e:
        logger.error(f"Error uploading video {key}: {e}")
        raise StorageError("Failed to upload video file") from e
    logger.info(f"Uploaded video to S3: {key}")


def delete_video(key: str) -> None:
    """
    Delete a video object.

    Raises:
        StorageError: If the delete fails. Callers deleting a superseded file
            as a side effect catch this and only log it.
    """
    try:
        client = _get_s3_client()
        client.delete_object(Bucket=_get_bucket(), Key=key)
    except Exception as e:
        logger.error(f"Error deleting video {key}: {e}")
        raise StorageError("Failed to delete video file") from e
    logger.info(f"Deleted video from S3: {key}")
