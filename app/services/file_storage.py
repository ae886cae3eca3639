"""
R2 object storage for user files and message attachments

Objects are private. Only the object key is stored; read access is granted
through presigned URLs generated per response.
"""

import logging
import mimetypes
import uuid
from functools import lru_cache
from typing import Optional

import boto3
from botocore.config import Config

from ..config import (
    FILE_URL_EXPIRATION_SECONDS,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_SECRET_ACCESS_KEY,
)

logger = logging.getLogger(__name__)

# Inline disposition so images and PDFs open in the browser
INLINE_TYPES = ("image/png", "image/jpeg", "image/webp", "application/pdf")


def build_object_key(user_id: str, file_name: str, mime_type: str) -> str:
    """user-files/{userId}/{uuid}.{ext}; the original name is kept in the database only"""
    ext = ""
    if "." in file_name:
        ext = file_name.rsplit(".", 1)[-1].lower()
    if not ext or len(ext) > 5 or not ext.isalnum():
        guessed = mimetypes.guess_extension(mime_type) or ""
        ext = guessed.lstrip(".")
    suffix = f".{ext}" if ext else ""
    return f"user-files/{user_id}/{uuid.uuid4()}{suffix}"


class R2FileStorage:
    """File-object store: put an object, sign a short-lived read URL"""

    def __init__(self, bucket: str = R2_BUCKET_NAME):
        self.bucket = bucket
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
            logger.info(f"✅ Uploaded object to R2: {key} ({len(body)} bytes)")
        except Exception as e:
            logger.error(f"❌ Failed to upload object {key}: {e}")
            raise

    def generate_presigned_url(
        self,
        key: str,
        mime_type: Optional[str] = None,
        expiration: int = FILE_URL_EXPIRATION_SECONDS,
    ) -> str:
        """Generate a presigned URL for accessing a private object in R2."""
        params = {"Bucket": self.bucket, "Key": key}
        if mime_type in INLINE_TYPES:
            params["ResponseContentType"] = mime_type
            params["ResponseContentDisposition"] = "inline"

        try:
            return self.client.generate_presigned_url(
                "get_object", Params=params, ExpiresIn=expiration
            )
        except Exception as e:
            logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
            raise


@lru_cache
def get_file_storage() -> R2FileStorage:
    """Dependency for the shared storage client; overridden in tests"""
    return R2FileStorage()
