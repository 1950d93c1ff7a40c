"""
Proof image storage with provider abstraction.

Production stores objects in an S3-compatible bucket through aioboto3 and
serves them from a public base URL; tests swap in their own provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache

import structlog

from tuitionhub.config import get_settings

logger = structlog.get_logger()


class ProofStorageError(RuntimeError):
    """Raised when the object store rejects or fails an upload."""


def proof_object_key(user_id: int, payment_id: int, filename: str | None) -> str:
    """Object key for a payment proof: ``{user_id}/{payment_id}/proof.{ext}``."""
    ext = "jpg"
    if filename and "." in filename:
        candidate = filename.rsplit(".", 1)[1].lower()
        if candidate.isalnum() and len(candidate) <= 5:
            ext = candidate
    return f"{user_id}/{payment_id}/proof.{ext}"


class BaseProofStorage(ABC):
    """Abstract base class for proof storage backends."""

    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str) -> None:
        """Store an object. Raises ProofStorageError on failure."""
        ...

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Publicly resolvable URL of a stored object."""
        ...


class S3ProofStorage(BaseProofStorage):
    """Store proofs in an S3-compatible bucket (AWS S3, MinIO, Supabase Storage)."""

    def __init__(
        self,
        bucket: str,
        region: str,
        public_base_url: str,
        endpoint_url: str | None = None,
        cache_control: str = "max-age=3600",
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.public_base_url = public_base_url.rstrip("/")
        self.endpoint_url = endpoint_url
        self.cache_control = cache_control

    async def upload(self, key: str, data: bytes, content_type: str) -> None:
        """Upload via aioboto3. Existing objects are never overwritten."""
        import aioboto3
        from botocore.exceptions import BotoCoreError, ClientError

        session = aioboto3.Session()
        try:
            async with session.client("s3", region_name=self.region, endpoint_url=self.endpoint_url) as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    CacheControl=self.cache_control,
                    IfNoneMatch="*",
                )
        except (BotoCoreError, ClientError) as e:
            logger.exception("proof_upload_failed", bucket=self.bucket, key=key)
            msg = f"Proof upload failed: {e}"
            raise ProofStorageError(msg) from e
        logger.info("proof_uploaded", bucket=self.bucket, key=key, size=len(data))

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"


@lru_cache
def get_proof_storage() -> BaseProofStorage:
    """Get the configured proof storage (FastAPI dependency)."""
    settings = get_settings()
    return S3ProofStorage(
        bucket=settings.storage_bucket,
        region=settings.storage_region,
        public_base_url=settings.storage_public_base_url,
        endpoint_url=settings.storage_endpoint_url,
        cache_control=settings.storage_cache_control,
    )
