# app/core/s3.py
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.config import Settings
from core.errors import ProviderError


def s3_client(settings: Settings):
    # Supabase Storage speaks S3 at <project>/storage/v1/s3 (path-style only)
    cfg = Config(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
        connect_timeout=settings.PROVIDER_TIMEOUT_S,
        read_timeout=settings.PROVIDER_TIMEOUT_S,
        retries={"max_attempts": 1},
    )
    return boto3.client(
        service_name="s3",
        endpoint_url=settings.storage_endpoint,
        config=cfg,
        aws_access_key_id=settings.STORAGE_ACCESS_KEY,
        aws_secret_access_key=settings.STORAGE_SECRET_KEY,
        region_name=settings.STORAGE_REGION or "us-east-1",
    )


class ObjectStorage:
    """Uploads objects to the public bucket and builds their public URLs."""

    def __init__(self, client, bucket: str, public_base: str):
        self._client = client
        self.bucket = bucket
        self.public_base = public_base.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        public_base = f"{settings.SUPABASE_URL.rstrip('/')}/storage/v1/object/public"
        return cls(s3_client(settings), settings.STORAGE_BUCKET, public_base)

    def upload(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError("storage", str(exc)) from exc

    def public_url(self, key: str) -> str:
        return f"{self.public_base}/{quote(self.bucket)}/{quote(key)}"
