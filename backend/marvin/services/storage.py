"""Object storage for uploaded files (S3-compatible, e.g. Supabase Storage)."""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from marvin.config import Settings
from marvin.errors import UpstreamError

logger = logging.getLogger(__name__)


class StorageService:
    """Stores the original bytes of uploaded documents."""

    def __init__(self, s3_client, bucket: str):
        self.s3_client = s3_client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        """Build the boto3 client from storage settings."""
        client_kwargs = {
            "aws_access_key_id": settings.storage_access_key_id,
            "aws_secret_access_key": settings.storage_secret_access_key,
            "region_name": settings.storage_region,
        }
        # Supabase Storage exposes an S3 endpoint under <project>/storage/v1/s3
        if settings.storage_endpoint_url:
            client_kwargs["endpoint_url"] = settings.storage_endpoint_url

        return cls(boto3.client("s3", **client_kwargs), settings.storage_bucket)

    @staticmethod
    def build_key(user_id, document_id, filename: str) -> str:
        """Object key for a user's document."""
        return f"users/{user_id}/documents/{document_id}_{filename}"

    async def upload_file(self, file_key: str, file_data: bytes, content_type: str) -> None:
        """
        Upload a file (server-side upload).

        Raises:
            UpstreamError: If the storage call fails
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=file_key,
                Body=file_data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to upload %s to storage: %s", file_key, e)
            raise UpstreamError("Datei konnte nicht gespeichert werden") from e

    async def delete_file(self, file_key: str) -> None:
        """
        Delete a stored file.

        Raises:
            UpstreamError: If the storage call fails
        """
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=file_key)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to delete %s from storage: %s", file_key, e)
            raise UpstreamError("Datei konnte nicht gelöscht werden") from e
