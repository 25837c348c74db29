"""boto3-backed object store client for s3pathio.

Talks to AWS S3 or any S3-compatible service (MinIO, moto, R2, ...).
Credentials are resolved via the standard AWS credential chain
(env vars, ~/.aws/credentials, IAM role, etc.) unless explicit keys are
configured.
"""

import logging
from typing import Any, Sequence

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from s3pathio.client import CompletedPart, ListingPage, ObjectHead
from s3pathio.config import ClientSettings
from s3pathio.errors import NotFound, client_error_code

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


class Boto3ObjectStoreClient:
    """Object store client that proxies every call to a boto3 S3 client.

    Attributes:
        settings: The client settings the boto3 client was built from.
    """

    def __init__(self, settings: ClientSettings | None = None, client: Any = None) -> None:
        """Initialize the client.

        Args:
            settings: Connection settings. Defaults to ``ClientSettings()``.
            client: A pre-built boto3 S3 client; built from settings when omitted.
        """
        self.settings = settings or ClientSettings()
        self._client = client if client is not None else self._build_client(self.settings)

    @staticmethod
    def _build_client(settings: ClientSettings) -> Any:
        """Create a boto3 S3 client from settings."""
        client_kwargs: dict[str, Any] = {"region_name": settings.region}
        if settings.endpoint_url:
            client_kwargs["endpoint_url"] = settings.endpoint_url

        # Use explicit credentials if provided, otherwise fall back to chain
        if settings.access_key_id and settings.secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.access_key_id
            client_kwargs["aws_secret_access_key"] = settings.secret_access_key

        client_kwargs["config"] = BotoConfig(
            s3={"addressing_style": settings.addressing_style},
            max_pool_connections=settings.max_pool_connections,
        )

        logger.info(
            "boto3 object store client created: region=%s endpoint='%s'",
            settings.region,
            settings.endpoint_url,
        )
        return boto3.client("s3", **client_kwargs)

    def head_object(self, bucket: str, key: str) -> ObjectHead:
        """Fetch object metadata.

        Raises:
            NotFound: If the object does not exist.
        """
        try:
            resp = self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if client_error_code(e) in _NOT_FOUND_CODES:
                raise NotFound(bucket, key) from e
            raise

        return ObjectHead(
            size=int(resp.get("ContentLength", 0)),
            etag=resp.get("ETag"),
            content_type=resp.get("ContentType"),
        )

    def get_object(
        self, bucket: str, key: str, byte_range: tuple[int, int] | None = None
    ) -> bytes:
        """Download an object, or an inclusive byte range of it.

        Raises:
            NotFound: If the object does not exist.
        """
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if byte_range is not None:
            start, end = byte_range
            kwargs["Range"] = f"bytes={start}-{end}"

        try:
            resp = self._client.get_object(**kwargs)
        except ClientError as e:
            if client_error_code(e) in _NOT_FOUND_CODES:
                raise NotFound(bucket, key) from e
            raise

        body = resp["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def put_object(self, bucket: str, key: str, data: bytes) -> str:
        resp = self._client.put_object(Bucket=bucket, Key=key, Body=data)
        return resp.get("ETag", "")

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object.

        Idempotent: S3 delete_object does not error on missing keys.
        """
        self._client.delete_object(Bucket=bucket, Key=key)

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        resp = self._client.create_multipart_upload(Bucket=bucket, Key=key)
        return resp["UploadId"]

    def upload_part(
        self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        resp = self._client.upload_part(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=data,
            ContentLength=len(data),
        )
        return resp["ETag"]

    def complete_multipart_upload(
        self, bucket: str, key: str, upload_id: str, parts: Sequence[CompletedPart]
    ) -> str:
        """Complete a multipart upload.

        The parts manifest is sent in the order given; callers are
        responsible for ascending part numbers.
        """
        manifest = [{"ETag": part.etag, "PartNumber": part.part_number} for part in parts]
        resp = self._client.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={"Parts": manifest},
        )
        return resp.get("ETag", "")

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        self._client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> str:
        """Copy an object using S3 server-side copy.

        Returns:
            The ETag of the copied object.

        Raises:
            NotFound: If the source object does not exist.
        """
        try:
            resp = self._client.copy_object(
                Bucket=dst_bucket,
                Key=dst_key,
                CopySource={"Bucket": src_bucket, "Key": src_key},
            )
        except ClientError as e:
            if client_error_code(e) in _NOT_FOUND_CODES:
                raise NotFound(src_bucket, src_key) from e
            raise
        return resp.get("CopyObjectResult", {}).get("ETag", "")

    def list_objects_v2(
        self,
        bucket: str,
        prefix: str = "",
        delimiter: str = "",
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListingPage:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": max_keys}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token

        resp = self._client.list_objects_v2(**kwargs)

        return ListingPage(
            common_prefixes=[cp["Prefix"] for cp in resp.get("CommonPrefixes", [])],
            keys=[obj["Key"] for obj in resp.get("Contents", [])],
            continuation_token=resp.get("NextContinuationToken") or None,
        )
