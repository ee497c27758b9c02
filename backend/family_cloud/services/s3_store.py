"""S3 bucket access via aiobotocore: paginated listings and presigned URLs."""

from __future__ import annotations

import logging
from typing import Any, Optional

from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from family_cloud.schemas.auth import AwsCredentials
from family_cloud.services.listing import ListingError, ListPage, ObjectEntry, StorageError

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """Lists and presigns objects of one bucket.

    Without explicit credentials the default AWS credential chain is used;
    :meth:`with_credentials` returns a store bound to a caller's temporary
    Cognito identity-pool credentials.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        endpoint_url: Optional[str] = None,
        presign_expire_seconds: int = 900,
        credentials: Optional[AwsCredentials] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.presign_expire_seconds = presign_expire_seconds
        self._credentials = credentials

    def with_credentials(self, credentials: AwsCredentials) -> "S3ObjectStore":
        return S3ObjectStore(
            bucket=self.bucket,
            region=self.region,
            endpoint_url=self.endpoint_url,
            presign_expire_seconds=self.presign_expire_seconds,
            credentials=credentials,
        )

    def _create_client(self):
        kwargs: dict[str, Any] = {}
        if self._credentials is not None:
            kwargs.update(
                aws_access_key_id=self._credentials.access_key_id,
                aws_secret_access_key=self._credentials.secret_access_key,
                aws_session_token=self._credentials.session_token,
            )
        session = get_session()
        return session.create_client(
            "s3",
            region_name=self.region,
            endpoint_url=self.endpoint_url,
            config=Config(signature_version="s3v4"),
            **kwargs,
        )

    async def list_page(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """Fetch a single ``list_objects_v2`` page."""
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if delimiter:
            params["Delimiter"] = delimiter
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            async with self._create_client() as client:
                res = await client.list_objects_v2(**params)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            logger.warning("Listing s3://%s/%s failed: %s", self.bucket, prefix, code)
            raise ListingError(code, str(exc)) from exc
        except BotoCoreError as exc:
            logger.warning("Listing s3://%s/%s failed: %s", self.bucket, prefix, exc)
            raise ListingError("ConnectionError", str(exc)) from exc

        return ListPage(
            items=[
                ObjectEntry(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    last_modified=obj["LastModified"],
                )
                for obj in res.get("Contents", [])
                if obj.get("Key")
            ],
            common_prefixes=[
                p["Prefix"] for p in res.get("CommonPrefixes", []) if p.get("Prefix")
            ],
            is_truncated=res.get("IsTruncated", False),
            next_continuation_token=res.get("NextContinuationToken"),
        )

    async def _presign(self, operation: str, key: str) -> str:
        try:
            async with self._create_client() as client:
                return await client.generate_presigned_url(
                    operation,
                    Params={"Bucket": self.bucket, "Key": key},
                    ExpiresIn=self.presign_expire_seconds,
                )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Presigning %s for %s failed: %s", operation, key, exc)
            raise StorageError("PresignFailed", str(exc)) from exc

    async def presign_upload(self, key: str) -> str:
        return await self._presign("put_object", key)

    async def presign_download(self, key: str) -> str:
        return await self._presign("get_object", key)
