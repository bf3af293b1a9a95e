"""S3-compatible object storage backend."""

import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from callstore.exceptions import BackendError, ConfigError
from callstore.observability import emit_metric, get_logger

T = TypeVar("T")

logger = get_logger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}
BUCKET_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}

# S3 never returns more than this many keys per request
MAX_KEYS_PER_REQUEST = 1000


def _error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


class S3ObjectStore:
    """Object store on any S3-compatible API (AWS S3, MinIO, R2, ...).

    boto3 is blocking, so every request runs on a private thread pool.
    Cancelling an operation stops waiting for the request but cannot abort
    one that is already in flight.
    """

    def __init__(
        self,
        bucket: str | None = None,
        endpoint: str | None = None,
        region: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        use_ssl: bool = True,
        max_workers: int = 16,
        client: Any = None,
        **kwargs: Any,
    ) -> None:
        """Initialize S3 object store.

        Args:
            bucket: Bucket name
            endpoint: Endpoint URL, None for AWS
            region: Bucket region
            access_key: Access key id, None to use the default credential chain
            secret_key: Secret access key
            use_ssl: Whether to use TLS
            max_workers: Size of the request thread pool
            client: Preconfigured boto3 S3 client, mostly for tests
            **kwargs: Ignored
        """
        if not bucket:
            raise ConfigError("S3ObjectStore requires a bucket. Use the 'memory' backend for development.")

        self.bucket = bucket
        self.region = region
        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                use_ssl=use_ssl,
                config=BotoConfig(s3={"addressing_style": "path"}),
            )
        self._client = client
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    async def _run(self, fn: Callable[..., T], **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, **kwargs))

    async def open(self) -> None:
        """Ensure the bucket exists, creating it if it does not."""
        logger.info(
            "Checking / creating s3 bucket",
            context={"bucket": self.bucket, "region": self.region},
        )
        params: dict[str, Any] = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}

        try:
            await self._run(self._client.create_bucket, **params)
        except ClientError as e:
            if _error_code(e) in BUCKET_EXISTS_CODES:
                return
            raise BackendError(f"failed to create bucket {self.bucket}: {e}") from e
        except BotoCoreError as e:
            raise BackendError(f"unexpected error creating bucket {self.bucket}: {e}") from e

    async def close(self) -> None:
        """Release the request thread pool."""
        self._executor.shutdown(wait=False)

    async def put(self, key: str, value: bytes, content_type: str | None = None) -> None:
        """Store an object."""
        try:
            await self._run(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=value,
                ContentType=content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            raise BackendError(f"failed to write {key}: {e}") from e

        emit_metric("callstore_upload_size", float(len(value)))

    async def get(self, key: str) -> bytes | None:
        """Get an object's content."""

        def _read() -> bytes:
            resp = self._client.get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()

        try:
            content = await self._run(_read)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise BackendError(f"failed to read {key}: {e}") from e
        except BotoCoreError as e:
            raise BackendError(f"failed to read {key}: {e}") from e

        emit_metric("callstore_download_size", float(len(content)))
        return content

    async def list(
        self,
        prefix: str,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """List keys with a prefix, ascending, strictly after ``start_after``.

        Follows continuation tokens until ``limit`` keys are collected, and
        trims the result in case the server ignores MaxKeys.
        """
        keys: list[str] = []
        params: dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        if start_after:
            params["StartAfter"] = start_after

        while True:
            wanted = MAX_KEYS_PER_REQUEST if limit is None else limit - len(keys)
            params["MaxKeys"] = min(wanted, MAX_KEYS_PER_REQUEST)
            try:
                resp = await self._run(self._client.list_objects_v2, **params)
            except (ClientError, BotoCoreError) as e:
                raise BackendError(f"failed to list {prefix}: {e}") from e

            keys.extend(obj["Key"] for obj in resp.get("Contents", []))
            if limit is not None and len(keys) >= limit:
                return keys[:limit]
            if not resp.get("IsTruncated") or not resp.get("NextContinuationToken"):
                return keys
            params["ContinuationToken"] = resp["NextContinuationToken"]
