"""
Object store interface with in-memory and S3 implementations.

Keys are opaque to the store; the ``uploads/{userId}/`` ownership convention
lives in the file service.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from crud_service.handlers.utils.errors import NotFoundError, UpstreamError
from crud_service.handlers.utils.observability import count, logger, tracer
from crud_service.models.stored_file import StoredFile

DEFAULT_CONTENT_TYPE = 'application/octet-stream'
MOCK_URL_BASE = 'http://localhost:3000/mock-s3/'
NOT_FOUND_CODES = frozenset({'NoSuchKey', '404', 'NotFound'})


class BaseObjectStore(ABC):
    """Abstract base class for object store implementations."""

    @abstractmethod
    def upload_file(self, key: str, body: bytes, content_type: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        """Store an object and return ``{key, location, etag}``."""

    @abstractmethod
    def get_file(self, key: str) -> StoredFile:
        """Read an object. Raises NotFoundError when absent."""

    @abstractmethod
    def delete_file(self, key: str) -> bool:
        """Delete an object; returns whether it existed."""

    @abstractmethod
    def list_files(self, prefix: str = '', max_keys: int = 100) -> List[Dict[str, Any]]:
        """List up to ``max_keys`` objects under ``prefix``."""

    @abstractmethod
    def generate_presigned_url(self, key: str, operation: str = 'get_object', expires_in: int = 3600) -> str:
        """Presigned URL for ``get_object`` or ``put_object``."""

    @abstractmethod
    def generate_upload_url(self, key: str, content_type: str, expires_in: int = 3600) -> str:
        """Presigned PUT URL bound to a content type."""

    @abstractmethod
    def health_check(self) -> Dict[str, str]:
        """Report backend reachability."""


class InMemoryObjectStore(BaseObjectStore):
    """Process-local object store used in offline mode and tests."""

    def __init__(self) -> None:
        self._objects: Dict[str, StoredFile] = {}

    def upload_file(self, key: str, body: bytes, content_type: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        self._objects[key] = StoredFile(
            key=key,
            body=body,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            metadata=dict(metadata),
            last_modified=datetime.now(timezone.utc),
            size=len(body),
        )
        count("ObjectStoreUpload")
        return {"key": key, "location": MOCK_URL_BASE + quote(key), "etag": f"mock-{len(body)}"}

    def get_file(self, key: str) -> StoredFile:
        stored = self._objects.get(key)
        if stored is None:
            raise NotFoundError(message='File not found', resource_type='file', resource_id=key)
        return stored

    def delete_file(self, key: str) -> bool:
        return self._objects.pop(key, None) is not None

    def list_files(self, prefix: str = '', max_keys: int = 100) -> List[Dict[str, Any]]:
        keys = sorted(key for key in self._objects if key.startswith(prefix))[:max_keys]
        return [
            {
                "key": key,
                "size": self._objects[key].size,
                "lastModified": self._objects[key].last_modified.isoformat(),
            }
            for key in keys
        ]

    def generate_presigned_url(self, key: str, operation: str = 'get_object', expires_in: int = 3600) -> str:
        return f"{MOCK_URL_BASE}{quote(key)}?operation={operation}&expires={expires_in}"

    def generate_upload_url(self, key: str, content_type: str, expires_in: int = 3600) -> str:
        return f"{MOCK_URL_BASE}{quote(key)}?operation=put_object&contentType={quote(content_type)}&expires={expires_in}"

    def health_check(self) -> Dict[str, str]:
        return {"status": "healthy", "backend": "memory"}


class S3ObjectStore(BaseObjectStore):
    """Object store backed by a single S3 bucket."""

    def __init__(self, bucket_name: str, region_name: Optional[str] = None, endpoint_url: Optional[str] = None):
        self.bucket_name = bucket_name

        # presigned URLs must be SigV4
        s3_config: Dict[str, Any] = {'signature_version': 's3v4'}
        client_kwargs: Dict[str, Any] = {}
        if region_name:
            client_kwargs['region_name'] = region_name
        if endpoint_url:
            # local S3 emulators only understand path-style addressing
            client_kwargs['endpoint_url'] = endpoint_url
            s3_config['s3'] = {'addressing_style': 'path'}
        self.s3 = boto3.client('s3', config=Config(**s3_config), **client_kwargs)

        logger.info("S3 object store initialized", extra={"bucket_name": bucket_name, "endpoint_url": endpoint_url})

    def _upstream(self, operation: str, key: Optional[str], error: Exception) -> UpstreamError:
        count(f"S3{operation}Error")
        logger.error(f"S3 {operation} error", extra={"bucket_name": self.bucket_name, "key": key, "error": str(error)})
        return UpstreamError(message=f"S3 {operation} failed", service_name="S3")

    @tracer.capture_method
    def upload_file(self, key: str, body: bytes, content_type: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
                Metadata=metadata,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._upstream('PutObject', key, e) from e

        count("ObjectStoreUpload")
        logger.info("File uploaded", extra={"bucket_name": self.bucket_name, "key": key, "size": len(body)})
        return {
            "key": key,
            "location": f"s3://{self.bucket_name}/{key}",
            "etag": response.get('ETag', '').strip('"'),
        }

    @tracer.capture_method
    def get_file(self, key: str) -> StoredFile:
        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response['Error']['Code'] in NOT_FOUND_CODES:
                raise NotFoundError(message='File not found', resource_type='file', resource_id=key) from e
            raise self._upstream('GetObject', key, e) from e
        except BotoCoreError as e:
            raise self._upstream('GetObject', key, e) from e

        body = response['Body'].read()
        return StoredFile(
            key=key,
            body=body,
            content_type=response.get('ContentType', DEFAULT_CONTENT_TYPE),
            metadata=response.get('Metadata', {}),
            last_modified=response.get('LastModified'),
            size=response.get('ContentLength', len(body)),
        )

    @tracer.capture_method
    def delete_file(self, key: str) -> bool:
        # S3 deletes are idempotent, so existence has to be probed first
        try:
            self.s3.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response['Error']['Code'] in NOT_FOUND_CODES:
                return False
            raise self._upstream('HeadObject', key, e) from e
        except BotoCoreError as e:
            raise self._upstream('HeadObject', key, e) from e

        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._upstream('DeleteObject', key, e) from e
        return True

    @tracer.capture_method
    def list_files(self, prefix: str = '', max_keys: int = 100) -> List[Dict[str, Any]]:
        try:
            response = self.s3.list_objects_v2(Bucket=self.bucket_name, Prefix=prefix, MaxKeys=max_keys)
        except (ClientError, BotoCoreError) as e:
            raise self._upstream('ListObjects', prefix, e) from e

        return [
            {
                "key": obj['Key'],
                "size": obj['Size'],
                "lastModified": obj['LastModified'].isoformat(),
            }
            for obj in response.get('Contents', [])
        ]

    def generate_presigned_url(self, key: str, operation: str = 'get_object', expires_in: int = 3600) -> str:
        try:
            return self.s3.generate_presigned_url(
                ClientMethod=operation,
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._upstream('Presign', key, e) from e

    def generate_upload_url(self, key: str, content_type: str, expires_in: int = 3600) -> str:
        try:
            return self.s3.generate_presigned_url(
                ClientMethod='put_object',
                Params={'Bucket': self.bucket_name, 'Key': key, 'ContentType': content_type},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._upstream('Presign', key, e) from e

    def health_check(self) -> Dict[str, str]:
        try:
            self.s3.head_bucket(Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            logger.warning("S3 health check failed", extra={"bucket_name": self.bucket_name, "error": str(e)})
            return {"status": "unhealthy", "backend": "s3", "error": str(e)}
        return {"status": "healthy", "backend": "s3"}
