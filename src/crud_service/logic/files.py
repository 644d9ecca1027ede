"""
Business logic for user files.

Every key is namespaced under ``uploads/{userId}/``; that prefix is the only
ownership information a file has.
"""

import base64
import binascii
import os
import re
import time
from typing import Any, Dict, Optional

from crud_service.dal.object_store import DEFAULT_CONTENT_TYPE, BaseObjectStore
from crud_service.handlers.utils.errors import AuthorizationError, NotFoundError, ValidationError
from crud_service.handlers.utils.observability import count, logger, tracer
from crud_service.models.common import utc_now_iso
from crud_service.models.input import FileUploadRequest, UploadUrlRequest
from crud_service.security import CallerIdentity

UPLOAD_PREFIX = 'uploads/'
MAX_BASENAME_LENGTH = 50
DEFAULT_MAX_KEYS = 100
MAX_KEYS_LIMIT = 1000

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_-]')


def user_prefix(user_id: str) -> str:
    return f"{UPLOAD_PREFIX}{user_id}/"


def generate_file_key(user_id: str, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build ``uploads/{userId}/{epochMillis}-{basename}{ext}``.

    The basename has every character outside ``[A-Za-z0-9_-]`` replaced with
    ``-`` and is cut to 50 characters; the extension is kept as given.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    stem, extension = os.path.splitext(os.path.basename(file_name))
    safe_stem = _UNSAFE_CHARS.sub('-', stem)[:MAX_BASENAME_LENGTH]
    return f"{user_prefix(user_id)}{timestamp_ms}-{safe_stem}{extension}"


def parse_max_keys(raw: Optional[str]) -> int:
    try:
        value = int(raw) if raw else DEFAULT_MAX_KEYS
    except ValueError:
        value = DEFAULT_MAX_KEYS
    if value <= 0:
        value = DEFAULT_MAX_KEYS
    return min(value, MAX_KEYS_LIMIT)


class FileService:
    """Business logic service for file storage."""

    def __init__(self, object_store: BaseObjectStore):
        self.object_store = object_store

    @tracer.capture_method
    def upload_file(self, caller: CallerIdentity, request: FileUploadRequest) -> Dict[str, Any]:
        try:
            body = base64.b64decode(request.fileContent, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(message='fileContent: must be base64 encoded') from e

        key = generate_file_key(caller.user_id, request.fileName)
        content_type = request.contentType or DEFAULT_CONTENT_TYPE
        metadata = {
            **request.metadata,
            'uploadedBy': caller.user_id,
            'uploadedAt': utc_now_iso(),
            'originalName': request.fileName,
        }

        result = self.object_store.upload_file(key, body, content_type, metadata)
        count("FilesUploaded")
        logger.info("File uploaded", extra={"key": key, "size": len(body), "user_id": caller.user_id})

        return {
            "message": "File uploaded successfully",
            "file": {
                "key": key,
                "originalName": request.fileName,
                "location": result['location'],
                "contentType": content_type,
                "size": len(body),
                "uploadedBy": caller.user_id,
                "uploadedAt": metadata['uploadedAt'],
            },
        }

    @tracer.capture_method
    def get_file(self, key: str) -> Dict[str, Any]:
        return self.object_store.get_file(key).to_response()

    @tracer.capture_method
    def list_files(self, caller: CallerIdentity, prefix: str = '', max_keys: int = DEFAULT_MAX_KEYS,
                   user_only: bool = False) -> Dict[str, Any]:
        search_prefix = user_prefix(caller.user_id) if user_only else prefix
        files = self.object_store.list_files(search_prefix, max_keys)
        return {"files": files, "count": len(files), "prefix": search_prefix}

    @tracer.capture_method
    def delete_file(self, caller: CallerIdentity, key: str) -> Dict[str, Any]:
        """
        Delete one of the caller's own files.

        Raises:
            AuthorizationError: If the key is outside the caller's namespace
            NotFoundError: If no object exists under the key
        """
        if not key.startswith(user_prefix(caller.user_id)):
            raise AuthorizationError('You can only delete your own files')

        if not self.object_store.delete_file(key):
            raise NotFoundError(message='File not found', resource_type='File', resource_id=key)

        logger.info("File deleted", extra={"key": key, "user_id": caller.user_id})
        return {"message": "File deleted successfully", "key": key}

    @tracer.capture_method
    def create_upload_url(self, caller: CallerIdentity, request: UploadUrlRequest) -> Dict[str, Any]:
        key = generate_file_key(caller.user_id, request.fileName)
        content_type = request.contentType or DEFAULT_CONTENT_TYPE
        upload_url = self.object_store.generate_upload_url(key, content_type, request.expiresIn)
        return {
            "uploadUrl": upload_url,
            "key": key,
            "expiresIn": request.expiresIn,
            "fileName": request.fileName,
            "contentType": content_type,
        }
