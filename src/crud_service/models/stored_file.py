"""Stored file model returned by object store adapters."""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass
class StoredFile:
    """An object read back from the object store."""

    key: str
    body: bytes
    content_type: str
    metadata: Dict[str, str] = field(default_factory=dict)
    last_modified: datetime | None = None
    size: int = 0

    def to_response(self) -> Dict[str, Any]:
        """JSON-safe view with the body base64 encoded."""
        return {
            "key": self.key,
            "content": base64.b64encode(self.body).decode('ascii'),
            "contentType": self.content_type,
            "metadata": self.metadata,
            "lastModified": self.last_modified.isoformat() if self.last_modified else None,
            "size": self.size,
        }
