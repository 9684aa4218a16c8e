"""
Blob storage client for generated illustrations (Appwrite-style REST API).
"""
import logging
import uuid
from typing import List, Optional

import httpx

from core.config import (
    STORAGE_ENDPOINT,
    STORAGE_PROJECT_ID,
    STORAGE_API_KEY,
    STORAGE_BUCKET_ID,
)

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Raised when an upload or delete fails."""
    pass


class BlobStorageClient:
    """Stores bytes under a file id and builds public view URLs."""

    def __init__(
        self,
        endpoint: str = STORAGE_ENDPOINT,
        project_id: str = STORAGE_PROJECT_ID,
        api_key: str = STORAGE_API_KEY,
        bucket_id: str = STORAGE_BUCKET_ID,
        timeout: float = 60.0,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.project_id = project_id
        self.bucket_id = bucket_id
        self.client = httpx.Client(
            timeout=timeout,
            headers={
                "X-Appwrite-Project": project_id,
                "X-Appwrite-Key": api_key,
            },
        )

    @staticmethod
    def new_file_id() -> str:
        """Fresh id per file; stored blobs are never overwritten."""
        return uuid.uuid4().hex[:20]

    def _files_url(self, file_id: Optional[str] = None) -> str:
        url = f"{self.endpoint}/storage/buckets/{self.bucket_id}/files"
        return f"{url}/{file_id}" if file_id else url

    def view_url(self, file_id: str) -> str:
        """Public URL for viewing a stored file."""
        return f"{self._files_url(file_id)}/view?project={self.project_id}"

    def put(
        self,
        file_id: str,
        data: bytes,
        filename: str,
        media_type: str = "image/png",
        permissions: Optional[List[str]] = None,
    ) -> str:
        """
        Upload bytes under ``file_id`` with the given ACL.

        Returns:
            Public view URL of the stored file
        """
        form = {"fileId": file_id, "permissions[]": list(permissions or [])}

        try:
            response = self.client.post(
                self._files_url(),
                data=form,
                files={"file": (filename, data, media_type)},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlobStorageError(f"Upload of {file_id} failed: {e}") from e

        return self.view_url(file_id)

    def delete(self, file_id: str) -> None:
        """Delete a stored file."""
        try:
            response = self.client.delete(self._files_url(file_id))
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise BlobStorageError(f"Delete of {file_id} failed: {e}") from e


# Global blob storage instance
blob_storage = BlobStorageClient()
