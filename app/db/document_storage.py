"""Supabase Storage access for attached PDFs."""

import asyncio
from typing import Optional

from supabase import Client

from app.core.logging import get_logger

logger = get_logger(__name__)


class DocumentStorage:
    """Downloads document bytes from a storage bucket."""

    def __init__(self, client: Client, bucket: str):
        self._client = client
        self.bucket = bucket

    def _download(self, storage_path: str) -> bytes:
        return self._client.storage.from_(self.bucket).download(storage_path)

    async def download(self, storage_path: str) -> Optional[bytes]:
        """
        Fetch the raw bytes stored at ``storage_path``.

        Returns:
            File bytes, or None when the object is missing or the download fails
        """
        try:
            data = await asyncio.to_thread(self._download, storage_path)
        except Exception as e:
            logger.warning(f"Failed to download {self.bucket}/{storage_path}: {e}")
            return None

        if not data:
            logger.warning(f"Empty download for {self.bucket}/{storage_path}")
            return None
        return data
