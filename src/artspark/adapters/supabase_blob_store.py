"""Supabase Storage adapter for photo files."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from artspark.services.uploads import BlobStore, ImagePayload


@dataclass
class SupabaseBlobStore(BlobStore):
    """Blob store backed by a public Supabase Storage bucket."""

    client: Client
    supabase_url: str
    bucket: str = "photos"

    @property
    def public_prefix(self) -> str:
        """Return the URL prefix shared by every public object in the bucket."""
        base = self.supabase_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{self.bucket}/"

    async def upload(self, path: str, payload: ImagePayload) -> str:
        """Upload bytes off the event loop and return the object path."""
        bucket = self.client.storage.from_(self.bucket)
        await asyncio.to_thread(
            bucket.upload,
            path,
            payload.content,
            {"content-type": payload.content_type},
        )
        return path

    async def get_url(self, path: str) -> str:
        """Return the public URL of an object."""
        url = self.client.storage.from_(self.bucket).get_public_url(path)
        return url.rstrip("?")

    def is_hosted(self, url: str) -> bool:
        """Return True for URLs inside this bucket."""
        return url.startswith(self.public_prefix)
