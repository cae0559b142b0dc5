"""Image reference fetcher using httpx."""

import asyncio
import base64
import binascii
import ipaddress
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from artspark.domain.errors import FetchError
from artspark.services.uploads import ImageFetcher, ImagePayload

_DEFAULT_CONTENT_TYPE = "image/jpeg"

_BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain"}


@dataclass
class HttpxImageFetcher(ImageFetcher):
    """Read picked images from http(s) URLs or data URIs.

    Local files are only readable when ``upload_dir`` is set, and only from
    inside that directory. Remote URLs pointing at loopback, private or
    link-local addresses are refused.
    """

    http_client: httpx.AsyncClient
    timeout: float = 20.0
    upload_dir: Path | None = None

    @classmethod
    def create(
        cls, timeout: float = 20.0, upload_dir: str | Path | None = None
    ) -> "HttpxImageFetcher":
        """Create a fetcher with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(follow_redirects=False),
            timeout=timeout,
            upload_dir=Path(upload_dir) if upload_dir else None,
        )

    async def fetch(self, image_ref: str) -> ImagePayload:
        """Return the bytes behind an image reference."""
        parsed = urlparse(image_ref)
        scheme = parsed.scheme.lower()
        if scheme in {"http", "https"}:
            _check_remote_host(parsed.hostname)
            return await self._fetch_remote(image_ref)
        if scheme == "data":
            return _decode_data_uri(image_ref)
        if scheme in {"", "file"}:
            return await self._read_upload(image_ref)
        raise FetchError(f"Unsupported image reference: {scheme}")

    async def _fetch_remote(self, url: str) -> ImagePayload:
        try:
            response = await self.http_client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Failed to fetch image: {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to fetch image: {exc}") from exc
        content_type = response.headers.get("content-type", _DEFAULT_CONTENT_TYPE)
        return ImagePayload(
            content=response.content,
            content_type=content_type.split(";")[0].strip() or _DEFAULT_CONTENT_TYPE,
        )

    async def _read_upload(self, image_ref: str) -> ImagePayload:
        if self.upload_dir is None:
            raise FetchError("Local image references are not accepted")
        parsed = urlparse(image_ref)
        raw_path = unquote(parsed.path) if parsed.scheme == "file" else image_ref
        root = self.upload_dir.resolve()
        path = (root / raw_path).resolve()
        if not path.is_relative_to(root):
            raise FetchError("Local image references are not accepted")
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise FetchError(f"Failed to fetch image: {exc}") from exc
        content_type, _ = mimetypes.guess_type(path.name)
        return ImagePayload(
            content=content, content_type=content_type or _DEFAULT_CONTENT_TYPE
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _check_remote_host(hostname: str | None) -> None:
    if not hostname:
        raise FetchError("Image URL has no host")
    if hostname.lower().rstrip(".") in _BLOCKED_HOSTNAMES:
        raise FetchError(f"Image host is not allowed: {hostname}")
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return
    if not address.is_global:
        raise FetchError(f"Image host is not allowed: {hostname}")


def _decode_data_uri(image_ref: str) -> ImagePayload:
    header, _, data = image_ref.partition(",")
    if not data:
        raise FetchError("Failed to fetch image: empty data URI")
    media_type = header[len("data:") :].split(";")[0] or _DEFAULT_CONTENT_TYPE
    try:
        if header.endswith(";base64"):
            content = base64.b64decode(data, validate=True)
        else:
            content = unquote(data).encode()
    except (binascii.Error, ValueError) as exc:
        raise FetchError(f"Failed to fetch image: {exc}") from exc
    return ImagePayload(content=content, content_type=media_type)
