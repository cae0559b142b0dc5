"""Tests for HTTP-based adapters."""

import asyncio
import base64
from pathlib import Path

import httpx
import pytest

from artspark.adapters.httpx_image_fetcher import HttpxImageFetcher
from artspark.domain.errors import FetchError


def _fetcher(handler) -> HttpxImageFetcher:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxImageFetcher(http_client=httpx.AsyncClient(transport=transport))


def test_image_fetcher_downloads_remote_image() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200,
            content=b"png-bytes",
            headers={"content-type": "image/png; charset=binary"},
        )

    fetcher = _fetcher(handler)
    payload = asyncio.run(fetcher.fetch("https://cdn.example.com/cat.png"))

    assert seen == ["https://cdn.example.com/cat.png"]
    assert payload.content == b"png-bytes"
    assert payload.content_type == "image/png"


def test_image_fetcher_defaults_content_type() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"bytes")

    payload = asyncio.run(_fetcher(handler).fetch("http://cdn.example.com/raw"))

    assert payload.content_type == "image/jpeg"


def test_image_fetcher_raises_on_http_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with pytest.raises(FetchError, match="404"):
        asyncio.run(_fetcher(handler).fetch("https://cdn.example.com/missing.jpg"))


def test_image_fetcher_raises_on_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("https://cdn.example.com/cat.jpg"))


def test_image_fetcher_decodes_data_uris() -> None:
    fetcher = HttpxImageFetcher.create()
    encoded = base64.b64encode(b"fake").decode()

    payload = asyncio.run(fetcher.fetch(f"data:image/gif;base64,{encoded}"))
    plain = asyncio.run(fetcher.fetch("data:,hello%20world"))
    asyncio.run(fetcher.close())

    assert payload.content == b"fake"
    assert payload.content_type == "image/gif"
    assert plain.content == b"hello world"
    assert plain.content_type == "image/jpeg"


def test_image_fetcher_rejects_bad_data_uri() -> None:
    fetcher = HttpxImageFetcher.create()

    with pytest.raises(FetchError):
        asyncio.run(fetcher.fetch("data:image/png;base64,@@not-base64@@"))
    with pytest.raises(FetchError):
        asyncio.run(fetcher.fetch("data:image/png;base64,"))


def test_image_fetcher_refuses_local_files_by_default(tmp_path: Path) -> None:
    secret = tmp_path / ".env"
    secret.write_text("SUPABASE_SERVICE_KEY=topsecret")
    fetcher = HttpxImageFetcher.create()

    with pytest.raises(FetchError, match="not accepted"):
        asyncio.run(fetcher.fetch(str(secret)))
    with pytest.raises(FetchError, match="not accepted"):
        asyncio.run(fetcher.fetch(secret.as_uri()))


def test_image_fetcher_reads_only_inside_upload_dir(tmp_path: Path) -> None:
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    (upload_dir / "picked.png").write_bytes(b"local-bytes")
    (tmp_path / ".env").write_text("SUPABASE_SERVICE_KEY=topsecret")
    fetcher = HttpxImageFetcher.create(upload_dir=upload_dir)

    relative = asyncio.run(fetcher.fetch("picked.png"))
    from_uri = asyncio.run(fetcher.fetch((upload_dir / "picked.png").as_uri()))

    assert relative.content == b"local-bytes"
    assert relative.content_type == "image/png"
    assert from_uri.content == b"local-bytes"
    for outside in ("../.env", str(tmp_path / ".env"), "/etc/hostname"):
        with pytest.raises(FetchError, match="not accepted"):
            asyncio.run(fetcher.fetch(outside))
    with pytest.raises(FetchError):
        asyncio.run(fetcher.fetch("gone.jpg"))


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost:8000/admin",
        "http://127.0.0.1/image.jpg",
        "http://169.254.169.254/latest/meta-data/",
        "https://10.0.0.5/internal.png",
        "http://[::1]/image.jpg",
    ],
)
def test_image_fetcher_refuses_internal_hosts(url: str) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b"internal")

    with pytest.raises(FetchError, match="not allowed"):
        asyncio.run(_fetcher(handler).fetch(url))
    assert requests == []


def test_image_fetcher_rejects_unknown_scheme() -> None:
    fetcher = HttpxImageFetcher.create()

    with pytest.raises(FetchError, match="Unsupported"):
        asyncio.run(fetcher.fetch("ph://asset/42"))
