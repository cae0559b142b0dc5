"""ASGI entrypoint for the ArtSpark API."""

from artspark.api.app import create_app
from artspark.containers import build_container

app = create_app(build_container())
