"""ASGI entrypoint for the peer critique API."""

from prompt_crit.api.app import create_app
from prompt_crit.containers import build_container

app = create_app(build_container())
