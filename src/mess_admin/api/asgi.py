"""ASGI entrypoint for the mess admin API."""

from mess_admin.api.app import create_app
from mess_admin.containers import build_container

app = create_app(build_container())
