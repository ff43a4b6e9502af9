import os

server_mode = os.getenv("SERVER_MODE", "development")
"""The operational mode of the server."""

database_url = os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
"""The tortoise connection string for the rental store."""

api_root = "/api/v1"
"""The base url for the api."""

jwt_secret = os.getenv("JWT_SECRET")
"""The shared secret used to sign staff session tokens."""

jwt_audience = os.getenv("JWT_AUDIENCE", "authenticated")
"""The audience claim expected on staff session tokens."""

display_timezone = os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata")
"""The zone every instant is rendered in."""

estimate_poll_interval = float(os.getenv("ESTIMATE_POLL_INTERVAL", "15"))
"""Seconds between price estimates on a live rental view."""

sentry_dsn = os.getenv("SENTRY_DSN")
"""The sentry DSN, exception tracking is disabled when unset."""
