"""
App
-----
"""

import sentry_sdk
from aiohttp import web
from aiohttp_apispec import setup_aiohttp_apispec
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from kiosk import server_mode, logger
from kiosk.config import api_root, database_url, jwt_secret, jwt_audience, estimate_poll_interval, sentry_dsn
from kiosk.middleware import validate_token_middleware
from kiosk.service import KioskIndex, MaintenanceManager, RentalManager
from kiosk.service.verify_token import JWTVerifier, DummyVerifier
from kiosk.signals import register_signals
from kiosk.version import __version__, name
from kiosk.views import register_views


def build_app(db_uri=None):
    """Sets up the app, its managers and its routes."""
    app = web.Application(middlewares=[validate_token_middleware])

    app['rental_manager'] = RentalManager()
    app['kiosk_index'] = KioskIndex(app['rental_manager'].hub)
    app['maintenance_manager'] = MaintenanceManager(app['kiosk_index'], rental_manager=app['rental_manager'])
    app['kiosk_index'].watch(app['maintenance_manager'].hub)

    app['database_uri'] = db_uri if db_uri is not None else database_url
    app['estimate_poll_interval'] = estimate_poll_interval
    app['live_sockets'] = set()

    if server_mode == "development":
        verifier = DummyVerifier()
    else:
        verifier = JWTVerifier(jwt_secret, jwt_audience)

    app['token_verifier'] = verifier

    register_signals(app)
    register_views(app, api_root)

    setup_aiohttp_apispec(
        app=app, title=name, version=__version__, url=f"{api_root}/docs",
        info={"description": "Rentals, returns and maintenance for the cycle kiosks."},
        components={
            "securitySchemes": {
                "SessionToken": {
                    "type": "http",
                    "description": "The staff session token",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                }
            }
        },
    )

    # set up sentry exception tracking
    if server_mode != "development" and sentry_dsn:
        logger.info("Starting Sentry Logging")
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=server_mode,
            release=f"{name}@{__version__}",
            integrations=[AioHttpIntegration()]
        )

    return app
