"""
.. autoclasstree:: kiosk.views

This package contains the kiosk API for scanning cycles, renting them out,
settling up at the counter and tracking damage.

API Conventions
---------------

Resources are nouns (cycles, rentals, damages) under ``/api/v1``. Cycles are
addressed by their scanned tag, which also accepts the painted cycle code.
Filtering is done with the query string. Every route needs the bearer token
of an active staff member.

API Expected Responses
----------------------

The server responds with JSend formatted JSON. Failures the client can fix
are ``fail`` responses (400, 401, 404, 409), and writes the store rejects are
``error`` responses (500) carrying the reason the store gave. DELETE requests
respond with a 204.
"""

import aiohttp_cors
from aiohttp.abc import Application

from kiosk import logger
from .accessories import AccessoriesView, AccessoryDamagesView
from .cycles import CyclesView, CycleView, CycleRentalsView, CycleRentalView, CycleEndRentalView, \
    CycleLiveRentalView, CycleMaintenanceView, CycleStatusView
from .damages import DamagesView, DamageSummaryView, DamageView
from .dashboard import DashboardView
from .rentals import RentalsView, RentalView, RentalOverrideView, RentalPaymentView

views = [
    CyclesView, CycleView, CycleRentalsView, CycleRentalView, CycleEndRentalView, CycleLiveRentalView,
    CycleMaintenanceView, CycleStatusView,
    AccessoriesView, AccessoryDamagesView,
    RentalsView, RentalView, RentalOverrideView, RentalPaymentView,
    DamagesView, DamageSummaryView, DamageView,
    DashboardView,
]


def register_views(app: Application, base: str):
    """
    Registers all the API views onto the given router at a specific root url.

    :param app: The app to register the views to.
    :param base: The base URL.
    """
    cors = aiohttp_cors.setup(app, defaults={
        "*": aiohttp_cors.ResourceOptions(
            allow_credentials=True,
            expose_headers="*",
            allow_headers="*",
            allow_methods="*",
        )
    })

    for view in views:
        logger.debug("Registered %s at %s", view.__name__, base + view.url)
        view.register_route(app, base)
        view.enable_cors(cors)
