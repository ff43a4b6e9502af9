"""
Dashboard Views
-------------------------
"""
from aiohttp_apispec import docs

from kiosk.models import Staff
from kiosk.permissions import requires, StaffIsActive
from kiosk.serializer import JSendSchema, JSendStatus
from kiosk.serializer.decorators import returns
from kiosk.serializer.models import DashboardSchema
from kiosk.service.access.dashboard import get_dashboard_counts
from kiosk.service.access.staff import get_staff
from kiosk.views.base import BaseView
from kiosk.views.decorators import match_getter, GetFrom, Optional


class DashboardView(BaseView):
    """
    Gets the headline counts for the kiosk dashboard.
    """
    url = "/dashboard"
    name = "dashboard"
    with_staff = match_getter(get_staff, Optional("staff"), auth_id=Optional(GetFrom.AUTH_HEADER))

    @with_staff
    @docs(summary="Get The Dashboard")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(dashboard=DashboardSchema()))
    async def get(self, staff: Staff):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"dashboard": await get_dashboard_counts(self.rental_manager.now())}
        }
