"""
Accessory Related Views
-------------------------
"""
from http import HTTPStatus

from aiohttp_apispec import docs

from kiosk.models import Accessory, Staff
from kiosk.permissions import requires, StaffIsActive
from kiosk.serializer import JSendSchema, JSendStatus, Many
from kiosk.serializer.decorators import returns
from kiosk.serializer.models import AccessorySchema, DamageSchema
from kiosk.service.access.accessories import get_accessory
from kiosk.service.access.staff import get_staff
from kiosk.views.base import BaseView
from kiosk.views.decorators import match_getter, GetFrom, Optional
from kiosk.views.utils import DOMAIN_ERRORS, FAILURE_RESPONSES, domain_failure, query_bool

with_staff = match_getter(get_staff, Optional("staff"), auth_id=Optional(GetFrom.AUTH_HEADER))


class AccessoriesView(BaseView):
    """
    Gets the accessories that can be rented out with a cycle.
    """
    url = "/accessories"
    name = "accessories"

    @with_staff
    @docs(summary="Get All Accessories")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(accessories=Many(AccessorySchema())))
    async def get(self, staff: Staff):
        """Lists the accessories. Pass ``?available=true`` for only those on the shelf."""
        available = query_bool(self.request, "available")
        accessories = await self.kiosk_index.accessories()
        if available is not None:
            accessories = [accessory for accessory in accessories if accessory.is_available == available]

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"accessories": [accessory.serialize() for accessory in accessories]}
        }


class AccessoryDamagesView(BaseView):
    """
    Files a quick damage report against an accessory.
    """
    url = "/accessories/{id}/damages"
    name = "accessory_damages"
    with_accessory = match_getter(get_accessory, "accessory", accessory_id="id")

    @with_accessory
    @with_staff
    @docs(summary="Report Accessory Damage")
    @requires(StaffIsActive())
    @returns(
        reported=(JSendSchema.of(damage=DamageSchema()), HTTPStatus.CREATED),
        **FAILURE_RESPONSES
    )
    async def post(self, accessory: Accessory, staff: Staff):
        try:
            report = await self.maintenance_manager.report_accessory(staff, accessory)
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "reported", {
            "status": JSendStatus.SUCCESS,
            "data": {"damage": report.serialize(self.request.app.router)}
        }
