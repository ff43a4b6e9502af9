"""
Damage Related Views
-------------------------

The maintenance screen: filing damage reports, moving them along as the
workshop gets to them, and the counts at the top of the screen.
"""
from http import HTTPStatus

from aiohttp import web
from aiohttp_apispec import docs

from kiosk.models import DamageReport, Staff
from kiosk.models.util import DamageStatus
from kiosk.permissions import requires, StaffIsActive, StaffIsAdmin
from kiosk.serializer import JSendSchema, JSendStatus, Many
from kiosk.serializer.decorators import expects, returns
from kiosk.serializer.misc import DamageCreateSchema, DamageUpdateSchema
from kiosk.serializer.models import DamageSchema, MaintenanceSummarySchema
from kiosk.service.access.accessories import get_accessory
from kiosk.service.access.cycles import get_cycle
from kiosk.service.access.damages import get_damage, get_damages
from kiosk.service.access.staff import get_staff
from kiosk.views.base import BaseView
from kiosk.views.decorators import match_getter, GetFrom, Optional
from kiosk.views.utils import DOMAIN_ERRORS, FAILURE_RESPONSES, domain_failure, failure, query_bool, query_enum

with_staff = match_getter(get_staff, Optional("staff"), auth_id=Optional(GetFrom.AUTH_HEADER))
with_damage = match_getter(get_damage, "report", damage_id="id")


class DamagesView(BaseView):
    """
    Gets or files damage reports.
    """
    url = "/damages"
    name = "damages"

    @with_staff
    @docs(summary="Get All Damage Reports")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(damages=Many(DamageSchema())))
    async def get(self, staff: Staff):
        """
        Lists the damage reports, newest first. ``?active=true`` gives the open
        reports, ``?active=false`` the resolved ones, and ``?status=`` a single status.
        """
        active = query_bool(self.request, "active")
        status = query_enum(self.request, "status", DamageStatus)

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"damages": [
                report.serialize(self.request.app.router)
                for report in await get_damages(active=active, status=status)
            ]}
        }

    @with_staff
    @docs(summary="Report Damage")
    @requires(StaffIsActive())
    @expects(DamageCreateSchema())
    @returns(
        reported=(JSendSchema.of(damage=DamageSchema()), HTTPStatus.CREATED),
        **FAILURE_RESPONSES
    )
    async def post(self, staff: Staff):
        data = self.request["data"]

        cycle = accessory = None
        if data.get("cycle_id") is not None:
            cycle = await get_cycle(cycle_id=data["cycle_id"])
            if cycle is None:
                return failure("missing", f"No cycle with id {data['cycle_id']}.")
        if data.get("accessory_id") is not None:
            accessory = await get_accessory(data["accessory_id"])
            if accessory is None:
                return failure("missing", f"No accessory with id {data['accessory_id']}.")

        try:
            report = await self.maintenance_manager.report(
                staff, data["damage_type"],
                cycle=cycle,
                accessory=accessory,
                description=data.get("description"),
                photo_url=data.get("photo_url"),
                estimated_cost=data.get("estimated_cost"),
                status=data["status"],
                link_rental=data["link_rental"],
            )
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "reported", {
            "status": JSendStatus.SUCCESS,
            "data": {"damage": report.serialize(self.request.app.router)}
        }


class DamageSummaryView(BaseView):
    """
    Gets the counts shown at the top of the maintenance screen.
    """
    url = "/damages/summary"
    name = "damage_summary"

    @with_staff
    @docs(summary="Get The Maintenance Summary")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(summary=MaintenanceSummarySchema()))
    async def get(self, staff: Staff):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"summary": await self.maintenance_manager.summary()}
        }


class DamageView(BaseView):
    """
    Gets, updates or removes a single damage report.
    """
    url = r"/damages/{id:\d+}"
    name = "damage"

    @with_damage
    @with_staff
    @docs(summary="Get A Damage Report")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(damage=DamageSchema()))
    async def get(self, report: DamageReport, staff: Staff):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"damage": report.serialize(self.request.app.router)}
        }

    @with_damage
    @with_staff
    @docs(summary="Update A Damage Report")
    @requires(StaffIsActive())
    @expects(DamageUpdateSchema())
    @returns(
        updated=JSendSchema.of(damage=DamageSchema()),
        **FAILURE_RESPONSES
    )
    async def patch(self, report: DamageReport, staff: Staff):
        """
        Moves the report to a new status and edits its details in one write.
        Everything is checked first, so a rejected request changes nothing.
        """
        data = self.request["data"]
        status = data.get("status")
        try:
            report = await self.maintenance_manager.update(
                report,
                status=status if status is not report.status else None,
                description=data.get("description"),
                estimated_cost=data.get("estimated_cost"),
                remarks=data.get("remarks"),
                photo_url=data.get("photo_url"),
            )
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "updated", {
            "status": JSendStatus.SUCCESS,
            "data": {"damage": report.serialize(self.request.app.router)}
        }

    @with_damage
    @with_staff
    @docs(summary="Delete A Damage Report")
    @requires(StaffIsActive() & StaffIsAdmin())
    @returns(**FAILURE_RESPONSES)
    async def delete(self, report: DamageReport, staff: Staff):
        try:
            await self.maintenance_manager.delete(report)
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return web.Response(status=HTTPStatus.NO_CONTENT)
