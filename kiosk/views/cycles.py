"""
Cycle Related Views
-------------------------

Everything that starts from a scanned tag: looking the cycle up, renting it
out, bringing it back, and taking it in or out of maintenance.
"""
import asyncio
from http import HTTPStatus

from aiohttp import web, WSMsgType
from aiohttp_apispec import docs
from marshmallow.fields import String

from kiosk import logger
from kiosk.models import Cycle, Staff
from kiosk.models.util import CycleStatus
from kiosk.permissions import requires, StaffIsActive
from kiosk.serializer import JSendSchema, JSendStatus, Many
from kiosk.serializer.decorators import expects, returns
from kiosk.serializer.misc import RentalStartSchema, CycleStatusSchema
from kiosk.serializer.models import CycleSchema, RentalSchema, CycleScanSchema, EstimateSchema
from kiosk.service.access.cycles import get_cycle
from kiosk.service.access.rentals import get_rentals_for_cycle
from kiosk.service.access.staff import get_staff
from kiosk.service.background.estimate_poller import EstimatePoller
from kiosk.timestamps import format_elapsed
from kiosk.views.base import BaseView
from kiosk.views.decorators import match_getter, GetFrom, Optional
from kiosk.views.utils import DOMAIN_ERRORS, FAILURE_RESPONSES, domain_failure, failure, query_enum

CYCLE_TAG_REGEX = "[^{}/]+"

with_staff = match_getter(get_staff, Optional("staff"), auth_id=Optional(GetFrom.AUTH_HEADER))
with_cycle = match_getter(get_cycle, "cycle", tag=("tag", str))


class CyclesView(BaseView):
    """
    Gets the cycles on the kiosk network.
    """
    url = "/cycles"
    name = "cycles"

    @with_staff
    @docs(summary="Get All Cycles")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(cycles=Many(CycleSchema())))
    async def get(self, staff: Staff):
        """Lists the cycles, optionally only those in one status with ``?status=``."""
        status = query_enum(self.request, "status", CycleStatus)
        cycles = await self.kiosk_index.cycles()
        if status is not None:
            cycles = [cycle for cycle in cycles if cycle.status is status]

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"cycles": [cycle.serialize(self.request.app.router) for cycle in cycles]}
        }


class CycleView(BaseView):
    """
    Scans a single cycle.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}"
    name = "cycle"

    @with_cycle
    @with_staff
    @docs(summary="Scan A Cycle")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(scan=CycleScanSchema()))
    async def get(self, cycle: Cycle, staff: Staff):
        """
        Loads everything the kiosk screen needs after a tag is scanned. The ``view``
        tells the screen what to show:

        - ``available``: the cycle, with the accessories that can go out with it
        - ``in_use``: the active rental and its running price, even when the
          cycle was flagged for maintenance while out
        - ``maintenance`` or ``inactive``: the cycle cannot be rented
        """
        router = self.request.app.router
        scan = {"cycle": cycle.serialize(router), "view": cycle.status.value}

        rental = await self.rental_manager.active_rental(cycle)
        if rental is not None:
            now = self.rental_manager.now()
            estimate = await self.rental_manager.estimate(rental, now)
            scan["view"] = CycleStatus.IN_USE.value
            scan["rental"] = rental.serialize(router, estimate=estimate, now=now)
            scan["estimate"] = {
                "rental_id": rental.id,
                "amount": estimate.amount,
                "minutes": estimate.minutes,
                "elapsed": format_elapsed(rental.start_instant, now),
            }
        elif cycle.status is CycleStatus.AVAILABLE:
            accessories = await self.kiosk_index.accessories()
            scan["accessories"] = [accessory.serialize() for accessory in accessories if accessory.is_available]

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"scan": scan}
        }


class CycleRentalsView(BaseView):
    """
    Gets the rental history of a cycle.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/rentals"
    name = "cycle_rentals"

    @with_cycle
    @with_staff
    @docs(summary="Get Past Rentals For Cycle")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(rentals=Many(RentalSchema())))
    async def get(self, cycle: Cycle, staff: Staff):
        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rentals": [
                rental.serialize(self.request.app.router) for rental in await get_rentals_for_cycle(cycle)
            ]}
        }


class CycleRentalView(BaseView):
    """
    Gets the current rental of a cycle, or starts a new one.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/rental"
    name = "cycle_rental"

    @with_cycle
    @with_staff
    @docs(summary="Get The Current Rental For Cycle")
    @requires(StaffIsActive())
    @returns(
        no_rental=(JSendSchema(), HTTPStatus.NOT_FOUND),
        rental=JSendSchema.of(rental=RentalSchema()),
    )
    async def get(self, cycle: Cycle, staff: Staff):
        rental = await self.rental_manager.active_rental(cycle)
        if rental is None:
            return failure("no_rental", "The cycle has no active rental.")

        now = self.rental_manager.now()
        estimate = await self.rental_manager.estimate(rental, now)
        return "rental", {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router, estimate=estimate, now=now)}
        }

    @with_cycle
    @with_staff
    @docs(summary="Start A New Rental")
    @requires(StaffIsActive())
    @expects(RentalStartSchema())
    @returns(
        rental_started=(JSendSchema.of(rental=RentalSchema()), HTTPStatus.CREATED),
        **FAILURE_RESPONSES
    )
    async def post(self, cycle: Cycle, staff: Staff):
        """
        Starts a rental on the cycle, handing out the selected accessories with it.
        A customer is only recorded when a phone number is given.
        """
        data = self.request["data"]
        try:
            rental = await self.rental_manager.start(
                cycle, staff, data["customer_name"], data.get("phone"), data.get("accessory_ids", [])
            )
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "rental_started", {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }


class CycleEndRentalView(BaseView):
    """
    Ends the current rental of a cycle.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/rental/end"
    name = "cycle_end_rental"

    @with_cycle
    @with_staff
    @docs(summary="End The Current Rental For Cycle")
    @requires(StaffIsActive())
    @returns(
        rental_ended=JSendSchema.of(rental=RentalSchema(), summary=String()),
        **FAILURE_RESPONSES
    )
    async def patch(self, cycle: Cycle, staff: Staff):
        """
        Ends the rental, prices it, and releases the cycle and its accessories. The
        rental that comes back is the summary the counter settles up from.
        """
        try:
            rental = await self.rental_manager.finish(cycle)
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        serialized = rental.serialize(self.request.app.router)
        return "rental_ended", {
            "status": JSendStatus.SUCCESS,
            "data": {
                "rental": serialized,
                "summary": (
                    f"{cycle.code}: {serialized['start_display']} to {serialized['end_display']}, "
                    f"{rental.duration_minutes} min, ₹{rental.final_amount:.2f}"
                )
            }
        }


class CycleLiveRentalView(BaseView):
    """
    Streams the running price of the current rental over a websocket.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/rental/live"
    name = "cycle_live_rental"

    @with_cycle
    @with_staff
    @docs(summary="Watch The Current Rental For Cycle")
    @requires(StaffIsActive())
    @returns(no_rental=(JSendSchema(), HTTPStatus.NOT_FOUND))
    async def get(self, cycle: Cycle, staff: Staff):
        """
        Sends an estimate as soon as the socket opens and then on a fixed interval,
        closing the socket once the rental has ended.
        """
        rental = await self.rental_manager.active_rental(cycle)
        if rental is None:
            return failure("no_rental", "The cycle has no active rental.")

        socket = web.WebSocketResponse()
        await socket.prepare(self.request)
        self.request.app["live_sockets"].add(socket)

        estimate_schema = EstimateSchema()

        async def get_estimate():
            return await self.rental_manager.estimate(rental)

        async def send_estimate(estimate):
            if not self.rental_manager.is_active(rental.id):
                # the handler cancels the poller once the socket closes
                await asyncio.shield(socket.close())
                return
            await socket.send_json(estimate_schema.dump({
                "rental_id": rental.id,
                "amount": estimate.amount,
                "minutes": estimate.minutes,
                "elapsed": format_elapsed(rental.start_instant, self.rental_manager.now()),
            }))

        poller = EstimatePoller(get_estimate, send_estimate, self.estimate_poll_interval)
        poller.start()
        logger.debug("Watching rental %s", rental.id)

        try:
            async for message in socket:
                if message.type == WSMsgType.ERROR:
                    break
        finally:
            await poller.close()
            self.request.app["live_sockets"].discard(socket)

        return socket


class CycleMaintenanceView(BaseView):
    """
    Takes a cycle in or out of maintenance.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/maintenance"
    name = "cycle_maintenance"

    @with_cycle
    @with_staff
    @docs(summary="Toggle Maintenance For Cycle")
    @requires(StaffIsActive())
    @returns(
        toggled=JSendSchema.of(cycle=CycleSchema()),
        **FAILURE_RESPONSES
    )
    async def patch(self, cycle: Cycle, staff: Staff):
        """A cycle in maintenance is made available, and any other cycle goes into maintenance."""
        try:
            cycle = await self.maintenance_manager.toggle_cycle_maintenance(cycle)
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "toggled", {
            "status": JSendStatus.SUCCESS,
            "data": {"cycle": cycle.serialize(self.request.app.router)}
        }


class CycleStatusView(BaseView):
    """
    Sets the status of a cycle directly.
    """
    url = f"/cycles/{{tag:{CYCLE_TAG_REGEX}}}/status"
    name = "cycle_status"

    @with_cycle
    @with_staff
    @docs(summary="Set The Status Of A Cycle")
    @requires(StaffIsActive())
    @expects(CycleStatusSchema())
    @returns(
        updated=JSendSchema.of(cycle=CycleSchema()),
        **FAILURE_RESPONSES
    )
    async def put(self, cycle: Cycle, staff: Staff):
        """
        Cycles only go in use by being rented, and a rented cycle can only be
        flagged for maintenance until it comes back.
        """
        try:
            cycle = await self.maintenance_manager.set_cycle_status(cycle, self.request["data"]["status"])
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "updated", {
            "status": JSendStatus.SUCCESS,
            "data": {"cycle": cycle.serialize(self.request.app.router)}
        }
