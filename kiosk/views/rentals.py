"""
Rental Related Views
-------------------------

The rental logs, and the amendments made to a rental at the counter once the
cycle has come back.
"""
from aiohttp_apispec import docs

from kiosk.models import Rental, Staff
from kiosk.models.util import RentalStatus
from kiosk.permissions import requires, StaffIsActive
from kiosk.serializer import JSendSchema, JSendStatus, Many
from kiosk.serializer.decorators import expects, returns
from kiosk.serializer.misc import OverrideSchema, PaymentSchema
from kiosk.serializer.models import RentalSchema
from kiosk.service.access.rentals import get_rental, get_rentals
from kiosk.service.access.staff import get_staff
from kiosk.views.base import BaseView
from kiosk.views.decorators import match_getter, GetFrom, Optional
from kiosk.views.utils import DOMAIN_ERRORS, FAILURE_RESPONSES, bad_query, domain_failure, query_enum

with_staff = match_getter(get_staff, Optional("staff"), auth_id=Optional(GetFrom.AUTH_HEADER))
with_rental = match_getter(get_rental, "rental", rental_id="id")


class RentalsView(BaseView):
    """
    Gets the rental logs.
    """
    url = "/rentals"
    name = "rentals"

    @with_staff
    @docs(summary="Get The Rental Logs")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(rentals=Many(RentalSchema())))
    async def get(self, staff: Staff):
        """
        Lists the rentals, newest first. Filter with ``?status=`` and with
        ``?period=`` one of ``today``, ``week``, ``month`` or ``year``.
        """
        status = query_enum(self.request, "status", RentalStatus)
        period = self.request.query.get("period")

        try:
            rentals = await get_rentals(status=status, period=period, now=self.rental_manager.now())
        except ValueError as error:
            raise bad_query(str(error))

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rentals": [rental.serialize(self.request.app.router) for rental in rentals]}
        }


class RentalView(BaseView):
    """
    Gets a single rental.
    """
    url = "/rentals/{id}"
    name = "rental"

    @with_rental
    @with_staff
    @docs(summary="Get A Rental")
    @requires(StaffIsActive())
    @returns(JSendSchema.of(rental=RentalSchema()))
    async def get(self, rental: Rental, staff: Staff):
        """An active rental comes back with its running estimate."""
        estimate, now = None, None
        if rental.is_active:
            now = self.rental_manager.now()
            estimate = await self.rental_manager.estimate(rental, now)

        return {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router, estimate=estimate, now=now)}
        }


class RentalOverrideView(BaseView):
    """
    Changes what the customer is charged for a completed rental.
    """
    url = "/rentals/{id}/override"
    name = "rental_override"

    @with_rental
    @with_staff
    @docs(summary="Override The Charge For A Rental")
    @requires(StaffIsActive())
    @expects(OverrideSchema())
    @returns(
        overridden=JSendSchema.of(rental=RentalSchema()),
        **FAILURE_RESPONSES
    )
    async def patch(self, rental: Rental, staff: Staff):
        """The calculated amount is kept, so an override is always visible in the logs."""
        try:
            rental = await self.rental_manager.override(rental, self.request["data"]["final_amount"])
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "overridden", {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }


class RentalPaymentView(BaseView):
    """
    Records the payment for a completed rental.
    """
    url = "/rentals/{id}/payment"
    name = "rental_payment"

    @with_rental
    @with_staff
    @docs(summary="Record The Payment For A Rental")
    @requires(StaffIsActive())
    @expects(PaymentSchema())
    @returns(
        paid=JSendSchema.of(rental=RentalSchema()),
        **FAILURE_RESPONSES
    )
    async def patch(self, rental: Rental, staff: Staff):
        """Once paid, a rental can no longer be changed."""
        data = self.request["data"]
        try:
            rental = await self.rental_manager.close(rental, data["payment_mode"], data.get("remarks"))
        except DOMAIN_ERRORS as error:
            return domain_failure(error)

        return "paid", {
            "status": JSendStatus.SUCCESS,
            "data": {"rental": rental.serialize(self.request.app.router)}
        }
