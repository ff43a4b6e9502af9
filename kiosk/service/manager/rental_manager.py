"""
Rental Manager
--------------

This module is what handles all the rentals in the system.

Responsibilities
================

This object handles everything needed for cycle rentals.

- starting a rental, handing out its accessories
- ending a rental, pricing it and releasing the cycle
- amending the charge and recording the payment
- getting active rentals and their running estimate

Starting and ending a rental touch the rental, the cycle and the accessories.
Each is done in a single transaction, so a failed write leaves all three
as they were.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, List, Optional, Union

from tortoise import Model
from tortoise.exceptions import BaseORMException, IntegrityError
from tortoise.transactions import in_transaction

from kiosk import logger
from kiosk.events import EventHub, EventList
from kiosk.models import Cycle, Rental, RentalAccessory, Staff
from kiosk.models.util import (
    AccessoryStatus, CycleStatus, PaymentMode, RentalStatus, MAX_AMOUNT, is_fetched, resolve_id
)
from kiosk.pricing import CENTS, PriceEstimate, estimate
from kiosk.service.access.accessories import get_accessories, set_accessories_status
from kiosk.service.access.customers import resolve_customer
from kiosk.service.access.cycles import set_cycle_status
from kiosk.service.access.rentals import get_rental, get_active_rentals
from kiosk.service.rebuildable import Rebuildable
from kiosk.timestamps import now as utc_now


class RentalValidationError(ValueError):
    pass


class InactiveRentalError(Exception):
    pass


class CurrentlyRentedError(Exception):

    def __init__(self, message, rental_id=None):
        super().__init__(message)
        self.message = message
        self.rental_id = rental_id


class AccessoryNotFoundError(Exception):

    def __init__(self, accessory_ids):
        super().__init__(f"No such accessories: {', '.join(str(i) for i in accessory_ids)}.")
        self.accessory_ids = accessory_ids


class AccessoryUnavailableError(Exception):

    def __init__(self, accessory_ids):
        super().__init__(f"Accessories are not available: {', '.join(str(i) for i in accessory_ids)}.")
        self.accessory_ids = accessory_ids


class RentalNotCompletedError(Exception):
    pass


class RentalClosedError(Exception):
    pass


class RentalWriteError(Exception):
    """Raised when the store refuses a rental write. Carries the reason the store gave."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class RentalEvent(EventList):

    def rental_started(self, rental: Rental, cycle: Cycle):
        """A new rental was started."""

    def rental_ended(self, rental: Rental, cycle: Cycle, amount: Decimal):
        """A rental was ended and priced."""

    def rental_overridden(self, rental: Rental, amount: Decimal):
        """The charge of a completed rental was changed by staff."""

    def rental_paid(self, rental: Rental, payment_mode: PaymentMode):
        """The payment for a rental was recorded."""


class RentalManager(Rebuildable):
    """
    Handles the lifecycle of the rental in the system.

    Also publishes events on its hub, so that other modules can stay up to date with the system.
    """

    def __init__(self, *, clock: Callable[[], datetime] = utc_now):
        self._active_rentals: Dict[int, int] = {}
        """Maps cycle ids to their active rental."""

        self._clock = clock
        self.hub = EventHub(RentalEvent)

    async def start(
        self, cycle: Cycle, staff: Optional[Staff], customer_name: str, phone: str = None,
        accessory_ids: Iterable[int] = ()
    ) -> Rental:
        """
        Starts a rental of the cycle, handing out the given accessories with it.

        :raises RentalValidationError: If no customer name was given.
        :raises CurrentlyRentedError: If the cycle is not available.
        :raises AccessoryNotFoundError: If an accessory does not exist.
        :raises AccessoryUnavailableError: If an accessory is not available.
        :raises RentalWriteError: If the store rejects the rental.
        """
        customer_name = (customer_name or "").strip()
        if not customer_name:
            raise RentalValidationError("Customer name required.")

        if self.is_in_use(cycle):
            raise CurrentlyRentedError("The requested cycle is in use.", self._active_rentals[cycle.id])
        if not cycle.is_available:
            raise CurrentlyRentedError(f"The requested cycle is {cycle.status.value}.")

        accessory_ids = list(dict.fromkeys(accessory_ids))
        accessories = await get_accessories(accessory_ids=accessory_ids) if accessory_ids else []

        missing = set(accessory_ids) - {accessory.id for accessory in accessories}
        if missing:
            raise AccessoryNotFoundError(sorted(missing))

        unavailable = [accessory.id for accessory in accessories if not accessory.is_available]
        if unavailable:
            raise AccessoryUnavailableError(unavailable)

        previous_status, written = cycle.status, False
        try:
            async with in_transaction() as connection:
                customer = await resolve_customer(customer_name, phone, using_db=connection)
                rental = await Rental.create(
                    cycle=cycle,
                    customer=customer,
                    staff=staff,
                    location_id=cycle.location_id,
                    start_time=self._clock(),
                    status=RentalStatus.ACTIVE,
                    active_cycle_id=cycle.id,
                    using_db=connection,
                )
                for accessory in accessories:
                    await RentalAccessory.create(
                        rental=rental, accessory=accessory, quantity=1,
                        price_per_unit=accessory.rental_price, using_db=connection
                    )
                await set_accessories_status(accessory_ids, AccessoryStatus.IN_USE, using_db=connection)
                await set_cycle_status(cycle, CycleStatus.IN_USE, using_db=connection)
                written = True
        except IntegrityError as error:
            if written:
                cycle.status = previous_status
            if "active_cycle_id" in str(error):
                logger.warning("Rejected a second active rental on %s", cycle)
                raise CurrentlyRentedError("The requested cycle is in use.") from error
            logger.error("Could not start a rental on %s: %s", cycle, error)
            raise RentalWriteError(str(error)) from error
        except BaseORMException as error:
            if written:
                cycle.status = previous_status
            logger.error("Could not start a rental on %s: %s", cycle, error)
            raise RentalWriteError(str(error)) from error

        self._active_rentals[cycle.id] = rental.id
        rental = await get_rental(rental.id)

        logger.info("Started rental %s on %s for %s", rental.id, cycle, customer_name)
        self.hub.emit(RentalEvent.rental_started, rental, cycle)

        return rental

    async def finish(self, cycle: Cycle, *, now: datetime = None) -> Rental:
        """
        Ends the active rental on the cycle, pricing it and releasing the cycle and its accessories.

        Accessories are released whatever state they were marked in during the rental.
        A cycle that was flagged for maintenance while out stays in maintenance.

        :raises InactiveRentalError: When there is no active rental on the cycle.
        :raises RentalWriteError: If the store rejects the update, in which case the rental stays active.
        """
        rental = await self.active_rental(cycle)
        if rental is None:
            raise InactiveRentalError("The cycle has no active rental.")

        now = now if now is not None else self._clock()
        price = await estimate(
            rental.start_time, rental.accessory_ids, cycle.cycle_type_id, cycle.location_id, now=now
        )

        current = await Cycle.filter(id=cycle.id).first()
        flagged = current is not None and current.status is CycleStatus.MAINTENANCE
        next_status = CycleStatus.MAINTENANCE if flagged else CycleStatus.AVAILABLE

        previous_status, written = cycle.status, False
        try:
            async with in_transaction() as connection:
                updated = await Rental.filter(id=rental.id, status=RentalStatus.ACTIVE).using_db(connection).update(
                    end_time=now,
                    duration_minutes=price.minutes,
                    calculated_amount=price.amount,
                    final_amount=price.amount,
                    status=RentalStatus.COMPLETED,
                    active_cycle_id=None,
                )
                if not updated:
                    raise InactiveRentalError("The rental was ended elsewhere.")
                await set_cycle_status(cycle, next_status, using_db=connection)
                written = True
                await set_accessories_status(rental.accessory_ids, AccessoryStatus.AVAILABLE, using_db=connection)
        except BaseORMException as error:
            if written:
                cycle.status = previous_status
            logger.error("Could not end rental %s on %s: %s", rental.id, cycle, error)
            raise RentalWriteError(str(error)) from error

        self._active_rentals.pop(cycle.id, None)
        rental = await get_rental(rental.id)

        logger.info("Ended rental %s on %s after %s minutes for %s", rental.id, cycle, price.minutes, price.amount)
        self.hub.emit(RentalEvent.rental_ended, rental, cycle, price.amount)

        return rental

    async def override(self, rental: Rental, final_amount) -> Rental:
        """
        Overrides the amount charged for a completed rental. The calculated amount is kept.

        :raises RentalNotCompletedError: If the rental is still active.
        :raises RentalClosedError: If the rental has already been paid.
        :raises RentalValidationError: If the amount is not a positive number the store can hold.
        """
        self._check_amendable(rental)

        try:
            amount = Decimal(str(final_amount))
        except (InvalidOperation, ValueError) as error:
            raise RentalValidationError("Enter valid amount.") from error

        if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
            raise RentalValidationError("Enter valid amount.")

        rental.final_amount = amount.quantize(CENTS)
        await self._save(rental, "final_amount")

        logger.info("Overrode rental %s from %s to %s", rental.id, rental.calculated_amount, rental.final_amount)
        self.hub.emit(RentalEvent.rental_overridden, rental, rental.final_amount)

        return rental

    async def close(self, rental: Rental, payment_mode: Union[PaymentMode, str], remarks: str = None) -> Rental:
        """
        Records the payment for a completed rental, closing it for good.

        :raises RentalNotCompletedError: If the rental is still active.
        :raises RentalClosedError: If the rental has already been paid.
        :raises RentalValidationError: If no valid payment mode is given.
        """
        self._check_amendable(rental)

        try:
            payment_mode = PaymentMode(payment_mode)
        except ValueError as error:
            raise RentalValidationError("Please select payment mode.") from error

        remarks = remarks.strip() if remarks else None

        rental.payment_mode = payment_mode
        rental.remarks = remarks or None
        await self._save(rental, "payment_mode", "remarks")

        logger.info("Closed rental %s, paid by %s", rental.id, payment_mode.value)
        self.hub.emit(RentalEvent.rental_paid, rental, payment_mode)

        return rental

    async def estimate(self, rental: Rental, now: datetime = None) -> PriceEstimate:
        """Gets the price of the rental so far."""
        if not isinstance(rental.cycle, Model) or not is_fetched(rental.accessories):
            await rental.fetch_related("cycle", "accessories")

        return await estimate(
            rental.start_time, rental.accessory_ids, rental.cycle.cycle_type_id, rental.cycle.location_id,
            now=now if now is not None else self._clock()
        )

    def now(self) -> datetime:
        """The current instant on the manager's clock."""
        return self._clock()

    def is_in_use(self, cycle: Union[Cycle, int]) -> bool:
        """Checks if the given cycle has an active rental."""
        return resolve_id(cycle) in self._active_rentals

    def is_active(self, rental_id: int) -> bool:
        """Checks if the given rental ID is currently active."""
        return rental_id in self._active_rentals.values()

    async def active_rental(self, cycle: Union[Cycle, int]) -> Optional[Rental]:
        """Gets the active rental for a given cycle."""
        cycle_id = resolve_id(cycle)
        if cycle_id not in self._active_rentals:
            return None

        rental = await get_rental(self._active_rentals[cycle_id])
        if rental is None or not rental.is_active:
            # ended or removed behind our back
            del self._active_rentals[cycle_id]
            return None

        return rental

    async def active_rentals(self) -> List[Rental]:
        """Gets all the active rentals."""
        return await get_active_rentals(rental_ids=list(self._active_rentals.values()))

    async def _rebuild(self):
        """Rebuilds the currently active rentals from the database."""
        self._active_rentals.clear()
        for rental in await Rental.filter(status=RentalStatus.ACTIVE):
            self._active_rentals[rental.cycle_id] = rental.id
        logger.debug("Rebuilt %s active rentals", len(self._active_rentals))

    @staticmethod
    def _check_amendable(rental: Rental):
        if rental.is_active:
            raise RentalNotCompletedError("The rental has not been completed.")
        if rental.is_paid:
            raise RentalClosedError("The rental has already been paid.")

    @staticmethod
    async def _save(rental: Rental, *fields):
        try:
            await rental.save(update_fields=list(fields))
        except BaseORMException as error:
            logger.error("Could not update rental %s: %s", rental.id, error)
            raise RentalWriteError(str(error)) from error
