"""
Maintenance Manager
-------------------

Tracks damage to cycles and accessories, and the cycles taken off the floor.

A damage report only ever moves forward::

    pending ──► under_repair ──► repaired
       │              └────────► scrapped
       ├─────────────────────────► repaired
       └─────────────────────────► scrapped

``resolved_on`` is stamped when a report is repaired. A scrapped report
keeps it empty.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional, Union

from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from kiosk import logger
from kiosk.events import EventHub, EventList
from kiosk.models import Accessory, Cycle, DamageAccessory, DamageReport, Staff
from kiosk.models.util import AccessoryStatus, CycleStatus, DamageStatus, MAX_AMOUNT
from kiosk.service.access.cycles import set_cycle_status
from kiosk.service.access.damages import count_damages, get_damage
from kiosk.service.access.rentals import get_last_rental_for_cycle
from kiosk.timestamps import now as utc_now

ACCESSORY_DAMAGE_TYPE = "Accessory damage"
ACCESSORY_DAMAGE_DESCRIPTION = "Reported via quick action"


class DamageValidationError(ValueError):
    pass


class InvalidDamageTransitionError(Exception):

    def __init__(self, current: DamageStatus, requested: DamageStatus):
        super().__init__(f"A {current.value} report cannot be moved to {requested.value}.")
        self.current = current
        self.requested = requested


class CycleStatusConflictError(Exception):
    """Raised when a cycle's status cannot be changed by hand in its current state."""


class DamageWriteError(Exception):
    """Raised when the store refuses a damage write. Carries the reason the store gave."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class DamageEvent(EventList):

    def damage_reported(self, report: DamageReport):
        """A new damage report was filed."""

    def damage_status_changed(self, report: DamageReport, previous: DamageStatus):
        """A damage report moved forward."""

    def damage_deleted(self, report_id: int):
        """A damage report was removed."""

    def cycle_status_changed(self, cycle: Cycle, status: CycleStatus):
        """A cycle was moved in or out of maintenance by hand."""


def _clean_cost(estimated_cost) -> Optional[Decimal]:
    if estimated_cost is None or estimated_cost == "":
        return None
    try:
        cost = Decimal(str(estimated_cost))
    except (InvalidOperation, ValueError) as error:
        raise DamageValidationError("Estimated cost must be a number.") from error
    if not cost.is_finite() or cost < 0:
        raise DamageValidationError("Estimated cost cannot be negative.")
    if cost > MAX_AMOUNT:
        raise DamageValidationError(f"Estimated cost cannot be more than {MAX_AMOUNT}.")
    return cost


def _clean_text(value: Optional[str]) -> Optional[str]:
    value = value.strip() if value else None
    return value or None


class MaintenanceManager:
    """
    Files and moves damage reports, and toggles cycles in and out of maintenance.

    :param index: Used to find the rental to link a report to, before falling back to the store.
    :param rental_manager: Tells which cycles are out on a rental.
    """

    def __init__(self, index=None, *, rental_manager=None, clock: Callable[[], datetime] = utc_now):
        self.index = index
        self.rental_manager = rental_manager
        self._clock = clock
        self.hub = EventHub(DamageEvent)

    async def report(
        self, staff: Optional[Staff], damage_type: str, *,
        cycle: Cycle = None, accessory: Accessory = None, description: str = None, photo_url: str = None,
        estimated_cost=None, status: Union[DamageStatus, str] = DamageStatus.PENDING, link_rental=False
    ) -> DamageReport:
        """
        Files a damage report against a cycle, an accessory, or both.

        :param link_rental: Links the report to the rental most recently started on the cycle.
        :raises DamageValidationError: If the damage type is missing or the cost is negative.
        :raises DamageWriteError: If the store rejects the report.
        """
        damage_type = _clean_text(damage_type)
        if not damage_type:
            raise DamageValidationError("Damage type required.")

        estimated_cost = _clean_cost(estimated_cost)

        try:
            status = DamageStatus(status)
        except ValueError as error:
            raise DamageValidationError(f"Unknown damage status {status}.") from error

        rental = None
        if link_rental and cycle is not None:
            rental = await self._last_rental(cycle)

        now = self._clock()
        try:
            async with in_transaction() as connection:
                report = await DamageReport.create(
                    cycle=cycle,
                    rental=rental,
                    reported_by=staff,
                    damage_type=damage_type,
                    description=_clean_text(description),
                    photo_url=_clean_text(photo_url),
                    estimated_cost=estimated_cost,
                    status=status,
                    reported_on=now,
                    resolved_on=now if status is DamageStatus.REPAIRED else None,
                    using_db=connection,
                )
                if accessory is not None:
                    await DamageAccessory.create(damage=report, accessory=accessory, using_db=connection)
        except BaseORMException as error:
            logger.error("Could not file %s report: %s", damage_type, error)
            raise DamageWriteError(str(error)) from error

        report = await get_damage(report.id)

        logger.info("Filed damage report %s (%s)", report.id, damage_type)
        self.hub.emit(DamageEvent.damage_reported, report)

        return report

    async def report_accessory(self, staff: Optional[Staff], accessory: Accessory) -> DamageReport:
        """Files a quick report against an accessory alone."""
        return await self.report(
            staff, ACCESSORY_DAMAGE_TYPE, accessory=accessory, description=ACCESSORY_DAMAGE_DESCRIPTION
        )

    async def edit(
        self, report: DamageReport, *, description: str = None, estimated_cost=None, remarks: str = None,
        photo_url: str = None
    ) -> DamageReport:
        """Edits the details of a report. Only the fields given are changed."""
        return await self.update(
            report, description=description, estimated_cost=estimated_cost, remarks=remarks, photo_url=photo_url
        )

    async def change_status(self, report: DamageReport, status: Union[DamageStatus, str]) -> DamageReport:
        """
        Moves a report forward.

        :raises DamageValidationError: If the status is not a damage status.
        :raises InvalidDamageTransitionError: If the report cannot move to the status.
        """
        return await self.update(report, status=status)

    async def update(
        self, report: DamageReport, *, status: Union[DamageStatus, str] = None, description: str = None,
        estimated_cost=None, remarks: str = None, photo_url: str = None
    ) -> DamageReport:
        """
        Moves a report forward and edits its details in a single write. Everything
        is checked before anything is written, so a rejected update leaves the
        report as it was.

        :raises DamageValidationError: If the status or a detail is invalid.
        :raises InvalidDamageTransitionError: If the report cannot move to the status.
        :raises DamageWriteError: If the store rejects the update.
        """
        updates = {}
        if description is not None:
            updates["description"] = _clean_text(description)
        if estimated_cost is not None:
            updates["estimated_cost"] = _clean_cost(estimated_cost)
        if remarks is not None:
            updates["remarks"] = _clean_text(remarks)
        if photo_url is not None:
            updates["photo_url"] = _clean_text(photo_url)

        previous = report.status
        if status is not None:
            try:
                status = DamageStatus(status)
            except ValueError as error:
                raise DamageValidationError(f"Unknown damage status {status}.") from error
            if status not in previous.next_states():
                raise InvalidDamageTransitionError(previous, status)

            updates["status"] = status
            if status is DamageStatus.REPAIRED:
                updates["resolved_on"] = self._clock()

        if not updates:
            return report

        original = {key: getattr(report, key) for key in updates}
        for key, value in updates.items():
            setattr(report, key, value)
        try:
            await self._save(report, *updates)
        except DamageWriteError:
            for key, value in original.items():
                setattr(report, key, value)
            raise

        if status is not None:
            logger.info("Moved damage report %s from %s to %s", report.id, previous.value, status.value)
            self.hub.emit(DamageEvent.damage_status_changed, report, previous)
        else:
            logger.debug("Edited damage report %s: %s", report.id, ", ".join(updates))

        return report

    async def delete(self, report: DamageReport):
        report_id = report.id
        try:
            await report.delete()
        except BaseORMException as error:
            logger.error("Could not delete damage report %s: %s", report_id, error)
            raise DamageWriteError(str(error)) from error

        logger.info("Deleted damage report %s", report_id)
        self.hub.emit(DamageEvent.damage_deleted, report_id)

    async def toggle_cycle_maintenance(self, cycle: Cycle) -> Cycle:
        """
        Takes an available cycle into maintenance, or brings a cycle in maintenance back.

        :raises CycleStatusConflictError: If the cycle is out on a rental or inactive.
        """
        if self._is_rented(cycle):
            raise CycleStatusConflictError("The cycle is out on a rental.")
        if cycle.status not in (CycleStatus.AVAILABLE, CycleStatus.MAINTENANCE):
            raise CycleStatusConflictError(f"A cycle that is {cycle.status.value} cannot be toggled.")

        status = CycleStatus.AVAILABLE if cycle.status is CycleStatus.MAINTENANCE else CycleStatus.MAINTENANCE
        return await self.set_cycle_status(cycle, status)

    async def set_cycle_status(self, cycle: Cycle, status: Union[CycleStatus, str]) -> Cycle:
        """
        Writes the status of a cycle by hand. Cycles only go in use by being rented,
        and a rented cycle can only be flagged for maintenance until it comes back.

        :raises DamageValidationError: If the status is not a cycle status.
        :raises CycleStatusConflictError: If the cycle cannot be moved to the status.
        """
        try:
            status = CycleStatus(status)
        except ValueError as error:
            raise DamageValidationError(f"Unknown cycle status {status}.") from error

        if status is CycleStatus.IN_USE:
            raise CycleStatusConflictError("Cycles are put in use by starting a rental.")
        if self._is_rented(cycle) and status is not CycleStatus.MAINTENANCE:
            raise CycleStatusConflictError("The cycle is out on a rental.")

        previous = cycle.status
        try:
            await set_cycle_status(cycle, status)
        except BaseORMException as error:
            logger.error("Could not set %s to %s: %s", cycle, status.value, error)
            raise DamageWriteError(str(error)) from error

        logger.info("Set cycle %s from %s to %s", cycle.code, previous.value, status.value)
        self.hub.emit(DamageEvent.cycle_status_changed, cycle, status)

        return cycle

    async def summary(self) -> Dict[str, int]:
        """The counts shown at the top of the maintenance screen."""
        return {
            "open_damages": await count_damages(*DamageStatus.open_states()),
            "cycles_in_maintenance": await Cycle.filter(status=CycleStatus.MAINTENANCE).count(),
            "accessories_out": await Accessory.filter(
                status__in=[AccessoryStatus.IN_USE, AccessoryStatus.DAMAGED]
            ).count(),
            "resolved_damages": await count_damages(*DamageStatus.terminal_states()),
        }

    def _is_rented(self, cycle: Cycle) -> bool:
        if self.rental_manager is not None:
            return self.rental_manager.is_in_use(cycle)
        return cycle.status is CycleStatus.IN_USE

    async def _last_rental(self, cycle: Cycle):
        if self.index is not None:
            return await self.index.last_rental_for_cycle(cycle)
        return await get_last_rental_for_cycle(cycle)

    @staticmethod
    async def _save(report: DamageReport, *fields):
        try:
            await report.save(update_fields=list(fields))
        except BaseORMException as error:
            logger.error("Could not update damage report %s: %s", report.id, error)
            raise DamageWriteError(str(error)) from error
