"""
.. autoclasstree:: kiosk.service

The service layer for the system. Acts as the internal API.
Each interface (REST API, web-sockets) should use the
service layer to implement their logic.

The service layer implements the use cases for the kiosk, such
that they may be reused by any program that needs to access it.
It is designed to represent the business logic.
"""

from .manager.rental_manager import (
    RentalManager, RentalEvent, RentalValidationError, InactiveRentalError, CurrentlyRentedError,
    AccessoryNotFoundError, AccessoryUnavailableError, RentalNotCompletedError, RentalClosedError, RentalWriteError
)
from .manager.maintenance_manager import (
    MaintenanceManager, DamageEvent, DamageValidationError, InvalidDamageTransitionError, DamageWriteError,
    CycleStatusConflictError
)
from .index import KioskIndex
