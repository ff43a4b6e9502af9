from decimal import Decimal
from enum import Enum
from typing import Union

from tortoise import Model
from tortoise.exceptions import NoValuesFetched

MAX_AMOUNT = Decimal("99999999.99")
"""The largest amount the money columns hold."""


class CycleStatus(str, Enum):
    """We subclass string to make json serialization work."""
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


class AccessoryStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    DAMAGED = "damaged"
    LOST = "lost"


class RentalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class PaymentMode(str, Enum):
    CASH = "Cash"
    UPI = "UPI"
    CARD = "Card"
    OTHER = "Other"


class DamageStatus(str, Enum):
    PENDING = "pending"
    UNDER_REPAIR = "under_repair"
    REPAIRED = "repaired"
    SCRAPPED = "scrapped"

    @staticmethod
    def open_states():
        """The states of a damage that still needs attention."""
        return DamageStatus.PENDING, DamageStatus.UNDER_REPAIR

    @staticmethod
    def terminal_states():
        """The states that close a damage report."""
        return DamageStatus.REPAIRED, DamageStatus.SCRAPPED

    def next_states(self):
        """The states a report in this state may move forward to."""
        if self is DamageStatus.PENDING:
            return DamageStatus.UNDER_REPAIR, DamageStatus.REPAIRED, DamageStatus.SCRAPPED
        elif self is DamageStatus.UNDER_REPAIR:
            return DamageStatus.REPAIRED, DamageStatus.SCRAPPED
        else:
            return ()


class StaffRole(str, Enum):
    STAFF = "staff"
    ADMIN = "admin"


def resolve_id(target: Union[Model, int]):
    if isinstance(target, Model):
        return target.id
    elif isinstance(target, int):
        return target
    else:
        raise TypeError(f"Target {target} is neither a Model or an int.")


def is_fetched(relation) -> bool:
    """Checks if a reverse relation has been fetched from the store."""
    try:
        iter(relation)
    except NoValuesFetched:
        return False
    return True


def fetched(relation) -> list:
    """The members of a reverse relation, or nothing when it was never fetched."""
    return list(relation) if is_fetched(relation) else []
