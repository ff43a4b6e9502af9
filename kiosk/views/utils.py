"""
Utilities
-------------------------

Turns the errors raised by the service layer into JSend responses. Views
catch :data:`DOMAIN_ERRORS`, return :func:`domain_failure` of the error,
and include :data:`FAILURE_RESPONSES` in their ``@returns`` so that each
kind of failure goes out with its own status code.
"""
from enum import Enum
from http import HTTPStatus
from typing import Tuple, Type, Optional

from aiohttp import web
from aiohttp.web_request import Request

from kiosk.serializer import JSendSchema, JSendStatus
from kiosk.service import (
    RentalValidationError, InactiveRentalError, CurrentlyRentedError, AccessoryNotFoundError,
    AccessoryUnavailableError, RentalNotCompletedError, RentalClosedError, RentalWriteError,
    DamageValidationError, InvalidDamageTransitionError, DamageWriteError, CycleStatusConflictError
)

FAILURE_RESPONSES = {
    "invalid": (JSendSchema(), HTTPStatus.BAD_REQUEST),
    "missing": (JSendSchema(), HTTPStatus.NOT_FOUND),
    "conflict": (JSendSchema(), HTTPStatus.CONFLICT),
    "write_failed": (JSendSchema(), HTTPStatus.INTERNAL_SERVER_ERROR),
}

FAILURE_KINDS = {
    RentalValidationError: "invalid",
    DamageValidationError: "invalid",
    InactiveRentalError: "missing",
    AccessoryNotFoundError: "missing",
    CurrentlyRentedError: "conflict",
    AccessoryUnavailableError: "conflict",
    RentalNotCompletedError: "conflict",
    RentalClosedError: "conflict",
    InvalidDamageTransitionError: "conflict",
    CycleStatusConflictError: "conflict",
}

WRITE_ERRORS = (RentalWriteError, DamageWriteError)

DOMAIN_ERRORS = tuple(FAILURE_KINDS) + WRITE_ERRORS


def failure(kind: str, message: str, **data) -> Tuple[str, dict]:
    return kind, {
        "status": JSendStatus.FAIL,
        "data": {"message": message, **data}
    }


def domain_failure(error: Exception) -> Tuple[str, dict]:
    """Builds the named response for an error raised by the service layer."""
    if isinstance(error, WRITE_ERRORS):
        return "write_failed", {
            "status": JSendStatus.ERROR,
            "message": "The change could not be saved.",
            "data": {"reason": error.reason}
        }

    for error_type, kind in FAILURE_KINDS.items():
        if isinstance(error, error_type):
            data = {}
            for attribute in ("accessory_ids", "rental_id"):
                if getattr(error, attribute, None) is not None:
                    data[attribute] = getattr(error, attribute)
            return failure(kind, str(error), **data)

    raise TypeError(f"{type(error).__name__} is not a service error.") from error


def bad_query(message: str) -> web.HTTPBadRequest:
    response = {
        "status": JSendStatus.FAIL,
        "data": {"message": message}
    }
    return web.HTTPBadRequest(text=JSendSchema().dumps(response), content_type='application/json')


def query_enum(request: Request, key: str, enum_type: Type[Enum]) -> Optional[Enum]:
    """
    Reads an enum from the query string.

    :raises HTTPBadRequest: If the value is not a member of the enum.
    """
    if key not in request.query:
        return None
    try:
        return enum_type(request.query[key])
    except ValueError:
        options = ", ".join(member.value for member in enum_type)
        raise bad_query(f"The {key} must be one of {options}.")


def query_bool(request: Request, key: str) -> Optional[bool]:
    if key not in request.query:
        return None
    value = request.query[key].lower()
    if value in ("true", "1", "yes"):
        return True
    if value in ("false", "0", "no"):
        return False
    raise bad_query(f"The {key} must be true or false.")
