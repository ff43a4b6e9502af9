"""
Decorators
-------------------------
"""
from enum import Enum
from functools import wraps
from inspect import isawaitable
from typing import Union, Any, Dict, Tuple

from aiohttp import web
from aiohttp.web_request import Request
from aiohttp.web_urldispatcher import View

from kiosk.serializer import JSendStatus, JSendSchema
from kiosk.service.verify_token import verify_token, TokenVerificationError


class Optional:
    """Signify the match map entry to be optional."""

    def __init__(self, value):
        self.value = value


class GetFrom(Enum):
    AUTH_HEADER = "Authorization"


def flatten(error):
    errors = []
    for sub_error in error.args:
        if isinstance(sub_error, Exception):
            errors += flatten(sub_error)
        else:
            errors.append(sub_error)
    return errors


def resolve_token(request: Request):
    """Gets the token subject, preferring the one the middleware already verified."""
    if "token" in request:
        return request["token"]
    request["token"] = verify_token(request)
    return request["token"]


def resolve_match_map(request: Request, match_map) -> Dict[str, Any]:
    resolved_matches = {}
    errors = []

    for key, value in match_map.items():

        if isinstance(value, Optional):
            value = value.value
            is_optional = True
        else:
            is_optional = False

        if isinstance(value, str):
            value = (value, int)

        if isinstance(value, tuple):
            name, convert = value
            param = request.match_info.get(name)
            if param is None and is_optional:
                continue
            try:
                resolved_matches[key] = convert(param)
            except (ValueError, TypeError):
                errors.append(ValueError(
                    f'Could not convert url parameter "{param}" to expected type {convert.__name__}.'))
        elif value == GetFrom.AUTH_HEADER:
            try:
                resolved_matches[key] = resolve_token(request)
            except TokenVerificationError as error:
                if not is_optional:
                    errors.append(ValueError(str(error)))
        else:
            raise TypeError(f"match_getter incorrectly configured (doesn't support {type(value)})")

    if errors:
        raise ValueError(*errors)
    return resolved_matches


def match_getter(getter_function, *injection_parameters: Union[str, Optional],
                 **match_map: Union[str, GetFrom, Optional, Tuple[str, type]]):
    """
    Automatically fetches and includes an item, or 404's if it doesn't exist.

    .. code-block:: python

        @match_getter(get_cycle, "cycle", tag=("tag", str))
        async def get(self, cycle: Cycle)
            return web.json_response(data=cycle.serialize())

    Wrapping an injection parameter in :class:`Optional` passes ``None`` through
    instead of 404'ing, and wrapping a match map entry in it skips the entry when
    it cannot be resolved.

    :param getter_function: The function to fetch the item from.
    :param injection_parameters: The name of the parameter to pass the object as.
    :param match_map: Associates a kwarg on the ``getter_function`` to a url variable, or the session token.
    :return: A decorator that wraps the response and passes in the object.
    """

    def attach_instance(original_function):

        @wraps(original_function)
        async def new_func(self: View, **kwargs):
            try:
                params = resolve_match_map(self.request, match_map)
            except ValueError as error:
                response = {
                    "status": JSendStatus.FAIL,
                    "data": {
                        "message": "Errors with your request.",
                        "errors": flatten(error)
                    }
                }
                raise web.HTTPBadRequest(text=JSendSchema().dumps(response), content_type='application/json')

            item = getter_function(**params)
            if isawaitable(item):
                item = await item

            # if the getter function returns multiple items,
            # and there are multiple parameter names,
            # then set those keys in the decorated function
            if len(injection_parameters) > 1 and isinstance(item, tuple) and len(injection_parameters) == len(item):
                optional_injected_kwargs = dict(zip(injection_parameters, item))
            else:
                optional_injected_kwargs = {injection_parameters[0]: item}

            not_found = []
            injected_kwargs = {}
            for key, value in optional_injected_kwargs.items():
                if isinstance(key, Optional):
                    injected_kwargs[key.value] = value
                elif value is None:
                    not_found.append(key)
                else:
                    injected_kwargs[key] = value

            if not_found:
                response = {
                    "status": JSendStatus.FAIL,
                    "data": {
                        "message": f'Could not find {", ".join(not_found)} with the given params.',
                        "params": {key: str(value) for key, value in params.items() if key in match_map_keys}
                    }
                }
                raise web.HTTPNotFound(text=JSendSchema().dumps(response), content_type='application/json')

            return await original_function(self, **kwargs, **injected_kwargs)

        setup_apispec(new_func, original_function)

        return new_func

    match_map_keys = {key for key, value in match_map.items() if not _is_token(value)}

    def setup_apispec(new_func, original_function):
        """Carries the apispec documentation over, adding the responses this decorator can produce."""
        new_func.__apispec__ = getattr(original_function, "__apispec__", {"schemas": [], "responses": {}, "parameters": []})
        new_func.__schemas__ = getattr(original_function, "__schemas__", [])

        responses = new_func.__apispec__.setdefault("responses", {})
        responses.setdefault("404", {"description": "resource_missing"})
        responses.setdefault("400", {"description": "request_errors"})

    return attach_instance


def _is_token(value) -> bool:
    value = value.value if isinstance(value, Optional) else value
    return value == GetFrom.AUTH_HEADER
