"""
Decorators
----------
"""

from functools import wraps
from http import HTTPStatus

from aiohttp.web_urldispatcher import View

from kiosk.permissions.permission import RoutePermissionError, Permission
from kiosk.serializer.decorators import fail_response


def requires(permission: Permission):
    """A decorator that requires the given permission to be met to continue."""

    if not isinstance(permission, Permission):
        raise TypeError(f"Expected a Permission, not {type(permission)}")

    def decorator(original_function):

        @wraps(original_function)
        async def new_func(self: View, **kwargs):
            try:
                await permission(self, **kwargs)
            except RoutePermissionError as error:
                return fail_response(
                    f"You cannot do that because {error}.",
                    HTTPStatus.UNAUTHORIZED,
                    reasons=error.serialize()
                )

            return await original_function(self, **kwargs)

        new_func.permission = permission
        return new_func

    return decorator
