"""
Permission
----------

Permissions compose with ``&``, ``|`` and ``~``. A failed permission raises a
:class:`RoutePermissionError`, and composite permissions collect the errors of
their parts so the client is told every reason it was turned away.
"""

from abc import ABC, abstractmethod
from itertools import chain
from typing import List

from aiohttp.web_urldispatcher import View


class RoutePermissionError(Exception):

    def __init__(self, *messages, qualifier=None, sub_errors: List['RoutePermissionError'] = None):
        """
        :param qualifier: The word joining the sub errors ("and" or "or").
        :param sub_errors: The errors of the permissions this one is made of.
        """
        if messages and (qualifier is not None or sub_errors is not None):
            raise ValueError("RoutePermissionError may either return a message or sub errors.")

        super().__init__(*messages)
        self.messages = messages
        self.sub_errors = sub_errors if sub_errors is not None else []
        self.qualifier = qualifier

    def __str__(self):
        """Prints a friendly description of the error."""
        if not self.sub_errors:
            return ", ".join(m.lower().strip(".") for m in self.messages)

        friendly_errors = [str(error) for error in self.sub_errors]
        if len(friendly_errors) > 1:
            friendly_errors[-1] = f"{self.qualifier} {friendly_errors[-1]}"
        return ", ".join(friendly_errors)

    def serialize(self) -> List[str]:
        """Flattens the messages of the error and its sub-errors."""
        return list(self.messages) + list(chain.from_iterable(err.serialize() for err in self.sub_errors))


class Permission(ABC):
    """
    The base class for permissions. Implements the boolean logic.
    """

    def __and__(self, other):
        return AndPermission.combine(self, other)

    def __or__(self, other):
        return OrPermission.combine(self, other)

    def __invert__(self):
        return NotPermission(self)

    @abstractmethod
    async def __call__(self, view: View, **kwargs) -> None:
        """
        Evaluates the permission object.

        :raises RoutePermissionError: If the permission failed.
        """


class CompositePermission(Permission, ABC):
    symbol = ""

    def __init__(self, *permissions: Permission):
        self._permissions = permissions

    @classmethod
    def combine(cls, *permissions: Permission):
        """Joins permissions, flattening any that are already of this kind."""
        flattened = []
        for permission in permissions:
            if isinstance(permission, cls):
                flattened.extend(permission._permissions)
            else:
                flattened.append(permission)
        return cls(*flattened)

    def __repr__(self):
        return "(" + f" {self.symbol} ".join(repr(p) for p in self._permissions) + ")"

    def __len__(self):
        return len(self._permissions)


class AndPermission(CompositePermission):
    """Passes when every permission passes."""
    symbol = "&"

    async def __call__(self, view, **kwargs):
        errors = []
        for permission in self._permissions:
            try:
                await permission(view, **kwargs)
            except RoutePermissionError as error:
                errors.append(error)

        if errors:
            raise RoutePermissionError(qualifier="and", sub_errors=errors)


class OrPermission(CompositePermission):
    """Passes when any permission passes."""
    symbol = "|"

    async def __call__(self, view, **kwargs):
        errors = []
        for permission in self._permissions:
            try:
                await permission(view, **kwargs)
            except RoutePermissionError as error:
                errors.append(error)
            else:
                return

        raise RoutePermissionError(qualifier="or", sub_errors=errors)


class NotPermission(Permission):

    def __init__(self, permission: Permission):
        self._permission = permission

    async def __call__(self, view, **kwargs):
        try:
            await self._permission(view, **kwargs)
        except RoutePermissionError:
            return
        raise RoutePermissionError(f"Permission {self._permission} passed, but is inverted.")

    def __repr__(self):
        return f"~{self._permission!r}"
