from aiohttp.web_urldispatcher import View

from kiosk.models import Staff
from kiosk.permissions.permission import RoutePermissionError, Permission


class StaffIsActive(Permission):
    """Asserts that the token belongs to a staff member who may still operate the kiosk."""

    async def __call__(self, view: View, staff: Staff = None, **kwargs):
        if staff is None:
            raise RoutePermissionError("The supplied token does not belong to a staff member.")

        if not staff.is_active:
            raise RoutePermissionError("The staff account has been deactivated.")

    @property
    def openapi_security(self):
        return [{"SessionToken": ["staff"]}]


class StaffIsAdmin(Permission):
    """Asserts that the token belongs to an admin."""

    async def __call__(self, view: View, staff: Staff = None, **kwargs):
        if staff is None or not staff.is_admin:
            raise RoutePermissionError("The supplied token doesn't have admin rights.")

    @property
    def openapi_security(self):
        return [{"SessionToken": ["admin"]}]
