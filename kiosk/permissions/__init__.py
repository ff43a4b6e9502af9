"""
.. autoclasstree:: kiosk.permissions

This module contains the various permission types. A permission is essentially
just an object (either function or class) that can be called asynchronously
and raises a RoutePermissionError in the case of a failed permission.
"""

from kiosk.permissions.decorators import requires
from kiosk.permissions.permission import RoutePermissionError, Permission
from kiosk.permissions.staff import StaffIsActive, StaffIsAdmin
