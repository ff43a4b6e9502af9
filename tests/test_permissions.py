from types import SimpleNamespace

import pytest

from kiosk.permissions import Permission, StaffIsActive, StaffIsAdmin
from kiosk.permissions.permission import RoutePermissionError


class BoolPermission(Permission):

    def __init__(self, expected_bool):
        self.expected_bool = expected_bool

    async def __call__(self, actual: bool, **kwargs) -> None:
        if not actual == self.expected_bool:
            raise RoutePermissionError(f"Got {actual}, expected {self.expected_bool}!")

    def __repr__(self):
        return f"Bool({self.expected_bool})"


true_permission = BoolPermission(True)
false_permission = BoolPermission(False)


class TestPermissionBoolean:

    async def test_permission_passes(self):
        """Assert that calling a permission that passes does not raise."""
        assert await true_permission(True) is None

    async def test_permission_fails(self):
        """Assert that calling a permission that fails raises a RoutePermissionError"""
        with pytest.raises(RoutePermissionError):
            await true_permission(False)

    async def test_or_permission(self):
        assert await (true_permission | false_permission)(True) is None

    async def test_or_permission_fail(self):
        """Assert that a failed or collects the reason of every part."""
        with pytest.raises(RoutePermissionError) as error:
            await (true_permission | false_permission)("FAIL")
        assert len(error.value.sub_errors) == 2
        assert len(error.value.serialize()) == 2
        assert ", or " in str(error.value)

    @pytest.mark.parametrize("permission,length", [
        (true_permission | true_permission | false_permission, 3),
        (true_permission | (false_permission | false_permission), 3),
    ])
    def test_or_permission_chaining(self, permission, length):
        assert len(permission) == length

    async def test_and_permission_fail(self):
        with pytest.raises(RoutePermissionError) as error:
            await (true_permission & false_permission)(True)
        assert len(error.value.sub_errors) == 1

    @pytest.mark.parametrize("permission,length", [
        ((true_permission | false_permission) & false_permission & (false_permission & true_permission), 4),
        (true_permission & false_permission & false_permission, 3),
    ])
    def test_and_permission_chaining(self, permission, length):
        assert len(permission) == length

    async def test_not_permission(self):
        not_true_permission = ~true_permission
        assert await not_true_permission(False) is None
        with pytest.raises(RoutePermissionError):
            await not_true_permission(True)

    def test_repr(self):
        assert repr(true_permission & ~false_permission) == "(Bool(True) & ~Bool(False))"

    def test_error_takes_messages_or_sub_errors(self):
        with pytest.raises(ValueError):
            RoutePermissionError("message", sub_errors=[RoutePermissionError("other")])


class TestStaffPermissions:

    view = SimpleNamespace(request={})

    async def test_active_staff(self, random_staff):
        assert await StaffIsActive()(self.view, staff=random_staff) is None

    async def test_no_staff(self):
        with pytest.raises(RoutePermissionError):
            await StaffIsActive()(self.view, staff=None)

    async def test_deactivated_staff(self, random_staff_factory):
        staff = await random_staff_factory(is_active=False)
        with pytest.raises(RoutePermissionError, match="deactivated"):
            await StaffIsActive()(self.view, staff=staff)

    async def test_admin(self, random_staff, random_admin):
        assert await StaffIsAdmin()(self.view, staff=random_admin) is None
        with pytest.raises(RoutePermissionError):
            await StaffIsAdmin()(self.view, staff=random_staff)
