from datetime import datetime, timedelta

from kiosk.models import Staff


class Clock:
    """A clock the tests move by hand."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def __call__(self) -> datetime:
        return self.instant

    def advance(self, **kwargs):
        self.instant += timedelta(**kwargs)


def auth_header(staff: Staff):
    return {"Authorization": f"Bearer {staff.auth_id}"}
