"""
Dashboard
---------

The headline counts shown on the kiosk dashboard.
"""
from datetime import datetime
from typing import Any, Dict

from kiosk.models import Cycle, Rental, Staff, DamageReport
from kiosk.models.util import CycleStatus, RentalStatus, DamageStatus
from kiosk.service.access.rentals import PERIODS, period_start
from kiosk.timestamps import now as utc_now


async def get_dashboard_counts(now: datetime = None) -> Dict[str, Any]:
    """
    Gets the headline counts, along with the number of rentals started in each
    of the reporting periods.
    """
    now = now if now is not None else utc_now()
    return {
        "total_cycles": await Cycle.all().count(),
        "available_cycles": await Cycle.filter(status=CycleStatus.AVAILABLE).count(),
        "active_rentals": await Rental.filter(status=RentalStatus.ACTIVE).count(),
        "active_staff": await Staff.filter(is_active=True).count(),
        "open_damages": await DamageReport.filter(status__in=list(DamageStatus.open_states())).count(),
        "rentals": {
            period: await Rental.filter(start_time__gte=period_start(period, now)).count()
            for period in PERIODS
        },
    }
