"""
The models package contains all the models used on the server.

.. autoclasstree:: kiosk.models
"""

from .accessory import Accessory
from .customer import Customer
from .cycle import Cycle, CycleType
from .damage import DamageReport, DamageAccessory
from .location import Location
from .pricing import PricingSlab
from .rental import Rental, RentalAccessory
from .staff import Staff
