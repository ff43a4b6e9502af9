"""
The kiosk API server. Staff at the counter scan cycles, rent them out, take
them back and settle up, and the workshop tracks damage through the same API.

Every module logs through the package ``logger``, which is chatty in
development and sticks to the transitions otherwise.
"""

import logging

from kiosk.config import server_mode

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(asctime)s %(name)-12s %(levelname)-8s %(message)s'))
logger.addHandler(handler)
logger.setLevel(logging.DEBUG if server_mode == "development" else logging.INFO)
