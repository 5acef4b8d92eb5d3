"""
Top-level models import shim for the Orders app, so that
`from apps.orders.models import Order` works while each model lives
in its own module.
"""

from .order import *          # Order
from .item import *           # OrderItem
from .timeline import *       # OrderTimeline
